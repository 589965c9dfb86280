"""Healthmon UI - Terminal output components."""

from .console import HealthmonConsole, console
from .theme import HEALTHMON_THEME

__all__ = ["console", "HealthmonConsole", "HEALTHMON_THEME"]
