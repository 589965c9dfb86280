"""Healthmon Console - Themed console singleton for operator messages."""

from typing import Optional

from rich.console import Console as RichConsole
from rich.panel import Panel

from .theme import HEALTHMON_THEME, PANEL_STYLES


class HealthmonConsole:
    """Shared stdout console for startup and shutdown messages."""

    _instance: Optional['HealthmonConsole'] = None

    def __new__(cls) -> 'HealthmonConsole':
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._console = RichConsole(theme=HEALTHMON_THEME)
        return cls._instance

    @property
    def rich(self) -> RichConsole:
        return self._console

    def info(self, message: str) -> None:
        self._console.print(f"[info]●[/] {message}")

    def error(self, message: str, details: Optional[str] = None) -> None:
        self._console.print(f"[error]✗ {message}[/]")
        if details:
            self._console.print(f"  [secondary]{details}[/]")

    def secondary(self, message: str) -> None:
        self._console.print(f"  [secondary]{message}[/]")

    def panel(self, content, title: str = "", style: str = "default") -> None:
        panel = Panel(content, title=title or None, **PANEL_STYLES.get(style, PANEL_STYLES["default"]))
        self._console.print(panel)


console = HealthmonConsole()
