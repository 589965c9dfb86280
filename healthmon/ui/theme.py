"""
Healthmon UI Theme - Severity colours and console styles.
"""

from rich.style import Style
from rich.theme import Theme

from healthmon.monitor.thresholds import Severity

_PALETTE = {
    "ok": "#22c55e",
    "warning": "#eab308",
    "critical": "#ef4444",
    "unknown": "#a855f7",
    "info": "#3b82f6",
    "text": "#ffffff",
    "dim": "#6b7280",
    "border": "#4b5563",
}

# Theme style used to render each alert state
SEVERITY_STYLES = {severity: f"severity.{severity.value}" for severity in Severity}

HEALTHMON_THEME = Theme({
    "severity.ok": Style(color=_PALETTE["ok"], bold=True),
    "severity.warning": Style(color=_PALETTE["warning"], bold=True),
    "severity.critical": Style(color=_PALETTE["critical"], bold=True),
    "severity.unknown": Style(color=_PALETTE["unknown"], bold=True),
    "info": Style(color=_PALETTE["info"]),
    "error": Style(color=_PALETTE["critical"], bold=True),
    "primary": Style(color=_PALETTE["text"]),
    "secondary": Style(color=_PALETTE["dim"], dim=True),
    "muted": Style(color=_PALETTE["dim"]),
    "brand": Style(color=_PALETTE["ok"], bold=True),
    "panel_border": Style(color=_PALETTE["border"]),
})

PANEL_STYLES = {
    "default": {"border_style": "panel_border", "title_align": "left", "padding": (0, 1)},
    "brand": {"border_style": "brand", "title_align": "left", "padding": (0, 1)},
}
