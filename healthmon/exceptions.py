"""Exception hierarchy for healthmon."""


class HealthmonError(Exception):
    """Base class for all healthmon errors."""


class ParseError(HealthmonError):
    """A counter source is unreadable or lacks the expected shape."""

    def __init__(self, message: str, source: str | None = None):
        super().__init__(message)
        self.source = source


class TransportError(HealthmonError):
    """An alert event could not be delivered to the monitoring endpoint."""


class ConfigError(HealthmonError):
    """Configuration file or values are invalid."""
