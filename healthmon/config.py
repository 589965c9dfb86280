"""Configuration loading for healthmon.

Settings are layered, later layers winning:

    1. built-in defaults
    2. YAML file (--config, or ~/.healthmon/config.yaml when present)
    3. HEALTHMON_* environment variables
    4. command-line flags

Example config.yaml:

    host: monitoring.internal
    port: 5555
    interval: 10
    checks: [cpu, memory, disk]
    tags: [production]
    thresholds:
      cpu: {warning: 0.8, critical: 0.9}
      load: {warning: 2, critical: 6}
"""

import logging
import os
import socket
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Optional

import yaml

from healthmon.exceptions import ConfigError
from healthmon.monitor.thresholds import RESOURCES, ResourceThresholds, Thresholds

logger = logging.getLogger(__name__)

CONFIG_DIR = Path.home() / ".healthmon"
CONFIG_FILE = CONFIG_DIR / "config.yaml"
ENV_PREFIX = "HEALTHMON_"

_DEFAULT_THRESHOLDS = ResourceThresholds()


def _split_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item) for item in value]


def _required_str(value: Any) -> str:
    if value is None or value == "":
        raise ValueError("a non-empty value is required")
    return str(value)


def _optional_float(value: Any) -> Optional[float]:
    return None if value in (None, "") else float(value)


def _optional_str(value: Any) -> Optional[str]:
    return None if value in (None, "") else str(value)


# Flat setting name -> converter
_CONVERTERS: dict[str, Callable[[Any], Any]] = {
    "host": _required_str,
    "port": int,
    "path": _required_str,
    "interval": float,
    "timeout": float,
    "retries": int,
    "ttl": _optional_float,
    "event_host": _optional_str,
    "proc_root": _required_str,
    "checks": _split_list,
    "tags": _split_list,
}
for _resource in RESOURCES:
    _CONVERTERS[f"{_resource}_warning"] = float
    _CONVERTERS[f"{_resource}_critical"] = float


@dataclass
class HealthConfig:
    """Startup configuration; not changed while the monitor runs."""

    host: str = "localhost"
    port: int = 5555
    path: str = "/events"
    interval: float = 5.0
    timeout: float = 5.0
    retries: int = 3
    ttl: Optional[float] = None
    event_host: Optional[str] = None
    proc_root: str = "/proc"
    checks: list[str] = field(default_factory=lambda: list(RESOURCES))
    tags: list[str] = field(default_factory=list)
    thresholds: ResourceThresholds = field(default_factory=ResourceThresholds)

    def __post_init__(self):
        if self.interval <= 0:
            raise ConfigError("interval must be positive")
        if not 0 < self.port < 65536:
            raise ConfigError(f"port out of range: {self.port}")
        if self.timeout <= 0:
            raise ConfigError("timeout must be positive")
        if self.retries < 1:
            raise ConfigError("retries must be at least 1")
        unknown = set(self.checks) - set(RESOURCES)
        if unknown:
            raise ConfigError(
                f"Unknown checks: {', '.join(sorted(unknown))} "
                f"(choose from {', '.join(RESOURCES)})"
            )
        if not self.checks:
            raise ConfigError("at least one check must be enabled")

    @property
    def effective_ttl(self) -> float:
        """Event TTL; defaults to two polling intervals."""
        return self.ttl if self.ttl is not None else self.interval * 2

    @property
    def effective_event_host(self) -> str:
        return self.event_host or socket.gethostname()


def _flatten_file(data: Mapping[str, Any]) -> dict[str, Any]:
    """Turn the nested YAML document into flat setting names."""
    flat: dict[str, Any] = {}
    for key, value in data.items():
        if key == "thresholds":
            if not isinstance(value, Mapping):
                raise ConfigError("thresholds must be a mapping")
            for resource, pair in value.items():
                if resource not in RESOURCES or not isinstance(pair, Mapping):
                    raise ConfigError(f"Invalid thresholds entry: {resource}")
                for level in ("warning", "critical"):
                    if level in pair:
                        flat[f"{resource}_{level}"] = pair[level]
        elif not isinstance(key, str):
            raise ConfigError(f"Setting names must be strings, got {key!r}")
        else:
            flat[key.replace("-", "_")] = value
    return flat


def read_config_file(path: Optional[Path]) -> dict[str, Any]:
    """Read a YAML config file into flat settings.

    An explicit path must exist; the default location is optional.
    """
    explicit = path is not None
    path = Path(path) if explicit else CONFIG_FILE

    if not path.exists():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        return {}

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot load {path}: {e}") from e

    if not isinstance(data, Mapping):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    logger.debug(f"Loaded configuration from {path}")
    return _flatten_file(data)


def read_environment(environ: Mapping[str, str]) -> dict[str, Any]:
    """Collect HEALTHMON_* variables as flat settings."""
    flat = {}
    for name in _CONVERTERS:
        value = environ.get(ENV_PREFIX + name.upper())
        if value is not None:
            flat[name] = value
    return flat


def build_config(settings: Mapping[str, Any]) -> HealthConfig:
    """Convert merged flat settings into a validated HealthConfig."""
    values: dict[str, Any] = {}
    for name, raw in settings.items():
        converter = _CONVERTERS.get(name)
        if converter is None:
            raise ConfigError(f"Unknown setting: {name}")
        try:
            values[name] = converter(raw)
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid value for {name}: {raw!r}") from e

    pairs = {}
    for resource in RESOURCES:
        default = getattr(_DEFAULT_THRESHOLDS, resource)
        warning = values.pop(f"{resource}_warning", default.warning)
        critical = values.pop(f"{resource}_critical", default.critical)
        try:
            pairs[resource] = Thresholds(warning=warning, critical=critical)
        except ValueError as e:
            raise ConfigError(f"{resource}: {e}") from e

    return HealthConfig(thresholds=ResourceThresholds(**pairs), **values)


def load_config(
    path: Optional[Path] = None,
    environ: Optional[Mapping[str, str]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> HealthConfig:
    """Load configuration from file, environment and explicit overrides.

    Args:
        path: Optional YAML file; ~/.healthmon/config.yaml is used if present
        environ: Environment mapping (defaults to os.environ)
        overrides: Settings from the command line; None values are ignored

    Raises:
        ConfigError: If any layer holds an invalid value
    """
    settings: dict[str, Any] = {}
    settings.update(read_config_file(path))
    settings.update(read_environment(os.environ if environ is None else environ))
    settings.update({k: v for k, v in (overrides or {}).items() if v is not None})
    return build_config(settings)
