"""Alert transports.

HttpTransport posts events as JSON to the monitoring endpoint;
ConsoleTransport prints them instead, for dry runs.
"""

import logging
from typing import Optional

import requests
from rich.console import Console
from rich.text import Text

from healthmon.exceptions import TransportError
from healthmon.monitor.dispatcher import AlertEvent
from healthmon.retry import RetryConfig, RetryManager
from healthmon.ui.theme import SEVERITY_STYLES

logger = logging.getLogger(__name__)

DEFAULT_PATH = "/events"
DEFAULT_TIMEOUT = 5.0

TRANSPORT_RETRY_CONFIG = RetryConfig(
    max_attempts=3,
    base_delay=0.5,
    max_delay=5.0,
    retryable_exceptions=(requests.RequestException,),
)


class HttpTransport:
    """Delivers events to http://host:port/path as JSON."""

    def __init__(
        self,
        host: str,
        port: int,
        path: str = DEFAULT_PATH,
        timeout: float = DEFAULT_TIMEOUT,
        retry_config: Optional[RetryConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        if not path.startswith("/"):
            path = "/" + path
        self.url = f"http://{host}:{port}{path}"
        self.timeout = timeout
        self.session = session or requests.Session()
        self.retry = RetryManager(retry_config or TRANSPORT_RETRY_CONFIG)

    def _post(self, payload: dict) -> None:
        response = self.session.post(self.url, json=payload, timeout=self.timeout)
        response.raise_for_status()

    def send(self, event: AlertEvent) -> None:
        result = self.retry.execute(self._post, event.to_dict())
        if not result.success:
            raise TransportError(
                f"Failed to deliver {event.service!r} to {self.url} "
                f"after {result.attempts} attempts: {result.final_error}"
            ) from result.final_error

    def close(self) -> None:
        self.session.close()


class ConsoleTransport:
    """Prints events to a rich console."""

    def __init__(self, console: Optional[Console] = None):
        if console is None:
            from healthmon.ui.console import console as healthmon_console

            console = healthmon_console.rich
        self.console = console

    def send(self, event: AlertEvent) -> None:
        style = SEVERITY_STYLES[event.state]
        metric = "-" if event.metric is None else f"{event.metric:.4f}"

        line = Text()
        line.append(f"{event.state.value.upper():<8}", style=style)
        line.append(f" {event.service:<20}", style="primary")
        line.append(f" {metric:>8}  ", style="secondary")
        summary, _, details = event.description.partition("\n")
        line.append(summary)
        if event.tags:
            line.append(f"  [{', '.join(event.tags)}]", style="muted")
        self.console.print(line)

        if details.strip():
            self.console.print(Text(details.strip("\n"), style="secondary"))

    def close(self) -> None:
        pass
