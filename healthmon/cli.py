import argparse
import logging
import sys
from dataclasses import replace
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from healthmon import __version__
from healthmon.config import HealthConfig, load_config
from healthmon.exceptions import ConfigError
from healthmon.monitor import (
    AlertDispatcher,
    MetricReader,
    PsutilProcessReport,
    Scheduler,
)
from healthmon.monitor.thresholds import RESOURCES
from healthmon.transport import TRANSPORT_RETRY_CONFIG, ConsoleTransport, HttpTransport
from healthmon.ui import console

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Send diagnostics to stderr through rich."""
    handler = RichHandler(
        console=Console(stderr=True),
        show_path=verbose,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )
    # Suppress noisy connection-pool chatter
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="healthmon",
        description="Report CPU, memory, load and disk health to a monitoring endpoint.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--config", type=Path, help="YAML configuration file")
    parser.add_argument("--host", help="Monitoring endpoint host (default: localhost)")
    parser.add_argument("--port", type=int, help="Monitoring endpoint port (default: 5555)")
    parser.add_argument("--path", help="HTTP path events are posted to (default: /events)")
    parser.add_argument("--interval", type=float, help="Seconds between ticks (default: 5)")
    parser.add_argument("--timeout", type=float, help="HTTP request timeout in seconds")
    parser.add_argument("--retries", type=int, help="Delivery attempts per event")
    parser.add_argument("--ttl", type=float, help="Event TTL in seconds (default: 2x interval)")
    parser.add_argument("--event-host", help="Host name stamped on events")
    parser.add_argument("--proc-root", help="Directory holding kernel counters (default: /proc)")
    parser.add_argument(
        "--checks",
        help=f"Comma-separated checks to run (default: {','.join(RESOURCES)})",
    )
    parser.add_argument(
        "--tag",
        dest="tags",
        action="append",
        help="Tag added to every event (repeatable)",
    )

    thresholds = parser.add_argument_group("thresholds")
    for resource in RESOURCES:
        for level in ("warning", "critical"):
            thresholds.add_argument(
                f"--{resource}-{level}",
                type=float,
                dest=f"{resource}_{level}",
                metavar="VALUE",
            )

    parser.add_argument("--once", action="store_true", help="Run a single tick and exit")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print events to the terminal instead of sending them",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    names = [
        "host", "port", "path", "interval", "timeout", "retries",
        "ttl", "event_host", "proc_root", "checks", "tags",
    ]
    names += [f"{r}_{level}" for r in RESOURCES for level in ("warning", "critical")]
    return {name: getattr(args, name) for name in names}


def show_config(config: HealthConfig, dry_run: bool) -> None:
    table = Table(show_header=True, header_style="brand", box=None)
    table.add_column("Check")
    table.add_column("Warning", justify="right")
    table.add_column("Critical", justify="right")
    for resource in config.checks:
        pair = config.thresholds.for_resource(resource)
        table.add_row(resource, f"{pair.warning:g}", f"{pair.critical:g}")

    target = "terminal (dry run)" if dry_run else f"{config.host}:{config.port}{config.path}"
    console.info(f"healthmon {__version__} reporting to {target} every {config.interval:g}s")
    console.panel(table, title="Thresholds", style="brand")


def build_scheduler(config: HealthConfig, dry_run: bool = False) -> Scheduler:
    """Wire reader, dispatcher and transport from configuration."""
    if dry_run:
        transport = ConsoleTransport()
    else:
        retry_config = replace(TRANSPORT_RETRY_CONFIG, max_attempts=config.retries)
        transport = HttpTransport(
            config.host,
            config.port,
            path=config.path,
            timeout=config.timeout,
            retry_config=retry_config,
        )

    dispatcher = AlertDispatcher(
        transport,
        reports=PsutilProcessReport(),
        event_host=config.effective_event_host,
        ttl=config.effective_ttl,
        tags=config.tags,
    )
    return Scheduler(
        MetricReader(proc_root=config.proc_root),
        dispatcher,
        thresholds=config.thresholds,
        interval=config.interval,
        checks=config.checks,
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)
    load_dotenv(find_dotenv(usecwd=True))

    try:
        config = load_config(args.config, overrides=_overrides(args))
    except ConfigError as e:
        console.error("Invalid configuration", details=str(e))
        return 1

    show_config(config, args.dry_run)
    scheduler = build_scheduler(config, dry_run=args.dry_run)

    try:
        scheduler.run(max_ticks=1 if args.once else None)
    except KeyboardInterrupt:
        console.secondary("Monitoring stopped by user")
    finally:
        scheduler.dispatcher.transport.close()

    if args.once and scheduler.error_count:
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
