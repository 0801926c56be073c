"""Logging and Logfire telemetry for the init pipeline.

Every pipeline event is written to the standard ``logging`` hierarchy. Once
``configure_telemetry`` has run (the CLI does this on startup), the same
events are also recorded as Logfire logs. Cloud export only happens when a
``LOGFIRE_TOKEN`` is configured; otherwise Logfire stays local-only.
"""

from __future__ import annotations

import logging
from typing import Any

import logfire
from rich.console import Console
from rich.logging import RichHandler

from init_kit.settings import InitKitSettings

logger = logging.getLogger(__name__)

_telemetry_configured = False


def configure_logging(level: str = "WARNING") -> None:
    """Route ``init_kit`` loggers through a RichHandler on stderr."""
    package_logger = logging.getLogger("init_kit")
    package_logger.setLevel(level)
    if any(isinstance(h, RichHandler) for h in package_logger.handlers):
        return
    handler = RichHandler(
        console=Console(stderr=True),
        show_time=False,
        show_path=False,
        markup=False,
    )
    package_logger.addHandler(handler)
    package_logger.propagate = False


def configure_telemetry(settings: InitKitSettings) -> None:
    """Configure Logfire once per process."""
    global _telemetry_configured
    if _telemetry_configured:
        return

    if settings.logfire_token is not None:
        logfire.configure(
            service_name="init-kit",
            send_to_logfire="if-token-present",
            token=settings.logfire_token.get_secret_value(),
            inspect_arguments=False,
            console=False,
        )
    else:
        # Local-only mode (no cloud sync)
        logfire.configure(
            service_name="init-kit",
            send_to_logfire=False,
            inspect_arguments=False,
            console=False,
        )
    _telemetry_configured = True


def is_telemetry_configured() -> bool:
    return _telemetry_configured


def log_pipeline_event(event_type: str, **attributes: Any) -> None:
    """Record a pipeline event in the log and, when configured, in Logfire."""
    logger.info("Init pipeline: %s %s", event_type, attributes)
    if _telemetry_configured:
        logfire.info("Init pipeline: {event_type}", event_type=event_type, **attributes)
