"""structlog logging setup for avert and the application hosting it."""

import logging
import sys
from typing import TextIO

import structlog


def _rename_logger_to_module(
    logger: logging.Logger, method_name: str, event_dict: dict
) -> dict:
    """Rename 'logger' key to 'module' for structured log field consistency."""
    if "logger" in event_dict:
        event_dict["module"] = event_dict.pop("logger")
    return event_dict


def _tag_plugin(logger: logging.Logger, method_name: str, event_dict: dict) -> dict:
    """Mark events emitted from the avert package."""
    if event_dict.get("module", "").startswith("avert"):
        event_dict.setdefault("plugin", "avert")
    return event_dict


def _event_processors() -> list[structlog.types.Processor]:
    # Run for structlog events before they are handed to stdlib logging
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        _rename_logger_to_module,
        _tag_plugin,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
    ]


def _make_handler(json_format: bool, stream: TextIO | None) -> logging.Handler:
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_format
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    return handler


def setup_logging(log_level: str = "info", json_format: bool = True, stream: TextIO | None = None) -> None:
    """Route structlog through stdlib logging, rendered as JSON or console lines.

    The root logger gets a single handler writing to ``stream`` (stdout by
    default); an unknown ``log_level`` falls back to INFO. Request-scoped
    values bound with ``structlog.contextvars`` (request_id, route) are merged
    into every event.
    """
    structlog.configure(
        processors=_event_processors(),
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(_make_handler(json_format, stream))
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
