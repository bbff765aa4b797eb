"""Structured logging for the resource prototype.

Domain services log through the stdlib ``logging`` module; the handler
installed here renders those records and native structlog events alike.
Output goes to stderr so that command output on stdout (the timing
banner, listings) stays machine-readable.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import Processor

import resource_proto
from resource_proto.infrastructure.config import Config, get_config

# Third-party loggers that are noisy at INFO
_QUIET_LOGGERS = ("opentelemetry", "grpc")


def add_service_context(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Tag every log entry with the service name and version."""
    event_dict["service"] = "resource_proto"
    event_dict["version"] = resource_proto.__version__
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        add_service_context,
    ]


def _renderer(log_format: str) -> Processor:
    if log_format == "json":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def setup_logging(
    config: Config | None = None, stream: TextIO | None = None
) -> structlog.stdlib.BoundLogger:
    """Route structlog and stdlib logging through one formatter.

    Args:
        config: Configuration; the cached global one if None.
        stream: Destination of log lines; stderr if None.
    """
    config = config or get_config()
    shared = _shared_processors()

    structlog.configure(
        processors=shared + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                _renderer(config.observability.log_format),
            ],
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(config.observability.log_level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return structlog.get_logger("resource_proto")


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a logger, bound to a component name if one is given."""
    logger = structlog.get_logger("resource_proto")
    return logger.bind(component=name) if name else logger
