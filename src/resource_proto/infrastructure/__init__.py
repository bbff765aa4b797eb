"""Infrastructure layer - cross-cutting concerns."""

from resource_proto.infrastructure.config import Config, get_config
from resource_proto.infrastructure.logging import setup_logging, get_logger
from resource_proto.infrastructure.metrics import get_metrics, MetricsRegistry
from resource_proto.infrastructure.tracing import setup_tracing, get_tracer

__all__ = [
    "Config",
    "get_config",
    "setup_logging",
    "get_logger",
    "get_metrics",
    "MetricsRegistry",
    "setup_tracing",
    "get_tracer",
]
