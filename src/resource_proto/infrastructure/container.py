"""Dependency injection container for the resource prototype.

Wires configuration, logging, metrics and tracing once per process and
builds coordinators that share them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import ClassVar, Optional

import structlog

from resource_proto.adapters.outbound.metrics import PrometheusExporter
from resource_proto.adapters.outbound.tracing import OpenTelemetryTracer
from resource_proto.application.coordinator import ResourceMatchingCoordinator
from resource_proto.infrastructure.config import Config, get_config
from resource_proto.infrastructure.logging import setup_logging
from resource_proto.infrastructure.metrics import get_metrics
from resource_proto.infrastructure.tracing import setup_tracing


@dataclass
class Container:
    """Process-wide collaborators of the resource matching workflow."""

    config: Config
    logger: structlog.stdlib.BoundLogger
    metrics: PrometheusExporter
    tracer: OpenTelemetryTracer

    _instance: ClassVar[Optional[Container]] = None

    @classmethod
    def create(cls, config: Optional[Config] = None) -> Container:
        """Create the container on first use; later calls return it unchanged."""
        if cls._instance is not None:
            return cls._instance

        config = config or get_config()
        logger = setup_logging(config)
        cls._instance = cls(
            config=config,
            logger=logger,
            metrics=PrometheusExporter(get_metrics()),
            tracer=OpenTelemetryTracer(setup_tracing(config)),
        )

        logger.info(
            "resource_proto_container_initialized",
            environment=config.observability.environment,
            scale=config.graph.scale,
            matcher=config.matcher.name,
        )
        return cls._instance

    @classmethod
    def get(cls) -> Container:
        return cls._instance or cls.create()

    @classmethod
    def reset(cls) -> None:
        """Drop the singleton (tests)."""
        cls._instance = None

    def coordinator(
        self,
        scale: Optional[str] = None,
        deadline_seconds: Optional[float] = None,
    ) -> ResourceMatchingCoordinator:
        """Build the test graph of a scale tier, instrumented by this container.

        Args:
            scale: Tier name; the configured one if None.
            deadline_seconds: Walk deadline; the configured one if None.

        Raises:
            ValueError: If the tier name is unknown.
            ValidationError: If the tier's specification is invalid.
        """
        if deadline_seconds is None:
            deadline_seconds = self.config.matcher.deadline_seconds
        return ResourceMatchingCoordinator.for_scale(
            scale or self.config.graph.scale,
            metrics=self.metrics,
            tracer=self.tracer,
            deadline_seconds=deadline_seconds,
        )
