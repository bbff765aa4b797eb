"""Outbound adapters: graph exporters, metrics and tracing."""

from resource_proto.adapters.outbound.exporters import (
    CypherExporter,
    DotExporter,
    GraphMLExporter,
    get_exporter,
)
from resource_proto.adapters.outbound.metrics import PrometheusExporter
from resource_proto.adapters.outbound.tracing import OpenTelemetryTracer

__all__ = [
    "CypherExporter",
    "DotExporter",
    "GraphMLExporter",
    "get_exporter",
    "PrometheusExporter",
    "OpenTelemetryTracer",
]
