"""
MELT (metrics, events, logs, traces) ingestion exporter.

This package contains:
- model: entities and their telemetry records
- attributes: attribute / relationship encoding to OTLP
- payload: OTLP request builders
- dump: diagnostic renderings of built requests
- api / config: HTTP client and active profile
- exporter: the Exporter entry points
"""

__version__ = "0.1.0"

from melt.exporter import Exporter, MeltExportError
from melt.model import (
    DataPoint,
    Entity,
    Log,
    Metric,
    Relationship,
    Span,
    SpanEvent,
    SpanLink,
    SpanStatus,
    load_entities,
)

__all__ = [
    "Exporter",
    "MeltExportError",
    "Entity",
    "Relationship",
    "Metric",
    "DataPoint",
    "Log",
    "Span",
    "SpanEvent",
    "SpanLink",
    "SpanStatus",
    "load_entities",
]
