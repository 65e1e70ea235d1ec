"""
model.py
In-memory MELT model handed to the exporter.

An Entity bundles resource attributes, relationships and any of metrics,
logs (events are logs with is_event=True) and spans. Attribute values are
dynamically typed; melt.attributes maps them onto OTLP AnyValue kinds.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import yaml

CONTENT_TYPE_SUM = "sum"
CONTENT_TYPE_GAUGE = "gauge"

METRIC_TYPE_LONG = "long"
METRIC_TYPE_DOUBLE = "double"

AGGREGATION_TEMPORALITY_UNSPECIFIED = "unspecified"
AGGREGATION_TEMPORALITY_DELTA = "delta"
AGGREGATION_TEMPORALITY_CUMULATIVE = "cumulative"

IdLike = Union[str, bytes]


def _to_bytes(v: Optional[IdLike]) -> bytes:
    if v is None:
        return b""
    if isinstance(v, bytes):
        return v
    return str(v).encode("utf-8")


@dataclass
class Relationship:
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Relationship":
        return cls(attributes=dict(d.get("attributes") or {}))


@dataclass
class DataPoint:
    start_time: int
    end_time: int
    # Always a float; Metric.type decides how it goes on the wire
    value: float

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DataPoint":
        return cls(
            start_time=int(d.get("start_time") or 0),
            end_time=int(d.get("end_time") or 0),
            value=float(d.get("value") or 0.0),
        )


@dataclass
class Metric:
    type_name: str
    content_type: str = CONTENT_TYPE_SUM
    type: str = METRIC_TYPE_DOUBLE
    is_monotonic: bool = False
    aggregation_temporality: str = AGGREGATION_TEMPORALITY_UNSPECIFIED
    attributes: Dict[str, Any] = field(default_factory=dict)
    data_points: List[DataPoint] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Metric":
        return cls(
            type_name=d.get("type_name") or "",
            content_type=d.get("content_type") or CONTENT_TYPE_SUM,
            type=d.get("type") or METRIC_TYPE_DOUBLE,
            is_monotonic=bool(d.get("is_monotonic", False)),
            aggregation_temporality=d.get("aggregation_temporality") or AGGREGATION_TEMPORALITY_UNSPECIFIED,
            attributes=dict(d.get("attributes") or {}),
            data_points=[DataPoint.from_dict(p) for p in d.get("data_points") or []],
        )


@dataclass
class Log:
    type_name: str = ""
    body: str = ""
    timestamp: int = 0
    severity: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)
    is_event: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Log":
        return cls(
            type_name=d.get("type_name") or "",
            body=d.get("body") or "",
            timestamp=int(d.get("timestamp") or 0),
            severity=d.get("severity") or "",
            attributes=dict(d.get("attributes") or {}),
            is_event=bool(d.get("is_event", False)),
        )


@dataclass
class SpanEvent:
    timestamp: int
    name: str
    attributes: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpanEvent":
        return cls(
            timestamp=int(d.get("timestamp") or 0),
            name=d.get("name") or "",
            attributes=dict(d.get("attributes") or {}),
        )


@dataclass
class SpanLink:
    trace_id: bytes
    span_id: bytes
    trace_state: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        self.trace_id = _to_bytes(self.trace_id)
        self.span_id = _to_bytes(self.span_id)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpanLink":
        return cls(
            trace_id=d.get("trace_id"),
            span_id=d.get("span_id"),
            trace_state=d.get("trace_state") or "",
            attributes=dict(d.get("attributes") or {}),
        )


@dataclass
class SpanStatus:
    code: int = 0
    message: str = ""

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SpanStatus":
        return cls(code=int(d.get("code") or 0), message=d.get("message") or "")


@dataclass
class Span:
    """
    One span record. IDs are opaque byte strings; str values are UTF-8 encoded
    as given (they are not parsed as hex). kind is the raw OTLP SpanKind number.
    """
    name: str
    trace_id: bytes = b""
    span_id: bytes = b""
    parent_span_id: bytes = b""
    trace_state: str = ""
    kind: int = 0
    start_time: int = 0
    end_time: int = 0
    attributes: Dict[str, Any] = field(default_factory=dict)
    events: List[SpanEvent] = field(default_factory=list)
    links: List[SpanLink] = field(default_factory=list)
    status: Optional[SpanStatus] = None

    def __post_init__(self):
        self.trace_id = _to_bytes(self.trace_id)
        self.span_id = _to_bytes(self.span_id)
        self.parent_span_id = _to_bytes(self.parent_span_id)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Span":
        status = d.get("status")
        return cls(
            name=d.get("name") or "",
            trace_id=d.get("trace_id"),
            span_id=d.get("span_id"),
            parent_span_id=d.get("parent_span_id"),
            trace_state=d.get("trace_state") or "",
            kind=int(d.get("kind") or 0),
            start_time=int(d.get("start_time") or 0),
            end_time=int(d.get("end_time") or 0),
            attributes=dict(d.get("attributes") or {}),
            events=[SpanEvent.from_dict(e) for e in d.get("events") or []],
            links=[SpanLink.from_dict(link) for link in d.get("links") or []],
            status=SpanStatus.from_dict(status) if status is not None else None,
        )


@dataclass
class Entity:
    attributes: Dict[str, Any] = field(default_factory=dict)
    relationships: List[Relationship] = field(default_factory=list)
    metrics: List[Metric] = field(default_factory=list)
    logs: List[Log] = field(default_factory=list)
    spans: List[Span] = field(default_factory=list)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Entity":
        return cls(
            attributes=dict(d.get("attributes") or {}),
            relationships=[Relationship.from_dict(r) for r in d.get("relationships") or []],
            metrics=[Metric.from_dict(m) for m in d.get("metrics") or []],
            logs=[Log.from_dict(log) for log in d.get("logs") or []],
            spans=[Span.from_dict(s) for s in d.get("spans") or []],
        )


def load_entities(path: str) -> List[Entity]:
    """
    Reads a YAML model file of the form:

        entities:
          - attributes: {service.name: frontend}
            metrics: [...]
            logs: [...]
            spans: [...]
    """
    with open(path, "r", encoding="utf-8") as f:
        doc = yaml.safe_load(f) or {}

    if not isinstance(doc, dict):
        raise ValueError(f"Invalid MELT model file {path}: expected a mapping at the top level")

    return [Entity.from_dict(e) for e in doc.get("entities") or []]
