"""
payload.py
Builds OTLP export requests (metrics, logs, spans) from MELT entities.

One Resource{Metrics,Logs,Spans} per entity that has telemetry of the
requested kind, each with a single scope block carrying the sample-datagen
instrumentation scope. Record order follows the caller's order.

Spans do not get the relationships attribute; only metrics and logs do.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence

from opentelemetry.proto.collector.logs.v1.logs_service_pb2 import ExportLogsServiceRequest
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2 import ExportMetricsServiceRequest
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import ExportTraceServiceRequest
from opentelemetry.proto.common.v1.common_pb2 import AnyValue, InstrumentationScope, KeyValue
from opentelemetry.proto.logs.v1.logs_pb2 import LogRecord, ResourceLogs, ScopeLogs
from opentelemetry.proto.metrics.v1.metrics_pb2 import (
    AggregationTemporality,
    Gauge,
    Metric as OtelMetric,
    NumberDataPoint,
    ResourceMetrics,
    ScopeMetrics,
    Sum,
)
from opentelemetry.proto.resource.v1.resource_pb2 import Resource
from opentelemetry.proto.trace.v1.trace_pb2 import ResourceSpans, ScopeSpans, Span as OtelSpan

from melt.attributes import add_relationships, add_relationships_to_metrics, to_key_value_list
from melt.model import (
    AGGREGATION_TEMPORALITY_CUMULATIVE,
    AGGREGATION_TEMPORALITY_DELTA,
    CONTENT_TYPE_GAUGE,
    CONTENT_TYPE_SUM,
    METRIC_TYPE_DOUBLE,
    METRIC_TYPE_LONG,
    DataPoint,
    Entity,
    Log,
    Metric,
    Span,
)

logger = logging.getLogger(__name__)

AGENT_NAME = "sample-datagen"
AGENT_VERSION = "0.0.1"

KEY_APPD_IS_EVENT = "appd.isevent"
KEY_APPD_EVENT_TYPE = "appd.event.type"

_UINT64_MASK = (1 << 64) - 1

INT64_MIN = -(1 << 63)
INT64_MAX = (1 << 63) - 1


def _ns(t: int) -> int:
    # fixed64 fields: negative timestamps wrap like an unsigned cast
    return int(t) & _UINT64_MASK


def get_instrumentation_scope() -> InstrumentationScope:
    return InstrumentationScope(name=AGENT_NAME, version=AGENT_VERSION)


# -------- Metrics --------

def _number_data_points(m: Metric, attributes: List[KeyValue]) -> List[NumberDataPoint]:
    points: List[NumberDataPoint] = []
    for dp in m.data_points:
        p = NumberDataPoint(
            start_time_unix_nano=_ns(dp.start_time),
            time_unix_nano=_ns(dp.end_time),
            attributes=attributes,
        )
        _set_point_value(p, m.type, dp)
        points.append(p)
    return points


def _to_int64(value: float) -> int:
    """
    Truncates toward zero. NaN, infinities and values outside the int64 range
    become INT64_MIN, the result of a float->int64 conversion on amd64.
    """
    if isinstance(value, float) and not math.isfinite(value):
        return INT64_MIN
    v = int(value)
    if v < INT64_MIN or v > INT64_MAX:
        return INT64_MIN
    return v


def _set_point_value(p: NumberDataPoint, metric_type: str, dp: DataPoint) -> None:
    if metric_type == METRIC_TYPE_LONG:
        p.as_int = _to_int64(dp.value)
    elif metric_type == METRIC_TYPE_DOUBLE:
        p.as_double = float(dp.value)
    # any other type leaves the value unset


def create_otel_metric(m: Metric) -> Optional[OtelMetric]:
    """
    Translates one metric. Returns None (and logs an error) for content
    types other than sum and gauge.
    """
    if m.content_type == CONTENT_TYPE_SUM:
        temporality = AggregationTemporality.AGGREGATION_TEMPORALITY_UNSPECIFIED
        if m.aggregation_temporality == AGGREGATION_TEMPORALITY_DELTA:
            temporality = AggregationTemporality.AGGREGATION_TEMPORALITY_DELTA
        elif m.aggregation_temporality == AGGREGATION_TEMPORALITY_CUMULATIVE:
            temporality = AggregationTemporality.AGGREGATION_TEMPORALITY_CUMULATIVE

        return OtelMetric(
            name=m.type_name,
            sum=Sum(
                aggregation_temporality=temporality,
                is_monotonic=m.is_monotonic,
                data_points=_number_data_points(m, to_key_value_list(m.attributes)),
            ),
        )

    if m.content_type == CONTENT_TYPE_GAUGE:
        return OtelMetric(
            name=m.type_name,
            gauge=Gauge(data_points=_number_data_points(m, to_key_value_list(m.attributes))),
        )

    logger.error("unsupported metrics type: %s", m.content_type)
    return None


def build_metrics_payload(entities: Sequence[Entity]) -> ExportMetricsServiceRequest:
    request = ExportMetricsServiceRequest()

    for entity in entities:
        if not entity.metrics:
            continue

        rm = ResourceMetrics(resource=Resource(attributes=to_key_value_list(entity.attributes)))
        add_relationships_to_metrics(entity.relationships, rm)

        metrics = [otm for otm in (create_otel_metric(m) for m in entity.metrics) if otm is not None]
        rm.scope_metrics.append(ScopeMetrics(scope=get_instrumentation_scope(), metrics=metrics))

        request.resource_metrics.append(rm)

    return request


# -------- Logs / events --------

def create_otel_log(log: Log) -> LogRecord:
    """
    Translates one log. Event logs get appd.isevent / appd.event.type added
    to a copy of their attributes; the caller's mapping is left untouched.
    """
    attrs = dict(log.attributes)
    if log.is_event:
        attrs[KEY_APPD_IS_EVENT] = "true"
        attrs[KEY_APPD_EVENT_TYPE] = log.type_name

    record = LogRecord(
        body=AnyValue(string_value=log.body),
        time_unix_nano=_ns(log.timestamp),
        attributes=to_key_value_list(attrs),
    )
    if log.severity:
        record.severity_text = log.severity

    return record


def build_logs_payload(entities: Sequence[Entity]) -> ExportLogsServiceRequest:
    request = ExportLogsServiceRequest()

    for entity in entities:
        if not entity.logs:
            continue

        rl = ResourceLogs(resource=Resource(attributes=to_key_value_list(entity.attributes)))
        add_relationships(entity.relationships, rl.resource)

        rl.scope_logs.append(
            ScopeLogs(
                scope=get_instrumentation_scope(),
                log_records=[create_otel_log(log) for log in entity.logs],
            )
        )

        request.resource_logs.append(rl)

    return request


# -------- Spans --------

def create_otel_span(s: Span) -> OtelSpan:
    span = OtelSpan(
        name=s.name,
        trace_id=s.trace_id,
        span_id=s.span_id,
        trace_state=s.trace_state,
        parent_span_id=s.parent_span_id,
        kind=s.kind,
        start_time_unix_nano=_ns(s.start_time),
        end_time_unix_nano=_ns(s.end_time),
        attributes=to_key_value_list(s.attributes),
    )

    for e in s.events:
        span.events.append(
            OtelSpan.Event(
                time_unix_nano=_ns(e.timestamp),
                name=e.name,
                attributes=to_key_value_list(e.attributes),
            )
        )

    for link in s.links:
        span.links.append(
            OtelSpan.Link(
                trace_id=link.trace_id,
                span_id=link.span_id,
                trace_state=link.trace_state,
                attributes=to_key_value_list(link.attributes),
            )
        )

    if s.status is not None:
        span.status.SetInParent()
        span.status.code = s.status.code
        span.status.message = s.status.message

    return span


def build_spans_payload(entities: Sequence[Entity]) -> ExportTraceServiceRequest:
    request = ExportTraceServiceRequest()

    for entity in entities:
        if not entity.spans:
            continue

        # no relationships attribute here (see module docstring)
        rs = ResourceSpans(resource=Resource(attributes=to_key_value_list(entity.attributes)))
        rs.scope_spans.append(
            ScopeSpans(
                scope=get_instrumentation_scope(),
                spans=[create_otel_span(s) for s in entity.spans],
            )
        )

        request.resource_spans.append(rs)

    return request
