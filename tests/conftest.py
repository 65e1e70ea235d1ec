"""Shared fixtures for exporter tests."""

from typing import Any, Dict, List, Optional, Sequence

import pytest
from opentelemetry.proto.common.v1.common_pb2 import AnyValue, KeyValue

from melt.api import Options
from melt.config import AUTH_METHOD_AGENT_PRINCIPAL, AUTH_METHOD_OAUTH, Context
from melt.model import (
    AGGREGATION_TEMPORALITY_CUMULATIVE,
    CONTENT_TYPE_SUM,
    METRIC_TYPE_LONG,
    DataPoint,
    Entity,
    Log,
    Metric,
    Span,
    SpanEvent,
    SpanStatus,
)


class RecordingPost:
    """Stands in for melt.api.http_post and records every call."""

    def __init__(self, response_headers: Optional[Dict[str, List[str]]] = None, error: Optional[Exception] = None):
        self.calls: List[Dict[str, Any]] = []
        self._response_headers = response_headers or {}
        self._error = error

    def __call__(self, path: str, body: bytes, response: Any = None, options: Optional[Options] = None) -> None:
        self.calls.append({"path": path, "body": body, "headers": dict(options.headers) if options else {}})
        if self._error is not None:
            raise self._error
        if options is not None:
            options.response_headers = dict(self._response_headers)


def any_value_to_python(v: AnyValue) -> Any:
    """Decodes an OTLP AnyValue back into plain python (arrays and kvlists included)."""
    which = v.WhichOneof("value")
    if which is None:
        return None

    if which == "array_value":
        return [any_value_to_python(x) for x in v.array_value.values]
    if which == "kvlist_value":
        return attrs_to_dict(v.kvlist_value.values)
    if which == "bytes_value":
        return bytes(v.bytes_value).hex()

    return getattr(v, which)


def attrs_to_dict(attrs: Sequence[KeyValue]) -> Dict[str, Any]:
    return {a.key: any_value_to_python(a.value) for a in attrs}


@pytest.fixture
def recording_post() -> RecordingPost:
    return RecordingPost(response_headers={"Traceresponse": ["00-abc-def-01", "ignored"]})


@pytest.fixture
def oauth_context() -> Context:
    return Context(name="dev", url="https://tenant.example.com", auth_method=AUTH_METHOD_OAUTH)


@pytest.fixture
def agent_context() -> Context:
    return Context(name="agent", url="https://tenant.example.com", auth_method=AUTH_METHOD_AGENT_PRINCIPAL)


@pytest.fixture
def metrics_entity() -> Entity:
    return Entity(
        attributes={"service": "x"},
        metrics=[
            Metric(
                type_name="reqs",
                content_type=CONTENT_TYPE_SUM,
                type=METRIC_TYPE_LONG,
                is_monotonic=True,
                aggregation_temporality=AGGREGATION_TEMPORALITY_CUMULATIVE,
                data_points=[DataPoint(start_time=1, end_time=2, value=7.0)],
            )
        ],
    )


@pytest.fixture
def event_log() -> Log:
    return Log(
        type_name="user.login",
        body="hi",
        timestamp=5,
        severity="INFO",
        attributes={"user": "r"},
        is_event=True,
    )


@pytest.fixture
def spans_entity() -> Entity:
    return Entity(
        attributes={"service": "x"},
        spans=[
            Span(
                name="op",
                trace_id="t",
                span_id="s",
                events=[SpanEvent(timestamp=9, name="e")],
                status=SpanStatus(code=1, message="ok"),
            )
        ],
    )
