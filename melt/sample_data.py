"""
sample_data.py
Generates synthetic MELT entities for testing the exporter.

Scenario: checkout flow where frontend calls cart-service and the
cart-service database times out.

frontend -> cart-service (ERROR)
"""

import random
import time
from typing import List, Optional

from melt.model import (
    AGGREGATION_TEMPORALITY_CUMULATIVE,
    CONTENT_TYPE_GAUGE,
    CONTENT_TYPE_SUM,
    METRIC_TYPE_DOUBLE,
    METRIC_TYPE_LONG,
    DataPoint,
    Entity,
    Log,
    Metric,
    Relationship,
    Span,
    SpanEvent,
    SpanLink,
    SpanStatus,
)

SPAN_KIND_SERVER = 2
SPAN_KIND_CLIENT = 3

STATUS_CODE_OK = 1
STATUS_CODE_ERROR = 2


def generate_trace_id() -> bytes:
    """Generate a random 16-byte trace ID."""
    return random.randbytes(16)


def generate_span_id() -> bytes:
    """Generate a random 8-byte span ID."""
    return random.randbytes(8)


def _resource(service_name: str, service_version: str, env: str = "production") -> dict:
    return {
        "service.name": service_name,
        "service.version": service_version,
        "deployment.environment.name": env,
    }


def create_sample_entities(now_nano: Optional[int] = None) -> List[Entity]:
    now_nano = now_nano if now_nano is not None else time.time_ns()
    minute_ago = now_nano - 60_000_000_000

    trace_id = generate_trace_id()
    frontend_span_id = generate_span_id()
    cart_span_id = generate_span_id()

    frontend = Entity(
        attributes=_resource("frontend", "2.1.0"),
        relationships=[
            Relationship(attributes={"type": "calls", "from": "frontend", "to": "cart-service"}),
        ],
        metrics=[
            Metric(
                type_name="http.server.request.count",
                content_type=CONTENT_TYPE_SUM,
                type=METRIC_TYPE_LONG,
                is_monotonic=True,
                aggregation_temporality=AGGREGATION_TEMPORALITY_CUMULATIVE,
                data_points=[DataPoint(start_time=minute_ago, end_time=now_nano, value=200)],
            ),
            Metric(
                type_name="http.server.duration",
                content_type=CONTENT_TYPE_GAUGE,
                type=METRIC_TYPE_DOUBLE,
                attributes={"http.route": "/checkout"},
                data_points=[DataPoint(start_time=minute_ago, end_time=now_nano, value=150.0)],
            ),
        ],
        logs=[
            Log(
                type_name="user.checkout",
                body="Checkout started for user_id=12345",
                timestamp=now_nano,
                attributes={"user_id": "12345"},
                is_event=True,
            ),
        ],
        spans=[
            Span(
                name="GET /checkout",
                trace_id=trace_id,
                span_id=frontend_span_id,
                kind=SPAN_KIND_SERVER,
                start_time=now_nano,
                end_time=now_nano + 150_000_000,  # 150ms
                attributes={"http.method": "GET", "http.route": "/checkout", "http.status_code": 500},
                status=SpanStatus(code=STATUS_CODE_ERROR, message="cart-service failed"),
            ),
        ],
    )

    cart = Entity(
        attributes=_resource("cart-service", "1.2.0"),
        metrics=[
            Metric(
                type_name="http.server.error.count",
                content_type=CONTENT_TYPE_SUM,
                type=METRIC_TYPE_LONG,
                is_monotonic=True,
                aggregation_temporality=AGGREGATION_TEMPORALITY_CUMULATIVE,
                attributes={"http.status_code": 500},
                data_points=[DataPoint(start_time=minute_ago, end_time=now_nano, value=15)],
            ),
            Metric(
                type_name="http.server.duration",
                content_type=CONTENT_TYPE_GAUGE,
                type=METRIC_TYPE_DOUBLE,
                attributes={"http.route": "/cart/items"},
                data_points=[DataPoint(start_time=minute_ago, end_time=now_nano, value=1500.0)],
            ),
        ],
        logs=[
            Log(
                type_name="app.log",
                body="Database connection timeout after 5000ms",
                timestamp=now_nano,
                severity="ERROR",
                attributes={"exception.type": "TimeoutError", "db.host": "postgres-primary.internal"},
            ),
        ],
        spans=[
            Span(
                name="GET /cart/items",
                trace_id=trace_id,
                span_id=cart_span_id,
                parent_span_id=frontend_span_id,
                kind=SPAN_KIND_CLIENT,
                start_time=now_nano + 10_000_000,
                end_time=now_nano + 140_000_000,
                attributes={"peer.service": "cart-service", "error": True},
                events=[
                    SpanEvent(
                        timestamp=now_nano + 130_000_000,
                        name="exception",
                        attributes={"exception.message": "Database connection timeout after 5000ms"},
                    ),
                ],
                links=[SpanLink(trace_id=trace_id, span_id=frontend_span_id)],
                status=SpanStatus(code=STATUS_CODE_ERROR, message="Database connection timeout"),
            ),
        ],
    )

    return [frontend, cart]
