from unittest.mock import MagicMock

import pytest
from opentelemetry.proto.collector.metrics.v1.metrics_service_pb2 import ExportMetricsServiceResponse
from urllib3._collections import HTTPHeaderDict

from melt.api import HttpStatusError, Options, canonical_header_key, http_post
from melt.config import ConfigError, Context


def _session(status_code=200, headers=(), content=b"", reason="OK", text=""):
    """headers: (name, value) pairs as they arrive on the wire, repeats allowed."""
    raw_headers = HTTPHeaderDict()
    for k, v in headers:
        raw_headers.add(k, v)

    session = MagicMock()
    r = session.post.return_value
    r.status_code = status_code
    r.raw.headers = raw_headers
    # what requests exposes on Response.headers
    r.headers = {k: ", ".join(raw_headers.getlist(k)) for k in raw_headers}
    r.content = content
    r.reason = reason
    r.text = text
    return session


def test_canonical_header_key():
    assert canonical_header_key("traceresponse") == "Traceresponse"
    assert canonical_header_key("content-type") == "Content-Type"
    assert canonical_header_key("X-REQUEST-ID") == "X-Request-Id"


def test_post_joins_url_and_merges_headers():
    ctx = Context(url="https://tenant.example.com/", tenant="t-1", token="secret", timeout_s=5)
    session = _session(headers=[("traceresponse", "00-a-b-01"), ("traceresponse", "00-c-d-01")])
    options = Options(headers={"Content-Type": "application/x-protobuf"})

    http_post("data/v1/logs", b"\x01\x02", None, options, context=ctx, session=session)

    args, kwargs = session.post.call_args
    assert args[0] == "https://tenant.example.com/data/v1/logs"
    assert kwargs["data"] == b"\x01\x02"
    assert kwargs["timeout"] == 5
    assert kwargs["headers"]["Authorization"] == "Bearer secret"
    assert kwargs["headers"]["Appd-Tid"] == "t-1"
    assert kwargs["headers"]["Content-Type"] == "application/x-protobuf"
    assert options.response_headers["Traceresponse"] == ["00-a-b-01", "00-c-d-01"]


def test_no_auth_headers_without_credentials():
    session = _session()
    http_post("data/v1/logs", b"", context=Context(url="http://localhost:4318"), session=session)

    headers = session.post.call_args.kwargs["headers"]
    assert "Authorization" not in headers
    assert "Appd-Tid" not in headers


def test_error_status_raises_http_status_error():
    session = _session(status_code=403, reason="Forbidden", text="no ingestion permission")

    with pytest.raises(HttpStatusError) as excinfo:
        http_post("data/v1/metrics", b"", context=Context(url="http://x"), session=session)

    assert excinfo.value.status_code == 403
    assert excinfo.value.body == "no ingestion permission"


def test_response_message_is_parsed():
    body = ExportMetricsServiceResponse()
    body.partial_success.rejected_data_points = 3
    session = _session(content=body.SerializeToString())
    response = ExportMetricsServiceResponse()

    http_post("data/v1/metrics", b"", response, context=Context(url="http://x"), session=session)

    assert response.partial_success.rejected_data_points == 3


def test_missing_url_is_a_config_error():
    with pytest.raises(ConfigError):
        http_post("data/v1/metrics", b"", context=Context(name="empty"), session=_session())


def test_header_values_with_commas_stay_whole():
    session = _session(
        headers=[
            ("Date", "Wed, 21 Oct 2015 07:28:00 GMT"),
            ("traceresponse", "00-abc-def-01"),
            ("Set-Cookie", "a=1; Expires=Wed, 21 Oct 2015 07:28:00 GMT"),
            ("Set-Cookie", "b=2"),
        ]
    )
    options = Options()

    http_post("data/v1/logs", b"", None, options, context=Context(url="http://x"), session=session)

    assert options.response_headers["Date"] == ["Wed, 21 Oct 2015 07:28:00 GMT"]
    assert options.response_headers["Traceresponse"] == ["00-abc-def-01"]
    assert options.response_headers["Set-Cookie"] == ["a=1; Expires=Wed, 21 Oct 2015 07:28:00 GMT", "b=2"]


def test_folded_headers_are_kept_without_raw_headers():
    session = _session()
    r = session.post.return_value
    r.raw = None
    r.headers = {"traceresponse": "00-a-b-01, 00-c-d-01"}
    options = Options()

    http_post("data/v1/logs", b"", None, options, context=Context(url="http://x"), session=session)

    assert options.response_headers["Traceresponse"] == ["00-a-b-01, 00-c-d-01"]
