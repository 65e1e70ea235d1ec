"""
exporter.py
Exports MELT entities to the platform ingestion API over OTLP/HTTP (protobuf).

    exporter = Exporter(dump_func=print, dump_format="json", dry_run=True)
    exporter.export_metrics(entities)
    exporter.export_logs(entities)
    exporter.export_events(entities)   # events travel as logs
    exporter.export_spans(entities)

Each call builds one request, serializes it, optionally dumps it, and POSTs it
once unless dry_run is set. No retries, no batching.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from google.protobuf import json_format
from google.protobuf.message import EncodeError, Message

from melt import api
from melt.config import AUTH_METHOD_AGENT_PRINCIPAL, Context, get_current_context
from melt.dump import DEFAULT_JSON_INDENT, DUMP_FORMAT_HUMAN, DUMP_FORMATS, dump_payload
from melt.model import Entity
from melt.payload import build_logs_payload, build_metrics_payload, build_spans_payload

logger = logging.getLogger(__name__)

PATH_METRICS = "metrics"
PATH_LOGS = "logs"
PATH_SPANS = "trace"

API_PREFIX = "data/v1/"
PROTO_CT = "application/x-protobuf"


class MeltExportError(Exception):
    pass


def _find_status_error(err: BaseException) -> Optional[api.HttpStatusError]:
    """Looks for an HttpStatusError on err or anywhere in its cause chain."""
    seen = set()
    e: Optional[BaseException] = err
    while e is not None and id(e) not in seen:
        if isinstance(e, api.HttpStatusError):
            return e
        seen.add(id(e))
        e = e.__cause__ or e.__context__
    return None


def hint_about_permissions(err: BaseException, context_provider: Callable[[], Context]) -> None:
    """
    Logs a hint for 403s when the profile is not an agent principal: ingestion
    needs a principal holding the iam:agent role. The profile is only looked
    up for 403s, and a failed lookup just skips the hint.
    """
    status_error = _find_status_error(err)
    if status_error is None or status_error.status_code != 403:
        return

    try:
        ctx = context_provider()
    except Exception as e:
        logger.warning("Unable to read the current profile for a permissions hint: %s", e)
        return

    if ctx.auth_method != AUTH_METHOD_AGENT_PRINCIPAL:
        logger.warning(
            "Hint: this command requires a profile with ingestion permissions. "
            'Usually, this would be a profile that uses the "%s" auth method; '
            "the selected profile uses %r instead. In general, any principal with "
            "ingestion permissions can be used, regardless of the auth type; "
            'these permissions can be assigned by adding the "iam:agent" role to a principal '
            'using the "iam-role-binding add" command.',
            AUTH_METHOD_AGENT_PRINCIPAL,
            ctx.auth_method,
        )


def _debug_json(label: str, m: Message) -> None:
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("%s: %s", label, json_format.MessageToJson(m, indent=None))


@dataclass
class Exporter:
    dump_func: Optional[Callable[[str], None]] = None
    dump_format: str = DUMP_FORMAT_HUMAN
    dry_run: bool = False
    json_indent: str = DEFAULT_JSON_INDENT
    http_post: Callable[..., None] = api.http_post
    context_provider: Callable[[], Context] = get_current_context

    def __post_init__(self):
        if self.dump_func is not None and self.dump_format not in DUMP_FORMATS:
            raise ValueError(
                f"unknown dump format: {self.dump_format!r} (expected one of {', '.join(DUMP_FORMATS)})"
            )

    def export_metrics(self, entities: Sequence[Entity]) -> None:
        request = build_metrics_payload(entities)

        if not request.resource_metrics:
            logger.info("No metrics to send")
            return

        _debug_json("METRICS", request)
        self.export_http(PATH_METRICS, request)

    def export_logs(self, entities: Sequence[Entity]) -> None:
        request = build_logs_payload(entities)

        if not request.resource_logs:
            logger.info("No logs to send")
            return

        _debug_json("LOGS", request)
        self.export_http(PATH_LOGS, request)

    def export_events(self, entities: Sequence[Entity]) -> None:
        """OTLP has no separate event signal; events are logs tagged via attributes."""
        self.export_logs(entities)

    def export_spans(self, entities: Sequence[Entity]) -> None:
        request = build_spans_payload(entities)

        if not request.resource_spans:
            logger.info("No spans to send")
            return

        _debug_json("SPANS", request)
        self.export_http(PATH_SPANS, request)

    def export_http(self, path: str, m: Message) -> None:
        options = api.Options(headers={"Content-Type": PROTO_CT, "Accept": PROTO_CT})

        try:
            data = m.SerializeToString()
        except EncodeError as e:
            raise MeltExportError(f"failed to marshal MELT data: {e}") from e

        # dump exactly what would be sent
        if self.dump_func is not None:
            dump_payload(m, self.dump_format, self.dump_func, self.json_indent)

        if self.dry_run:
            return

        api_path = API_PREFIX + path
        try:
            self.http_post(api_path, data, None, options)
        except Exception as e:
            hint_about_permissions(e, self.context_provider)
            raise

        trace_response = ""
        values = options.response_headers.get("Traceresponse")
        if values:
            trace_response = values[0]  # first value only

        logger.info(
            "Sent MELT data (kind=%s path=%s trace_response=%s)",
            path,
            api_path,
            trace_response,
            extra={"kind": path, "path": api_path, "trace_response": trace_response},
        )
