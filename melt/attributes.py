# attributes.py
from __future__ import annotations

import logging
import numbers
from typing import Any, Dict, List, Optional, Sequence

from opentelemetry.proto.common.v1.common_pb2 import AnyValue, ArrayValue, KeyValue, KeyValueList
from opentelemetry.proto.metrics.v1.metrics_pb2 import ResourceMetrics
from opentelemetry.proto.resource.v1.resource_pb2 import Resource

from melt.model import Relationship

logger = logging.getLogger(__name__)

KEY_APPD_FMM_ENTITY_RELATIONSHIPS = "appd.fmm.entity.relations"

_UINT64_MASK = (1 << 64) - 1


def _to_int64(v: int) -> int:
    """
    Wraps an arbitrary int into the signed 64-bit range.
    Values >= 2**63 come out negative, same as an unsigned->signed cast.
    """
    v &= _UINT64_MASK
    if v >= 1 << 63:
        v -= 1 << 64
    return v


def to_any_value(v: Any) -> Optional[AnyValue]:
    """
    Converts a python value into an OTLP AnyValue.
    Returns None for None (the caller drops the key); unknown types are
    rendered with str().
    """
    if v is None:
        return None

    # bool first: it is an Integral too
    if isinstance(v, bool):
        return AnyValue(bool_value=v)
    if isinstance(v, numbers.Integral):
        return AnyValue(int_value=_to_int64(int(v)))
    if isinstance(v, numbers.Real):
        return AnyValue(double_value=float(v))
    if isinstance(v, str):
        return AnyValue(string_value=v)

    return AnyValue(string_value=str(v))


def to_key_value_list(attrs: Optional[Dict[str, Any]]) -> List[KeyValue]:
    """
    Converts an attribute mapping into OTLP KeyValues. Never raises.
    """
    out: List[KeyValue] = []
    for k, v in (attrs or {}).items():
        value = to_any_value(v)
        if value is None:
            logger.warning("Value not set for attribute: %s", k)
            continue
        out.append(KeyValue(key=k, value=value))
    return out


def _relationships_attribute(rels: Sequence[Relationship]) -> KeyValue:
    array = ArrayValue(
        values=[
            AnyValue(kvlist_value=KeyValueList(values=to_key_value_list(r.attributes)))
            for r in rels
        ]
    )
    return KeyValue(key=KEY_APPD_FMM_ENTITY_RELATIONSHIPS, value=AnyValue(array_value=array))


def add_relationships(rels: Sequence[Relationship], resource: Resource) -> None:
    """
    Appends the entity relationships to a resource as a single array-of-kvlist
    attribute. No-op when there are no relationships.
    """
    if not rels:
        return
    resource.attributes.append(_relationships_attribute(rels))


def add_relationships_to_metrics(rels: Sequence[Relationship], rm: ResourceMetrics) -> None:
    """Same as add_relationships, attached through the ResourceMetrics envelope."""
    if not rels:
        return
    rm.resource.attributes.append(_relationships_attribute(rels))
