import logging
from fractions import Fraction

from opentelemetry.proto.metrics.v1.metrics_pb2 import ResourceMetrics
from opentelemetry.proto.resource.v1.resource_pb2 import Resource

from conftest import attrs_to_dict
from melt.attributes import (
    KEY_APPD_FMM_ENTITY_RELATIONSHIPS,
    add_relationships,
    add_relationships_to_metrics,
    to_key_value_list,
)
from melt.model import Relationship


def _by_key(kvs):
    return {kv.key: kv.value for kv in kvs}


def test_scalar_kinds_dispatch():
    kvs = _by_key(to_key_value_list({"b": True, "i": -3, "f": 1.5, "s": "x"}))

    assert kvs["b"].WhichOneof("value") == "bool_value"
    assert kvs["b"].bool_value is True
    assert kvs["i"].WhichOneof("value") == "int_value"
    assert kvs["i"].int_value == -3
    assert kvs["f"].WhichOneof("value") == "double_value"
    assert kvs["f"].double_value == 1.5
    assert kvs["s"].WhichOneof("value") == "string_value"
    assert kvs["s"].string_value == "x"


def test_bool_is_not_coerced_to_int():
    kvs = _by_key(to_key_value_list({"flag": False}))
    assert kvs["flag"].WhichOneof("value") == "bool_value"


def test_unsigned_above_int64_range_wraps_negative():
    kvs = _by_key(to_key_value_list({"big": 2**63, "max": 2**64 - 1}))

    assert kvs["big"].int_value == -(2**63)
    assert kvs["max"].int_value == -1


def test_rational_becomes_double():
    kvs = _by_key(to_key_value_list({"ratio": Fraction(1, 4)}))
    assert kvs["ratio"].double_value == 0.25


def test_unknown_types_render_as_string():
    kvs = _by_key(to_key_value_list({"list": [1, 2], "tuple": ("a",)}))

    assert kvs["list"].string_value == "[1, 2]"
    assert kvs["tuple"].string_value == "('a',)"


def test_none_value_is_skipped_with_warning(caplog):
    with caplog.at_level(logging.WARNING, logger="melt.attributes"):
        kvs = to_key_value_list({"unset": None, "set": "y"})

    assert [kv.key for kv in kvs] == ["set"]
    assert "Value not set for attribute: unset" in caplog.text


def test_empty_and_missing_mappings():
    assert to_key_value_list({}) == []
    assert to_key_value_list(None) == []


def test_scalars_decode_back_to_same_values():
    attrs = {"service": "x", "port": 8080, "ratio": 0.5, "enabled": True}
    assert attrs_to_dict(to_key_value_list(attrs)) == attrs


def test_relationships_absent_when_none_given():
    resource = Resource()
    add_relationships([], resource)
    assert len(resource.attributes) == 0


def test_relationships_encoded_as_array_of_kvlists():
    resource = Resource()
    rels = [
        Relationship(attributes={"type": "calls", "to": "cart"}),
        Relationship(attributes={"type": "runs_on", "to": "node-1"}),
    ]

    add_relationships(rels, resource)

    assert len(resource.attributes) == 1
    kv = resource.attributes[0]
    assert kv.key == KEY_APPD_FMM_ENTITY_RELATIONSHIPS
    assert kv.value.WhichOneof("value") == "array_value"
    decoded = attrs_to_dict(resource.attributes)[KEY_APPD_FMM_ENTITY_RELATIONSHIPS]
    assert decoded == [{"type": "calls", "to": "cart"}, {"type": "runs_on", "to": "node-1"}]


def test_both_attachment_points_produce_identical_bytes():
    rels = [Relationship(attributes={"type": "calls", "to": "cart"})]

    resource = Resource()
    add_relationships(rels, resource)

    rm = ResourceMetrics(resource=Resource())
    add_relationships_to_metrics(rels, rm)

    assert rm.resource.SerializeToString() == resource.SerializeToString()


def test_relationship_encoding_is_repeatable():
    rels = [Relationship(attributes={"type": "calls"})]

    first, second = Resource(), Resource()
    add_relationships(rels, first)
    add_relationships(rels, second)

    assert first.SerializeToString() == second.SerializeToString()
