import pytest

from node_logger.control.nodes import NodeId
from node_logger.control.schema import FIELDS_PER_NODE, SchemaBuilder, build_columns
from node_logger.errors import ConfigurationError


def test_columns_start_with_log_time_and_scale_with_node_count():
    for count in range(1, 6):
        nodes = list(NodeId)[:count]
        columns = build_columns(nodes)
        assert columns[0] == "LogTime"
        assert len(columns) == 1 + FIELDS_PER_NODE * count


def test_single_node_column_order():
    assert build_columns([NodeId.HEAD]) == [
        "LogTime",
        "Head_Present",
        "Head_PosTracked",
        "Head_RotTracked",
        "Head_PosValid",
        "Head_RotValid",
        "Head_PosX",
        "Head_PosY",
        "Head_PosZ",
        "Head_RotX",
        "Head_RotY",
        "Head_RotZ",
        "Head_RotW",
        "Head_VelX",
        "Head_VelY",
        "Head_VelZ",
        "Head_AngVelX",
        "Head_AngVelY",
        "Head_AngVelZ",
    ]


def test_node_order_is_preserved():
    columns = build_columns([NodeId.HAND_RIGHT, NodeId.HEAD])
    assert columns[1] == "HandRight_Present"
    assert columns[1 + FIELDS_PER_NODE] == "Head_Present"


def test_empty_node_list_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        build_columns([])
    with pytest.raises(ConfigurationError):
        SchemaBuilder([])


def test_duplicates_are_permitted_by_default():
    schema = SchemaBuilder([NodeId.HEAD, NodeId.HEAD])
    columns = schema.columns()
    assert len(columns) == schema.column_count == 1 + 2 * FIELDS_PER_NODE
    assert columns.count("Head_PosX") == 2


def test_strict_mode_rejects_duplicates():
    with pytest.raises(ConfigurationError, match="Head"):
        SchemaBuilder([NodeId.HEAD, NodeId.HAND_LEFT, NodeId.HEAD], strict=True)


def test_columns_are_cached_per_builder():
    schema = SchemaBuilder([NodeId.EYE_LEFT])
    assert schema.columns() is schema.columns()
