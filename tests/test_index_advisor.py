import pytest

from sqlinspect.index_advisor import (
    IndexSuggestion,
    analyze_index_suggestions,
    extract_fields_from_condition,
    parse_field_with_table,
)
from sqlinspect.structure import SQLStructure, analyze_sql_structure


def _suggest(sql):
    return analyze_index_suggestions(sql, analyze_sql_structure(sql))


def test_none_structure_gives_nothing():
    assert analyze_index_suggestions("SELECT 1", None) == []


def test_empty_structure_gives_nothing():
    assert analyze_index_suggestions("SELECT 1", SQLStructure()) == []


def test_where_field_on_main_table():
    result = _suggest("SELECT id, name FROM users WHERE age > 18")
    assert len(result) == 1
    s = result[0]
    assert s.table == "users"
    assert s.columns == ["age"]
    assert s.index_type == "single"
    assert s.priority == "high"
    assert s.reason == "WHERE过滤条件"
    assert s.create_sql == "CREATE INDEX idx_users_age ON users (age);"


def test_join_and_where_make_composite_index():
    sql = (
        "SELECT o.id FROM orders o LEFT JOIN users u ON o.user_id = u.id "
        "WHERE o.status = 1"
    )
    result = _suggest(sql)
    assert [s.table for s in result] == ["orders"]
    s = result[0]
    assert s.columns == ["user_id", "status"]
    assert s.index_type == "composite"
    assert s.priority == "high"
    assert s.reason == "JOIN连接条件, WHERE过滤条件"
    assert s.create_sql.startswith("CREATE INDEX idx_orders_user_id_status ON orders (")


def test_group_by_gives_medium_priority():
    result = _suggest("SELECT e.dept, COUNT(*) FROM emp e GROUP BY e.dept")
    assert len(result) == 1
    assert result[0].table == "emp"
    assert result[0].columns == ["dept"]
    assert result[0].priority == "medium"
    assert result[0].reason == "GROUP BY分组"


def test_order_by_with_prefix():
    result = _suggest("SELECT e.name FROM emp e ORDER BY e.hired DESC")
    assert len(result) == 1
    assert result[0].columns == ["hired"]
    assert result[0].reason == "ORDER BY排序"
    assert result[0].priority == "medium"


def test_index_name_is_truncated():
    table = "a_very_long_table_name_used_for_testing_truncation"
    sql = f"SELECT * FROM {table} WHERE first_column = 1 AND second_column = 2"
    result = _suggest(sql)
    assert len(result) == 1
    name = result[0].create_sql.split()[2]
    assert len(name) == 64
    assert result[0].create_sql.endswith(f"ON {table} (first_column, second_column);")


def test_cte_tables_are_dropped_and_real_tables_found():
    sql = (
        "WITH t AS (SELECT id FROM db.orders o WHERE o.status = 1), u AS (SELECT 1) "
        "SELECT x.a FROM t x WHERE x.b = 2"
    )
    result = _suggest(sql)
    tables = [s.table for s in result]
    assert "t" not in tables
    assert "orders" in tables
    orders = next(s for s in result if s.table == "orders")
    assert orders.columns == ["status"]


def test_columns_are_unique():
    result = _suggest("SELECT * FROM users WHERE age > 1 OR age < 100")
    assert result[0].columns == ["age"]


def test_to_dict_round_trip():
    s = _suggest("SELECT id FROM users WHERE age > 18")[0]
    data = s.to_dict()
    assert IndexSuggestion(**data) == s
    assert set(data) == {"table", "columns", "index_type", "priority", "reason", "create_sql"}


@pytest.mark.parametrize(
    "field, alias_map, expected",
    [
        ("u.id", {"u": "users"}, ("users", "id")),
        ("`name`", {}, ("", "name")),
        ("db.t.c", {}, ("t", "c")),
        ("x.col", {"y": "other"}, ("x", "col")),
    ],
)
def test_parse_field_with_table(field, alias_map, expected):
    assert parse_field_with_table(field, alias_map) == expected


def test_extract_fields_from_condition():
    assert extract_fields_from_condition("a.x = 1 AND b.y IN (1, 2)") == ["a.x", "b.y"]


def test_extract_fields_from_condition_is_null():
    assert extract_fields_from_condition("status IS NOT NULL") == ["status"]


def test_extract_fields_keeps_repeats():
    assert extract_fields_from_condition("a = 1 OR a = 2") == ["a", "a"]