import pytest

from sqlinspect.clauses import (
    FieldInfo,
    TableInfo,
    extract_fields_from_conditions,
    find_keyword_position,
    parse_field_info,
    parse_table_info,
    split_conditions,
    split_order_by_fields,
    split_select_fields,
)


def test_find_keyword_simple():
    sql = "SELECT a FROM t"
    assert find_keyword_position(sql, "FROM", 0) == sql.index("FROM")


def test_find_keyword_skips_parentheses():
    sql = "SELECT (SELECT x FROM y) FROM t"
    assert find_keyword_position(sql, "FROM", 0) == sql.rindex("FROM")


def test_find_keyword_whole_word_and_case():
    sql = "select fromage from t"
    assert find_keyword_position(sql, "FROM", 0) == sql.index("from ")


def test_find_keyword_at_end_not_found():
    assert find_keyword_position("SELECT a FROM", "FROM", 0) == -1


def test_find_keyword_respects_start():
    sql = "WHERE a = 1 WHERE b = 2"
    assert find_keyword_position(sql, "WHERE", 1) == sql.rindex("WHERE")


def test_split_select_fields_keeps_function_args():
    assert split_select_fields("a, COUNT(b, c), d") == ["a", " COUNT(b, c)", " d"]


def test_split_select_fields_roundtrip():
    text = "x, IF(a, b, c) AS y, z"
    assert ",".join(split_select_fields(text)) == text


def test_split_conditions_between_and_parentheses():
    cond = "a = 1 AND b BETWEEN 1 AND 5 OR (c = 2 AND d = 3)"
    assert split_conditions(cond) == ["a = 1", "b BETWEEN 1 AND 5", "c = 2", "d = 3"]


def test_split_conditions_unwraps_outer_parentheses():
    assert split_conditions("(a = 1) OR (b = 2)") == ["a = 1", "b = 2"]


def test_split_conditions_keeps_non_outer_parentheses():
    cond = "(a + 1) * (b + 2) > 3"
    assert split_conditions(cond) == [cond]


def test_split_order_by_case_expression():
    order = "CASE WHEN a = 1 THEN 0 ELSE 1 END, b DESC"
    assert split_order_by_fields(order) == ["CASE WHEN a = 1 THEN 0 ELSE 1 END", "b DESC"]


def test_split_order_by_function_call():
    assert split_order_by_fields("FIELD(x, 1, 2), y") == ["FIELD(x, 1, 2)", "y"]


def test_extract_fields_dedup_and_operators():
    cond = "t.id = 1 AND name LIKE 'x' AND t.id > 2 AND age IN (1)"
    assert extract_fields_from_conditions(cond) == ["t.id", "name", "age"]


def test_extract_fields_excludes_keywords():
    assert extract_fields_from_conditions("x NOT IN (1)") == []


def test_parse_field_column_with_alias():
    info = parse_field_info("u.name AS username")
    assert info.field_type == "column"
    assert info.source_table == "u"
    assert info.field_name == "name"
    assert info.alias == "username"
    assert info.expression == "u.name"


def test_parse_field_aggregate():
    info = parse_field_info("COUNT(*) AS total")
    assert info.field_type == "aggregate"
    assert info.is_aggregated is True
    assert info.function_name == "COUNT"
    assert info.alias == "total"


def test_parse_field_window():
    info = parse_field_info("ROW_NUMBER() OVER (PARTITION BY a)")
    assert info.field_type == "window"
    assert info.is_window is True
    assert info.function_name == "ROW_NUMBER"


def test_parse_field_star_with_table():
    info = parse_field_info("t.*")
    assert info.field_type == "star"
    assert info.source_table == "t"


def test_parse_field_schema_qualified_column():
    info = parse_field_info("db.tbl.col")
    assert (info.source_table, info.field_name) == ("tbl", "col")


def test_parse_field_function_and_expression():
    assert parse_field_info("UPPER(name)").function_name == "UPPER"
    assert parse_field_info("UPPER(name)").field_type == "function"
    assert parse_field_info("price * qty").field_type == "expression"


def test_parse_field_backticked_column():
    info = parse_field_info("`name`")
    assert info.field_type == "column"
    assert info.field_name == "name"


@pytest.mark.parametrize(
    "text, name, alias",
    [
        ("`users` AS u", "users", "u"),
        ("orders o", "orders", "o"),
        ("t AS", "t", ""),
        ("  items  ", "items", ""),
    ],
)
def test_parse_table_info(text, name, alias):
    info = parse_table_info(text)
    assert (info.name, info.alias) == (name, alias)


def test_table_info_to_dict_omits_empty():
    assert TableInfo(name="t").to_dict() == {"name": "t", "is_cte": False, "is_subquery": False}
    data = TableInfo(name="t", alias="x", is_cte=True, cte_name="t").to_dict()
    assert data["alias"] == "x"
    assert data["cte_name"] == "t"


def test_field_info_to_dict_roundtrip():
    info = parse_field_info("u.name AS username")
    data = info.to_dict()
    assert FieldInfo(**data) == info
    assert "function_name" not in data