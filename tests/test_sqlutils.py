import pytest

from sqlinspect.sqlutils import (
    DEFAULT_LIMIT,
    MAX_LIMIT,
    build_count_sql,
    get_user_original_limit,
    has_filter_conditions,
    has_prefix,
    is_read_only_sql,
    is_valid_database_name,
    normalize_whitespace,
    process_sql_limit,
    replace_limit_value,
    trim_sql,
)


def test_normalize_whitespace_collapses_runs():
    sql = "  SELECT\n\t a  FROM\r\n   t "
    result = normalize_whitespace(sql)
    assert "  " not in result
    assert result.split() == sql.split()
    assert result == result.strip()


def test_process_limit_adds_default():
    sql = "SELECT * FROM t"
    result = process_sql_limit(sql)
    assert result.startswith(sql)
    assert get_user_original_limit(result) == DEFAULT_LIMIT


def test_process_limit_within_max_unchanged():
    sql = "SELECT * FROM t LIMIT 50"
    assert process_sql_limit(sql) == sql


def test_process_limit_caps_offset_form():
    sql = "SELECT * FROM t LIMIT 5000 OFFSET 10"
    result = process_sql_limit(sql)
    assert get_user_original_limit(result) == MAX_LIMIT
    assert result.endswith("OFFSET 10")


def test_process_limit_caps_pair_form():
    sql = "SELECT * FROM t LIMIT 10, 5000"
    result = process_sql_limit(sql)
    assert get_user_original_limit(result) == MAX_LIMIT
    assert "LIMIT 10, " in result


def test_process_limit_ignores_non_queries():
    sql = "SHOW TABLES"
    assert process_sql_limit("  " + sql + " ") == sql


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT * FROM t LIMIT 5 OFFSET 10", 5),
        ("SELECT * FROM t LIMIT 10, 20", 20),
        ("select * from t limit 7", 7),
        ("SELECT * FROM t", -1),
    ],
)
def test_get_user_original_limit(sql, expected):
    assert get_user_original_limit(sql) == expected


def test_replace_limit_value_roundtrip():
    sql = "SELECT * FROM t LIMIT 5"
    result = replace_limit_value(sql, 42)
    assert get_user_original_limit(result) == 42
    assert result.startswith("SELECT * FROM t LIMIT ")


def test_trim_sql_strips_leading_comments():
    assert trim_sql("-- c\n# d\n/* e */ SELECT 1") == "SELECT 1"


@pytest.mark.parametrize("sql", ["-- only", "# only", "/* open", "   "])
def test_trim_sql_comment_only(sql):
    assert trim_sql(sql) == ""


@pytest.mark.parametrize(
    "sql, prefix, expected",
    [
        ("SELECT", "SELECT", True),
        ("SELECT\t1", "SELECT", True),
        ("SELECTX", "SELECT", False),
        ("select 1", "SELECT", False),
    ],
)
def test_has_prefix(sql, prefix, expected):
    assert has_prefix(sql, prefix) is expected


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT 1", True),
        ("desc t", True),
        ("  /* c */ SHOW TABLES", True),
        ("WITH x AS (SELECT 1) SELECT * FROM x", True),
        ("UPDATE t SET a = 1", False),
        ("DROP TABLE t", False),
        ("", False),
        ("-- only", False),
    ],
)
def test_is_read_only_sql(sql, expected):
    assert is_read_only_sql(sql) is expected


@pytest.mark.parametrize(
    "sql, expected",
    [
        ("SELECT * FROM users", False),
        ("SELECT * FROM users WHERE id = 1", True),
        ("SELECT COUNT(*) FROM users", True),
        ("SELECT DISTINCT a FROM t", True),
        ("select * from a join b on a.id = b.id", True),
        ("SELECT a FROM t GROUP BY a", True),
        ("SELECT * FROM t LIMIT 3", True),
    ],
)
def test_has_filter_conditions(sql, expected):
    assert has_filter_conditions(sql) is expected


def test_build_count_sql_example():
    sql = "SELECT * FROM users ORDER BY id LIMIT 100"
    assert build_count_sql(sql) == "SELECT COUNT(*) FROM users"


def test_build_count_sql_without_from():
    assert build_count_sql("  SELECT 1  ") == "SELECT 1"


def test_build_count_sql_keeps_where():
    result = build_count_sql("SELECT a, b FROM t WHERE a > 1 LIMIT 5, 10")
    assert result.startswith("SELECT COUNT(*) FROM t")
    assert result.endswith("WHERE a > 1")


@pytest.mark.parametrize(
    "name, max_len, expected",
    [
        ("shop_db1", 64, True),
        ("", 64, False),
        ("bad-name", 64, False),
        ("abcdef", 3, False),
        ("db\n", 64, False),
    ],
)
def test_is_valid_database_name(name, max_len, expected):
    assert is_valid_database_name(name, max_len) is expected