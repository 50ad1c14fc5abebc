from sqlinspect.statements import split_multiple_sql, validate_sql_mix


def test_split_simple():
    assert split_multiple_sql("SELECT 1; SELECT 2;") == ["SELECT 1", "SELECT 2"]


def test_semicolon_inside_string_kept():
    assert split_multiple_sql("SELECT ';' FROM t; SELECT 2") == [
        "SELECT ';' FROM t",
        "SELECT 2",
    ]


def test_escaped_quote_keeps_string_open():
    assert split_multiple_sql("SELECT 'a\\';b'; SELECT 2") == [
        "SELECT 'a\\';b'",
        "SELECT 2",
    ]


def test_comment_semicolons_ignored():
    assert split_multiple_sql("SELECT 1 -- a;b\n; /* x; y */ SELECT 2") == [
        "SELECT 1",
        "SELECT 2",
    ]


def test_only_separators_gives_nothing():
    assert split_multiple_sql(" ; ;; ") == []


def test_single_statement_always_valid():
    assert validate_sql_mix(["DROP TABLE t"]) == (True, "")
    assert validate_sql_mix([]) == (True, "")


def test_query_mixed_with_dml_rejected():
    ok, message = validate_sql_mix(["SELECT 1", "INSERT INTO t VALUES (1)"])
    assert ok is False
    assert message == "DQL 查询不能与 DDL/DML 语句混合执行"


def test_query_mixed_with_ddl_rejected():
    assert validate_sql_mix(["CREATE TABLE t (id INT)", "WITH a AS (SELECT 1) SELECT * FROM a"])[0] is False


def test_dml_and_ddl_together_allowed():
    assert validate_sql_mix(["INSERT INTO t VALUES (1)", "CREATE TABLE u (id INT)"]) == (True, "")


def test_query_with_other_allowed():
    assert validate_sql_mix(["SELECT 1", "SHOW TABLES"]) == (True, "")


def test_split_then_validate():
    statements = split_multiple_sql("SELECT * FROM t; DELETE FROM t WHERE id = 1")
    assert statements == ["SELECT * FROM t", "DELETE FROM t WHERE id = 1"]
    assert validate_sql_mix(statements)[0] is False