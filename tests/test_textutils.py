import pytest

from sqlinspect.textutils import (
    find_last_main_select,
    is_valid_alias,
    is_valid_table_name,
    split_by_comma,
)


def test_split_respects_parentheses_and_quotes():
    s = "a, b(c, d), 'x,y'"
    parts = split_by_comma(s)
    assert len(parts) == 3
    assert ",".join(parts) == s
    assert parts[1].strip() == "b(c, d)"
    assert parts[2].strip() == "'x,y'"


def test_split_escaped_quote_stays_in_string():
    s = "'a\\'b,c',d"
    parts = split_by_comma(s)
    assert parts == ["'a\\'b,c'", "d"]


def test_split_backtick_identifiers():
    s = "`a,b`,c"
    assert split_by_comma(s) == ["`a,b`", "c"]


def test_split_empty_string():
    assert split_by_comma("") == []


def test_split_without_commas_returns_whole():
    s = "count(a, b)"
    assert split_by_comma(s) == [s]


def test_find_last_main_select_skips_parenthesised():
    sql = "WITH t AS (SELECT 1) SELECT * FROM t"
    idx = find_last_main_select(sql)
    assert idx > 0
    assert sql[idx:] == "SELECT * FROM t"


def test_find_last_main_select_case_insensitive():
    sql = "with x as (select 1) select a from x"
    idx = find_last_main_select(sql)
    assert sql[idx:].startswith("select a")


def test_find_last_main_select_missing():
    assert find_last_main_select("(SELECT 1) AS x") == -1
    assert find_last_main_select("SHOW TABLES") == -1


@pytest.mark.parametrize("word", ["FROM", "where", "As", "end", "IS"])
def test_keywords_are_not_aliases(word):
    assert is_valid_alias(word) is False


def test_valid_alias():
    assert is_valid_alias("u") is True
    assert is_valid_alias("") is False


@pytest.mark.parametrize("word", ["select", "JOIN", "cross", "Full"])
def test_keywords_are_not_table_names(word):
    assert is_valid_table_name(word) is False


def test_valid_table_name():
    assert is_valid_table_name("users") is True
    assert is_valid_table_name("") is False