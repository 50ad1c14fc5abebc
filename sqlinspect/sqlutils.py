"""LIMIT handling, read-only checks and other SQL string utilities."""

import re

DEFAULT_LIMIT = 100
MAX_LIMIT = 1000

_WHITESPACE_RE = re.compile(r"\s+", re.ASCII)

_LIMIT_OFFSET_RE = re.compile(r"\bLIMIT\s+(\d+)\s+OFFSET\s+\d+", re.I | re.ASCII)
_LIMIT_PAIR_RE = re.compile(r"\bLIMIT\s+\d+\s*,\s*(\d+)", re.I | re.ASCII)
_LIMIT_RE = re.compile(r"\bLIMIT\s+(\d+)", re.I | re.ASCII)

_REPLACE_OFFSET_RE = re.compile(r"(\bLIMIT\s+)\d+(\s+OFFSET\s+\d+)", re.I | re.ASCII)
_REPLACE_PAIR_RE = re.compile(r"(\bLIMIT\s+\d+\s*,\s*)\d+", re.I | re.ASCII)
_REPLACE_RE = re.compile(r"(\bLIMIT\s+)\d+", re.I | re.ASCII)

_READ_ONLY_PREFIXES = ("SELECT", "SHOW", "DESCRIBE", "DESC", "EXPLAIN", "WITH")

_FILTER_PATTERNS = tuple(
    re.compile(p, re.ASCII)
    for p in (
        r"\bWHERE\b",
        r"\bHAVING\b",
        r"\bLIMIT\b",
        r"\bGROUP\s+BY\b",
        r"\bDISTINCT\b",
        r"\bJOIN\b",
        r"\bLEFT\s+JOIN\b",
        r"\bRIGHT\s+JOIN\b",
        r"\bINNER\s+JOIN\b",
        r"\bOUTER\s+JOIN\b",
    )
)
_GROUP_BY_RE = re.compile(r"\bGROUP\s+BY\b", re.ASCII)
_AGGREGATES = ("COUNT(", "SUM(", "AVG(", "MAX(", "MIN(")

_COUNT_LIMIT_RE = re.compile(
    r"\s+LIMIT\s+\d+(\s*,\s*\d+)?(\s+OFFSET\s+\d+)?\s*\Z", re.I | re.ASCII
)
_COUNT_ORDER_RE = re.compile(r"\s+ORDER\s+BY\s+[^;]+\Z", re.I | re.ASCII)

_DB_NAME_RE = re.compile(r"[a-zA-Z0-9_]+")


def normalize_whitespace(sql):
    """Collapse every run of whitespace into one space and trim the ends."""
    return _WHITESPACE_RE.sub(" ", sql).strip()


def get_user_original_limit(sql):
    """Return the row count of the query's LIMIT clause, or -1 if there is none."""
    for pattern in (_LIMIT_OFFSET_RE, _LIMIT_PAIR_RE, _LIMIT_RE):
        match = pattern.search(sql)
        if match:
            return int(match.group(1))
    return -1


def replace_limit_value(sql, new_limit):
    """Replace the row count of every LIMIT clause with ``new_limit``."""
    if _REPLACE_OFFSET_RE.search(sql):
        return _REPLACE_OFFSET_RE.sub(rf"\g<1>{new_limit}\g<2>", sql)
    if _REPLACE_PAIR_RE.search(sql):
        return _REPLACE_PAIR_RE.sub(rf"\g<1>{new_limit}", sql)
    return _REPLACE_RE.sub(rf"\g<1>{new_limit}", sql)


def process_sql_limit(sql):
    """Add a default LIMIT to queries without one and cap limits above the maximum."""
    sql = sql.strip()
    upper = sql.upper()
    if not (upper.startswith("SELECT") or upper.startswith("WITH")):
        return sql
    user_limit = get_user_original_limit(sql)
    if user_limit == -1:
        return f"{sql} LIMIT {DEFAULT_LIMIT}"
    if user_limit <= MAX_LIMIT:
        return sql
    return replace_limit_value(sql, MAX_LIMIT)


def trim_sql(sql):
    """Strip whitespace and any leading comments; return '' if nothing else remains."""
    sql = sql.strip()
    while True:
        if sql.startswith("--") or sql.startswith("#"):
            newline = sql.find("\n")
            if newline < 0:
                return ""
            sql = sql[newline + 1:].strip()
            continue
        if sql.startswith("/*"):
            end = sql.find("*/")
            if end < 0:
                return ""
            sql = sql[end + 2:].strip()
            continue
        return sql


def has_prefix(sql, prefix):
    """True if ``sql`` starts with ``prefix`` followed by whitespace or the end."""
    if not sql.startswith(prefix):
        return False
    if len(sql) == len(prefix):
        return True
    return sql[len(prefix)] in " \t\n\r"


def is_read_only_sql(sql):
    """True for SELECT, SHOW, DESCRIBE, DESC, EXPLAIN and WITH statements."""
    sql = trim_sql(sql)
    if not sql:
        return False
    return sql.upper().startswith(_READ_ONLY_PREFIXES)


def has_filter_conditions(sql):
    """True if the query filters, groups, limits, joins or only aggregates."""
    upper = sql.upper()
    if any(pattern.search(upper) for pattern in _FILTER_PATTERNS):
        return True
    if "GROUP BY" in upper or _GROUP_BY_RE.search(upper):
        return False
    select_idx = upper.find("SELECT")
    from_idx = upper.find("FROM")
    if select_idx == -1 or from_idx == -1 or select_idx >= from_idx:
        return False
    select_clause = upper[select_idx + 6:from_idx]
    return any(fn in select_clause for fn in _AGGREGATES)


def build_count_sql(sql):
    """Turn a SELECT into ``SELECT COUNT(*) FROM ...`` without ORDER BY and LIMIT."""
    sql = sql.strip()
    sql = _COUNT_LIMIT_RE.sub("", sql)
    sql = _COUNT_ORDER_RE.sub("", sql).strip()
    upper = sql.upper()
    select_idx = upper.find("SELECT")
    from_idx = upper.find("FROM")
    if select_idx == -1 or from_idx == -1 or select_idx >= from_idx:
        return sql
    return "SELECT COUNT(*) " + sql[from_idx:]


def is_valid_database_name(db_name, max_len):
    """True if the name is 1..max_len characters of letters, digits and underscores."""
    if not db_name or len(db_name) > max_len:
        return False
    return _DB_NAME_RE.fullmatch(db_name) is not None