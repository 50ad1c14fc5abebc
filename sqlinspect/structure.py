"""Clause-by-clause structural analysis of SELECT queries."""

import re
from dataclasses import dataclass, field
from typing import Optional

from .clauses import (
    CTEInfo,
    FromClause,
    GroupByClause,
    HavingClause,
    JoinInfo,
    LimitClause,
    OrderByClause,
    OrderInfo,
    SelectClause,
    SubqueryInfo,
    WhereClause,
    WindowFunction,
    extract_fields_from_conditions,
    find_keyword_position,
    parse_field_info,
    parse_table_info,
    split_conditions,
    split_order_by_fields,
    split_select_fields,
)
from .comments import remove_sql_comments

_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_FLAGS = re.I | re.ASCII

_JOIN_RE = re.compile(
    r"(LEFT\s+OUTER\s+|RIGHT\s+OUTER\s+|FULL\s+OUTER\s+|LEFT\s+|RIGHT\s+|INNER\s+|CROSS\s+|FULL\s+)?JOIN\s+",
    _FLAGS,
)
_LIMIT_RE = re.compile(r"(\d+)(?:\s*,\s*(\d+)|\s+OFFSET\s+(\d+))?", _FLAGS)
_WINDOW_RE = re.compile(r"(\w+)\s*\([^)]*\)\s+OVER\s*\(([^)]*)\)", _FLAGS)
_CTE_RE = re.compile(r"(?:WITH\s+|,\s*)(\w+)\s+AS\s*\(", _FLAGS)

_FROM_END_KEYWORDS = ("WHERE", "GROUP BY", "HAVING", "ORDER BY", "LIMIT", "UNION")
_WHERE_END_KEYWORDS = ("GROUP BY", "HAVING", "ORDER BY", "LIMIT", "UNION")
_GROUP_END_KEYWORDS = ("HAVING", "ORDER BY", "LIMIT", "UNION")
_HAVING_END_KEYWORDS = ("ORDER BY", "LIMIT", "UNION")
_ORDER_END_KEYWORDS = ("LIMIT", "UNION")
_JOIN_PREFIXES = (" LEFT", " RIGHT", " INNER", " OUTER", " CROSS", " FULL")
_CONDITION_END_KEYWORDS = (
    " LEFT ", " RIGHT ", " INNER ", " CROSS ", " FULL ", " JOIN ",
    " WHERE ", " GROUP ", " ORDER ", " HAVING ", " LIMIT ",
)
_PREVIEW_LEN = 100


def _upper(s):
    return s.translate(_ASCII_UPPER)


def _is_alnum(ch):
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9")


@dataclass
class SQLStructure:
    """The dissected clauses of a query."""

    select_clause: Optional[SelectClause] = None
    from_clause: Optional[FromClause] = None
    where_clause: Optional[WhereClause] = None
    group_by_clause: Optional[GroupByClause] = None
    having_clause: Optional[HavingClause] = None
    order_by_clause: Optional[OrderByClause] = None
    limit_clause: Optional[LimitClause] = None
    subqueries: list = field(default_factory=list)
    window_functions: list = field(default_factory=list)
    ctes: list = field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary, leaving out absent clauses and empty lists."""
        data = {}
        for key in (
            "select_clause", "from_clause", "where_clause", "group_by_clause",
            "having_clause", "order_by_clause", "limit_clause",
        ):
            value = getattr(self, key)
            if value is not None:
                data[key] = value.to_dict()
        for key in ("subqueries", "window_functions", "ctes"):
            items = getattr(self, key)
            if items:
                data[key] = [item.to_dict() for item in items]
        return data


def analyze_sql_structure(sql):
    """Split a query into its clauses, subqueries, window functions and CTEs."""
    clean = remove_sql_comments(sql)
    structure = SQLStructure()
    main = clean
    if _upper(clean.strip()).startswith("WITH "):
        structure.ctes = extract_ctes(clean)
        main = extract_main_query(clean)

    structure.from_clause = extract_from_clause(main)
    structure.select_clause = extract_select_clause(main, structure.from_clause)
    structure.where_clause = extract_where_clause(main)
    structure.group_by_clause = extract_group_by_clause(main)
    structure.having_clause = extract_having_clause(main)
    structure.order_by_clause = extract_order_by_clause(main)
    structure.limit_clause = extract_limit_clause(main)
    structure.subqueries = extract_subqueries(clean)
    structure.window_functions = extract_window_functions(clean)
    return structure


def extract_main_query(sql):
    """Return the query from the last whole-word SELECT outside parentheses onwards."""
    upper = _upper(sql)
    depth = 0
    last = -1
    for i in range(len(sql) - 6):
        ch = sql[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif depth == 0 and upper[i:i + 6] == "SELECT":
            if i > 0 and _is_alnum(sql[i - 1]):
                continue
            if i + 6 < len(sql) and _is_alnum(sql[i + 6]):
                continue
            last = i
    return sql[last:] if last > 0 else sql


def _end_of_clause(sql, keywords, start):
    end = len(sql)
    for kw in keywords:
        idx = find_keyword_position(sql, kw, start)
        if 0 < idx < end:
            end = idx
    return end


def extract_select_clause(sql, from_clause):
    """Parse the SELECT list; plain columns without a table get the FROM main table."""
    select_idx = _upper(sql).find("SELECT")
    if select_idx == -1:
        return None

    from_idx = find_keyword_position(sql, "FROM", select_idx + 6)
    if from_idx == -1:
        from_idx = len(sql)

    select_part = sql[select_idx + 6:from_idx].strip()
    if _upper(select_part).startswith("DISTINCT "):
        select_part = select_part[9:].strip()

    clause = SelectClause(raw=select_part, has_star="*" in select_part)
    for item in split_select_fields(select_part):
        item = item.strip()
        if not item:
            continue
        info = parse_field_info(item)
        clause.fields.append(info)
        if info.is_aggregated and info.function_name:
            clause.aggregates.append(info.function_name)

    if from_clause is not None and from_clause.main_table.name:
        default_table = from_clause.main_table.name
        for info in clause.fields:
            if not info.source_table and info.field_type == "column":
                info.source_table = default_table
    return clause


def extract_from_clause(sql):
    """Parse the FROM clause into its main table and joins."""
    from_idx = find_keyword_position(sql, "FROM", 0)
    if from_idx == -1:
        return None

    end = _end_of_clause(sql, _FROM_END_KEYWORDS, from_idx + 4)
    from_part = sql[from_idx + 4:end].strip()
    clause = FromClause(raw=from_part)

    joins = extract_joins(from_part)
    if joins:
        clause.joins = joins
        upper = _upper(from_part)
        first = upper.find(" JOIN")
        if first == -1:
            first = len(from_part)
        for prefix in _JOIN_PREFIXES:
            idx = upper.find(prefix)
            if 0 < idx < first:
                first = idx
        clause.main_table = parse_table_info(from_part[:first].strip())
    else:
        clause.main_table = parse_table_info(from_part)
    return clause


def _join_type(prefix):
    if prefix is None:
        return "INNER"
    jt = _upper(prefix).strip()
    if not jt:
        return "INNER"
    return jt.replace(" OUTER", "", 1)


def extract_joins(from_part):
    """Return the JOINs of a FROM clause with their type, table, alias and ON condition."""
    if " JOIN " not in _upper(from_part):
        return []

    matches = list(_JOIN_RE.finditer(from_part))
    joins = []
    for pos, match in enumerate(matches):
        stop = matches[pos + 1].start() if pos + 1 < len(matches) else len(from_part)
        part = from_part[match.end():stop]
        join = JoinInfo(type=_join_type(match.group(1)))

        on_idx = _upper(part).find(" ON ")
        if on_idx > 0:
            words = part[:on_idx].strip().replace("`", "").split()
            if words:
                join.table = words[0]
                if len(words) > 1 and _upper(words[1]) != "AS":
                    join.alias = words[1]
                elif len(words) > 2:
                    join.alias = words[2]
            cond = part[on_idx + 4:]
            upper_cond = _upper(cond)
            end = len(cond)
            for kw in _CONDITION_END_KEYWORDS:
                idx = upper_cond.find(kw)
                if 0 < idx < end:
                    end = idx
            join.condition = cond[:end].strip()
        else:
            words = part.replace("`", "").split()
            if words:
                join.table = words[0]
                if len(words) > 1:
                    join.alias = words[1]

        if join.table:
            joins.append(join)
    return joins


def extract_where_clause(sql):
    """Parse the WHERE clause into conditions and referenced fields."""
    where_idx = find_keyword_position(sql, "WHERE", 0)
    if where_idx == -1:
        return None
    end = _end_of_clause(sql, _WHERE_END_KEYWORDS, where_idx + 5)
    where_part = sql[where_idx + 5:end].strip()
    return WhereClause(
        raw=where_part,
        conditions=split_conditions(where_part),
        fields=extract_fields_from_conditions(where_part),
    )


def extract_group_by_clause(sql):
    """Parse the GROUP BY clause into its fields."""
    group_idx = find_keyword_position(sql, "GROUP BY", 0)
    if group_idx == -1:
        return None
    end = _end_of_clause(sql, _GROUP_END_KEYWORDS, group_idx + 8)
    group_part = sql[group_idx + 8:end].strip()
    fields = [f.strip("`").strip() for f in group_part.split(",")]
    return GroupByClause(raw=group_part, fields=[f for f in fields if f])


def extract_having_clause(sql):
    """Parse the HAVING clause into its conditions."""
    having_idx = find_keyword_position(sql, "HAVING", 0)
    if having_idx == -1:
        return None
    end = _end_of_clause(sql, _HAVING_END_KEYWORDS, having_idx + 6)
    having_part = sql[having_idx + 6:end].strip()
    return HavingClause(raw=having_part, conditions=split_conditions(having_part))


def extract_order_by_clause(sql):
    """Parse the ORDER BY clause into fields with their direction."""
    order_idx = find_keyword_position(sql, "ORDER BY", 0)
    if order_idx == -1:
        return None
    end = _end_of_clause(sql, _ORDER_END_KEYWORDS, order_idx + 8)
    order_part = sql[order_idx + 8:end].strip()
    clause = OrderByClause(raw=order_part)
    for item in split_order_by_fields(order_part):
        item = item.strip()
        if not item:
            continue
        upper = _upper(item)
        order = OrderInfo()
        if upper.endswith(" DESC"):
            order.direction = "DESC"
            name = item[:-5].strip()
        elif upper.endswith(" ASC"):
            name = item[:-4].strip()
        else:
            name = item
        order.field = name.strip("`")
        clause.fields.append(order)
    return clause


def extract_limit_clause(sql):
    """Parse ``LIMIT n``, ``LIMIT offset, n`` or ``LIMIT n OFFSET m``."""
    limit_idx = find_keyword_position(sql, "LIMIT", 0)
    if limit_idx == -1:
        return None
    limit_part = sql[limit_idx + 5:].strip().removesuffix(";").strip()
    clause = LimitClause(raw=limit_part)
    match = _LIMIT_RE.search(limit_part)
    if match:
        first, second, offset = match.groups()
        if second:
            clause.offset = int(first)
            clause.limit = int(second)
        elif offset:
            clause.limit = int(first)
            clause.offset = int(offset)
        else:
            clause.limit = int(first)
    return clause


def _subquery_location(before):
    if " IN " in before or " IN(" in before:
        return "IN子查询"
    if " EXISTS " in before or " EXISTS(" in before:
        return "EXISTS子查询"
    if " FROM " in before:
        return "FROM子查询(派生表)"
    if "SELECT" in before:
        return "SELECT子查询(标量)"
    return "未知"


def extract_subqueries(sql):
    """Return top-level parenthesised SELECTs with the place they appear."""
    subqueries = []
    depth = 0
    start = -1
    for i, ch in enumerate(sql):
        if ch == "(":
            if depth == 0:
                start = i
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and start >= 0:
                inner = sql[start + 1:i].strip()
                if _upper(inner).startswith("SELECT"):
                    display = inner
                    if len(display) > _PREVIEW_LEN:
                        display = display[:_PREVIEW_LEN] + "..."
                    subqueries.append(
                        SubqueryInfo(
                            location=_subquery_location(_upper(sql[:start])),
                            raw=display,
                            type="SELECT",
                        )
                    )
                start = -1
    return subqueries


def extract_window_functions(sql):
    """Return ``func(...) OVER (...)`` calls with their PARTITION BY and ORDER BY."""
    windows = []
    for match in _WINDOW_RE.finditer(sql):
        wf = WindowFunction(function=_upper(match.group(1)), raw=match.group(0))
        over = match.group(2)
        upper_over = _upper(over)

        pb = upper_over.find("PARTITION BY")
        if pb >= 0:
            rest = over[pb + 12:]
            ob = _upper(rest).find("ORDER BY")
            wf.partition_by = (rest[:ob] if ob > 0 else rest).strip()

        ob = upper_over.find("ORDER BY")
        if ob >= 0:
            wf.order_by = over[ob + 8:].strip()
        windows.append(wf)
    return windows


def extract_ctes(sql):
    """Return the names of the common table expressions of a WITH query."""
    return [CTEInfo(name=m.group(1), query="(查询内容)") for m in _CTE_RE.finditer(sql)]