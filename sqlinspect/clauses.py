"""Clause data types and the low-level splitters used to dissect a query."""

import dataclasses
import re
from dataclasses import dataclass

_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)

_AGGREGATE_FUNCS = ("COUNT", "SUM", "AVG", "MAX", "MIN", "GROUP_CONCAT", "COUNT_DISTINCT")

_CONDITION_FIELD_RE = re.compile(
    r"(?:^|[^a-zA-Z_])([a-zA-Z_][a-zA-Z0-9_]*(?:\.[a-zA-Z_][a-zA-Z0-9_]*)?)"
    r"(?:\s*[=<>!]|\s+(?:IN|LIKE|BETWEEN|IS))",
    re.ASCII,
)
_CONDITION_KEYWORDS = frozenset({"AND", "OR", "NOT", "NULL"})


def _upper(s):
    """Upper-case ASCII letters only, so that indexes stay aligned with ``s``."""
    return s.translate(_ASCII_UPPER)


def _is_alnum(ch):
    return ch == "_" or ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9")


def _put(data, key, value):
    if value:
        data[key] = value


@dataclass
class FieldInfo:
    """One item of a SELECT list."""

    expression: str = ""
    alias: str = ""
    source_table: str = ""
    field_name: str = ""
    field_type: str = ""
    function_name: str = ""
    is_aggregated: bool = False
    is_window: bool = False

    def to_dict(self):
        """Return a JSON-ready dictionary, leaving out empty optional fields."""
        data = {"expression": self.expression}
        _put(data, "alias", self.alias)
        _put(data, "source_table", self.source_table)
        _put(data, "field_name", self.field_name)
        data["field_type"] = self.field_type
        _put(data, "function_name", self.function_name)
        data["is_aggregated"] = self.is_aggregated
        data["is_window"] = self.is_window
        return data


@dataclass
class SelectClause:
    """The SELECT list of a query."""

    raw: str = ""
    fields: list = dataclasses.field(default_factory=list)
    has_star: bool = False
    aggregates: list = dataclasses.field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        data = {
            "raw": self.raw,
            "fields": [f.to_dict() for f in self.fields],
            "has_star": self.has_star,
        }
        _put(data, "aggregates", list(self.aggregates))
        return data


@dataclass
class TableInfo:
    """A table reference with its optional alias."""

    name: str = ""
    alias: str = ""
    is_cte: bool = False
    cte_name: str = ""
    is_subquery: bool = False

    def to_dict(self):
        """Return a JSON-ready dictionary, leaving out an empty alias or CTE name."""
        data = {"name": self.name}
        _put(data, "alias", self.alias)
        data["is_cte"] = self.is_cte
        _put(data, "cte_name", self.cte_name)
        data["is_subquery"] = self.is_subquery
        return data


@dataclass
class JoinInfo:
    """One JOIN of a FROM clause."""

    type: str = ""
    table: str = ""
    alias: str = ""
    condition: str = ""

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        data = {"type": self.type, "table": self.table}
        _put(data, "alias", self.alias)
        data["condition"] = self.condition
        return data


@dataclass
class FromClause:
    """The FROM clause: main table and joins."""

    raw: str = ""
    main_table: TableInfo = dataclasses.field(default_factory=TableInfo)
    joins: list = dataclasses.field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        data = {"raw": self.raw, "main_table": self.main_table.to_dict()}
        _put(data, "joins", [j.to_dict() for j in self.joins])
        return data


@dataclass
class WhereClause:
    """The WHERE clause with its conditions and referenced fields."""

    raw: str = ""
    conditions: list = dataclasses.field(default_factory=list)
    fields: list = dataclasses.field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {
            "raw": self.raw,
            "conditions": list(self.conditions),
            "fields": list(self.fields),
        }


@dataclass
class GroupByClause:
    """The GROUP BY clause."""

    raw: str = ""
    fields: list = dataclasses.field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"raw": self.raw, "fields": list(self.fields)}


@dataclass
class HavingClause:
    """The HAVING clause."""

    raw: str = ""
    conditions: list = dataclasses.field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"raw": self.raw, "conditions": list(self.conditions)}


@dataclass
class OrderInfo:
    """One ORDER BY item."""

    field: str = ""
    direction: str = "ASC"

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"field": self.field, "direction": self.direction}


@dataclass
class OrderByClause:
    """The ORDER BY clause."""

    raw: str = ""
    fields: list = dataclasses.field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"raw": self.raw, "fields": [f.to_dict() for f in self.fields]}


@dataclass
class LimitClause:
    """The LIMIT clause."""

    raw: str = ""
    limit: int = 0
    offset: int = 0

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"raw": self.raw, "limit": self.limit, "offset": self.offset}


@dataclass
class SubqueryInfo:
    """A parenthesised sub-SELECT and where it appears."""

    location: str = ""
    raw: str = ""
    type: str = ""

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"location": self.location, "raw": self.raw, "type": self.type}


@dataclass
class WindowFunction:
    """A window function call with its OVER specification."""

    function: str = ""
    partition_by: str = ""
    order_by: str = ""
    raw: str = ""

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        data = {"function": self.function}
        _put(data, "partition_by", self.partition_by)
        _put(data, "order_by", self.order_by)
        data["raw"] = self.raw
        return data


@dataclass
class CTEInfo:
    """A common table expression defined in a WITH clause."""

    name: str = ""
    query: str = ""

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {"name": self.name, "query": self.query}


def find_keyword_position(sql, keyword, start_pos):
    """Index of ``keyword`` as a whole word outside parentheses, or -1."""
    upper = _upper(sql)
    upper_kw = _upper(keyword)
    size = len(keyword)
    depth = 0
    for i in range(start_pos, len(sql) - size):
        ch = sql[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif depth == 0 and upper[i:i + size] == upper_kw:
            if i > 0 and _is_alnum(sql[i - 1]):
                continue
            if i + size < len(sql) and _is_alnum(sql[i + size]):
                continue
            return i
    return -1


def split_select_fields(select_part):
    """Split a SELECT list on commas outside parentheses; pieces keep their spacing."""
    fields = []
    current = []
    depth = 0
    for ch in select_part:
        if ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            current.append(ch)
        elif ch == "," and depth == 0:
            fields.append("".join(current))
            current = []
        else:
            current.append(ch)
    if current:
        fields.append("".join(current))
    return fields


def _split_top_level_operators(cond_part):
    parts = []
    current = []
    depth = 0
    in_between = False

    def flush():
        text = "".join(current).strip()
        if text:
            parts.append(text)
        current.clear()

    i = 0
    n = len(cond_part)
    while i < n:
        ch = cond_part[i]
        if ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            current.append(ch)
        elif depth == 0:
            if _upper(cond_part[i:i + 7]) == "BETWEEN":
                in_between = True
                current.append(cond_part[i:i + 7])
                i += 7
                continue
            if _upper(cond_part[i:i + 4]) == " AND":
                if in_between:
                    in_between = False
                    current.append(cond_part[i:i + 4])
                else:
                    flush()
                i += 4
                continue
            if _upper(cond_part[i:i + 3]) == " OR":
                flush()
                i += 3
                continue
            current.append(ch)
        else:
            current.append(ch)
        i += 1
    flush()
    return parts


def _is_wrapped(part):
    depth = 0
    last = len(part) - 1
    for i, ch in enumerate(part):
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and i < last:
                return False
    return True


def split_conditions(cond_part):
    """Split on top-level AND/OR, keeping BETWEEN ranges and unwrapping outer parentheses."""
    result = []
    for part in _split_top_level_operators(cond_part):
        part = part.strip()
        if not part:
            continue
        if part.startswith("(") and part.endswith(")") and _is_wrapped(part):
            result.extend(split_conditions(part[1:-1].strip()))
            continue
        result.append(part)
    return result


def _keyword_at(text, upper, i, word):
    size = len(word)
    if upper[i:i + size] != word:
        return False
    if i > 0 and _is_alnum(text[i - 1]):
        return False
    return i + size >= len(text) or not _is_alnum(text[i + size])


def split_order_by_fields(order_part):
    """Split ORDER BY items on commas outside parentheses and CASE ... END."""
    fields = []
    current = []
    depth = 0
    case_depth = 0
    upper = _upper(order_part)

    def flush():
        text = "".join(current).strip()
        if text:
            fields.append(text)
        current.clear()

    i = 0
    n = len(order_part)
    while i < n:
        ch = order_part[i]
        if ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            current.append(ch)
        elif depth == 0:
            if _keyword_at(order_part, upper, i, "CASE"):
                case_depth += 1
                current.append(order_part[i:i + 4])
                i += 4
                continue
            if case_depth > 0 and _keyword_at(order_part, upper, i, "END"):
                case_depth -= 1
                current.append(order_part[i:i + 3])
                i += 3
                continue
            if ch == "," and case_depth == 0:
                flush()
            else:
                current.append(ch)
        else:
            current.append(ch)
        i += 1
    flush()
    return fields


def extract_fields_from_conditions(cond_part):
    """Return the distinct field names compared in a condition, in order of appearance."""
    seen = []
    for match in _CONDITION_FIELD_RE.finditer(cond_part):
        name = match.group(1)
        if name.upper() in _CONDITION_KEYWORDS or name in seen:
            continue
        seen.append(name)
    return seen


def parse_field_info(f):
    """Classify one SELECT item as star, window, aggregate, function, expression or column."""
    info = FieldInfo(expression=f)
    expression = f
    as_idx = _upper(f).rfind(" AS ")
    if as_idx > 0:
        expression = f[:as_idx].strip()
        info.alias = f[as_idx + 4:].strip().strip("`'\"")
    info.expression = expression
    upper_expr = _upper(expression)

    if expression.strip() == "*" or expression.endswith(".*"):
        info.field_type = "star"
        if "." in expression:
            info.source_table = expression.split(".")[0].strip("`")
        return info

    if " OVER" in upper_expr:
        info.field_type = "window"
        info.is_window = True
        paren = expression.find("(")
        if paren > 0:
            info.function_name = _upper(expression[:paren].strip())
        return info

    for agg in _AGGREGATE_FUNCS:
        if upper_expr.startswith(agg + "(") or f" {agg}(" in upper_expr:
            info.field_type = "aggregate"
            info.is_aggregated = True
            info.function_name = agg
            return info

    if "(" in expression:
        info.field_type = "function"
        paren = expression.find("(")
        if paren > 0:
            name = expression[:paren].strip()
            name = name[name.rfind(".") + 1:]
            info.function_name = _upper(name)
        return info

    if any(op in expression for op in "+-*/%") or " CASE " in upper_expr or "CASE WHEN" in upper_expr:
        info.field_type = "expression"
        return info

    info.field_type = "column"
    clean = expression.strip("`'\"")
    if "." in clean:
        parts = clean.split(".")
        if len(parts) == 2:
            info.source_table, info.field_name = parts
        elif len(parts) == 3:
            info.source_table, info.field_name = parts[1], parts[2]
    else:
        info.field_name = clean
    return info


def parse_table_info(table_part):
    """Parse ``name [AS] alias`` with backticks removed."""
    words = table_part.strip().replace("`", "").split()
    info = TableInfo()
    if words:
        info.name = words[0]
    if len(words) >= 2:
        if _upper(words[1]) == "AS":
            if len(words) >= 3:
                info.alias = words[2]
        else:
            info.alias = words[1]
    return info