"""Analysis of INSERT, UPDATE and DELETE statements."""

import re
from dataclasses import dataclass, field

from .comments import remove_sql_comments
from .textutils import split_by_comma

_IDENT = r"[a-zA-Z_][a-zA-Z0-9_]*"
_FLAGS = re.I | re.ASCII

_INSERT_TABLE_RE = re.compile(rf"INSERT\s+(?:INTO\s+)?`?(?:({_IDENT})\.)?({_IDENT})`?", _FLAGS)
_INSERT_COLS_RE = re.compile(r"INSERT\s+(?:INTO\s+)?[^(]+\(([^)]+)\)", _FLAGS)
_UPDATE_TABLE_RE = re.compile(rf"UPDATE\s+`?(?:({_IDENT})\.)?({_IDENT})`?", _FLAGS)
_SET_RE = re.compile(r"SET\s+(.+?)(?:\s+WHERE|\Z)", _FLAGS)
_DELETE_TABLE_RE = re.compile(rf"DELETE\s+FROM\s+`?(?:({_IDENT})\.)?({_IDENT})`?", _FLAGS)
_WHERE_RE = re.compile(r"WHERE\s+(.+?)(?:\s+ORDER|\s+LIMIT|\Z)", _FLAGS)

_TRIM_CHARS = " `\t\n\r"
_QUOTES = "'\""
_PREVIEW_LEN = 100


@dataclass
class DMLAnalysis:
    """Result of analysing a data-manipulation statement."""

    target_table: str = ""
    affected_cols: list = field(default_factory=list)
    data_source: str = ""
    has_where: bool = False
    where_preview: str = ""
    estimate_rows: str = ""
    risk_level: str = ""
    risk_reason: str = ""
    insert_values: list = field(default_factory=list)

    def to_dict(self):
        """Return a JSON-ready dictionary; ``insert_values`` is left out when empty."""
        data = {
            "target_table": self.target_table,
            "affected_cols": list(self.affected_cols),
            "data_source": self.data_source,
            "has_where": self.has_where,
            "where_preview": self.where_preview,
            "estimate_rows": self.estimate_rows,
            "risk_level": self.risk_level,
            "risk_reason": self.risk_reason,
        }
        if self.insert_values:
            data["insert_values"] = [list(row) for row in self.insert_values]
        return data


def analyze_dml(sql, sql_type):
    """Analyse an INSERT, UPDATE or DELETE; other types give an empty result."""
    result = DMLAnalysis()
    clean = remove_sql_comments(sql)
    upper = clean.upper()
    handler = _HANDLERS.get(sql_type)
    if handler is not None:
        handler(clean, upper, result)
    return result


def _analyze_insert(sql, upper, result):
    match = _INSERT_TABLE_RE.search(sql)
    if match:
        result.target_table = match.group(2)

    match = _INSERT_COLS_RE.search(sql)
    if match:
        cols = (col.strip(_TRIM_CHARS) for col in match.group(1).split(","))
        result.affected_cols.extend(col for col in cols if col)

    if " VALUES" in upper or " VALUE" in upper:
        result.data_source = "VALUES"
        rows = sql.count("), (") + sql.count("),(") + 1
        result.estimate_rows = format_row_count(rows)
        result.insert_values = parse_insert_values(sql)
    elif " SELECT" in upper:
        result.data_source = "SELECT"
        result.estimate_rows = "取决于SELECT结果"
    else:
        result.data_source = "未知"

    result.risk_level = "low"
    result.risk_reason = "INSERT操作，新增数据"
    result.has_where = False


def _where_preview(sql):
    match = _WHERE_RE.search(sql)
    if not match:
        return ""
    preview = match.group(1)
    if len(preview) > _PREVIEW_LEN:
        preview = preview[:_PREVIEW_LEN] + "..."
    return preview


def _analyze_update(sql, upper, result):
    match = _UPDATE_TABLE_RE.search(sql)
    if match:
        result.target_table = match.group(2)

    match = _SET_RE.search(sql)
    if match:
        for assignment in split_by_comma(match.group(1)):
            eq = assignment.find("=")
            if eq <= 0:
                continue
            col = assignment[:eq].strip(_TRIM_CHARS)
            dot = col.rfind(".")
            if dot > 0:
                col = col[dot + 1:]
            result.affected_cols.append(col)

    result.data_source = "SET"
    result.has_where = " WHERE " in upper
    if result.has_where:
        result.where_preview = _where_preview(sql)
        result.risk_level = "medium"
        result.risk_reason = "UPDATE有WHERE条件，请确认条件正确"
        result.estimate_rows = "取决于WHERE条件"
    else:
        result.risk_level = "high"
        result.risk_reason = "⚠️ UPDATE无WHERE条件，将更新全表数据！"
        result.estimate_rows = "全表所有行"


def _analyze_delete(sql, upper, result):
    match = _DELETE_TABLE_RE.search(sql)
    if match:
        result.target_table = match.group(2)

    result.data_source = "DELETE"
    result.affected_cols = ["*（整行删除）"]
    result.has_where = " WHERE " in upper
    if result.has_where:
        result.where_preview = _where_preview(sql)
        result.risk_level = "medium"
        result.risk_reason = "DELETE有WHERE条件，请确认条件正确"
        result.estimate_rows = "取决于WHERE条件"
    else:
        result.risk_level = "high"
        result.risk_reason = "⚠️ DELETE无WHERE条件，将删除全表数据！"
        result.estimate_rows = "全表所有行"

    if " LIMIT " in upper:
        result.risk_level = "medium"
        result.risk_reason = "DELETE有LIMIT限制"


_HANDLERS = {
    "INSERT": _analyze_insert,
    "UPDATE": _analyze_update,
    "DELETE": _analyze_delete,
}


def format_row_count(count):
    """Format a row count for display."""
    return f"{count}行"


def parse_insert_values(sql):
    """Return the rows of an INSERT's VALUES list, each a list of raw value strings."""
    upper = sql.upper()
    idx = upper.find(" VALUES")
    if idx == -1:
        idx = upper.find(" VALUE")
    if idx == -1:
        return []

    part = sql[idx + 7:].strip()
    rows = []
    current = []
    depth = 0
    quote = None
    prev = ""
    for ch in part:
        if ch in _QUOTES:
            if quote is None:
                quote = ch
            elif ch == quote and prev != "\\":
                quote = None
            current.append(ch)
        elif quote is not None:
            current.append(ch)
        elif ch == "(":
            depth += 1
            if depth == 1:
                current = []
            else:
                current.append(ch)
        elif ch == ")":
            depth -= 1
            if depth == 0:
                values = parse_row_values("".join(current))
                if values:
                    rows.append(values)
                current = []
            else:
                current.append(ch)
        elif depth > 0:
            current.append(ch)
        prev = ch
    return rows


def parse_row_values(row_str):
    """Split one row of values on top-level commas outside quotes and parentheses."""
    values = []
    current = []
    depth = 0
    quote = None
    prev = ""
    for ch in row_str:
        if ch in _QUOTES:
            if quote is None:
                quote = ch
            elif ch == quote and prev != "\\":
                quote = None
            current.append(ch)
        elif quote is not None:
            current.append(ch)
        elif ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            current.append(ch)
        elif ch == "," and depth == 0:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        prev = ch
    if current:
        values.append("".join(current).strip())
    return values