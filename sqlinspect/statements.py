"""Splitting scripts into statements and checking how they may be mixed."""

from .comments import remove_sql_comments
from .features import get_sql_category, get_sql_type

_QUOTES = "'\"`"


def split_multiple_sql(sql):
    """Split on semicolons outside quotes, after removing comments."""
    sql = remove_sql_comments(sql)
    statements = []
    current = []
    quote = None
    prev = ""

    def flush():
        text = "".join(current).strip()
        if text and text != ";":
            statements.append(text)
        current.clear()

    for ch in sql:
        if ch in _QUOTES:
            if quote is None:
                quote = ch
            elif ch == quote and prev != "\\":
                quote = None
        if ch == ";" and quote is None:
            flush()
        else:
            current.append(ch)
        prev = ch
    flush()
    return statements


def validate_sql_mix(sqls):
    """Return ``(ok, message)``; queries may not be mixed with DDL or DML."""
    if len(sqls) <= 1:
        return True, ""
    categories = {get_sql_category(get_sql_type(sql)) for sql in sqls}
    if "DQL" in categories and categories & {"DDL", "DML"}:
        return False, "DQL 查询不能与 DDL/DML 语句混合执行"
    return True, ""