"""Small text helpers shared by the SQL analysers."""

_QUOTE_CHARS = "'\"`"

_ALIAS_KEYWORDS = frozenset(
    {
        "FROM", "WHERE", "JOIN", "ON", "AND", "OR", "AS", "LEFT", "RIGHT",
        "INNER", "OUTER", "GROUP", "ORDER", "BY", "HAVING", "LIMIT", "OFFSET",
        "UNION", "SELECT", "INTO", "VALUES", "SET", "NULL", "NOT", "IN", "LIKE",
        "BETWEEN", "EXISTS", "CASE", "WHEN", "THEN", "ELSE", "END", "IS",
    }
)

_TABLE_KEYWORDS = frozenset(
    {
        "SELECT", "WHERE", "ON", "AND", "OR", "AS", "FROM", "JOIN",
        "LEFT", "RIGHT", "INNER", "OUTER", "FULL", "CROSS",
    }
)


def split_by_comma(s):
    """Split on top-level commas, ignoring those inside parentheses or quotes."""
    parts = []
    current = []
    depth = 0
    quote = None
    prev = ""
    for ch in s:
        if ch in _QUOTE_CHARS:
            if quote is None:
                quote = ch
            elif ch == quote and prev != "\\":
                quote = None
            current.append(ch)
        elif quote is None:
            if ch == "(":
                depth += 1
                current.append(ch)
            elif ch == ")":
                depth -= 1
                current.append(ch)
            elif ch == "," and depth == 0:
                parts.append("".join(current))
                current = []
            else:
                current.append(ch)
        else:
            current.append(ch)
        prev = ch
    if current:
        parts.append("".join(current))
    return parts


def find_last_main_select(sql):
    """Return the index of the last SELECT outside parentheses, or -1."""
    depth = 0
    last = -1
    for i in range(len(sql) - 6):
        ch = sql[i]
        if ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
        elif depth == 0 and sql[i:i + 6].upper() == "SELECT":
            last = i
    return last


def is_valid_alias(s):
    """True if ``s`` is non-empty and not an SQL keyword."""
    return bool(s) and s.upper() not in _ALIAS_KEYWORDS


def is_valid_table_name(name):
    """True if ``name`` is non-empty and not an SQL keyword."""
    return bool(name) and name.upper() not in _TABLE_KEYWORDS