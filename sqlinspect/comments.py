"""Removal of SQL comments while leaving quoted text untouched."""

_QUOTES = "'\""


def remove_multiline_comments(query):
    """Replace each ``/* ... */`` comment outside strings with a single space."""
    out = []
    in_comment = False
    quote = None
    i = 0
    n = len(query)
    while i < n:
        ch = query[i]
        nxt = query[i + 1] if i + 1 < n else ""
        if in_comment:
            if ch == "*" and nxt == "/":
                in_comment = False
                i += 2
            else:
                i += 1
            continue
        if quote is None and ch in _QUOTES:
            quote = ch
            out.append(ch)
            i += 1
            continue
        if quote is not None and ch == quote:
            if nxt == quote:
                out.append(ch + nxt)
                i += 2
                continue
            quote = None
            out.append(ch)
            i += 1
            continue
        if quote is None and ch == "/" and nxt == "*":
            in_comment = True
            out.append(" ")
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def remove_line_comment(line):
    """Cut a ``--`` or ``#`` comment from a single line, ignoring quoted text."""
    quote = None
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        nxt = line[i + 1] if i + 1 < n else ""
        if quote is None and ch in _QUOTES:
            quote = ch
        elif quote is not None and ch == quote:
            if nxt == quote:
                i += 1
            else:
                quote = None
        elif quote is None:
            if (ch == "-" and nxt == "-") or ch == "#":
                return line[:i]
        i += 1
    return line


def _clean_lines(text):
    lines = (remove_line_comment(line).strip() for line in text.split("\n"))
    return " ".join(line for line in lines if line)


def remove_sql_comments(sql):
    """Remove all comments and join the remaining lines with single spaces."""
    return _clean_lines(remove_multiline_comments(sql))


def split_sql_statements(query):
    """Split on semicolons after removing comments; empty statements are dropped."""
    query = remove_multiline_comments(query)
    statements = []
    for part in query.split(";"):
        cleaned = _clean_lines(part).strip()
        if cleaned:
            statements.append(cleaned)
    return statements