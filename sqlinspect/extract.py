"""Extraction of databases, tables, aliases and columns referenced by a query."""

import re

from .clauses import TableInfo
from .comments import remove_sql_comments
from .textutils import find_last_main_select, is_valid_alias, is_valid_table_name, split_by_comma

_ASCII_UPPER = str.maketrans(
    "abcdefghijklmnopqrstuvwxyz", "ABCDEFGHIJKLMNOPQRSTUVWXYZ"
)
_IDENT = r"[a-zA-Z_][a-zA-Z0-9_]*"
_FLAGS = re.I | re.ASCII

_DATABASE_RE = re.compile(
    rf"(?:FROM|JOIN|INTO|UPDATE)\s+`?({_IDENT})`?\s*\.\s*`?({_IDENT})", _FLAGS
)
_TABLE_RE = re.compile(
    rf"(?:FROM|JOIN)\s+"
    rf"`?({_IDENT})`?"
    rf"(?:\.`?({_IDENT})`?)?"
    rf"(?:\s+(?:AS\s+)?`?({_IDENT})`?)?"
    r"(?:\s|,|\Z|;|\)|JOIN|ON|WHERE|GROUP|ORDER|LIMIT|UNION|HAVING)",
    _FLAGS,
)
_CTE_NAME_RE = re.compile(
    rf"(?:WITH\s+(?:RECURSIVE\s+)?|,\s*)({_IDENT})\s+AS\s*\(", _FLAGS
)

_ALIAS_KEYWORDS = frozenset(
    {
        "ON", "WHERE", "AND", "OR", "LEFT", "RIGHT", "INNER", "OUTER",
        "JOIN", "GROUP", "ORDER", "LIMIT", "HAVING", "UNION", "SELECT", "FROM",
    }
)
_WHITESPACE = " \t\n\r"
_TRIM_CHARS = "` \t\n\r"
_COMPARISON_OPS = (">", "<", "=", "!=", "<>", ">=", "<=")

_EXPRESSION_TYPES = (
    (("COUNT(", "SUM(", "AVG(", "MAX(", "MIN("), "聚合表达式"),
    (("CONCAT(", "SUBSTRING(", "REPLACE(", "TRIM("), "字符串表达式"),
    (("DATE_FORMAT(", "DATE(", "NOW(", "DATEDIFF("), "日期表达式"),
    (("ROUND(", "FLOOR(", "CEIL(", "ABS("), "数值表达式"),
    (("IF(", "IFNULL(", "COALESCE(", "NULLIF("), "条件表达式"),
    (("CASE ",), "CASE表达式"),
)


def _upper(s):
    return s.translate(_ASCII_UPPER)


def _is_alnum(ch):
    return ("a" <= ch <= "z") or ("A" <= ch <= "Z") or ("0" <= ch <= "9")


def _is_keyword(word):
    return _upper(word) in _ALIAS_KEYWORDS


def extract_databases(sql):
    """Return the distinct database names used as ``db.table`` prefixes, in order of appearance."""
    databases = []
    for match in _DATABASE_RE.finditer(sql):
        name = match.group(1)
        if name not in databases:
            databases.append(name)
    return databases


def extract_tables(sql):
    """Return the names of all tables the query reads from."""
    return [table.name for table in extract_tables_with_alias(sql)]


def extract_tables_with_alias(sql):
    """Return TableInfo entries for derived tables, real tables and CTE references.

    The same table under different aliases is listed once per alias.
    """
    sql = remove_sql_comments(sql)
    cte_names = extract_cte_names(sql)
    clean = remove_function_calls(sql)

    tables = []
    seen = set()

    for alias in extract_subquery_aliases(sql):
        if not alias or _is_keyword(alias):
            continue
        key = "subquery-" + alias
        if key in seen:
            continue
        seen.add(key)
        tables.append(TableInfo(name=alias, alias=alias, is_subquery=True))

    for match in _TABLE_RE.finditer(clean):
        first, second, alias = match.group(1), match.group(2), match.group(3)
        alias = (alias or "").strip()
        if second:
            table_name = second
            full_name = f"{first}.{second}"
            is_cte = False
        else:
            table_name = first
            full_name = first
            is_cte = (
                table_name in cte_names
                or table_name.lower() in cte_names
                or table_name.upper() in cte_names
            )

        if not is_valid_table_name(table_name):
            continue
        if _is_keyword(alias):
            alias = ""

        key = f"{full_name}-{alias}" if alias else full_name
        if key in seen:
            continue
        seen.add(key)
        tables.append(
            TableInfo(
                name=full_name,
                alias=alias,
                is_cte=is_cte,
                cte_name=table_name if is_cte else "",
            )
        )
    return tables


def _skip_whitespace(sql, pos):
    while pos < len(sql) and sql[pos] in _WHITESPACE:
        pos += 1
    return pos


def extract_subquery_aliases(sql):
    """Return the aliases of derived tables written as ``FROM (...) [AS] alias``."""
    aliases = []
    upper = _upper(sql)
    n = len(sql)
    i = 0
    while i < n:
        from_idx = upper.find("FROM", i)
        join_idx = upper.find("JOIN", i)
        if from_idx >= 0 and (join_idx < 0 or from_idx < join_idx):
            keyword_idx = from_idx
        elif join_idx >= 0:
            keyword_idx = join_idx
        else:
            break

        pos = _skip_whitespace(sql, keyword_idx + 4)
        if pos < n and sql[pos] == "(":
            depth = 1
            pos += 1
            while pos < n and depth > 0:
                if sql[pos] == "(":
                    depth += 1
                elif sql[pos] == ")":
                    depth -= 1
                pos += 1
            pos = _skip_whitespace(sql, pos)
            if pos + 2 < n and _upper(sql[pos:pos + 2]) == "AS":
                pos = _skip_whitespace(sql, pos + 2)
            alias_start = pos
            while pos < n and (_is_alnum(sql[pos]) or sql[pos] == "_"):
                pos += 1
            if pos > alias_start:
                aliases.append(sql[alias_start:pos])
        i = pos
    return aliases


def remove_function_calls(sql):
    """Blank out the arguments of top-level function calls, keeping names and parentheses."""
    chars = list(sql)
    depth = 0
    in_function = False
    function_start = -1
    for i, ch in enumerate(chars):
        if ch == "(":
            if depth == 0 and i > 0:
                j = i - 1
                while j >= 0 and (_is_alnum(chars[j]) or chars[j] == "_"):
                    j -= 1
                if j < i - 1:
                    in_function = True
                    function_start = j + 1
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0 and in_function:
                left = -1
                for j in range(function_start, i):
                    if chars[j] == "(":
                        left = j
                        break
                if left > 0:
                    for j in range(left + 1, i):
                        chars[j] = " "
                in_function = False
    return "".join(chars)


def extract_cte_names(sql):
    """Return the CTE names of a WITH query, each as written, lower-cased and upper-cased."""
    names = set()
    if not _upper(sql).strip().startswith("WITH"):
        return names
    for match in _CTE_NAME_RE.finditer(sql):
        name = match.group(1)
        names.update((name.lower(), name.upper(), name))
    return names


def extract_columns(sql):
    """Return the main query's selected columns as ``name`` or ``name(alias)``."""
    sql = remove_sql_comments(sql)
    upper = _upper(sql)
    if upper.strip().startswith("WITH"):
        last = find_last_main_select(sql)
        if last > 0:
            sql = sql[last:]
            upper = _upper(sql)

    select_idx = upper.find("SELECT")
    from_idx = upper.find("FROM")
    if select_idx == -1 or from_idx == -1 or select_idx >= from_idx:
        return []

    clause = sql[select_idx + 6:from_idx].strip()
    upper_clause = _upper(clause)
    if upper_clause == "*" or upper_clause.startswith("DISTINCT *"):
        return ["*"]

    clause = clause.removeprefix("DISTINCT ").removeprefix("distinct ")

    columns = []
    for item in split_by_comma(clause):
        item = item.strip()
        if not item or item == "*":
            continue
        name = _extract_column_name(item)
        if name and name != "*":
            columns.append(name)
    return columns


def _extract_column_name(field):
    field = field.strip()
    alias = ""
    as_idx = _upper(field).find(" AS ")
    if as_idx > 0:
        alias = field[as_idx + 4:].strip().strip("`'\"")
        column = field[:as_idx].strip()
    else:
        parts = _split_field_and_alias(field)
        if len(parts) == 2:
            column, alias = parts
        else:
            column = field

    upper_column = _upper(column)
    if "(" in column:
        kind = _expression_type(upper_column)
        return f"{kind}({alias})" if alias else kind

    if upper_column.strip().startswith("CASE "):
        return f"CASE表达式({alias})" if alias else ""

    dot = column.rfind(".")
    if dot > 0:
        column = column[dot + 1:]
    column = column.strip(_TRIM_CHARS)
    if not column:
        return ""
    if alias and alias != column:
        return f"{column}({alias})"
    return column


def _expression_type(upper_field):
    for markers, kind in _EXPRESSION_TYPES:
        if any(marker in upper_field for marker in markers):
            return kind
    return "函数表达式"


def _split_field_and_alias(field):
    field = field.strip()
    if "(" in field:
        depth = 0
        for i, ch in enumerate(field):
            if ch == "(":
                depth += 1
            elif ch == ")":
                depth -= 1
                if depth == 0:
                    rest = field[i + 1:].strip()
                    if rest and not _upper(rest).startswith("AS "):
                        return [field[:i + 1].strip(), rest]
                    return [field]
        return [field]

    last_space = field.rfind(" ")
    if last_space > 0:
        possible_alias = field[last_space + 1:].strip()
        column = field[:last_space].strip()
        if is_valid_alias(possible_alias) and column:
            return [column, possible_alias]
    return [field]


def extract_field_from_function(func_expr):
    """Return the column a function call is applied to, or the function name for ``*``."""
    start = func_expr.find("(")
    end = func_expr.rfind(")")
    if start == -1 or end == -1 or start >= end:
        return ""

    func_name = func_expr[:start].strip()
    parts = split_by_comma(func_expr[start + 1:end])
    if not parts:
        return ""

    first = parts[0].strip()
    for op in _COMPARISON_OPS:
        idx = first.find(op)
        if idx > 0:
            first = first[:idx].strip()
            break

    if "(" in first:
        return extract_field_from_function(first)

    dot = first.rfind(".")
    if dot > 0:
        first = first[dot + 1:]
    first = first.strip(_TRIM_CHARS)
    if not first or first == "*":
        return func_name
    return first