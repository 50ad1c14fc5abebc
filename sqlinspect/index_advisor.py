"""Index suggestions derived from the filters, joins and sort keys of a query."""

import re
from dataclasses import dataclass, field

_IDENT = r"[a-zA-Z_][a-zA-Z0-9_]*"

_REAL_TABLE_RE = re.compile(
    rf"(?:FROM|JOIN)\s+({_IDENT}\.{_IDENT})\s+(?:AS\s+)?({_IDENT})", re.I | re.ASCII
)
_WHERE_RE = re.compile(
    r"WHERE\s+(.+?)(?:GROUP\s+BY|HAVING|ORDER\s+BY|LIMIT|UNION|\)\s*,|\)\s*\Z)",
    re.I | re.S | re.ASCII,
)
_WHERE_FIELD_RE = re.compile(rf"({_IDENT})\.({_IDENT})\s*[=<>!]", re.ASCII)
_ON_RE = re.compile(
    rf"\bON\s+({_IDENT})\.({_IDENT})\s*=\s*({_IDENT})\.({_IDENT})", re.I | re.ASCII
)
_CONDITION_FIELD_RE = re.compile(
    rf"({_IDENT}(?:\.{_IDENT})?)(?:\s*[=<>!]|\s+(?:IN|LIKE|BETWEEN|IS))", re.ASCII
)
_CONDITION_KEYWORDS = frozenset({"AND", "OR", "NOT", "NULL"})
_MAX_INDEX_NAME = 64


@dataclass
class IndexSuggestion:
    """A suggested index for one table."""

    table: str = ""
    columns: list = field(default_factory=list)
    index_type: str = ""
    priority: str = ""
    reason: str = ""
    create_sql: str = ""

    def to_dict(self):
        """Return a JSON-ready dictionary."""
        return {
            "table": self.table,
            "columns": list(self.columns),
            "index_type": self.index_type,
            "priority": self.priority,
            "reason": self.reason,
            "create_sql": self.create_sql,
        }


@dataclass
class _TableFields:
    where: list = field(default_factory=list)
    join: list = field(default_factory=list)
    order: list = field(default_factory=list)
    group: list = field(default_factory=list)


def _append_unique(items, item):
    if item not in items:
        items.append(item)


def _extend_unique(items, new_items):
    for item in new_items:
        _append_unique(items, item)


def _add(result, table, column):
    _append_unique(result.setdefault(table, []), column)


def _clean_table_name(name):
    name = name.strip("`")
    return name[name.rfind(".") + 1:]


def _main_table(structure):
    if structure.from_clause is not None and structure.from_clause.main_table.name:
        return _clean_table_name(structure.from_clause.main_table.name)
    return ""


def _build_alias_map(structure):
    alias_map = {}
    from_clause = structure.from_clause
    if from_clause is None:
        return alias_map
    main = from_clause.main_table
    if main.name:
        name = _clean_table_name(main.name)
        if main.alias:
            alias_map[main.alias] = name
        alias_map[name] = name
    for join in from_clause.joins:
        name = _clean_table_name(join.table)
        if join.alias:
            alias_map[join.alias] = name
        alias_map[name] = name
    return alias_map


def parse_field_with_table(field, alias_map):
    """Return ``(table, column)``; the table is resolved through ``alias_map`` or is ''."""
    field = field.strip("`")
    if "." in field:
        parts = field.split(".")
        table_or_alias, column = parts[-2], parts[-1]
        return alias_map.get(table_or_alias, table_or_alias), column
    return "", field


def extract_fields_from_condition(condition):
    """Return the fields compared in a condition, in order, repeats included."""
    return [
        m.group(1)
        for m in _CONDITION_FIELD_RE.finditer(condition)
        if m.group(1).upper() not in _CONDITION_KEYWORDS
    ]


def _where_fields(structure, alias_map):
    result = {}
    if structure.where_clause is None:
        return result
    main = _main_table(structure)
    for name in structure.where_clause.fields:
        table, column = parse_field_with_table(name, alias_map)
        if not table and main:
            table = main
        if table and column:
            _add(result, table, column)
    return result


def _join_fields(structure, alias_map):
    result = {}
    if structure.from_clause is None:
        return result
    for join in structure.from_clause.joins:
        if not join.condition:
            continue
        for name in extract_fields_from_condition(join.condition):
            table, column = parse_field_with_table(name, alias_map)
            if table and column:
                _add(result, table, column)
    return result


def _sort_fields(structure, names, alias_map):
    result = {}
    for name in names:
        table, column = parse_field_with_table(name, alias_map)
        if table and column:
            _add(result, table, column)
        elif not column and name:
            main = _main_table(structure)
            if main:
                _add(result, main, name.strip("`"))
    return result


def _real_table_fields(sql, cte_names):
    result = {}
    alias_to_table = {}
    for match in _REAL_TABLE_RE.finditer(sql):
        table = match.group(1).split(".")[-1]
        if table.lower() in cte_names:
            continue
        alias_to_table[match.group(2).lower()] = table
        alias_to_table[table.lower()] = table

    for where in _WHERE_RE.finditer(sql):
        for fm in _WHERE_FIELD_RE.finditer(where.group(1)):
            table = alias_to_table.get(fm.group(1).lower())
            if table is not None:
                _add(result, table, fm.group(2))

    for jm in _ON_RE.finditer(sql):
        for alias, column in ((jm.group(1), jm.group(2)), (jm.group(3), jm.group(4))):
            table = alias_to_table.get(alias.lower())
            if table is not None:
                _add(result, table, column)
    return result


def _generate(table, info):
    columns = []
    reasons = []
    priority = "low"
    if info.join:
        _extend_unique(columns, info.join)
        reasons.append("JOIN连接条件")
        priority = "high"
    if info.where:
        _extend_unique(columns, info.where)
        reasons.append("WHERE过滤条件")
        priority = "high"
    if info.group:
        _extend_unique(columns, info.group)
        reasons.append("GROUP BY分组")
        if priority == "low":
            priority = "medium"
    if info.order:
        _extend_unique(columns, info.order)
        reasons.append("ORDER BY排序")
        if priority == "low":
            priority = "medium"
    if not columns:
        return None

    index_name = ("idx_" + table + "_" + "_".join(columns))[:_MAX_INDEX_NAME]
    return IndexSuggestion(
        table=table,
        columns=columns,
        index_type="composite" if len(columns) > 1 else "single",
        priority=priority,
        reason=", ".join(reasons),
        create_sql=f"CREATE INDEX {index_name} ON {table} ({', '.join(columns)});",
    )


def analyze_index_suggestions(sql, structure):
    """Suggest one index per real table from WHERE, JOIN, GROUP BY and ORDER BY usage."""
    if structure is None:
        return []

    cte_names = {cte.name.lower() for cte in structure.ctes}
    alias_map = _build_alias_map(structure)

    where = _where_fields(structure, alias_map)
    joins = _join_fields(structure, alias_map)
    order_names = structure.order_by_clause.fields if structure.order_by_clause else []
    orders = _sort_fields(structure, [o.field for o in order_names], alias_map)
    group_names = structure.group_by_clause.fields if structure.group_by_clause else []
    groups = _sort_fields(structure, group_names, alias_map)

    if cte_names:
        for table, columns in _real_table_fields(sql, cte_names).items():
            _extend_unique(where.setdefault(table, []), columns)

    tables = {}
    for source, attr in ((where, "where"), (joins, "join"), (orders, "order"), (groups, "group")):
        for table, columns in source.items():
            getattr(tables.setdefault(table, _TableFields()), attr).extend(columns)

    for name in cte_names:
        tables.pop(name, None)

    suggestions = []
    for table, info in tables.items():
        suggestion = _generate(table, info)
        if suggestion is not None:
            suggestions.append(suggestion)
    return suggestions