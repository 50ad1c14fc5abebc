"""Feature detection, statement typing and risk assessment for SQL queries."""

from dataclasses import asdict, dataclass

from .comments import remove_sql_comments
from .sqlutils import get_user_original_limit, normalize_whitespace, trim_sql

_AGGREGATE_FUNCTIONS = ("COUNT(", "SUM(", "AVG(", "MAX(", "MIN(", "GROUP_CONCAT(")

_CATEGORIES = {
    "SELECT": "DQL",
    "WITH": "DQL",
    "INSERT": "DML",
    "UPDATE": "DML",
    "DELETE": "DML",
    "CREATE": "DDL",
    "ALTER": "DDL",
    "DROP": "DDL",
    "TRUNCATE": "DDL",
    "RENAME": "DDL",
    "GRANT": "DCL",
    "REVOKE": "DCL",
    "COMMIT": "TCL",
    "ROLLBACK": "TCL",
    "SAVEPOINT": "TCL",
    "SHOW": "OTHER",
    "DESCRIBE": "OTHER",
    "DESC": "OTHER",
    "EXPLAIN": "OTHER",
}

_TYPE_KEYWORDS = (
    "SELECT", "WITH", "INSERT", "UPDATE", "DELETE",
    "CREATE", "ALTER", "DROP", "TRUNCATE", "RENAME",
    "GRANT", "REVOKE", "COMMIT", "ROLLBACK", "SAVEPOINT",
    "SHOW", "DESCRIBE", "DESC", "EXPLAIN", "USE",
)


@dataclass
class SQLFeatures:
    """Structural features detected in a query."""

    has_where: bool = False
    has_join: bool = False
    has_group_by: bool = False
    has_having: bool = False
    has_order_by: bool = False
    has_distinct: bool = False
    has_subquery: bool = False
    has_union: bool = False
    has_aggregate: bool = False
    has_cte: bool = False
    join_type: str = ""
    join_count: int = 0

    def to_dict(self):
        """Return the features as a JSON-ready dictionary."""
        return asdict(self)


def analyze_sql_features(sql):
    """Detect clauses, joins, subqueries and aggregates in ``sql``."""
    upper = remove_sql_comments(sql).upper()
    features = SQLFeatures(
        has_where=" WHERE " in upper,
        has_group_by=" GROUP BY " in upper,
        has_having=" HAVING " in upper,
        has_order_by=" ORDER BY " in upper,
        has_distinct="DISTINCT " in upper,
        has_union=" UNION " in upper,
        has_cte=upper.strip().startswith("WITH "),
        has_subquery=upper.count("SELECT") > 1,
        has_aggregate=has_aggregate_function(upper),
    )
    _analyze_joins(upper, features)
    return features


def _analyze_joins(upper, features):
    features.has_join = " JOIN " in upper
    if not features.has_join:
        return

    left = upper.count(" LEFT JOIN ") + upper.count(" LEFT OUTER JOIN ")
    right = upper.count(" RIGHT JOIN ") + upper.count(" RIGHT OUTER JOIN ")
    full = upper.count(" FULL JOIN ") + upper.count(" FULL OUTER JOIN ")
    cross = upper.count(" CROSS JOIN ")
    inner = upper.count(" INNER JOIN ")
    total = upper.count(" JOIN ")

    implicit = total - left - right - full - cross - inner
    if implicit > 0:
        inner += implicit

    features.join_count = total
    counts = (("INNER", inner), ("LEFT", left), ("RIGHT", right), ("FULL", full), ("CROSS", cross))
    features.join_type = ", ".join(f"{name}:{n}" for name, n in counts if n > 0)


def has_aggregate_function(upper_sql):
    """True if the upper-cased SQL calls an aggregate function."""
    return any(fn in upper_sql for fn in _AGGREGATE_FUNCTIONS)


def get_sql_category(sql_type):
    """Map a statement type to DQL, DML, DDL, DCL, TCL, OTHER or UNKNOWN."""
    return _CATEGORIES.get(sql_type, "UNKNOWN")


def get_sql_type(sql):
    """Return the leading statement keyword, DESC reported as DESCRIBE."""
    upper = normalize_whitespace(trim_sql(sql)).upper()
    for keyword in _TYPE_KEYWORDS:
        if upper == keyword or upper.startswith(keyword + " "):
            return "DESCRIBE" if keyword == "DESC" else keyword
    return "UNKNOWN"


def assess_query_risk(sql, features):
    """Return ``(level, reason)`` where level is low, medium or high."""
    if get_user_original_limit(sql) > 0:
        return "low", "用户指定了LIMIT"
    if features.has_where:
        return "low", "有WHERE过滤条件"
    if features.has_aggregate and not features.has_group_by:
        return "low", "聚合函数查询，结果只有1行"
    if features.has_having:
        return "low", "有HAVING过滤条件"
    if features.has_join:
        return "medium", "有JOIN关联，结果可能较大"
    if features.has_group_by:
        return "medium", "有GROUP BY聚合"
    if features.has_distinct:
        return "medium", "有DISTINCT去重"
    return "high", "无过滤条件，全表查询"