# sqlinspect

Lightweight static analysis for MySQL statements, with no dependencies outside
the standard library. It works on SQL text only.

## What it does

- `sqlinspect.comments`: strips `--`, `#` and `/* */` comments while leaving
  quoted text alone (`remove_sql_comments`, `remove_multiline_comments`,
  `remove_line_comment`), and splits a script on semicolons
  (`split_sql_statements`).
- `sqlinspect.statements`: splits a script into statements outside quotes
  (`split_multiple_sql`). `validate_sql_mix` returns `(ok, message)`. It reports
  `False` when queries are mixed with DDL or DML statements.
- `sqlinspect.features`: finds the leading statement keyword (`get_sql_type`)
  and its category, one of DQL, DML, DDL, DCL, TCL, OTHER or UNKNOWN
  (`get_sql_category`). It detects query features such as joins, grouping,
  subqueries and aggregates (`analyze_sql_features`, which returns an
  `SQLFeatures`). `assess_query_risk` rates a query as low, medium or high risk.
- `sqlinspect.sqlutils`: handles row limits. `process_sql_limit` adds
  `LIMIT 100` to SELECT/WITH queries that have no limit and caps user limits at
  1000. The module also has `get_user_original_limit`, `replace_limit_value`,
  `build_count_sql`, `has_filter_conditions`, `is_read_only_sql`, `trim_sql`,
  `normalize_whitespace`, `has_prefix` and `is_valid_database_name`.
- `sqlinspect.structure`: breaks a SELECT into its SELECT fields, FROM/JOIN,
  WHERE, GROUP BY, HAVING, ORDER BY and LIMIT clauses, plus its subqueries,
  window functions and CTEs (`analyze_sql_structure`, which returns an
  `SQLStructure`). The clause types and the low-level splitters are in
  `sqlinspect.clauses`.
- `sqlinspect.extract`: extracts the database prefixes, the tables with their
  aliases (including derived tables and CTE references) and the selected
  columns (`extract_databases`, `extract_tables`, `extract_tables_with_alias`,
  `extract_columns`).
- `sqlinspect.dml`: assesses INSERT, UPDATE and DELETE statements. It reports
  the target table, the affected columns, the WHERE preview, the estimated rows
  and the risk, and parses INSERT value rows (`analyze_dml`,
  `parse_insert_values`).
- `sqlinspect.index_advisor`: suggests one index per real table from its join,
  filter, grouping and ordering columns (`analyze_index_suggestions`, which
  returns a list of `IndexSuggestion`).
- `sqlinspect.textutils`: holds the helpers the modules above share, such as
  comma splitting that respects quotes and parentheses.

## Installation

```
pip install sqlinspect
```

## Usage

```python
from sqlinspect.sqlutils import process_sql_limit, build_count_sql
from sqlinspect.features import get_sql_type, get_sql_category, analyze_sql_features
from sqlinspect.structure import analyze_sql_structure
from sqlinspect.index_advisor import analyze_index_suggestions
from sqlinspect.dml import analyze_dml

sql = "SELECT u.id, u.name FROM users u JOIN orders o ON u.id = o.user_id WHERE u.age > 18"

process_sql_limit(sql)               # "... WHERE u.age > 18 LIMIT 100"
build_count_sql(sql)                 # "SELECT COUNT(*) FROM users u JOIN ..."
get_sql_category(get_sql_type(sql))  # "DQL"

features = analyze_sql_features(sql)
features.join_type                   # "INNER:1"

structure = analyze_sql_structure(sql)
for suggestion in analyze_index_suggestions(sql, structure):
    print(suggestion.create_sql)

report = analyze_dml("DELETE FROM logs", "DELETE")
report.risk_level                    # "high"
```

`SQLFeatures`, `SQLStructure`, `DMLAnalysis`, `IndexSuggestion` and the clause
types each have a `to_dict()` method. It returns a plain dictionary that is
ready to be serialised as JSON.

## What it does not do

The package is a library only. It has no command-line tool and no HTTP service.
It never connects to a database, so it does not execute statements, count rows
or read table metadata. It does not analyse DDL statements such as CREATE,
ALTER or DROP beyond reporting their type and category. It writes no analysis
log files.

## Running the tests

```
pip install -e ".[test]"
pytest
```