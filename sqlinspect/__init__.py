"""Static analysis of MySQL statements: comments, limits, structure, DML risk and index advice."""

__version__ = "0.1.0"

__all__ = [
    "clauses",
    "comments",
    "dml",
    "extract",
    "features",
    "index_advisor",
    "sqlutils",
    "statements",
    "structure",
    "textutils",
]