"""
Exceptions raised by the evaluation pipeline.
"""

from typing import Optional


class RankevalError(Exception):
    """Base class for evaluation pipeline errors."""


class QueryParseError(RankevalError):
    """Query text could not be parsed by the search index, even after escaping."""

    def __init__(self, message: str, query_text: str = "", query_id: Optional[str] = None):
        super().__init__(message)
        self.query_text = query_text
        self.query_id = query_id


class RunFormatError(RankevalError):
    """A run file line is malformed. The whole run file is rejected."""

    def __init__(self, message: str, path: str, line_number: int):
        super().__init__(f"{path}:{line_number}: {message}")
        self.path = path
        self.line_number = line_number


class RunIntegrityError(RankevalError):
    """Run contents violate ranking invariants (e.g. two records share a rank)."""


class IndexStateError(RankevalError):
    """Index used out of lifecycle order (ingest after commit, search before commit)."""
