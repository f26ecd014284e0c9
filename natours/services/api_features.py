from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from natours.services.document_query import DocumentQuery

RESERVED_KEYS = ("page", "sort", "limit", "fields")
COMPARISON_KEYWORDS = frozenset({"gte", "gt", "lte", "lt"})

DEFAULT_SORT = "-created_at"
DEFAULT_FIELDS = "-version"
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
# Largest offset a signed 64-bit SQL integer can carry.
MAX_SKIP = 2**63 - 1


def _positive_int(value: Any, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def _comma_directive(value: Any) -> str:
    tokens = [token.strip() for token in str(value).split(",")]
    return " ".join(token for token in tokens if token)


def rewrite_comparisons(condition: Any) -> Any:
    """``{"gte": "500"}`` -> ``{"$gte": "500"}``; scalars and lists pass through untouched."""
    if not isinstance(condition, Mapping):
        return condition
    return {(f"${key}" if key in COMPARISON_KEYWORDS else key): value for key, value in condition.items()}


class QueryFeatures:
    """Applies filter, sort, field limiting and pagination from a parsed query string."""

    def __init__(self, query: DocumentQuery, query_spec: Mapping[str, Any] | None):
        self.query = query
        self.query_spec = dict(query_spec or {})
        self.criteria: dict[str, Any] = {}

    def filter(self) -> "QueryFeatures":
        self.criteria = {
            field: rewrite_comparisons(condition)
            for field, condition in self.query_spec.items()
            if field not in RESERVED_KEYS
        }
        self.query.find(self.criteria)
        return self

    def sort(self) -> "QueryFeatures":
        raw = self.query_spec.get("sort")
        directive = _comma_directive(raw) if raw else ""
        self.query.sort(directive or DEFAULT_SORT)
        return self

    def limit_fields(self) -> "QueryFeatures":
        raw = self.query_spec.get("fields")
        directive = _comma_directive(raw) if raw else ""
        self.query.select(directive or DEFAULT_FIELDS)
        return self

    @property
    def page(self) -> int:
        return _positive_int(self.query_spec.get("page"), DEFAULT_PAGE)

    @property
    def limit(self) -> int:
        return min(_positive_int(self.query_spec.get("limit"), DEFAULT_LIMIT), MAX_LIMIT)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit

    def paginate(self) -> "QueryFeatures":
        # Pages past the end simply come back empty.
        if self.skip > MAX_SKIP:
            self.query.skip(0).limit(0)
        else:
            self.query.skip(self.skip).limit(self.limit)
        return self
