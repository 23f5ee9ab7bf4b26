"""
Query builder - immutable query, sort, page and aggregation descriptors.
Nothing here talks to Elasticsearch; descriptors only know how to render
themselves as request DSL and how to read their own aggregation results.
"""

from dataclasses import dataclass, field, replace
from typing import Any, Union

from itemsearch.core.exceptions import InvalidPageError, InvalidRangeError
from itemsearch.schemas.search import Bucket, MetricResult, TermsResult

SORT_DIRECTIONS = ("asc", "desc")
METRICS = ("avg", "sum", "min", "max")


def _require_field(field_name: str) -> None:
    if not field_name or not field_name.strip():
        raise ValueError("field name must be a non-empty string")


@dataclass(frozen=True)
class SortField:
    field: str
    direction: str = "asc"

    def __post_init__(self):
        _require_field(self.field)
        direction = (self.direction or "").lower()
        if direction not in SORT_DIRECTIONS:
            raise ValueError(f"sort direction must be one of {SORT_DIRECTIONS}, got {self.direction!r}")
        object.__setattr__(self, "direction", direction)

    @classmethod
    def parse(cls, spec: str) -> "SortField":
        """Parse ``"price:desc"`` / ``"price"`` (ascending) query-string style sort specs."""
        field_name, _, direction = spec.partition(":")
        return cls(field_name.strip(), direction.strip() or "asc")

    def to_dict(self) -> dict[str, Any]:
        return {self.field: {"order": self.direction}}


@dataclass(frozen=True)
class Page:
    """Zero-based page number and positive page size."""

    number: int = 0
    size: int = 20

    def __post_init__(self):
        if self.number < 0 or self.size <= 0:
            raise InvalidPageError(self.number, self.size)

    @property
    def offset(self) -> int:
        return self.number * self.size


class _Composable:
    """Lets a bare query be sorted, paged or aggregated without wrapping it by hand."""

    def with_sort(self, field_name: str, direction: str = "asc") -> "SearchQuery":
        return SearchQuery(query=self).with_sort(field_name, direction)

    def with_page(self, number: int, size: int) -> "SearchQuery":
        return SearchQuery(query=self).with_page(number, size)

    def with_aggregation(self, aggregation: "Aggregation") -> "SearchQuery":
        return SearchQuery(query=self).with_aggregation(aggregation)


@dataclass(frozen=True)
class MatchAllQuery(_Composable):
    def to_dict(self) -> dict[str, Any]:
        return {"match_all": {}}


@dataclass(frozen=True)
class MatchQuery(_Composable):
    """Full-text match on an analyzed field."""

    field: str
    text: str

    def __post_init__(self):
        _require_field(self.field)

    def to_dict(self) -> dict[str, Any]:
        return {"match": {self.field: {"query": self.text}}}


@dataclass(frozen=True)
class TermQuery(_Composable):
    """Exact match on a keyword field."""

    field: str
    value: Any

    def __post_init__(self):
        _require_field(self.field)

    def to_dict(self) -> dict[str, Any]:
        return {"term": {self.field: {"value": self.value}}}


@dataclass(frozen=True)
class RangeQuery(_Composable):
    """Inclusive range; a ``None`` bound leaves that side open."""

    field: str
    low: Any = None
    high: Any = None

    def __post_init__(self):
        _require_field(self.field)
        if self.low is not None and self.high is not None and self.low > self.high:
            raise InvalidRangeError(self.field, self.low, self.high)

    def to_dict(self) -> dict[str, Any]:
        bounds = {}
        if self.low is not None:
            bounds["gte"] = self.low
        if self.high is not None:
            bounds["lte"] = self.high
        return {"range": {self.field: bounds}}


Query = Union[MatchAllQuery, MatchQuery, TermQuery, RangeQuery]


@dataclass(frozen=True)
class MetricAggregation:
    name: str
    field: str
    metric: str = "avg"

    def __post_init__(self):
        _require_field(self.field)
        if self.metric not in METRICS:
            raise ValueError(f"metric must be one of {METRICS}, got {self.metric!r}")

    def to_dict(self) -> dict[str, Any]:
        return {self.metric: {"field": self.field}}

    def parse_result(self, raw: dict[str, Any]) -> MetricResult:
        return MetricResult(metric=self.metric, value=raw.get("value"))


@dataclass(frozen=True)
class TermsAggregation:
    """Bucket documents by the distinct values of a keyword field."""

    name: str
    field: str
    size: int = 10
    sub_aggregations: tuple["Aggregation", ...] = ()

    def __post_init__(self):
        _require_field(self.field)
        if self.size <= 0:
            raise ValueError("terms aggregation size must be > 0")

    def with_sub_aggregation(self, aggregation: "Aggregation") -> "TermsAggregation":
        return replace(self, sub_aggregations=self.sub_aggregations + (aggregation,))

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"terms": {"field": self.field, "size": self.size}}
        if self.sub_aggregations:
            body["aggs"] = {sub.name: sub.to_dict() for sub in self.sub_aggregations}
        return body

    def parse_result(self, raw: dict[str, Any]) -> TermsResult:
        buckets = []
        for raw_bucket in raw.get("buckets", []):
            key = raw_bucket.get("key_as_string", raw_bucket["key"])
            buckets.append(
                Bucket(
                    key=str(key),
                    doc_count=raw_bucket["doc_count"],
                    aggregations={
                        sub.name: sub.parse_result(raw_bucket.get(sub.name, {}))
                        for sub in self.sub_aggregations
                    },
                )
            )
        return TermsResult(buckets=buckets, sum_other_doc_count=raw.get("sum_other_doc_count", 0))


Aggregation = Union[TermsAggregation, MetricAggregation]


@dataclass(frozen=True)
class SearchQuery:
    """A query plus sort order, page and aggregations. ``with_*`` returns a copy."""

    query: Query = field(default_factory=MatchAllQuery)
    sort: tuple[SortField, ...] = ()
    page: Page = field(default_factory=Page)
    aggregations: tuple[Aggregation, ...] = ()
    fetch_source: bool = True

    def with_sort(self, field_name: str, direction: str = "asc") -> "SearchQuery":
        return replace(self, sort=self.sort + (SortField(field_name, direction),))

    def with_page(self, number: int, size: int) -> "SearchQuery":
        return replace(self, page=Page(number, size))

    def with_aggregation(self, aggregation: Aggregation) -> "SearchQuery":
        return replace(self, aggregations=self.aggregations + (aggregation,))

    def without_source(self) -> "SearchQuery":
        """Return no hits at all, only totals and aggregations."""
        return replace(self, fetch_source=False)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"query": self.query.to_dict(), "track_total_hits": True}
        if self.sort:
            body["sort"] = [s.to_dict() for s in self.sort]
        if self.fetch_source:
            body["from"] = self.page.offset
            body["size"] = self.page.size
        else:
            body["size"] = 0
            body["_source"] = False
        if self.aggregations:
            body["aggs"] = {agg.name: agg.to_dict() for agg in self.aggregations}
        return body

    def to_search_kwargs(self) -> dict[str, Any]:
        """``to_body`` renamed for keyword arguments of ``AsyncElasticsearch.search``."""
        renames = {"from": "from_", "_source": "source"}
        return {renames.get(key, key): value for key, value in self.to_body().items()}

    def parse_aggregations(self, raw: dict[str, Any] | None) -> dict:
        raw = raw or {}
        return {agg.name: agg.parse_result(raw.get(agg.name, {})) for agg in self.aggregations}


def match_all() -> MatchAllQuery:
    return MatchAllQuery()


def match_query(field_name: str, text: str) -> MatchQuery:
    return MatchQuery(field_name, text)


def term_query(field_name: str, value: Any) -> TermQuery:
    return TermQuery(field_name, value)


def range_query(field_name: str, low: Any = None, high: Any = None) -> RangeQuery:
    return RangeQuery(field_name, low, high)


def terms_aggregation(name: str, field_name: str, size: int = 10) -> TermsAggregation:
    return TermsAggregation(name, field_name, size)


def metric_aggregation(name: str, field_name: str, metric: str) -> MetricAggregation:
    return MetricAggregation(name, field_name, metric)


def avg_aggregation(name: str, field_name: str) -> MetricAggregation:
    return MetricAggregation(name, field_name, "avg")


def search_query(query: Query | None = None) -> SearchQuery:
    return SearchQuery(query=query if query is not None else MatchAllQuery())
