"""
Search result schemas - result pages and aggregation results.
Aggregation results are tagged by ``kind`` so callers match on the tag
instead of guessing the shape of the payload.
"""

import math
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from itemsearch.schemas.item import Item


class MetricResult(BaseModel):
    kind: Literal["metric"] = "metric"
    metric: str
    value: float | None = None  # None when the bucket holds no values


class Bucket(BaseModel):
    key: str
    doc_count: int
    aggregations: dict[str, "AggregationResult"] = {}


class TermsResult(BaseModel):
    kind: Literal["terms"] = "terms"
    buckets: list[Bucket] = []
    # Documents in buckets beyond the requested size; non-zero means the list is truncated
    sum_other_doc_count: int = 0

    @property
    def truncated(self) -> bool:
        return self.sum_other_doc_count > 0

    def bucket(self, key: str) -> Bucket | None:
        return next((b for b in self.buckets if b.key == key), None)


AggregationResult = Annotated[Union[TermsResult, MetricResult], Field(discriminator="kind")]

Bucket.model_rebuild()
TermsResult.model_rebuild()


class ItemPage(BaseModel):
    """One page of items plus totals and aggregation results."""

    items: list[Item] = []
    total_elements: int = 0
    total_pages: int = 0
    number: int = 0
    size: int = 0
    aggregations: dict[str, AggregationResult] = {}

    @classmethod
    def build(
        cls,
        items: list[Item],
        total_elements: int,
        number: int,
        size: int,
        aggregations: dict | None = None,
    ) -> "ItemPage":
        total_pages = math.ceil(total_elements / size) if size > 0 else 0
        return cls(
            items=items,
            total_elements=total_elements,
            total_pages=total_pages,
            number=number,
            size=size,
            aggregations=aggregations or {},
        )

    def terms(self, name: str) -> TermsResult:
        """Return the terms aggregation called ``name``; KeyError/TypeError if absent or not terms."""
        result = self.aggregations[name]
        if not isinstance(result, TermsResult):
            raise TypeError(f"Aggregation {name!r} is a {result.kind} result, not terms")
        return result
