"""
Search error hierarchy.
Validation errors are raised locally before any request leaves the process;
the rest wrap what the Elasticsearch client reports.
"""


class SearchError(Exception):
    """Base class for every error raised by the search layer."""


class InvalidRangeError(SearchError, ValueError):
    """Lower bound of a range query is greater than its upper bound."""

    def __init__(self, field: str, low, high):
        self.field = field
        self.low = low
        self.high = high
        super().__init__(f"Invalid range on {field!r}: low={low} is greater than high={high}")


class InvalidPageError(SearchError, ValueError):
    """Page number is negative or page size is not positive."""

    def __init__(self, number: int, size: int):
        self.number = number
        self.size = size
        super().__init__(f"Invalid page: number={number} (must be >= 0), size={size} (must be > 0)")


class SearchUnavailableError(SearchError):
    """Elasticsearch could not be reached or failed server-side."""


class QuerySyntaxError(SearchError):
    """Elasticsearch rejected the translated request (HTTP 400)."""


class PartialBulkFailureError(SearchError):
    """Some documents of a bulk request were not indexed.

    ``failures`` holds ``(document_id, reason)`` pairs; every other document
    of the batch was written.
    """

    def __init__(self, indexed: int, failures: list[tuple[str, str]]):
        self.indexed = indexed
        self.failures = failures
        super().__init__(f"Bulk indexing failed for {len(failures)} document(s), {indexed} indexed")
