"""Exception hierarchy for the metrics API.

The HTTP layer maps each class to a status code:

    ValidationError     -> 400
    UnsupportedChain    -> 404
    SourceError family  -> 500
    AggregationError    -> 500

CacheError never reaches a caller; the cache gate treats it as a miss on
read and drops it on write.
"""

from typing import Any, Dict, Optional


class MetricsAPIError(Exception):
    """Base class for every error raised by this package."""

    status_code: int = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationError(MetricsAPIError):
    """Malformed or missing request parameter. Raised before any I/O."""

    status_code = 400


class UnsupportedChain(MetricsAPIError):
    """Metric is not served for the requested chain."""

    status_code = 404


class SourceError(MetricsAPIError):
    """Upstream read failed."""

    kind: str = "source"


class NetworkError(SourceError):
    """Ledger endpoint unreachable or erroring at the transport level."""

    kind = "network"


class SourceUnavailable(NetworkError):
    """Primary and backup endpoints both failed for one call."""

    kind = "unavailable"


class QueryError(SourceError):
    """Warehouse query failed. There is no backup warehouse."""

    kind = "query"

    def __init__(self, message: str, query: Optional[str] = None,
                 details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.query = query


class NotFoundError(SourceError):
    """Unknown network, contract or method."""

    kind = "not_found"


class CacheError(MetricsAPIError):
    """Cache store unreachable or returned garbage."""


class AggregationError(MetricsAPIError):
    """A term needed for an aggregate was missing."""
