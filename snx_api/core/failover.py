"""Single-retry failover between a primary and a backup ledger endpoint."""

from enum import Enum
from typing import Any, Awaitable, Callable, Optional, TypeVar

import structlog

from snx_api.core.exceptions import NetworkError, SourceUnavailable
from snx_api.utils.metrics import metrics

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class AttemptState(str, Enum):
    """States of one fetch attempt."""
    PRIMARY = "primary"
    BACKUP = "backup"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class FetchAttempt:
    """Tracks one call's progress through PRIMARY -> BACKUP -> FAILED.

    The retry budget is one: a network error on PRIMARY moves to BACKUP,
    any error on BACKUP moves to FAILED.
    """

    def __init__(self):
        self.state = AttemptState.PRIMARY
        self.calls = 0
        self.last_error: Optional[Exception] = None

    @property
    def done(self) -> bool:
        return self.state in (AttemptState.SUCCEEDED, AttemptState.FAILED)

    def record_success(self):
        self.calls += 1
        self.state = AttemptState.SUCCEEDED

    def record_failure(self, error: Exception) -> bool:
        """Record a failed call. Returns True if a retry is allowed."""

        self.calls += 1
        self.last_error = error

        if self.state == AttemptState.PRIMARY and isinstance(error, NetworkError):
            self.state = AttemptState.BACKUP
            return True

        self.state = AttemptState.FAILED
        return False


async def with_failover(primary: Any,
                        backup_factory: Callable[[], Any],
                        op: Callable[[Any], Awaitable[T]]) -> T:
    """
    Run op against the primary endpoint, retrying once on the backup.

    Args:
        primary: Endpoint handle for the first call
        backup_factory: Builds the backup endpoint; only called on failover
        op: Coroutine function taking an endpoint

    Returns:
        The value returned by op

    Raises:
        SourceUnavailable: both endpoints failed with network errors
        SourceError: any non-network failure, raised unchanged
    """
    attempt = FetchAttempt()
    endpoint = primary

    while not attempt.done:
        try:
            result = await op(endpoint)
        except Exception as e:
            retry = attempt.record_failure(e)
            logger.warning("Source call failed",
                           endpoint=repr(endpoint),
                           state=attempt.state.value,
                           error=str(e))

            if retry:
                network = getattr(primary, "network", "unknown")
                metrics.failovers.labels(network=network).inc()
                logger.warning("Changing endpoint and retrying", network=network)
                endpoint = backup_factory()
                continue

            if isinstance(e, NetworkError) and attempt.calls > 1:
                raise SourceUnavailable(
                    f"Primary and backup endpoints failed: {e.message}",
                    details=e.details,
                ) from e
            raise

        attempt.record_success()
        return result

    # unreachable: the loop either returns or raises
    raise SourceUnavailable("Fetch attempt ended without a result")
