"""
Optimistic concurrency support.

Stock records carry a version column. Writers lock the row with
select_for_update() and then write through StockRecord.compare_and_set(),
which only succeeds when the version is still the one they read. On backends
without row locks (SQLite) the version check alone serializes writers.

retry_on_conflict() re-runs the whole read-check-write when the version check
loses, up to LEDGERMAN['CONFLICT_RETRIES'] attempts.
"""

import functools
import logging

from ledgerman.conf import ledgerman_settings
from ledgerman.exceptions import ConcurrencyConflictError

logger = logging.getLogger('ledgerman')


def retry_on_conflict(func):
    """
    Retry a transactional operation on ConcurrencyConflictError.

    The decorated callable must open its own transaction.atomic() so that
    each attempt starts from a clean savepoint.
    """

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        attempts = max(1, int(ledgerman_settings.CONFLICT_RETRIES))
        for attempt in range(1, attempts + 1):
            try:
                return func(*args, **kwargs)
            except ConcurrencyConflictError as exc:
                if attempt >= attempts:
                    logger.warning(
                        "ledger.conflict.exhausted",
                        extra={"operation": func.__qualname__, "attempts": attempt, **exc.data},
                    )
                    raise
                logger.info(
                    "ledger.conflict.retry",
                    extra={"operation": func.__qualname__, "attempt": attempt, **exc.data},
                )

    return wrapper
