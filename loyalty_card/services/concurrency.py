from __future__ import annotations

import logging
import time

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from loyalty_card import config
from loyalty_card.errors import StorageUnavailable


logger = logging.getLogger(__name__)


def is_transient(exc: Exception) -> bool:
    """Lock timeouts, deadlocks, optimistic conflicts and dropped connections."""
    if isinstance(exc, (OperationalError, StaleDataError)):
        return True
    return isinstance(exc, DBAPIError) and bool(exc.connection_invalidated)


def run_with_retry(
    db: Session,
    func,
    *,
    attempts: int | None = None,
    backoff_base: float | None = None,
    operation: str = "storage operation",
):
    """
    Execute a unit of DB work, rolling back and retrying on transient failures.

    ``func`` must be safe to run again from scratch: it is called with a clean
    session after every rollback. Domain errors propagate on the first attempt.
    Once the attempts are exhausted, StorageUnavailable is raised.
    """
    attempts = attempts if attempts is not None else config.STORAGE_RETRY_ATTEMPTS
    backoff_base = backoff_base if backoff_base is not None else config.STORAGE_RETRY_BACKOFF
    attempts = max(1, attempts)

    for attempt in range(attempts):
        try:
            return func()
        except Exception as exc:
            db.rollback()
            if not is_transient(exc):
                raise
            if attempt >= attempts - 1:
                logger.error(
                    "storage unavailable",
                    extra={"operation": operation, "attempts": attempts},
                )
                raise StorageUnavailable(f"{operation} failed after {attempts} attempts") from exc
            logger.warning(
                "transient storage failure, retrying",
                extra={"operation": operation, "attempt": attempt + 1, "error": str(exc)},
            )
            time.sleep(backoff_base * (2 ** attempt))
