# Overview: Retry helpers for transient storage failures (deadlocks, lock waits, dropped connections).

from __future__ import annotations

import enum
import logging
import time

from flask import current_app
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


class TransientErrorKind(enum.Enum):
    DEADLOCK = "deadlock"
    LOCK_TIMEOUT = "lock_timeout"
    CONNECTION_RESET = "connection_reset"
    TIMEOUT = "timeout"


# MySQL / MariaDB server and client error numbers
_MYSQL_CODES = {
    1213: TransientErrorKind.DEADLOCK,          # ER_LOCK_DEADLOCK
    1205: TransientErrorKind.LOCK_TIMEOUT,      # ER_LOCK_WAIT_TIMEOUT
    2006: TransientErrorKind.CONNECTION_RESET,  # CR_SERVER_GONE_ERROR
    2013: TransientErrorKind.CONNECTION_RESET,  # CR_SERVER_LOST
    3024: TransientErrorKind.TIMEOUT,           # ER_QUERY_TIMEOUT
}

# PostgreSQL SQLSTATE values
_PG_CODES = {
    "40P01": TransientErrorKind.DEADLOCK,
    "55P03": TransientErrorKind.LOCK_TIMEOUT,
    "57014": TransientErrorKind.TIMEOUT,
    "08006": TransientErrorKind.CONNECTION_RESET,
}

# sqlite3 extended error names (Python 3.11+)
_SQLITE_NAMES = {
    "SQLITE_BUSY": TransientErrorKind.LOCK_TIMEOUT,
    "SQLITE_LOCKED": TransientErrorKind.LOCK_TIMEOUT,
}


class RetryExhaustedError(RuntimeError):
    """A transient failure persisted through every attempt."""

    def __init__(self, attempts: int, last_error: BaseException):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Query failed after {attempts} attempts. Last error: {last_error}")


def classify_db_error(exc: BaseException) -> TransientErrorKind | None:
    """
    Map a driver error to a transient failure kind, or None if not retryable.

    Classification is by driver error code, never by message text.
    """
    if not isinstance(exc, DBAPIError):
        return None

    if exc.connection_invalidated:
        return TransientErrorKind.CONNECTION_RESET

    orig = exc.orig
    args = getattr(orig, "args", ())
    if args and isinstance(args[0], int) and args[0] in _MYSQL_CODES:
        return _MYSQL_CODES[args[0]]

    pgcode = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if pgcode in _PG_CODES:
        return _PG_CODES[pgcode]

    sqlite_name = getattr(orig, "sqlite_errorname", None)
    if sqlite_name:
        # Extended names such as SQLITE_BUSY_SNAPSHOT share the primary prefix
        primary = "_".join(sqlite_name.split("_")[:2])
        return _SQLITE_NAMES.get(primary)

    return None


def _retry_settings(attempts: int | None, base_delay: float | None) -> tuple[int, float]:
    if attempts is None:
        attempts = current_app.config.get("RETRY_ATTEMPTS", 3)
    if base_delay is None:
        base_delay = current_app.config.get("RETRY_BASE_DELAY", 0.5)
    return attempts, base_delay


def execute_with_retry(statement, params=None, *, attempts: int | None = None, base_delay: float | None = None):
    """
    Execute a single statement on the current session, retrying transient failures.

    Only a statement that opened its own transaction is retried here. Inside an
    open transaction a transient error propagates unchanged so the caller can
    replay the whole unit of work with run_with_retry.

    Delay before retry n (0-based) is base_delay * 2**n. Non-transient errors
    propagate immediately; exhausting the attempts raises RetryExhaustedError.
    """
    attempts, base_delay = _retry_settings(attempts, base_delay)
    last_exc = None
    for attempt in range(attempts):
        owns_transaction = not db.session.in_transaction()
        try:
            if params is None:
                return db.session.execute(statement)
            return db.session.execute(statement, params)
        except DBAPIError as exc:
            kind = classify_db_error(exc)
            if kind is None or not owns_transaction:
                raise
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                break
            delay = base_delay * (2 ** attempt)
            logger.warning(
                "Retry attempt %d/%d after %.2fs (%s): %s",
                attempt + 1, attempts, delay, kind.value, exc.orig,
            )
            time.sleep(delay)
    raise RetryExhaustedError(attempts, last_exc.orig)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a whole DB unit of work with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts), rolling the session back between attempts.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            logger.warning("Unit of work failed (attempt %d/%d): %s", attempt + 1, attempts, exc)
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc
