"""
Storage helpers shared by the repositories.

- ``with_db_retry``: re-run a repository call after a connection-level failure
- ``dialect_insert``: INSERT construct with ON CONFLICT for the bound dialect
"""

import asyncio
import logging
from typing import Any, Callable, TypeVar

from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from chatgate.utils.env_utils import parse_int_env

logger = logging.getLogger(__name__)

F = TypeVar("F", bound=Callable[..., Any])

# Failures where the statement never reached a committed state
RETRYABLE_EXCEPTIONS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    asyncio.TimeoutError,
    ConnectionRefusedError,
    ConnectionResetError,
)


def create_db_retry(
    max_attempts: int = 3,
    min_wait: float = 0.5,
    max_wait: float = 5,
):
    """
    Build a tenacity decorator for async repository methods.

    The last failure is re-raised unchanged so callers can map it to
    ``TransientStorageError``.
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=0.5, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_EXCEPTIONS),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )


def with_db_retry(func: F) -> F:
    """
    Retry a repository coroutine on connection-level failures.

    Each attempt re-enters ``db.session()``, so a retried write starts from
    a fresh transaction and never sees a half-applied one.
    """
    return create_db_retry(max_attempts=parse_int_env("DB_RETRY_ATTEMPTS", 3))(func)


def dialect_insert(dialect_name: str, table: Any):
    """
    INSERT construct for ``table`` that supports ON CONFLICT.

    PostgreSQL is the production target; SQLite backs local runs and tests.
    """
    if dialect_name == "sqlite":
        return sqlite.insert(table)
    return postgresql.insert(table)
