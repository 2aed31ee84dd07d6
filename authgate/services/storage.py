"""Bounded store calls.

Every database round-trip made by the auth services goes through
``store_call`` so that a slow or failing database surfaces as a
``StorageError`` instead of hanging the request or being mistaken for a
negative answer.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from authgate.core.logging import get_logger
from authgate.services.errors import StorageError

logger = get_logger("storage")

T = TypeVar("T")


async def store_call(awaitable: Awaitable[T], timeout: float | None) -> T:
    """Await a store operation with an upper time bound.

    IntegrityError is passed through untouched; callers decide what a
    constraint violation means.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout)
    except TimeoutError as e:
        logger.warning(f"Database operation timed out after {timeout}s")
        raise StorageError("Database operation timed out") from e
    except IntegrityError:
        raise
    except (SQLAlchemyError, OSError) as e:
        logger.error(f"Database operation failed: {type(e).__name__}")
        raise StorageError("Database operation failed") from e
