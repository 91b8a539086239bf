import asyncio
import logging
from typing import Any, Awaitable

from exception import CollaboratorError, CollaboratorTimeoutError, HeraldError


async def call_with_timeout(
    awaitable: Awaitable,
    timeout_sec: float,
    operation: str,
    logger: logging.Logger | None = None,
) -> Any:
    """
    Await a collaborator call under a time budget.

    Timeouts surface as CollaboratorTimeoutError, any other non-domain failure
    as CollaboratorError, so callers can treat "slow" and "broken" alike.
    """
    try:
        return await asyncio.wait_for(awaitable, timeout=timeout_sec)
    except asyncio.TimeoutError as e:
        if logger:
            logger.error(f"[TIMEOUT] {operation} exceeded {timeout_sec}s")
        raise CollaboratorTimeoutError(f"{operation} timed out after {timeout_sec}s", operation=operation) from e
    except HeraldError:
        raise
    except Exception as e:
        if logger:
            logger.error(f"[CALL] {operation} failed: {e}")
        raise CollaboratorError(f"{operation} failed: {e}", operation=operation) from e
