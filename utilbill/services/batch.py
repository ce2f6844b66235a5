"""Bounded fan-out for independent per-meter computations."""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

from utilbill.core.config import settings
from utilbill.core.errors import BillingError, ItemTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def run_batch(
    keys: Sequence[str],
    compute: Callable[[str], Awaitable[T]],
    max_concurrency: int | None = None,
    timeout: float | None = None,
) -> list[tuple[str, T | BillingError]]:
    """Evaluate ``compute(key)`` for every key concurrently.

    Engine failures are returned in place of a value instead of raised, so one
    failing or slow key never aborts the rest. Output order matches ``keys``.
    """
    limit = max_concurrency or settings.MAX_CONCURRENCY
    item_timeout = timeout if timeout is not None else settings.ITEM_TIMEOUT_SECONDS
    semaphore = asyncio.Semaphore(max(1, limit))

    async def guarded(key: str) -> tuple[str, T | BillingError]:
        async with semaphore:
            try:
                if item_timeout:
                    value = await asyncio.wait_for(compute(key), timeout=item_timeout)
                else:
                    value = await compute(key)
            except TimeoutError:
                logger.warning("Item %s timed out after %ss", key, item_timeout)
                return key, ItemTimeoutError(f"Timed out after {item_timeout}s")
            except BillingError as exc:
                logger.warning("Item %s failed: %s (%s)", key, exc.message, exc.kind.value)
                return key, exc
            return key, value

    return list(await asyncio.gather(*(guarded(key) for key in keys)))
