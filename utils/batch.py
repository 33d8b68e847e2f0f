"""
All-settled batch execution.

Runs independent coroutines concurrently and waits for every one of them,
returning one outcome per input in input order. A failing or cancelled
coroutine never cancels or short-circuits the others. Cancelling the caller
cancels every child and propagates out of gather.
"""

import asyncio
import logging
from typing import Any, Awaitable, Generic, Iterable, TypeVar

from pydantic import BaseModel, ConfigDict

T = TypeVar("T")

logger = logging.getLogger(__name__)


class Settled(BaseModel, Generic[T]):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    value: T | None = None
    exception: BaseException | None = None

    @property
    def fulfilled(self) -> bool:
        return self.exception is None


async def settle_all(awaitables: Iterable[Awaitable[T]], label: str = "batch") -> list[Settled[T]]:
    """
    Await every awaitable and report how each one ended.

    Args:
        awaitables: Independent coroutines/futures, started together
        label: Name used in log lines

    Returns:
        One Settled per input, in the same order
    """
    awaitables = list(awaitables)
    if not awaitables:
        return []

    results: list[Any] = await asyncio.gather(*awaitables, return_exceptions=True)

    outcomes = []
    for index, result in enumerate(results):
        if isinstance(result, BaseException):
            logger.warning(f"⚠️ {label}[{index}] raised {type(result).__name__}: {result}")
            outcomes.append(Settled(exception=result))
        else:
            outcomes.append(Settled(value=result))

    fulfilled = sum(1 for o in outcomes if o.fulfilled)
    logger.info(f"📦 {label} settled: {fulfilled}/{len(outcomes)} fulfilled")
    return outcomes
