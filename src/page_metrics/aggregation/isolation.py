from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Hashable, Mapping
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from ..logger import get_logger

logger = get_logger(__name__)

K = TypeVar("K", bound=Hashable)
T = TypeVar("T")


@dataclass
class IsolatedResults(Generic[K, T]):
    """Outcome of a batch where each operation fails independently.

    ``values`` holds an entry for every key: the result, or the default for
    keys that failed. ``errors`` holds the exception for each failed key.
    """

    values: dict[K, T] = field(default_factory=dict)
    errors: dict[K, Exception] = field(default_factory=dict)

    @property
    def failed(self) -> frozenset[K]:
        return frozenset(self.errors)

    @property
    def ok(self) -> bool:
        return not self.errors


def _key_name(key: Hashable) -> str:
    return str(getattr(key, "value", key))


async def gather_isolated(
    operations: Mapping[K, Awaitable[T]],
    default: T,
    *,
    label: str = "operation",
) -> IsolatedResults[K, T]:
    """Run all operations concurrently; a failure becomes ``default`` plus a logged error.

    Cancellation is never absorbed: if the batch or any operation is cancelled,
    CancelledError propagates to the caller.
    """
    keys = list(operations)
    outcomes = await asyncio.gather(*operations.values(), return_exceptions=True)

    results: IsolatedResults[K, T] = IsolatedResults()
    for key, outcome in zip(keys, outcomes):
        if isinstance(outcome, BaseException):
            if not isinstance(outcome, Exception):
                # CancelledError, KeyboardInterrupt, SystemExit
                raise outcome
            logger.error("%s failed for %s: %s", label, _key_name(key), outcome)
            results.errors[key] = outcome
            results.values[key] = default
        else:
            results.values[key] = outcome
    return results
