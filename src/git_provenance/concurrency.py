"""Bounded thread fan-out for batch git queries.

Git invocations are blocking subprocess calls with no shared state, so batch
queries run them on a thread pool. Results always come back in input order.
"""

from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, Optional, TypeVar

from .exceptions import ProvenanceError
from .logging_config import get_logger

logger = get_logger(__name__)

_DEFAULT_WORKERS = min(os.cpu_count() or 4, 8)

T = TypeVar("T")
R = TypeVar("R")


@dataclass(frozen=True)
class BatchOutcome(Generic[T, R]):
    """Result of one item in an isolated batch."""

    item: T
    value: Optional[R] = None
    error: Optional[ProvenanceError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def resolve_workers(max_workers: Optional[int]) -> int:
    """Pool size for a caller-supplied limit (None = auto-detect)."""
    if max_workers is None:
        return _DEFAULT_WORKERS
    return max(1, max_workers)


def map_ordered(
    func: Callable[[T], R],
    items: Iterable[T],
    max_workers: Optional[int] = None,
) -> list[R]:
    """Apply ``func`` to every item, returning results in input order.

    The first failure (in input order) is re-raised after all submitted work
    has finished.
    """
    outcomes = map_isolated(func, items, max_workers, isolate=())
    return [outcome.value for outcome in outcomes]  # type: ignore[misc]


def map_isolated(
    func: Callable[[T], R],
    items: Iterable[T],
    max_workers: Optional[int] = None,
    isolate: tuple[type[BaseException], ...] = (ProvenanceError,),
) -> list[BatchOutcome[T, R]]:
    """Apply ``func`` to every item, capturing per-item failures.

    Exceptions that are instances of ``isolate`` become the outcome's
    ``error``; anything else propagates.

    Args:
        func: Work to run for each item
        items: Input items
        max_workers: Pool size (None = auto-detect, 1 = sequential)
        isolate: Exception types recorded per item instead of raised

    Returns:
        One BatchOutcome per item, in input order
    """
    items = list(items)
    workers = resolve_workers(max_workers)

    if workers == 1 or len(items) < 2:
        return [_run_one(func, item, isolate) for item in items]

    results: list[Optional[BatchOutcome[T, R]]] = [None] * len(items)
    errors: dict[int, Exception] = {}
    with ThreadPoolExecutor(max_workers=min(workers, len(items))) as executor:
        futures = {executor.submit(_run_one, func, item, isolate): i for i, item in enumerate(items)}
        for future in as_completed(futures):
            index = futures[future]
            try:
                results[index] = future.result()
            except Exception as e:
                errors[index] = e

    if errors:
        raise errors[min(errors)]

    return results  # type: ignore[return-value]


def _run_one(
    func: Callable[[T], R], item: T, isolate: tuple[type[BaseException], ...]
) -> BatchOutcome[T, R]:
    try:
        return BatchOutcome(item=item, value=func(item))
    except isolate as e:
        logger.warning("Skipping %r: %s", item, e)
        return BatchOutcome(item=item, error=e)  # type: ignore[arg-type]
