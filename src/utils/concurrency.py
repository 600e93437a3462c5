"""Bounded worker-pool primitive used by the chapter scheduler.

:func:`run_bounded` runs one async ``worker`` per item with at most
``limit`` items in flight.  It is a fixed pool of ``limit`` workers that
pull from a shared :class:`asyncio.Queue`, followed by a wait-for-all
barrier, rather than one detached task per item behind a semaphore:

- every item is attempted exactly once;
- an exception raised by one item is captured as that item's result and
  never cancels or delays its siblings beyond the concurrency cap;
- results come back in input order even though completion order follows
  network arrival order;
- a shared completion counter is advanced under an :class:`asyncio.Lock`
  and the optional progress callback runs under the same lock, so the
  reported count is exact and display output never interleaves.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, Generic, TypeVar

import structlog

from src.utils.logging import get_logger

_I = TypeVar("_I")
_T = TypeVar("_T")

# (completed, total, item) -> None, sync or async.
ProgressCallback = Callable[[int, int, Any], Any]

_logger: structlog.BoundLogger = get_logger(__name__)


class ProgressCounter(Generic[_I]):
    """Monotonic completion counter shared by all workers of one run."""

    def __init__(self, total: int, on_progress: ProgressCallback | None = None) -> None:
        self._total = total
        self._completed = 0
        self._on_progress = on_progress
        self._lock = asyncio.Lock()

    @property
    def total(self) -> int:
        return self._total

    @property
    def completed(self) -> int:
        return self._completed

    @property
    def percent(self) -> float:
        if self._total == 0:
            return 100.0
        return self._completed / self._total * 100

    async def advance(self, item: _I) -> int:
        """Record one finished item and notify the progress callback."""
        async with self._lock:
            self._completed += 1
            current = self._completed
            if self._on_progress is not None:
                try:
                    result = self._on_progress(current, self._total, item)
                    if inspect.isawaitable(result):
                        await result
                except Exception as exc:
                    # A broken display callback must not fail the item.
                    _logger.warning("progress_callback_failed", error=str(exc))
            return current


async def run_bounded(
    items: Sequence[_I],
    worker: Callable[[_I], Awaitable[_T]],
    limit: int,
    on_progress: ProgressCallback | None = None,
) -> list[_T | Exception]:
    """Run ``worker(item)`` for every item with at most ``limit`` in flight.

    Parameters
    ----------
    items:
        The fixed, known-size batch of work items.
    worker:
        Async callable invoked once per item.
    limit:
        Maximum number of concurrently executing workers (``>= 1``).
    on_progress:
        Optional callback ``(completed, total, item)`` invoked after each
        item finishes, successfully or not.

    Returns
    -------
    list[_T | Exception]
        One entry per input item, in input order.  Items whose worker
        raised carry the exception instance instead of a result.
    """
    if limit < 1:
        raise ValueError(f"concurrency limit must be >= 1, got {limit}")

    total = len(items)
    if total == 0:
        return []

    results: list[_T | Exception | None] = [None] * total
    counter: ProgressCounter[_I] = ProgressCounter(total, on_progress)
    queue: asyncio.Queue[tuple[int, _I]] = asyncio.Queue()
    for index, item in enumerate(items):
        queue.put_nowait((index, item))

    async def _worker_loop(worker_id: int) -> None:
        while True:
            try:
                index, item = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            try:
                results[index] = await worker(item)
            except Exception as exc:
                _logger.debug(
                    "bounded_item_failed",
                    worker_id=worker_id,
                    index=index,
                    error=str(exc),
                )
                results[index] = exc
            finally:
                await counter.advance(item)
                queue.task_done()

    workers = [
        asyncio.create_task(_worker_loop(worker_id))
        for worker_id in range(min(limit, total))
    ]
    await queue.join()
    await asyncio.gather(*workers)

    _logger.debug("bounded_run_complete", total=total, completed=counter.completed)
    return results  # type: ignore[return-value]
