"""Order-preserving concurrent map over a thread pool, in the spirit of ``p-map``.

Used to parse a batch of independent emails concurrently. Results come back in
input order regardless of completion order; a mapper may return
``p_map_skip`` to leave its item out of the output.

- ``stop_on_error=True`` (default): the first failure cancels queued work and
  is re-raised unchanged.
- ``stop_on_error=False``: every item runs; failures are raised together as an
  ``ExceptionGroup`` once all have finished.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ALL_COMPLETED, FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from typing import TypeVar

InT = TypeVar("InT")
OutT = TypeVar("OutT")


class _Skip:
    __slots__ = ()

    def __repr__(self) -> str:  # pragma: no cover - trivial
        return "p_map_skip"


p_map_skip: object = _Skip()


def p_map(
    iterable: Iterable[InT],
    mapper: Callable[[InT], OutT | object],
    *,
    concurrency: int,
    stop_on_error: bool = True,
) -> list[OutT]:
    if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
        raise ValueError("concurrency must be a positive integer")

    items = list(iterable)
    if not items:
        return []

    pool = ThreadPoolExecutor(max_workers=min(concurrency, len(items)))
    try:
        futures: list[Future] = [pool.submit(mapper, item) for item in items]
        done, _pending = wait(
            futures, return_when=FIRST_EXCEPTION if stop_on_error else ALL_COMPLETED
        )
        if stop_on_error:
            # Surface the earliest failing input, not the first to finish.
            for fut in futures:
                if fut in done and (exc := fut.exception()) is not None:
                    pool.shutdown(wait=False, cancel_futures=True)
                    raise exc
        else:
            errors = [e for fut in futures if (e := fut.exception()) is not None]
            if errors:
                raise ExceptionGroup("p_map: one or more mapper calls failed", errors)
    finally:
        pool.shutdown(wait=True)

    results = [fut.result() for fut in futures]
    return [r for r in results if r is not p_map_skip]  # type: ignore[misc]


__all__ = ["p_map", "p_map_skip"]
