"""Fork/join scheduling of index-range tasks over a thread pool.

A task covers a half-open range of variable indices. Ranges larger than the
chunk size are split in half recursively; every leaf is dispatched to the
pool and the call returns only after all leaves have finished. Tasks never
return results: they communicate solely through the thread-safe adjacency
and sepset structures they were given.
"""

import contextvars
import os
from abc import ABC, abstractmethod
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass, replace
from typing import Self

from fastadj.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class RangeTask(ABC):
    """A unit of parallel work over variable indices ``[start, stop)``."""

    start: int
    stop: int

    def __len__(self) -> int:
        return max(0, self.stop - self.start)

    def split(self) -> tuple[Self, Self]:
        """Halve the range; both halves share every other field."""
        mid = self.start + len(self) // 2
        return replace(self, stop=mid), replace(self, start=mid)

    @abstractmethod
    def compute(self) -> None:
        """Process every index in the range serially."""


def default_worker_count() -> int:
    return os.cpu_count() or 1


class ForkJoinScheduler:
    """Recursively splits range tasks and runs the leaves on a thread pool.

    Usage:
        with ForkJoinScheduler(n_workers=4, chunk_size=100) as scheduler:
            scheduler.invoke(task)
    """

    def __init__(self, n_workers: int | None = None, chunk_size: int = 100):
        """Initialize the scheduler.

        Args:
            n_workers: Pool size (None for the CPU count)
            chunk_size: Largest range a single worker processes serially
        """
        if n_workers is not None and n_workers < 1:
            raise ValueError("n_workers must be >= 1")
        if chunk_size < 1:
            raise ValueError("chunk_size must be >= 1")

        self.n_workers = n_workers or default_worker_count()
        self.chunk_size = chunk_size
        self._executor: ThreadPoolExecutor | None = None

    def __enter__(self) -> "ForkJoinScheduler":
        self._executor = ThreadPoolExecutor(
            max_workers=self.n_workers, thread_name_prefix="fastadj"
        )
        return self

    def __exit__(self, *exc_info: object) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    def invoke(self, task: RangeTask) -> None:
        """Run ``task`` to completion, re-raising the first worker failure."""
        if self._executor is None:
            with self:
                self._invoke(task)
        else:
            self._invoke(task)

    def _invoke(self, task: RangeTask) -> None:
        futures = self._fork(task)
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        failed = [f for f in done if f.exception() is not None]
        if failed:
            for f in pending:
                f.cancel()
            # Leaves already running still finish before shutdown.
            wait(pending)
            logger.error(
                "task_failed",
                task=type(task).__name__,
                error=str(failed[0].exception()),
            )
            raise failed[0].exception()

    def _fork(self, task: RangeTask) -> list[Future]:
        if len(task) <= self.chunk_size:
            # Each leaf runs in a copy of the caller's context so bound log fields carry over.
            return [self._executor.submit(contextvars.copy_context().run, task.compute)]

        left, right = task.split()
        return self._fork(left) + self._fork(right)
