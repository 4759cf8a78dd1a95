from __future__ import annotations

import logging
import os
import threading
from concurrent.futures import Executor, ProcessPoolExecutor, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from retouchkit.domain.errors import WorkerError, WorkerTimeoutError
from retouchkit.domain.services.kernels import OFFLOADABLE_KERNELS, run_kernel_task

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0


@dataclass(frozen=True)
class WorkerTask:
    kind: str
    pixels: np.ndarray
    params: dict[str, Any] = field(default_factory=dict)


class WorkerPool:
    """Bounded pool for the expensive pixel kernels.

    At most `max_workers` tasks are in flight; further callers block on a
    semaphore until a slot frees up or `timeout` elapses. Each task runs the
    same pure kernel function the inline path uses.
    """

    def __init__(
        self,
        max_workers: int | None = None,
        timeout: float = DEFAULT_TIMEOUT,
        use_processes: bool = False,
    ) -> None:
        self.max_workers = max(1, int(max_workers or os.cpu_count() or 4))
        self.timeout = float(timeout)
        self.use_processes = use_processes
        self._slots = threading.BoundedSemaphore(self.max_workers)
        self._lock = threading.Lock()
        self._executor: Executor | None = None

    def _get_executor(self) -> Executor:
        with self._lock:
            if self._executor is None:
                if self.use_processes:
                    self._executor = ProcessPoolExecutor(max_workers=self.max_workers)
                else:
                    self._executor = ThreadPoolExecutor(
                        max_workers=self.max_workers, thread_name_prefix="retouchkit-worker"
                    )
            return self._executor

    def execute(self, task: WorkerTask) -> np.ndarray:
        if task.kind not in OFFLOADABLE_KERNELS:
            raise WorkerError(f"Unsupported worker task: {task.kind}")
        if not self._slots.acquire(timeout=self.timeout):
            raise WorkerTimeoutError("Worker timeout: no free worker slot")
        try:
            future = self._get_executor().submit(run_kernel_task, task.kind, task.pixels, task.params)
        except RuntimeError as exc:
            self._slots.release()
            raise WorkerError(f"Worker pool unavailable: {exc}") from exc
        # a timed-out kernel keeps its slot until it actually stops running
        future.add_done_callback(lambda _: self._slots.release())
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeoutError as exc:
            future.cancel()
            raise WorkerTimeoutError() from exc
        except Exception as exc:
            logger.error("Worker task %s failed: %s", task.kind, exc)
            raise WorkerError(f"Worker task {task.kind} failed: {exc}") from exc

    def run(self, kind: str, pixels: np.ndarray, params: dict[str, Any]) -> np.ndarray:
        return self.execute(WorkerTask(kind=kind, pixels=pixels, params=dict(params)))

    def terminate(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False, cancel_futures=True)
                self._executor = None

    def __enter__(self) -> WorkerPool:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.terminate()
