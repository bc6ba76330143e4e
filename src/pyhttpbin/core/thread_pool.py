"""
=============================================================================
THREAD POOL
=============================================================================

Connections are served by a bounded pool of worker threads. A /delay/10
request parks its worker in time.sleep() for ten seconds, so the pool
grows from min_workers towards max_workers when every worker is busy and
work is queueing.

    ┌───────────────┐   submit()   ┌──────────────┐   get()   ┌──────────┐
    │ accept loop   │ ───────────► │ task queue   │ ────────► │ Worker-0 │
    │ (SocketServer)│              │ (bounded)    │ ────────► │ Worker-1 │
    └───────────────┘              └──────────────┘ ────────► │ ...      │
                                                              └──────────┘

Shutdown:
    1. stop accepting tasks
    2. wait until the queue is empty and no worker is busy, at most
       `timeout` seconds
    3. one poison pill (None) per worker, then join

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    IDLE = "idle"
    BUSY = "busy"
    STOPPED = "stopped"


@dataclass
class Task:
    """A deferred call: func(*args, **kwargs)."""

    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """
    Pulls tasks off the shared queue until it receives None.

    A failing task is logged and counted; the worker keeps running.
    """

    def __init__(
        self,
        task_queue: queue.Queue,
        worker_id: int,
        idle_timeout: float = 60.0
    ):
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        logger.debug("Worker %s started", self.worker_id)

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            # Poison pill
            if task is None:
                self.task_queue.task_done()
                break

            try:
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug("Worker %s stopped", self.worker_id)

    def _execute_task(self, task: Task):
        self.state = WorkerState.BUSY
        start_time = time.monotonic()

        try:
            task.func(*task.args, **task.kwargs)
            self.tasks_completed += 1
            logger.debug(
                "Worker %s completed task in %.3fs",
                self.worker_id, time.monotonic() - start_time,
            )
        except Exception:
            self.tasks_failed += 1
            logger.exception(
                "Worker %s task failed after %.3fs",
                self.worker_id, time.monotonic() - start_time,
            )
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        self._shutdown.set()


class ThreadPool:
    """
    Bounded, self-scaling pool of worker threads.

        pool = ThreadPool(min_workers=4, max_workers=16)
        pool.start()
        pool.submit(handle_connection, args=(conn,))
        pool.shutdown(wait=True, timeout=10)

    Args:
        min_workers: Workers started up front.
        max_workers: Hard cap when scaling up under load.
        max_queue_size: Pending tasks before submit() blocks or rejects.
        idle_timeout: How often idle workers wake to check for shutdown.
    """

    def __init__(
        self,
        min_workers: int = 4,
        max_workers: int = 16,
        max_queue_size: int = 100,
        idle_timeout: float = 1.0
    ):
        self.min_workers = min_workers
        self.max_workers = max_workers
        self.max_queue_size = max_queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: queue.Queue[Optional[Task]] = queue.Queue(maxsize=max_queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        if self._started:
            return

        logger.info(
            "Starting thread pool with %s workers (max %s)",
            self.min_workers, self.max_workers,
        )
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True
        self._shutdown = False

    def _add_worker(self) -> Worker:
        """Start one more worker. Caller holds self._lock."""
        if len(self._workers) >= self.max_workers:
            raise RuntimeError("Maximum workers reached")

        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            idle_timeout=self.idle_timeout
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        block: bool = True,
        queue_timeout: Optional[float] = None
    ) -> bool:
        """
        Queue a task.

        Returns:
            True if accepted, False if the queue stayed full.

        Raises:
            RuntimeError: Pool not started, or shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        try:
            self._task_queue.put(task, block=block, timeout=queue_timeout)
        except queue.Full:
            return False

        self._maybe_scale_up()
        return True

    def _maybe_scale_up(self):
        """Add a worker when all are busy and tasks are waiting."""
        with self._lock:
            busy = sum(1 for w in self._workers if w.state == WorkerState.BUSY)
            if busy < len(self._workers) or len(self._workers) >= self.max_workers:
                return
            if self._task_queue.qsize() > 0:
                logger.debug(
                    "Scaling up: %s -> %s workers",
                    len(self._workers), len(self._workers) + 1,
                )
                self._add_worker()

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> bool:
        """
        Stop the pool.

        Args:
            wait: Drain queued and running tasks first.
            timeout: Upper bound on the drain, in seconds. None waits
                     forever.

        Returns:
            True if the drain finished in time (or was not requested).
        """
        if not self._started:
            return True

        logger.info("Shutting down thread pool...")
        self._shutdown = True
        drained = True

        if wait:
            deadline = None if timeout is None else time.monotonic() + timeout
            while not self._task_queue.empty() or self.busy_workers:
                if deadline is not None and time.monotonic() > deadline:
                    logger.warning(
                        "Drain timeout after %ss: %s queued, %s running",
                        timeout, self.pending_tasks, self.busy_workers,
                    )
                    drained = False
                    break
                time.sleep(0.05)

        for _ in self._workers:
            try:
                self._task_queue.put(None, block=False)
            except queue.Full:
                break

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        stats = self.stats
        logger.info(
            "Thread pool shutdown complete (%s tasks completed, %s failed)",
            stats["tasks"]["completed"], stats["tasks"]["failed"],
        )
        self._workers.clear()
        self._started = False
        return drained

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def idle_workers(self) -> int:
        return sum(1 for w in self._workers if w.state == WorkerState.IDLE)

    @property
    def pending_tasks(self) -> int:
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        return {
            "workers": {
                "total": len(self._workers),
                "busy": self.busy_workers,
                "idle": self.idle_workers,
            },
            "tasks": {
                "queued": self.pending_tasks,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
            },
        }
