"""
=============================================================================
THREAD POOL
=============================================================================

Runs each connection handler on its own worker thread so that one slow
or failing peer can never hold up another.

=============================================================================
ARCHITECTURE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Thread Pool                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   submit(task) ──► ┌─────────────────────┐                          │
    │                    │     Task Queue      │                          │
    │                    │  [T1][T2][T3]...    │                          │
    │                    └──────────┬──────────┘                          │
    │                               │                                      │
    │            ┌──────────────────┼──────────────────┐                  │
    │            ▼                  ▼                  ▼                  │
    │      ┌──────────┐       ┌──────────┐       ┌──────────┐            │
    │      │ Worker 1 │       │ Worker 2 │       │ Worker N │            │
    │      └──────────┘       └──────────┘       └──────────┘            │
    │                                                                      │
    │   pending = tasks queued + tasks running                            │
    │   pending > workers  ──►  spawn another worker (up to max)          │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘

With max_workers=None the pool grows whenever every worker is occupied,
which gives task-per-connection semantics while still reusing threads
once a burst is over.

=============================================================================
FAILURE ISOLATION
=============================================================================

A task that raises is logged by the worker and the worker moves on to
the next task. Nothing a task does can stop the pool or the thread that
called submit().

=============================================================================
SHUTDOWN
=============================================================================

Workers are daemon threads. shutdown(wait=False) abandons in-flight
tasks; the process simply exits around them.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """
    A deferred function call: "call this function with these arguments later".
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │   1. Wait for task (blocking)                                       │
    │   2. None is the poison pill → exit                                 │
    │   3. Run the task; log any exception, never re-raise                │
    │   4. Tell the pool the task is finished, back to 1                  │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        task_queue: "queue.Queue[Optional[Task]]",
        worker_id: int,
        on_task_done: Callable[[], None],
    ):
        # daemon=True: a stuck peer never keeps the process alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.worker_id = worker_id
        self._on_task_done = on_task_done

    def run(self):
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.get()
            if task is None:
                break

            try:
                self._execute_task(task)
            finally:
                self._on_task_done()

        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)
            elapsed = time.time() - start_time
            logger.debug(f"Worker {self.worker_id} completed task in {elapsed:.3f}s")

        except Exception as e:
            # One bad task must not take the worker down with it
            elapsed = time.time() - start_time
            logger.exception(f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}")


class ThreadPool:
    """
    Thread pool that grows on demand.

    Usage:
        pool = ThreadPool()                 # unbounded
        pool.start()
        pool.submit(handler.handle, args=(request,))
        pool.shutdown(wait=False)           # no drain
    """

    def __init__(
        self,
        min_workers: int = 1,
        max_workers: Optional[int] = None,
    ):
        """
        Args:
            min_workers: Workers created by start().
            max_workers: Hard cap on workers. None = no cap; a new worker
                         is spawned whenever all existing ones are occupied.
        """
        if max_workers is not None and max_workers < min_workers:
            raise ValueError("max_workers must be >= min_workers")

        self.min_workers = min_workers
        self.max_workers = max_workers

        # Unbounded: submit() never blocks the accept loop
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue()

        self._workers: list = []
        self._lock = threading.Lock()  # Protects _workers and _pending
        self._pending = 0
        self._started = False
        self._shutdown = False
        self._next_worker_id = 0

    def start(self):
        if self._started:
            return

        logger.debug(f"Starting thread pool with {self.min_workers} workers")
        with self._lock:
            for _ in range(self.min_workers):
                self._add_worker()
        self._started = True

    def _add_worker(self) -> Worker:
        """Caller must hold self._lock."""
        worker = Worker(
            task_queue=self._task_queue,
            worker_id=self._next_worker_id,
            on_task_done=self._task_finished,
        )
        self._next_worker_id += 1
        self._workers.append(worker)
        worker.start()
        return worker

    def _task_finished(self):
        with self._lock:
            self._pending -= 1

    def submit(self, func: Callable[..., Any], args: tuple = (), kwargs: Optional[dict] = None) -> None:
        """
        Queue a task, spawning a worker if every existing one is occupied.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {})

        with self._lock:
            self._pending += 1
            below_cap = self.max_workers is None or len(self._workers) < self.max_workers
            if self._pending > len(self._workers) and below_cap:
                logger.debug(f"Scaling up: {len(self._workers)} -> {len(self._workers) + 1} workers")
                self._add_worker()

        self._task_queue.put(task)

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Stop the pool.

        Args:
            wait: Wait for queued and running tasks first. With False,
                  in-flight tasks are abandoned to their daemon threads.
            timeout: Upper bound on the wait, in seconds.
        """
        if not self._started:
            return

        logger.debug("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = None if timeout is None else time.time() + timeout
            while self.pending_tasks > 0:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Shutdown timeout, abandoning remaining tasks")
                    break
                time.sleep(0.05)

        with self._lock:
            workers = list(self._workers)
            self._workers.clear()

        # One pill per worker, queued behind any tasks already submitted
        for _ in workers:
            self._task_queue.put(None)

        if wait:
            for worker in workers:
                worker.join(timeout=2.0)

        self._started = False
        logger.debug("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def active_workers(self) -> int:
        with self._lock:
            return len(self._workers)

    @property
    def pending_tasks(self) -> int:
        """Tasks queued or running."""
        with self._lock:
            return self._pending
