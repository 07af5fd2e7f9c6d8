"""
Unit tests for the on-demand thread pool.
"""

import threading
import time

import pytest

from onionserve.core.thread_pool import ThreadPool


def wait_idle(pool: ThreadPool, timeout: float = 5.0) -> None:
    deadline = time.time() + timeout
    while pool.pending_tasks and time.time() < deadline:
        time.sleep(0.01)
    assert pool.pending_tasks == 0


@pytest.fixture
def pool():
    pool = ThreadPool()
    pool.start()
    yield pool
    pool.shutdown(wait=False)


class TestThreadPool:
    """Tests for ThreadPool."""

    def test_submit_requires_start(self):
        """Test submitting to a pool that was never started."""
        with pytest.raises(RuntimeError):
            ThreadPool().submit(lambda: None)

    def test_runs_tasks(self, pool: ThreadPool):
        """Test submitted functions run with their arguments."""
        done = threading.Event()
        results = []

        def task(a, b=0):
            results.append(a + b)
            done.set()

        pool.submit(task, args=(1,), kwargs={"b": 2})

        assert done.wait(5.0)
        assert results == [3]

    def test_grows_when_all_workers_busy(self, pool: ThreadPool):
        """Test a new worker is spawned for each concurrently blocked task."""
        release = threading.Event()
        started = threading.Semaphore(0)

        def blocker():
            started.release()
            release.wait(5.0)

        try:
            for _ in range(4):
                pool.submit(blocker)
            for _ in range(4):
                assert started.acquire(timeout=5.0)
            assert pool.active_workers == 4
        finally:
            release.set()

    def test_respects_max_workers(self):
        """Test the pool stops growing at max_workers."""
        pool = ThreadPool(max_workers=2)
        pool.start()
        release = threading.Event()
        try:
            for _ in range(5):
                pool.submit(release.wait, args=(5.0,))
            assert pool.active_workers == 2
            assert pool.pending_tasks == 5
        finally:
            release.set()
            pool.shutdown(wait=True, timeout=5.0)

    def test_reuses_idle_workers(self, pool: ThreadPool):
        """Test sequential tasks do not spawn extra workers."""
        for _ in range(3):
            done = threading.Event()
            pool.submit(done.set)
            assert done.wait(5.0)
            wait_idle(pool)
        assert pool.active_workers == 1

    def test_task_failure_is_contained(self, pool: ThreadPool):
        """Test a raising task leaves the pool usable."""
        done = threading.Event()

        def boom():
            raise ValueError("boom")

        pool.submit(boom)
        pool.submit(done.set)

        assert done.wait(5.0)

    def test_shutdown_wait_drains(self):
        """Test shutdown(wait=True) lets queued tasks finish."""
        pool = ThreadPool(max_workers=1)
        pool.start()
        results = []

        for i in range(3):
            pool.submit(results.append, args=(i,))
        pool.shutdown(wait=True, timeout=5.0)

        assert results == [0, 1, 2]
        assert pool.pending_tasks == 0

    def test_submit_after_shutdown(self):
        """Test a stopped pool refuses work."""
        pool = ThreadPool()
        pool.start()
        pool.shutdown(wait=False)

        with pytest.raises(RuntimeError):
            pool.submit(lambda: None)

    def test_max_below_min_rejected(self):
        """Test inconsistent bounds."""
        with pytest.raises(ValueError):
            ThreadPool(min_workers=3, max_workers=2)
