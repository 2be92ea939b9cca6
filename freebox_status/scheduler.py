"""
Poll Scheduler for Freebox Status Monitor
=========================================

Runs named periodic tasks at a fixed rate on a shared thread pool.

Scheduling semantics:
    * Run *k* of a task is due at ``first_run + k * period``, where
      ``first_run`` is the schedule time plus the initial delay. The nominal
      times never drift with run duration.
    * A run that overruns its period is followed immediately by the next
      nominal run; runs of the same task never overlap.
    * A run that raises is logged and the task keeps its schedule.
    * ``cancel`` stops future runs. A run already in flight completes.
    * A period of 0 or less disables the task: nothing is scheduled.

The time source is injectable. ``start()`` launches a dispatcher thread that
hands due runs to the pool; ``run_pending()`` executes due runs inline in the
caller's thread, which lets tests drive the scheduler with a fake clock.

"""

import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional

from .instrumentation import PerformanceInstrumentation

logger = logging.getLogger("freebox-status")


class ScheduledPoll:
    """Handle and timeline of one scheduled task."""

    def __init__(self, task_id: str, fn: Callable[[], None], first_run: float, period: float) -> None:
        self.task_id = task_id
        self.fn = fn
        self.first_run = first_run
        self.period = period
        self.run_count = 0
        self.failure_count = 0
        self.next_run = first_run
        self.running = False
        self.cancelled = False
        self.last_error: Optional[BaseException] = None

    def __repr__(self) -> str:
        return (
            f"ScheduledPoll(task_id={self.task_id!r}, period={self.period}, "
            f"run_count={self.run_count}, cancelled={self.cancelled})"
        )


class PollScheduler:
    """
    Fixed-rate scheduler for poll tasks.

    Args:
        max_workers: Size of the shared worker pool
        clock: Monotonic time source in seconds (default: time.monotonic)
        instrumentation: Optional PerformanceInstrumentation recording every run
    """

    def __init__(
        self,
        max_workers: int = 2,
        clock: Callable[[], float] = time.monotonic,
        instrumentation: Optional[PerformanceInstrumentation] = None,
    ) -> None:
        self.max_workers = max_workers
        self.instrumentation = instrumentation
        self._clock = clock
        self._tasks: List[ScheduledPoll] = []
        self._condition = threading.Condition()
        self._executor: Optional[ThreadPoolExecutor] = None
        self._dispatcher: Optional[threading.Thread] = None
        self._stopped = False

    @property
    def tasks(self) -> List[ScheduledPoll]:
        """Snapshot of the active (not cancelled) tasks."""
        with self._condition:
            return list(self._tasks)

    @property
    def running(self) -> bool:
        return self._dispatcher is not None

    def schedule(
        self,
        task_id: str,
        initial_delay: float,
        period: float,
        fn: Callable[[], None],
    ) -> Optional[ScheduledPoll]:
        """
        Schedule ``fn`` to run every ``period`` seconds.

        Args:
            task_id: Name used in logs and instrumentation
            initial_delay: Seconds before the first run
            period: Seconds between nominal run times; 0 or less disables the task
            fn: Callable taking no arguments

        Returns:
            ScheduledPoll handle, or None when the task is disabled
        """
        if period <= 0:
            logger.debug(f"⏸️ Polling disabled for {task_id} (period={period})")
            return None

        with self._condition:
            handle = ScheduledPoll(task_id, fn, self._clock() + max(initial_delay, 0), period)
            self._tasks.append(handle)
            self._condition.notify_all()

        logger.debug(f"⏱️ Scheduled {task_id} every {period}s (first run in {max(initial_delay, 0)}s)")
        return handle

    def cancel(self, handle: Optional[ScheduledPoll]) -> None:
        """Stop future runs of a task. Safe to call with None or twice."""
        if handle is None:
            return

        with self._condition:
            if handle.cancelled:
                return
            handle.cancelled = True
            if handle in self._tasks:
                self._tasks.remove(handle)
            self._condition.notify_all()

        logger.debug(f"🛑 Cancelled {handle.task_id} after {handle.run_count} runs")

    def run_pending(self) -> int:
        """
        Execute every run that is due at the current clock time, inline.

        Catch-up runs of an overrunning task are executed back to back.

        Returns:
            Number of runs executed
        """
        executed = 0
        while True:
            with self._condition:
                due = self._claim_due(self._clock())
            if not due:
                return executed
            for task in due:
                self._execute(task)
                executed += 1

    def start(self) -> None:
        """Start the dispatcher thread and the worker pool."""
        with self._condition:
            if self._dispatcher is not None:
                return
            self._stopped = False
            self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="freebox-poll")
            self._dispatcher = threading.Thread(
                target=self._dispatch_loop,
                name="freebox-poll-dispatcher",
                daemon=True,
            )
            self._dispatcher.start()

        logger.info(f"🚀 Poll scheduler started with {self.max_workers} workers")

    def shutdown(self, wait: bool = True) -> None:
        """Cancel all tasks and stop the dispatcher. In-flight runs finish."""
        with self._condition:
            self._stopped = True
            for task in self._tasks:
                task.cancelled = True
            self._tasks.clear()
            self._condition.notify_all()
            dispatcher, executor = self._dispatcher, self._executor
            self._dispatcher = None
            self._executor = None

        if dispatcher is not None:
            dispatcher.join()
        if executor is not None:
            executor.shutdown(wait=wait)
            logger.info("🛑 Poll scheduler stopped")

    def _claim_due(self, now: float) -> List[ScheduledPoll]:
        # Caller holds the condition
        due = [t for t in self._tasks if not t.running and not t.cancelled and t.next_run <= now]
        for task in due:
            task.running = True
        return due

    def _next_wakeup(self, now: float) -> Optional[float]:
        pending = [t.next_run for t in self._tasks if not t.running and not t.cancelled]
        if not pending:
            return None
        return max(min(pending) - now, 0.0)

    def _dispatch_loop(self) -> None:
        with self._condition:
            while not self._stopped and self._executor is not None:
                now = self._clock()
                for task in self._claim_due(now):
                    self._executor.submit(self._execute, task)
                self._condition.wait(timeout=self._next_wakeup(now))

    def _execute(self, task: ScheduledPoll) -> None:
        start_time = self.instrumentation.start_timer(task.task_id) if self.instrumentation else time.time()
        error: Optional[Exception] = None

        try:
            logger.debug(f"🔄 Running {task.task_id} (run {task.run_count + 1})")
            task.fn()
        except Exception as e:
            error = e
            logger.error(f"❌ Poll task {task.task_id} failed: {e}")
            logger.debug(f"Failure details for {task.task_id}", exc_info=True)
        finally:
            with self._condition:
                task.run_count += 1
                task.next_run = task.first_run + task.run_count * task.period
                if error is not None:
                    task.failure_count += 1
                    task.last_error = error
                task.running = False
                self._condition.notify_all()

            if self.instrumentation:
                self.instrumentation.record_timing(
                    task.task_id,
                    start_time,
                    success=error is None,
                    error_type=type(error).__name__ if error is not None else None,
                    run=task.run_count,
                )

    def __enter__(self) -> "PollScheduler":
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.shutdown()


__all__ = ["PollScheduler", "ScheduledPoll"]
