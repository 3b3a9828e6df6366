"""
=============================================================================
THREAD POOL IMPLEMENTATION
=============================================================================

A fixed set of worker threads that pull accepted connections from the
task queue and run the connection handler on them.

=============================================================================
WHY USE A THREAD POOL?
=============================================================================

Without a pool, you might create a new thread for each connection:

    for connection in accept_connections():
        Thread(target=handle, args=(connection,)).start()

    Problems:
    1. No limit on concurrent threads → resource exhaustion
    2. Thread creation cost paid on every connection
    3. No clean way to say "stop, but finish what you started"

With a pool:

    pool = ThreadPool(handle, num_workers=4)
    pool.start()

    for connection in accept_connections():
        pool.enqueue(connection)

    pool.shutdown(ShutdownMode.GRACEFUL)

    1. Exactly N workers, created once, reused
    2. Excess connections wait in the queue instead of spawning threads
    3. Shutdown is a single call with a well-defined outcome

=============================================================================
WORKER LIFECYCLE
=============================================================================

    RUNNING ──── shutdown() ────► STOPPING ──── take() → None ────► STOPPED
       │                             │
       │ take() → Task               │ take() → Task (graceful drain)
       ▼                             ▼
    handler(task.connection)      handler(task.connection)

A worker has no poison pill to look for. The task queue returns None
once it is closed AND empty, and that is the signal to leave the loop.

=============================================================================
SHUTDOWN MODES
=============================================================================

    GRACEFUL                            IMMEDIATE
    ────────                            ─────────
    queue closed to new work            queue closed to new work
    queued tasks still run              queued tasks discarded,
                                        their connections closed HERE
    in-flight tasks finish              in-flight tasks finish
    workers exit, joined                workers exit, joined

Neither mode interrupts a task that is already running. A handler that
is halfway through writing a response always gets to finish.

=============================================================================
"""

import threading
import time
import logging
from enum import Enum
from typing import Any, Callable, Optional

from .task_queue import Task, TaskQueue, QueueClosed


logger = logging.getLogger(__name__)


class PoolStopped(RuntimeError):
    """Raised when work is offered to a pool that has been shut down."""


class WorkerState(Enum):
    """Worker thread states."""
    RUNNING = "running"    # Waiting for a task or executing one
    STOPPING = "stopping"  # Shutdown requested, finishing up
    STOPPED = "stopped"    # Thread exited


class ShutdownMode(Enum):
    """How to treat tasks still sitting in the queue at shutdown."""
    GRACEFUL = "graceful"
    IMMEDIATE = "immediate"


class Worker(threading.Thread):
    """
    Worker thread that processes tasks from the queue.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                        Worker Loop                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   1. task = queue.take()        (blocks)                            │
    │          │                                                           │
    │          ├── None → queue closed and empty → exit loop              │
    │          │                                                           │
    │          └── Task → step 2                                          │
    │                                                                      │
    │   2. handler(task.connection)                                       │
    │          │                                                           │
    │          └── Exception? log it, close the connection, keep going    │
    │                                                                      │
    │   3. Go back to step 1                                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        task_queue: TaskQueue,
        handler: Callable[[Any], None],
        worker_id: int,
    ):
        # daemon=True: a wedged handler can't keep the interpreter alive
        super().__init__(name=f"Worker-{worker_id}", daemon=True)

        self.task_queue = task_queue
        self.handler = handler
        self.worker_id = worker_id

        self.state = WorkerState.RUNNING
        self.busy = False
        self._state_lock = threading.Lock()  # Guards state transitions

        # Metrics
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        """Main worker loop."""
        logger.debug(f"Worker {self.worker_id} started")

        while True:
            task = self.task_queue.take()
            if task is None:
                break
            self._execute_task(task)

        with self._state_lock:
            self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Run the handler on one task's connection.

        Failures stay inside this method. One broken connection must never
        take the worker (and with it 1/N of the server's capacity) down.
        """
        self.busy = True
        start_time = time.time()
        waited = start_time - task.submitted_at

        try:
            self.handler(task.connection)

            elapsed = time.time() - start_time
            logger.debug(
                f"Worker {self.worker_id} completed task in {elapsed:.3f}s "
                f"(queued {waited:.3f}s)"
            )
            self.tasks_completed += 1

        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
            _close_quietly(task.connection)

        finally:
            self.busy = False

    def request_stop(self):
        """Mark the worker as stopping. It exits once the queue runs dry."""
        with self._state_lock:
            if self.state is WorkerState.RUNNING:
                self.state = WorkerState.STOPPING


class ThreadPool:
    """
    Fixed-size thread pool that runs one handler over queued connections.

    ┌─────────────────────────────────────────────────────────────────────┐
    │                      ThreadPool Usage                                │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   pool = ThreadPool(handler.handle, num_workers=4)                  │
    │   pool.start()                                                       │
    │                                                                      │
    │   try:                                                               │
    │       pool.enqueue(conn)                                            │
    │   except PoolStopped:                                               │
    │       conn.close()          # caller still owns it                   │
    │                                                                      │
    │   print(pool.stats)                                                  │
    │                                                                      │
    │   pool.shutdown(ShutdownMode.GRACEFUL)                              │
    │                                                                      │
    └─────────────────────────────────────────────────────────────────────┘
    """

    def __init__(
        self,
        handler: Callable[[Any], None],
        num_workers: int = 4,
        max_queue_size: int = 0,
    ):
        """
        Initialize the thread pool.

        Args:
            handler: Called once per connection, on a worker thread.
            num_workers: Number of worker threads. Must be at least 1;
                         a pool with no workers would accept connections
                         and never answer them.
            max_queue_size: Bound on pending connections. 0 = unbounded.

        Raises:
            ValueError: If num_workers < 1 or max_queue_size < 0.
        """
        if num_workers < 1:
            raise ValueError(f"num_workers must be >= 1, got {num_workers}")

        self.handler = handler
        self.num_workers = num_workers

        self._task_queue = TaskQueue(max_size=max_queue_size)

        self._workers: list[Worker] = []
        self._lock = threading.Lock()  # Protects _workers and lifecycle fields
        self._started = False
        self._stopped = False
        self._tasks_discarded = 0

    def start(self):
        """
        Spawn the workers.

        Calling start() on a running pool does nothing. A pool that has
        been shut down stays shut down.

        Raises:
            PoolStopped: If the pool was already shut down.
        """
        with self._lock:
            if self._stopped:
                raise PoolStopped("Thread pool has been shut down and cannot restart")
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.num_workers} workers")

            for worker_id in range(self.num_workers):
                worker = Worker(self._task_queue, self.handler, worker_id)
                self._workers.append(worker)
                worker.start()

            self._started = True

    def enqueue(self, connection: Any) -> None:
        """
        Hand a connection to the pool.

        On success the pool owns the connection. On failure the caller
        still owns it and is responsible for closing it.

        Raises:
            PoolStopped: If the pool is shutting down or shut down.
            QueueFull: If the queue is bounded and saturated.
        """
        try:
            self._task_queue.submit(Task(connection))
        except QueueClosed as e:
            raise PoolStopped("Thread pool is shutting down") from e

    def shutdown(
        self,
        mode: ShutdownMode = ShutdownMode.GRACEFUL,
        timeout: Optional[float] = None,
    ):
        """
        Stop the pool.

        ┌─────────────────────────────────────────────────────────────────┐
        │                    shutdown() Flow                               │
        ├─────────────────────────────────────────────────────────────────┤
        │                                                                  │
        │   1. Close the queue (enqueue now raises PoolStopped)           │
        │          │                                                       │
        │          ├── GRACEFUL:  queued tasks stay, workers drain them   │
        │          └── IMMEDIATE: queued tasks removed, connections closed│
        │          ▼                                                       │
        │   2. Mark workers STOPPING                                      │
        │          ▼                                                       │
        │   3. Join workers (they exit when take() returns None)          │
        │                                                                  │
        └─────────────────────────────────────────────────────────────────┘

        Safe to call more than once.

        Args:
            mode: GRACEFUL drains the queue, IMMEDIATE discards it.
            timeout: Maximum seconds to wait for ALL workers to exit.
                     None waits as long as the in-flight tasks take.
        """
        with self._lock:
            first_call = not self._stopped
            self._stopped = True
            workers = list(self._workers)

        if first_call:
            logger.info(f"Shutting down thread pool ({mode.value})...")

        # Never started: nobody will ever take what is queued
        discard = mode is ShutdownMode.IMMEDIATE or not workers
        discarded = self._task_queue.close(discard=discard)
        for task in discarded:
            _close_quietly(task.connection)

        if discarded:
            with self._lock:
                self._tasks_discarded += len(discarded)
            logger.warning(f"Discarded {len(discarded)} queued connections")

        for worker in workers:
            worker.request_stop()

        deadline = None if timeout is None else time.time() + timeout
        for worker in workers:
            remaining = None if deadline is None else max(0.0, deadline - time.time())
            worker.join(timeout=remaining)
            if worker.is_alive():
                logger.warning(f"Worker {worker.worker_id} still busy after shutdown timeout")

        if first_call:
            logger.info("Thread pool shutdown complete")

    # =========================================================================
    # MONITORING: Check pool status
    # =========================================================================

    @property
    def accepting(self) -> bool:
        """Whether enqueue() still takes connections."""
        return self._task_queue.accepting

    @property
    def queue_size(self) -> int:
        """Number of connections waiting for a worker."""
        return len(self._task_queue)

    @property
    def alive_workers(self) -> int:
        """Count of worker threads that have not exited."""
        return sum(1 for w in self._workers if w.is_alive())

    @property
    def busy_workers(self) -> int:
        """Count of workers currently running a handler."""
        return sum(1 for w in self._workers if w.busy)

    @property
    def stats(self) -> dict:
        """
        Get thread pool statistics.

        Returns a dict with worker and task counts, handy for log lines
        and debugging a stuck server.
        """
        return {
            "workers": {
                "total": len(self._workers),
                "alive": self.alive_workers,
                "busy": self.busy_workers,
            },
            "tasks": {
                "queued": self.queue_size,
                "completed": sum(w.tasks_completed for w in self._workers),
                "failed": sum(w.tasks_failed for w in self._workers),
                "discarded": self._tasks_discarded,
            },
        }


def _close_quietly(connection: Any):
    """Close a connection we are giving up on; it may already be dead."""
    try:
        connection.close()
    except OSError as e:
        logger.debug(f"Ignoring error while closing abandoned connection: {e}")
