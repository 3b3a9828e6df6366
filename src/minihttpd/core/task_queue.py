"""
=============================================================================
TASK QUEUE
=============================================================================

The task queue is the only path from the acceptor into the worker pool.
The acceptor puts accepted connections in at the tail, workers take them
out at the head.

=============================================================================
WHY NOT JUST queue.Queue?
=============================================================================

queue.Queue is thread-safe, but it has no notion of being CLOSED:

    queue.Queue                         TaskQueue
    ───────────                         ─────────
    put() always succeeds               submit() fails once closed
    get() blocks forever when empty     take() returns None once closed
                                        AND empty
    shutdown needs "poison pills"       close() wakes every waiter

With a plain queue, shutdown is done by pushing one None per worker and
hoping nobody submits after the pills. Here the "accepting" flag lives
under the SAME lock as the deque, so there is no window where a task can
slip in behind the shutdown decision.

=============================================================================
STATE
=============================================================================

    ┌─────────────────────────────────────────────────────────────────────┐
    │                          TaskQueue                                   │
    ├─────────────────────────────────────────────────────────────────────┤
    │                                                                      │
    │   _lock ─────────┬──────────────────────────────────────────┐       │
    │                  │                                          │       │
    │   _tasks    deque([Task 1] [Task 2] [Task 3] ...)           │       │
    │   _accepting     True ──close()──► False   (never back)     │       │
    │   _not_empty     Condition(_lock)                           │       │
    │                                                             │       │
    │   submit():  append + notify()      (wakes ONE taker)       │       │
    │   close():   flag = False + notify_all() (wakes EVERY taker)│       │
    │                                                             │       │
    └─────────────────────────────────────────────────────────────────────┘

=============================================================================
"""

import threading
import time
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Optional


logger = logging.getLogger(__name__)


class QueueClosed(Exception):
    """Raised by submit() once the queue stopped accepting work."""


class QueueFull(Exception):
    """Raised by submit() when a bounded queue is at capacity."""


@dataclass(frozen=True)
class Task:
    """
    One unit of deferred work: a single accepted connection.

    The task OWNS the connection. Once it is in the queue nobody else
    touches the connection until a worker takes the task out again.

    Attributes:
        connection: The accepted client connection (anything with close()).
        submitted_at: Time the task was created (for queue-wait logging).
    """
    connection: Any
    submitted_at: float = field(default_factory=time.time)


class TaskQueue:
    """
    Thread-safe FIFO of pending tasks with a one-way "accepting" flag.

    Usage:
        tasks = TaskQueue()

        # Producer (acceptor thread)
        tasks.submit(Task(conn))

        # Consumers (worker threads)
        while (task := tasks.take()) is not None:
            handle(task.connection)

        # Shutdown
        tasks.close()                    # drain what is left
        leftovers = tasks.close(discard=True)   # or drop it
    """

    def __init__(self, max_size: int = 0):
        """
        Initialize the queue.

        Args:
            max_size: Maximum number of pending tasks. 0 means unbounded.
        """
        if max_size < 0:
            raise ValueError(f"max_size must be >= 0, got {max_size}")

        self.max_size = max_size
        self._tasks: deque[Task] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._accepting = True

    @property
    def accepting(self) -> bool:
        """Whether submit() still takes new work."""
        with self._lock:
            return self._accepting

    def __len__(self) -> int:
        with self._lock:
            return len(self._tasks)

    def submit(self, task: Task) -> None:
        """
        Append a task to the tail of the queue.

        Raises:
            QueueClosed: If close() has been called. Terminal, don't retry.
            QueueFull: If the queue is bounded and at capacity.
        """
        with self._not_empty:
            if not self._accepting:
                raise QueueClosed("Task queue is closed")

            if self.max_size and len(self._tasks) >= self.max_size:
                raise QueueFull(f"Task queue is full ({self.max_size} pending)")

            self._tasks.append(task)

            # One new task, one taker. Waking everyone would be correct
            # but pointless: all but one would go straight back to sleep.
            self._not_empty.notify()

    def take(self) -> Optional[Task]:
        """
        Remove and return the oldest task.

        Blocks while the queue is empty and still accepting.

        Returns:
            The oldest pending task, or None when the queue is closed
            and empty ("no more work, exit your loop").
        """
        with self._not_empty:
            while not self._tasks and self._accepting:
                self._not_empty.wait()

            if self._tasks:
                return self._tasks.popleft()

            return None

    def close(self, discard: bool = False) -> list[Task]:
        """
        Stop accepting work and wake every blocked taker.

        The flag flip and the optional discard happen in ONE critical
        section, so no worker can take a task in between.

        Args:
            discard: Also remove every pending task.

        Returns:
            The removed tasks (empty unless discard=True). The caller owns
            their connections now and must close them.
        """
        with self._not_empty:
            self._accepting = False

            discarded: list[Task] = []
            if discard:
                discarded = list(self._tasks)
                self._tasks.clear()

            self._not_empty.notify_all()

        if discarded:
            logger.debug(f"Task queue closed, {len(discarded)} pending tasks discarded")
        return discarded
