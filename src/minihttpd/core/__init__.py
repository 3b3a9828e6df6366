"""
=============================================================================
CORE CONCURRENCY MACHINERY
=============================================================================

    Acceptor ──► ThreadPool.enqueue() ──► TaskQueue ──► Worker × N
       │                                                   │
    listening socket                              handler(connection)

The acceptor owns admission, the task queue owns the shutdown flag, and
each connection is owned by exactly one worker once taken.

=============================================================================
"""

from .task_queue import Task, TaskQueue, QueueClosed, QueueFull
from .thread_pool import ThreadPool, ShutdownMode, PoolStopped
from .connection import Connection, ConnectionState
from .acceptor import Acceptor, AcceptorState, FatalListenerError, create_listener

__all__ = [
    "Task",                 # One accepted connection awaiting a worker
    "TaskQueue",            # FIFO shared by acceptor and workers
    "QueueClosed",          # submit() after close()
    "QueueFull",            # bounded queue at capacity
    "ThreadPool",           # Fixed set of worker threads
    "ShutdownMode",         # GRACEFUL or IMMEDIATE
    "PoolStopped",          # enqueue() after shutdown()
    "Connection",           # Wrapper for client socket - handles I/O
    "ConnectionState",      # Enum for connection lifecycle states
    "Acceptor",             # Accept loop over the listening socket
    "AcceptorState",        # LISTENING / DRAINING / STOPPED
    "FatalListenerError",   # Listener broke, server must exit
    "create_listener",      # Bound, listening TCP socket
]
