"""Transport session: runs streaming data tasks on top of httpx.

A session owns one ``httpx.Client`` and an executor that runs its tasks. Each
task streams the response body and reports to the session's delegate:

- ``task_did_receive_data`` once per chunk, in arrival order.
- ``task_did_complete`` exactly once afterwards, with the response (if any)
  and the transport error (if any). Any other exception raised while the
  task runs, including one from ``task_did_receive_data``, is reported as
  ``TaskFailedError``.

Both hooks run on the worker thread that executed the task.
"""

import itertools
import sys
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from enum import Enum

import httpx

from apikit._internal.http import create_http_client
from apikit.models import HTTPDescriptor, TransportConfiguration


class TaskCancelledError(httpx.TransportError):
    """Completion error of a task that was cancelled before it finished."""


class TaskFailedError(httpx.TransportError):
    """Completion error of a task stopped by an exception that is not an
    ``httpx.RequestError``.

    The original exception is kept as ``__cause__``.
    """


class TaskState(str, Enum):
    SUSPENDED = "suspended"
    RUNNING = "running"
    CANCELING = "canceling"
    COMPLETED = "completed"


class SessionDelegate:
    """Receives task events from an ``APISession``. Hooks default to no-ops."""

    def task_did_receive_data(self, session: "APISession", task: "DataTask", data: bytes) -> None:
        pass

    def task_did_complete(
        self,
        session: "APISession",
        task: "DataTask",
        response: httpx.Response | None,
        error: httpx.RequestError | None,
    ) -> None:
        pass


class DataTask:
    """Handle to one streaming HTTP exchange.

    Created suspended by ``APISession.data_task``. ``start()`` submits it to the
    session's executor. ``cancel()`` may be called at any time. A task
    cancelled before completion still completes, with ``TaskCancelledError``.
    """

    def __init__(self, session: "APISession", descriptor: HTTPDescriptor, task_identifier: int) -> None:
        self.session = session
        self.descriptor = descriptor
        self.task_identifier = task_identifier
        self.response: httpx.Response | None = None
        self._state = TaskState.SUSPENDED
        self._lock = threading.Lock()

    def __repr__(self) -> str:
        return (
            f"<DataTask {self.task_identifier} {self.descriptor.method.value} "
            f"{self.descriptor.url} {self._state.value}>"
        )

    @property
    def state(self) -> TaskState:
        with self._lock:
            return self._state

    def start(self) -> None:
        """Submit the task for execution. Has no effect unless suspended."""
        with self._lock:
            if self._state is not TaskState.SUSPENDED:
                return
            self._state = TaskState.RUNNING
        self.session._submit(self)

    def cancel(self) -> None:
        """Request cancellation. Has no effect once the task has completed.

        A suspended task is cancelled without ever being started.
        """
        with self._lock:
            state = self._state
            if state in (TaskState.CANCELING, TaskState.COMPLETED):
                return
            self._state = TaskState.CANCELING
        if state is TaskState.SUSPENDED:
            self.session._submit(self)

    @property
    def is_cancelled(self) -> bool:
        return self.state is TaskState.CANCELING

    def _mark_completed(self) -> None:
        with self._lock:
            self._state = TaskState.COMPLETED


class APISession:
    """One httpx client plus the worker pool that runs its data tasks."""

    def __init__(
        self,
        configuration: TransportConfiguration,
        delegate: SessionDelegate,
        delegate_queue: Executor | None = None,
    ) -> None:
        """Initialize the session.

        Args:
            configuration: Transport settings for the httpx client and pool.
            delegate: Receives data and completion events of every task.
            delegate_queue: Executor that runs tasks. When None, the session
                creates its own thread pool sized by
                ``configuration.max_concurrent_tasks``.
        """
        self.configuration = configuration
        self.delegate = delegate
        self._client = create_http_client(configuration)
        self._executor = delegate_queue or ThreadPoolExecutor(
            max_workers=configuration.max_concurrent_tasks,
            thread_name_prefix="apikit-session",
        )
        self._task_identifiers = itertools.count(1)

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self.configuration.debug:
            print(f"[apikit:session] {message}", file=sys.stderr)

    def data_task(self, descriptor: HTTPDescriptor) -> DataTask:
        """Create a suspended streaming task for ``descriptor``."""
        return DataTask(self, descriptor, next(self._task_identifiers))

    def _submit(self, task: DataTask) -> None:
        self._executor.submit(self._run, task)

    def _run(self, task: DataTask) -> None:
        error: httpx.RequestError | None = None
        descriptor = task.descriptor
        try:
            if task.is_cancelled:
                raise TaskCancelledError("task was cancelled before it started")

            self._log_debug(f"Starting task {task.task_identifier}: {descriptor.method.value} {descriptor.url}")
            with self._client.stream(
                descriptor.method.value,
                descriptor.url,
                headers=descriptor.headers,
                content=descriptor.body,
            ) as response:
                task.response = response
                if task.is_cancelled:
                    raise TaskCancelledError("task was cancelled")
                for chunk in response.iter_bytes():
                    if task.is_cancelled:
                        raise TaskCancelledError("task was cancelled")
                    self.delegate.task_did_receive_data(self, task, chunk)
        except httpx.RequestError as e:
            self._log_debug(f"Task {task.task_identifier} failed: {e!r}")
            error = e
        except Exception as e:
            self._log_debug(f"Task {task.task_identifier} failed: {e!r}")
            error = TaskFailedError(f"task failed: {e!r}")
            error.__cause__ = e

        task._mark_completed()
        self._log_debug(f"Task {task.task_identifier} completed")
        self.delegate.task_did_complete(self, task, task.response, error)
