"""Dispatch of typed requests and delivery of their results.

The dispatcher is the delegate of an API root's session. For every request it
sends, it keeps a call context keyed by the data task: the request, the
completion handler and a buffer for the streamed body. When the task
completes, the context is removed and its outcome is classified as follows:

1. A transport error becomes ``Failure(error)`` with the httpx error itself.
2. A status outside [200, 300) becomes ``Failure(StatusCodeError)``. The body
   is discarded.
3. A body the parser rejects becomes ``Failure(BodyDecodeError)``.
4. A decoded body the request cannot map becomes
   ``Failure(ResponseMappingError)``.
5. Anything else becomes ``Success(response)``.

Handlers are always invoked on the configured callback queue, never on the
session's worker threads, and exactly once per call.
"""

import sys
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, TypeVar

import httpx

from apikit.exceptions import BodyDecodeError, RequestBuildError, ResponseMappingError, StatusCodeError
from apikit.models import APIConfiguration
from apikit.request import Request
from apikit.result import Failure, Result, Success
from apikit.session import APISession, DataTask, SessionDelegate

T = TypeVar("T")

Handler = Callable[[Result[Any, Exception]], None]

# Default callback delivery context shared by every API root: one serial worker.
MAIN_QUEUE = ThreadPoolExecutor(max_workers=1, thread_name_prefix="apikit-main")


def _ignore_result(result: Result[Any, Exception]) -> None:
    pass


@dataclass
class _CallContext:
    """State of one in-flight call."""

    request: Request[Any]
    handler: Handler
    task: DataTask
    buffer: bytearray = field(default_factory=bytearray)


class Dispatcher(SessionDelegate):
    """Sends requests through a session and delivers typed results."""

    def __init__(self, configuration: APIConfiguration) -> None:
        self.configuration = configuration
        self._calls: dict[DataTask, _CallContext] = {}
        self._lock = threading.Lock()

    def _log_debug(self, message: str) -> None:
        """Log a debug message to stderr if debug mode is enabled."""
        if self.configuration.transport.debug:
            print(f"[apikit] {message}", file=sys.stderr)

    @property
    def in_flight_count(self) -> int:
        """Number of calls sent but not yet completed."""
        with self._lock:
            return len(self._calls)

    def dispatch(
        self,
        session: APISession,
        request: Request[T],
        handler: Callable[[Result[T, Exception]], None] | None = None,
    ) -> DataTask | None:
        """Send ``request`` through ``session``.

        Args:
            session: The session whose delegate is this dispatcher.
            request: The request to send.
            handler: Called once with the result, on the callback queue.

        Returns:
            The running task, which may be cancelled, or None if the request
            could not be built (the handler then receives a
            ``RequestBuildError``).
        """
        handler = handler or _ignore_result
        descriptor = request.build_http_descriptor()
        if descriptor is None:
            self._log_debug(f"Failed to build {type(request).__name__}")
            self._deliver(handler, Failure(RequestBuildError()))
            return None

        task = session.data_task(descriptor)
        with self._lock:
            self._calls[task] = _CallContext(request=request, handler=handler, task=task)
        task.start()
        return task

    def task_did_receive_data(self, session: APISession, task: DataTask, data: bytes) -> None:
        with self._lock:
            context = self._calls.get(task)
        if context is not None:
            context.buffer.extend(data)

    def task_did_complete(
        self,
        session: APISession,
        task: DataTask,
        response: httpx.Response | None,
        error: httpx.RequestError | None,
    ) -> None:
        with self._lock:
            context = self._calls.pop(task, None)
        if context is None:
            return

        result = self._classify(context, response, error)
        match result:
            case Success():
                self._log_debug(f"Task {task.task_identifier} succeeded")
            case Failure(error=failure):
                self._log_debug(f"Task {task.task_identifier} failed: {failure!r}")
        self._deliver(context.handler, result)

    def _classify(
        self,
        context: _CallContext,
        response: httpx.Response | None,
        error: httpx.RequestError | None,
    ) -> Result[Any, Exception]:
        if error is not None:
            return Failure(error)

        status_code = response.status_code if response is not None else 0
        if not 200 <= status_code < 300:
            return Failure(StatusCodeError(status_code))

        try:
            raw = self.configuration.response_body_parser.parse_data(bytes(context.buffer))
        except BodyDecodeError as e:
            return Failure(e)

        return self._map_response(context.request, raw)

    def _map_response(self, request: Request[Any], raw: Any) -> Result[Any, Exception]:
        try:
            response = request.response_from_object(raw)
        except Exception as e:
            error = ResponseMappingError()
            error.__cause__ = e
            return Failure(error)

        if response is None:
            return Failure(ResponseMappingError())
        return Success(response)

    def _deliver(self, handler: Handler, result: Result[Any, Exception]) -> None:
        future = self.configuration.callback_queue.submit(handler, result)
        future.add_done_callback(self._log_handler_error)

    def _log_handler_error(self, future: Future) -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            self._log_debug(f"Completion handler raised {error!r}")


def send(
    request: Request[T],
    handler: Callable[[Result[T, Exception]], None] | None = None,
) -> DataTask | None:
    """Send ``request`` through the session of the API root it belongs to.

    Returns:
        The running task, or None if the request could not be built.
    """
    return request.api.send_request(request, handler)
