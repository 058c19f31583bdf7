"""API roots: one backend's base URL, codecs and shared session."""

from collections.abc import Callable, Mapping
from concurrent.futures import Executor
from typing import Any, TypeVar

import httpx

from apikit._internal.registry import instance_pairs
from apikit._internal.urlencoded import string_from_object
from apikit.codecs import JSONBodyBuilder, JSONBodyParser, RequestBodyBuilder, ResponseBodyParser
from apikit.dispatcher import MAIN_QUEUE, Dispatcher
from apikit.exceptions import APIConfigurationError, BodyEncodeError
from apikit.models import APIConfiguration, HTTPDescriptor, Method, TransportConfiguration
from apikit.request import Request
from apikit.result import Result
from apikit.session import APISession, DataTask

T = TypeVar("T")


def _append_path(base_path: str, path: str) -> str:
    """Join two URL paths as path components.

    Empty segments are dropped on both sides, so separators are never
    duplicated: ``("/v1/", "/users")`` gives ``"/v1/users"``.
    """
    segments = [s for s in base_path.split("/") if s] + [s for s in path.split("/") if s]
    return "/" + "/".join(segments)


class API(Dispatcher):
    """Base class for API roots.

    Subclass once per backend and override ``base_url()``. The other hooks have
    defaults. Each subclass gets exactly one instance and one session for the
    lifetime of the process. Both are created on first access and shared by
    every request sent through that subclass.

    Example:
        class GitHubAPI(API):
            @classmethod
            def base_url(cls) -> str:
                return "https://api.github.com"

        GitHubAPI.send_request(GetUser(), handler)
    """

    # =========================================================================
    # Configuration Hooks
    # =========================================================================

    @classmethod
    def base_url(cls) -> str | httpx.URL:
        """Base URL of the backend. Must be overridden.

        Raises:
            APIConfigurationError: Always, on the base class.
        """
        raise APIConfigurationError(f"{cls.__qualname__}.base_url() must be overridden in subclasses.")

    @classmethod
    def request_body_builder(cls) -> RequestBodyBuilder:
        return JSONBodyBuilder()

    @classmethod
    def response_body_parser(cls) -> ResponseBodyParser:
        return JSONBodyParser()

    @classmethod
    def transport_configuration(cls) -> TransportConfiguration:
        return TransportConfiguration.from_env()

    @classmethod
    def delegate_queue(cls) -> Executor | None:
        """Executor running the session's tasks.

        None lets the session create its own pool.
        """
        return None

    @classmethod
    def callback_queue(cls) -> Executor:
        """Executor on which completion handlers are invoked."""
        return MAIN_QUEUE

    @classmethod
    def configuration(cls) -> APIConfiguration:
        """Resolve the hooks (except ``base_url``) into one configuration."""
        return APIConfiguration(
            request_body_builder=cls.request_body_builder(),
            response_body_parser=cls.response_body_parser(),
            transport=cls.transport_configuration(),
            delegate_queue=cls.delegate_queue(),
            callback_queue=cls.callback_queue(),
        )

    # =========================================================================
    # Instance and Session
    # =========================================================================

    @classmethod
    def _identity(cls) -> str:
        return f"{cls.__module__}.{cls.__qualname__}"

    @classmethod
    def _create_instance_pair(cls) -> tuple["API", APISession]:
        configuration = cls.configuration()
        instance = cls(configuration)
        session = APISession(
            configuration.transport,
            delegate=instance,
            delegate_queue=configuration.delegate_queue,
        )
        return instance, session

    @classmethod
    def _instance_pair(cls) -> tuple["API", APISession]:
        return instance_pairs.get_or_create(cls._identity(), cls._create_instance_pair)

    @classmethod
    def instance(cls) -> "API":
        """The shared instance of this API root, which is also its session delegate."""
        return cls._instance_pair()[0]

    @classmethod
    def session(cls) -> APISession:
        """The shared session of this API root."""
        return cls._instance_pair()[1]

    # =========================================================================
    # Request Building
    # =========================================================================

    @classmethod
    def build_request(
        cls,
        method: Method,
        path: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> HTTPDescriptor | None:
        """Build the HTTP call for ``method`` and ``path`` against the base URL.

        GET, HEAD and DELETE carry ``parameters`` in the query string, always
        URL-encoded. Other methods carry them in the body, serialized with the
        configured body builder.

        Args:
            method: The HTTP method.
            path: Path appended to the base URL's path.
            parameters: Structured parameters of the call.

        Returns:
            The descriptor, or None if the base URL is invalid or the body
            cannot be built.

        Raises:
            APIConfigurationError: If ``base_url()`` was not overridden.
        """
        method = Method(method)
        parameters = parameters or {}
        body_builder = cls.request_body_builder()

        try:
            url = httpx.URL(cls.base_url())
        except httpx.InvalidURL:
            return None
        if not url.is_absolute_url:
            return None

        url = url.copy_with(path=_append_path(url.path, path))

        body: bytes | None = None
        if method.uses_query_string:
            query = string_from_object(parameters)
            url = url.copy_with(query=query.encode("ascii") if query else None)
        else:
            try:
                body = body_builder.build_body(parameters)
            except BodyEncodeError:
                return None

        return HTTPDescriptor(
            method=method,
            url=str(url),
            headers={
                "Content-Type": body_builder.content_type_header,
                "Accept": cls.response_body_parser().accept_header,
            },
            body=body,
        )

    # =========================================================================
    # Sending
    # =========================================================================

    @classmethod
    def send_request(
        cls,
        request: Request[T],
        handler: Callable[[Result[T, Exception]], None] | None = None,
    ) -> DataTask | None:
        """Send ``request`` through this API root's session.

        Returns:
            The running task, or None if the request could not be built.
        """
        return cls.instance().dispatch(cls.session(), request, handler)
