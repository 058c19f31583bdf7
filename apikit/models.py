"""Pydantic models shared by the API root, session and dispatcher."""

import os
from concurrent.futures import Executor
from enum import Enum

from pydantic import BaseModel, Field

from apikit.codecs import RequestBodyBuilder, ResponseBodyParser

# =============================================================================
# Constants
# =============================================================================

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_CONCURRENT_TASKS = 4

# Methods whose parameters travel in the query string instead of the body.
QUERY_STRING_METHODS = frozenset({"GET", "HEAD", "DELETE"})

# =============================================================================
# HTTP Descriptor
# =============================================================================


class Method(str, Enum):
    """HTTP request methods."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    HEAD = "HEAD"
    DELETE = "DELETE"
    PATCH = "PATCH"
    TRACE = "TRACE"
    OPTIONS = "OPTIONS"
    CONNECT = "CONNECT"

    @property
    def uses_query_string(self) -> bool:
        return self.value in QUERY_STRING_METHODS


class HTTPDescriptor(BaseModel):
    """Fully-formed HTTP call, ready to be handed to a session.

    Fields:
        method: The HTTP method.
        url: Absolute URL including any query string.
        headers: Request headers (``Content-Type`` and ``Accept`` at least).
        body: Serialized request body, or None for query-string methods.
    """

    method: Method
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes | None = None

    model_config = {"frozen": True}


# =============================================================================
# Configuration
# =============================================================================


class TransportConfiguration(BaseModel):
    """Settings handed to the underlying httpx client and task pool."""

    timeout_ms: int = Field(default=DEFAULT_TIMEOUT_MS, gt=0)
    max_concurrent_tasks: int = Field(default=DEFAULT_MAX_CONCURRENT_TASKS, ge=1)
    follow_redirects: bool = True
    headers: dict[str, str] = Field(default_factory=dict)
    debug: bool = False

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls) -> "TransportConfiguration":
        """Create a configuration from environment variables.

        Optional environment variables:
            APIKIT_TIMEOUT_MS: Request timeout in milliseconds.
            APIKIT_MAX_CONCURRENT_TASKS: Worker threads per session.
            APIKIT_DEBUG: Set to "1" to enable debug logging.

        Raises:
            ValueError: If a numeric variable is not a valid integer.
        """
        timeout_ms = int(os.environ.get("APIKIT_TIMEOUT_MS", str(DEFAULT_TIMEOUT_MS)))
        max_concurrent_tasks = int(
            os.environ.get("APIKIT_MAX_CONCURRENT_TASKS", str(DEFAULT_MAX_CONCURRENT_TASKS))
        )
        debug = os.environ.get("APIKIT_DEBUG", "") == "1"

        return cls(
            timeout_ms=timeout_ms,
            max_concurrent_tasks=max_concurrent_tasks,
            debug=debug,
        )

    @property
    def timeout(self) -> float:
        """Timeout in seconds, as httpx expects it."""
        return self.timeout_ms / 1000


class APIConfiguration(BaseModel):
    """Resolved configuration of one API root.

    Built once per API subclass from its classmethod hooks. The base URL is
    not part of it: it is resolved per request, so an unconfigured backend
    fails when a request is built, not when its session is created.
    """

    request_body_builder: RequestBodyBuilder
    response_body_parser: ResponseBodyParser
    transport: TransportConfiguration = Field(default_factory=TransportConfiguration)
    delegate_queue: Executor | None = None
    callback_queue: Executor

    model_config = {"frozen": True, "arbitrary_types_allowed": True}
