"""apikit: typed HTTP requests over a shared per-backend session.

Public API:
    API - Base class for API roots (one per backend)
    Request - Base class for typed requests
    send - Send a request through its API root
    Success, Failure, Result - Outcome delivered to completion handlers

Internal (system-level, not for direct use):
    _internal.registry - Process-wide (instance, session) registry
    _internal.http - Shared HTTP client configuration
"""

from apikit._version import __version__
from apikit.api import API
from apikit.codecs import (
    CustomBodyBuilder,
    CustomBodyParser,
    JSONBodyBuilder,
    JSONBodyParser,
    RequestBodyBuilder,
    ResponseBodyParser,
    URLEncodedBodyBuilder,
    URLEncodedBodyParser,
)
from apikit.dispatcher import MAIN_QUEUE, Dispatcher, send
from apikit.exceptions import (
    ERROR_DOMAIN,
    APIConfigurationError,
    APIError,
    APIKitError,
    BodyDecodeError,
    BodyEncodeError,
    RequestBuildError,
    ResponseMappingError,
    StatusCodeError,
)
from apikit.models import HTTPDescriptor, Method, TransportConfiguration
from apikit.request import Request
from apikit.result import Failure, Result, Success
from apikit.session import APISession, DataTask, TaskCancelledError, TaskFailedError

__all__ = [
    "__version__",
    "API",
    "Request",
    "send",
    "Dispatcher",
    "MAIN_QUEUE",
    "Method",
    "HTTPDescriptor",
    "TransportConfiguration",
    "APISession",
    "DataTask",
    "TaskCancelledError",
    "TaskFailedError",
    "Result",
    "Success",
    "Failure",
    "RequestBodyBuilder",
    "ResponseBodyParser",
    "JSONBodyBuilder",
    "JSONBodyParser",
    "URLEncodedBodyBuilder",
    "URLEncodedBodyParser",
    "CustomBodyBuilder",
    "CustomBodyParser",
    "ERROR_DOMAIN",
    "APIKitError",
    "APIError",
    "APIConfigurationError",
    "RequestBuildError",
    "StatusCodeError",
    "ResponseMappingError",
    "BodyEncodeError",
    "BodyDecodeError",
]
