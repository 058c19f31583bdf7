"""Public exceptions for apikit.

Errors reported through a ``Failure`` result fall into three namespaces:

- ``APIError`` subclasses (domain ``ERROR_DOMAIN``) for request-build,
  HTTP-status and response-mapping failures.
- ``CodecError`` subclasses (domain ``CODEC_ERROR_DOMAIN``) for body encode and
  decode failures.
- ``httpx.RequestError`` instances, passed through verbatim from the transport.
"""

ERROR_DOMAIN = "APIKitErrorDomain"
CODEC_ERROR_DOMAIN = "APIKitCodecErrorDomain"

REQUEST_BUILD_FAILED = -1
RESPONSE_MAPPING_FAILED = 0


class APIKitError(Exception):
    """Base exception for all apikit errors."""


class APIError(APIKitError):
    """Error in the apikit domain, identified by ``domain`` and ``code``."""

    domain = ERROR_DOMAIN

    def __init__(self, message: str, code: int) -> None:
        super().__init__(message)
        self.code = code


class RequestBuildError(APIError):
    """The request could not be turned into an HTTP descriptor."""

    def __init__(self, message: str = "failed to build request.") -> None:
        super().__init__(message, REQUEST_BUILD_FAILED)


class StatusCodeError(APIError):
    """The server answered with a status outside [200, 300)."""

    def __init__(self, status_code: int) -> None:
        super().__init__("received status code that represents error", status_code)

    @property
    def status_code(self) -> int:
        return self.code


class ResponseMappingError(APIError):
    """The body decoded fine but the request rejected its shape."""

    def __init__(self, message: str = "failed to create model object from raw object.") -> None:
        super().__init__(message, RESPONSE_MAPPING_FAILED)


class CodecError(APIKitError):
    """Error raised by a body builder or parser."""

    domain = CODEC_ERROR_DOMAIN


class BodyEncodeError(CodecError):
    """A request body builder could not serialize its input."""


class BodyDecodeError(CodecError):
    """A response body parser could not decode the received bytes."""


class APIConfigurationError(APIKitError):
    """An API root is missing required configuration (e.g. ``base_url``)."""
