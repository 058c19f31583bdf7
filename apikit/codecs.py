"""Request body builders and response body parsers.

A builder turns the structured parameters of a request into bytes and names the
``Content-Type`` it produces. A parser turns received bytes back into a generic
structured value and names the ``Accept`` type it expects. New encodings plug
in by subclassing, or by wrapping a callable in ``CustomBodyBuilder`` /
``CustomBodyParser``.
"""

import json
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from apikit._internal.urlencoded import object_from_string, string_from_object
from apikit.exceptions import BodyDecodeError, BodyEncodeError

JSON_CONTENT_TYPE = "application/json"
URL_ENCODED_CONTENT_TYPE = "application/x-www-form-urlencoded"

# =============================================================================
# Builders
# =============================================================================


class RequestBodyBuilder(ABC):
    """Serializes request parameters into a body payload."""

    @property
    @abstractmethod
    def content_type_header(self) -> str: ...

    @abstractmethod
    def build_body(self, obj: Any) -> bytes:
        """Serialize ``obj``.

        Raises:
            BodyEncodeError: If ``obj`` cannot be represented in this encoding.
        """


class JSONBodyBuilder(RequestBodyBuilder):
    """Builds JSON bodies with ``json.dumps``.

    Keyword arguments are forwarded to ``json.dumps`` (e.g. ``sort_keys``).
    """

    def __init__(self, **dumps_options: Any) -> None:
        self._dumps_options = dumps_options

    @property
    def content_type_header(self) -> str:
        return JSON_CONTENT_TYPE

    def build_body(self, obj: Any) -> bytes:
        try:
            return json.dumps(obj, **self._dumps_options).encode("utf-8")
        except (TypeError, ValueError) as e:
            raise BodyEncodeError(f"failed to encode JSON body: {e}") from e


class URLEncodedBodyBuilder(RequestBodyBuilder):
    """Builds ``application/x-www-form-urlencoded`` bodies."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    @property
    def content_type_header(self) -> str:
        return URL_ENCODED_CONTENT_TYPE

    def build_body(self, obj: Any) -> bytes:
        try:
            return string_from_object(obj, self._encoding).encode(self._encoding)
        except (TypeError, UnicodeEncodeError) as e:
            raise BodyEncodeError(f"failed to encode form body: {e}") from e


class CustomBodyBuilder(RequestBodyBuilder):
    """Builder backed by a user-supplied callable."""

    def __init__(self, content_type_header: str, build: Callable[[Any], bytes]) -> None:
        self._content_type_header = content_type_header
        self._build = build

    @property
    def content_type_header(self) -> str:
        return self._content_type_header

    def build_body(self, obj: Any) -> bytes:
        try:
            return self._build(obj)
        except BodyEncodeError:
            raise
        except Exception as e:
            raise BodyEncodeError(f"custom body builder failed: {e}") from e


# =============================================================================
# Parsers
# =============================================================================


class ResponseBodyParser(ABC):
    """Decodes a response body into a generic structured value."""

    @property
    @abstractmethod
    def accept_header(self) -> str: ...

    @abstractmethod
    def parse_data(self, data: bytes) -> Any:
        """Decode ``data``.

        Raises:
            BodyDecodeError: If ``data`` is malformed for this encoding.
        """


class JSONBodyParser(ResponseBodyParser):
    """Parses JSON bodies with ``json.loads``.

    An empty body is not valid JSON and fails like any other malformed input.
    """

    def __init__(self, **loads_options: Any) -> None:
        self._loads_options = loads_options

    @property
    def accept_header(self) -> str:
        return JSON_CONTENT_TYPE

    def parse_data(self, data: bytes) -> Any:
        try:
            return json.loads(data.decode("utf-8"), **self._loads_options)
        except (UnicodeDecodeError, ValueError) as e:
            raise BodyDecodeError(f"failed to decode JSON body: {e}") from e


class URLEncodedBodyParser(ResponseBodyParser):
    """Parses ``application/x-www-form-urlencoded`` bodies into ``dict[str, str]``."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._encoding = encoding

    @property
    def accept_header(self) -> str:
        return URL_ENCODED_CONTENT_TYPE

    def parse_data(self, data: bytes) -> Any:
        try:
            return object_from_string(data.decode(self._encoding), self._encoding)
        except UnicodeDecodeError as e:
            raise BodyDecodeError(f"failed to decode form body: {e}") from e


class CustomBodyParser(ResponseBodyParser):
    """Parser backed by a user-supplied callable."""

    def __init__(self, accept_header: str, parse: Callable[[bytes], Any]) -> None:
        self._accept_header = accept_header
        self._parse = parse

    @property
    def accept_header(self) -> str:
        return self._accept_header

    def parse_data(self, data: bytes) -> Any:
        try:
            return self._parse(data)
        except BodyDecodeError:
            raise
        except Exception as e:
            raise BodyDecodeError(f"custom body parser failed: {e}") from e
