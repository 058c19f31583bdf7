"""Typed request contract."""

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar, Generic, TypeVar

from apikit.models import HTTPDescriptor, Method

if TYPE_CHECKING:
    from apikit.api import API

ResponseT = TypeVar("ResponseT")


class Request(ABC, Generic[ResponseT]):
    """A caller-defined HTTP call that knows how to read its own response.

    Subclasses set ``api`` to the API root they belong to, plus ``method`` and
    ``path``, and implement ``response_from_object``. Parameters come from the
    ``parameters`` property, which subclasses usually override.

    Example:
        class GetUser(Request[User]):
            api = GitHubAPI
            path = "/user"

            def response_from_object(self, obj: Any) -> User | None:
                return User.model_validate(obj)
    """

    api: ClassVar[type["API"]]
    method: ClassVar[Method] = Method.GET
    path: ClassVar[str] = "/"

    @property
    def parameters(self) -> Mapping[str, Any]:
        return {}

    def build_http_descriptor(self) -> HTTPDescriptor | None:
        """Build the HTTP call, or return None if it cannot be built."""
        return self.api.build_request(self.method, self.path, self.parameters)

    @abstractmethod
    def response_from_object(self, obj: Any) -> ResponseT | None:
        """Map a decoded response body to the typed response.

        Return None when ``obj`` does not have the expected shape. Any exception
        raised here (``pydantic.ValidationError`` included) is treated the same
        way and chained as the cause of the mapping error.
        """
