"""Tests for API roots: shared instances, sessions and request building."""

import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Any
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from apikit.api import API, _append_path
from apikit.codecs import CustomBodyBuilder, URLEncodedBodyBuilder
from apikit.dispatcher import MAIN_QUEUE
from apikit.exceptions import APIConfigurationError
from apikit.models import Method, TransportConfiguration


class MockAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "https://api.github.com"


class AnotherMockAPI(API):
    pass


class SearchAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "https://api.example.com"


class VersionedAPI(API):
    @classmethod
    def base_url(cls) -> httpx.URL:
        return httpx.URL("https://api.example.com/v1/?token=abc")


class FormAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "https://forms.example.com"

    @classmethod
    def request_body_builder(cls) -> URLEncodedBodyBuilder:
        return URLEncodedBodyBuilder()


class FailingBuilderAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "https://api.example.com"

    @classmethod
    def request_body_builder(cls) -> CustomBodyBuilder:
        def build(obj: Any) -> bytes:
            raise RuntimeError("cannot encode")

        return CustomBodyBuilder("application/octet-stream", build)


class RelativeURLAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "api.example.com/v1"


class InvalidPortAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "https://api.example.com:port"


class TunedAPI(API):
    @classmethod
    def base_url(cls) -> str:
        return "https://api.example.com"

    @classmethod
    def transport_configuration(cls) -> TransportConfiguration:
        return TransportConfiguration(timeout_ms=500, max_concurrent_tasks=2)


class TestInstancePairs:
    """Tests for the per-subclass instance and session."""

    def test_different_sessions_for_each_class(self):
        """Should create a separate session for each subclass."""
        assert MockAPI.session() is not AnotherMockAPI.session()

    def test_same_session_for_same_class(self):
        """Should return the same session on repeated access."""
        assert MockAPI.session() is MockAPI.session()
        assert AnotherMockAPI.session() is AnotherMockAPI.session()

    def test_same_instance_for_same_class(self):
        """Should return the same instance on repeated access."""
        assert MockAPI.instance() is MockAPI.instance()
        assert MockAPI.instance() is not AnotherMockAPI.instance()

    def test_delegate_of_sessions(self):
        """Should register each class's own instance as its session delegate."""
        assert isinstance(MockAPI.session().delegate, MockAPI)
        assert isinstance(AnotherMockAPI.session().delegate, AnotherMockAPI)
        assert MockAPI.session().delegate is MockAPI.instance()

    def test_unconfigured_api_still_has_session(self):
        """Should create a session without resolving the base URL."""
        assert AnotherMockAPI.session() is not None

    def test_concurrent_first_access_creates_one_pair(self):
        """Should hand the same session to threads racing on first access."""

        class RacedAPI(API):
            @classmethod
            def base_url(cls) -> str:
                return "https://raced.example.com"

        barrier = threading.Barrier(8)

        def access() -> Any:
            barrier.wait()
            return RacedAPI.session()

        with ThreadPoolExecutor(max_workers=8) as pool:
            sessions = list(pool.map(lambda _: access(), range(8)))

        assert all(session is sessions[0] for session in sessions)

    def test_transport_configuration_reaches_session(self):
        """Should build the session from the class's transport configuration."""
        configuration = TunedAPI.session().configuration
        assert configuration.timeout_ms == 500
        assert configuration.max_concurrent_tasks == 2

    def test_default_configuration(self):
        """Should default to JSON codecs and the main callback queue."""
        configuration = MockAPI.configuration()
        assert configuration.request_body_builder.content_type_header == "application/json"
        assert configuration.response_body_parser.accept_header == "application/json"
        assert configuration.callback_queue is MAIN_QUEUE
        assert configuration.delegate_queue is None


class TestBaseURL:
    """Tests for the base URL hook."""

    def test_unconfigured_base_url_raises(self):
        """Should raise when base_url() is not overridden."""
        with pytest.raises(APIConfigurationError) as exc_info:
            AnotherMockAPI.build_request(Method.GET, "/")
        assert "AnotherMockAPI.base_url()" in str(exc_info.value)

    def test_invalid_base_url_returns_none(self):
        """Should return None when the base URL cannot be parsed."""
        assert InvalidPortAPI.build_request(Method.GET, "/") is None

    def test_relative_base_url_returns_none(self):
        """Should return None when the base URL is not absolute."""
        assert RelativeURLAPI.build_request(Method.GET, "/") is None


class TestBuildRequest:
    """Tests for API.build_request()."""

    def test_get_parameters_in_query(self):
        """Should percent-encode GET parameters into the query string."""
        descriptor = SearchAPI.build_request(Method.GET, "/search", {"q": "x y"})

        assert descriptor is not None
        assert descriptor.url == "https://api.example.com/search?q=x%20y"
        assert descriptor.body is None
        assert descriptor.method is Method.GET

    @pytest.mark.parametrize("method", [Method.GET, Method.HEAD, Method.DELETE])
    def test_query_methods_have_no_body(self, method):
        """Should put parameters in the query for GET, HEAD and DELETE."""
        descriptor = SearchAPI.build_request(method, "/items", {"page": 2, "tag": "a&b"})

        assert descriptor.body is None
        query = parse_qs(urlsplit(descriptor.url).query)
        assert query == {"page": ["2"], "tag": ["a&b"]}

    def test_get_without_parameters_has_no_query(self):
        """Should not append a '?' when there are no parameters."""
        descriptor = SearchAPI.build_request(Method.GET, "/users")

        assert descriptor.url == "https://api.example.com/users"

    def test_query_uses_form_encoding_regardless_of_builder(self):
        """Should URL-encode the query even when the body builder is custom."""
        descriptor = FailingBuilderAPI.build_request(Method.GET, "/search", {"q": "a"})

        assert descriptor is not None
        assert descriptor.url == "https://api.example.com/search?q=a"

    def test_post_parameters_in_json_body(self):
        """Should serialize POST parameters with the JSON body builder."""
        descriptor = SearchAPI.build_request(Method.POST, "/items", {"name": "widget"})

        assert descriptor.url == "https://api.example.com/items"
        assert descriptor.body == b'{"name": "widget"}'

    def test_post_parameters_in_form_body(self):
        """Should serialize POST parameters with the configured builder."""
        descriptor = FormAPI.build_request(Method.PUT, "/profile", {"name": "a b"})

        assert descriptor.body == b"name=a%20b"
        assert descriptor.headers["Content-Type"] == "application/x-www-form-urlencoded"

    def test_body_builder_failure_returns_none(self):
        """Should return None when the body builder fails."""
        assert FailingBuilderAPI.build_request(Method.POST, "/items", {"a": 1}) is None

    def test_headers_set_for_every_method(self):
        """Should set Content-Type and Accept even for GET."""
        descriptor = SearchAPI.build_request(Method.GET, "/search")

        assert descriptor.headers == {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def test_path_appended_to_base_path(self):
        """Should append the path to the base URL's path."""
        descriptor = VersionedAPI.build_request(Method.POST, "/users/", {})

        assert urlsplit(descriptor.url).path == "/v1/users"

    def test_post_keeps_base_query(self):
        """Should keep the base URL's query for body methods."""
        descriptor = VersionedAPI.build_request(Method.POST, "/users", {})

        assert urlsplit(descriptor.url).query == "token=abc"

    def test_get_replaces_base_query(self):
        """Should replace the base URL's query with the parameters."""
        descriptor = VersionedAPI.build_request(Method.GET, "/users", {"page": 1})

        assert urlsplit(descriptor.url).query == "page=1"

    def test_method_given_as_string(self):
        """Should accept the method as a plain string."""
        descriptor = SearchAPI.build_request("DELETE", "/items/1")

        assert descriptor.method is Method.DELETE

    def test_build_is_repeatable(self):
        """Should produce equal descriptors for equal inputs."""
        first = SearchAPI.build_request(Method.POST, "/items", {"a": [1, 2]})
        second = SearchAPI.build_request(Method.POST, "/items", {"a": [1, 2]})

        assert first == second

    def test_concurrent_builds_agree(self):
        """Should build identical descriptors from many threads at once."""
        expected = SearchAPI.build_request(Method.GET, "/search", {"q": "x y"})

        with ThreadPoolExecutor(max_workers=8) as pool:
            descriptors = list(
                pool.map(
                    lambda _: SearchAPI.build_request(Method.GET, "/search", {"q": "x y"}),
                    range(32),
                )
            )

        assert all(descriptor == expected for descriptor in descriptors)


class TestAppendPath:
    """Tests for URL path joining."""

    @pytest.mark.parametrize(
        ("base", "path", "expected"),
        [
            ("", "/", "/"),
            ("/", "/", "/"),
            ("", "/search", "/search"),
            ("/v1", "users", "/v1/users"),
            ("/v1/", "/users", "/v1/users"),
            ("/v1", "/users/", "/v1/users"),
            ("/v1//", "//users//1", "/v1/users/1"),
        ],
    )
    def test_append_path(self, base, path, expected):
        """Should join paths without duplicating or dropping segments."""
        assert _append_path(base, path) == expected
