"""Shared HTTP client configuration."""

import httpx

from apikit._version import __version__
from apikit.models import TransportConfiguration

USER_AGENT = f"apikit/{__version__}"


def create_http_client(configuration: TransportConfiguration) -> httpx.Client:
    """Create configured HTTP client.

    Args:
        configuration: Timeout, redirect and header settings for the client.

    Returns:
        Configured httpx.Client instance. Its connection pool is sized to the
        session's task concurrency.
    """
    return httpx.Client(
        timeout=configuration.timeout,
        follow_redirects=configuration.follow_redirects,
        limits=httpx.Limits(max_connections=configuration.max_concurrent_tasks),
        headers={"User-Agent": USER_AGENT, **configuration.headers},
    )
