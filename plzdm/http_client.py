"""Shared httpx.AsyncClient for connection pooling across the app."""

import httpx

from plzdm.constants import HTTP_CONNECT_TIMEOUT, HTTP_TOTAL_TIMEOUT

_client: httpx.AsyncClient | None = None


def _build_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(HTTP_TOTAL_TIMEOUT, connect=HTTP_CONNECT_TIMEOUT),
        headers={"User-Agent": "plzdm"},
    )


def get_http_client() -> httpx.AsyncClient:
    """Return the shared client, creating it lazily. Also usable as a FastAPI dependency."""
    global _client
    if _client is None:
        _client = _build_client()
    return _client


async def init_http_client() -> None:
    global _client
    _client = _build_client()


async def close_http_client() -> None:
    global _client
    if _client:
        await _client.aclose()
        _client = None
