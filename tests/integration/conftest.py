from collections.abc import Callable, Iterator
from typing import Any
from unittest.mock import patch

import httpx
import pytest

from batch_signer.config.settings import Settings

API_URL = "https://signing.test"
AGENT_URL = "http://agent.test:53821"

_RealAsyncClient = httpx.AsyncClient


@pytest.fixture
def test_settings() -> Settings:
    return Settings(api_base_url=API_URL, agent_base_url=AGENT_URL, pdf_engine="pymupdf")


@pytest.fixture
def route_http() -> Iterator[Callable[[Any, Any], None]]:
    """Route the application's HTTP clients to in-process fakes by base URL."""
    routes: dict[str, Any] = {}

    def factory(*, base_url: str, timeout: float) -> httpx.AsyncClient:
        return _RealAsyncClient(
            base_url=base_url, timeout=timeout, transport=httpx.MockTransport(routes[base_url])
        )

    def install(server: Any, agent: Any) -> None:
        routes[API_URL] = server
        routes[AGENT_URL] = agent

    with patch("batch_signer.main.httpx.AsyncClient", new=factory):
        yield install
