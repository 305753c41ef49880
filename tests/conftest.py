"""
Pytest configuration and fixtures for the Hydra backend test suite.
"""

import os

# Console logging only while testing
os.environ.setdefault("LOG_DIR", "")

from typing import Callable, Dict, List

import httpx
import pytest
from fastapi.testclient import TestClient

from hydra_backend.api.main import create_app
from hydra_backend.core.config_manager import ConfigManager
from hydra_backend.core.models import Settings
from hydra_backend.core.state_store import StateStore
from tests.helpers import MODEL


@pytest.fixture
def default_settings() -> Settings:
    return Settings(theme="dark", language="en", default_model=MODEL, auto_start=False)


@pytest.fixture
def state_store(default_settings) -> StateStore:
    return StateStore(settings=default_settings, credentials={"ANTHROPIC_API_KEY": "test-key"})


@pytest.fixture
def environ() -> Dict[str, str]:
    """Environment seen by the config manager; tests may edit it before ``client`` is built."""
    return {"ANTHROPIC_API_KEY": "test-key"}


@pytest.fixture
def config_manager(tmp_path, environ) -> ConfigManager:
    return ConfigManager(config_dir=str(tmp_path), environ=environ)


@pytest.fixture
def upstream_requests() -> List[httpx.Request]:
    """Requests captured by the mock upstream."""
    return []


@pytest.fixture
def upstream_handler() -> Dict[str, Callable[[httpx.Request], httpx.Response]]:
    """Holder for the mock upstream behaviour; tests replace ``handler``."""
    return {"handler": lambda request: httpx.Response(500, json={"error": "no handler configured"})}


@pytest.fixture
def mock_httpx_client(upstream_handler, upstream_requests) -> httpx.AsyncClient:
    def dispatch(request: httpx.Request) -> httpx.Response:
        upstream_requests.append(request)
        return upstream_handler["handler"](request)

    return httpx.AsyncClient(transport=httpx.MockTransport(dispatch))


@pytest.fixture
def client(config_manager, mock_httpx_client):
    app = create_app(config_manager=config_manager, httpx_client=mock_httpx_client)
    with TestClient(app) as test_client:
        yield test_client
