from typing import Callable
from unittest.mock import Mock

import platformdirs
import pytest
import requests

from gitembed.cache import InMemoryCache
from gitembed.platforms import get_platform_config
from tests.upstream_fakes import FakeUpstream, make_response

_NETWORK_BLOCK_MSG = (
    "Network access is blocked during tests. Mock requests.* or Session.request."
)


def _block_network(*_args, **_kwargs):
    """
    Prevent network calls in tests by raising a RuntimeError.

    Raises:
        RuntimeError: with `_NETWORK_BLOCK_MSG` indicating that network access is blocked during tests.
    """
    raise RuntimeError(_NETWORK_BLOCK_MSG)


def pytest_configure(config):
    """Register the markers used across the suite."""
    config.addinivalue_line("markers", "unit: fast tests with no I/O beyond tmp_path")
    config.addinivalue_line(
        "markers", "integration: tests that run the full resolver pipeline"
    )


def pytest_runtest_setup():
    """
    Prevent real network requests during tests by replacing HTTP entry points with blocking callables.
    """
    requests.get = _block_network
    requests.post = _block_network
    requests.head = _block_network
    requests.Session.request = _block_network


@pytest.fixture(autouse=True)
def _isolate_test_environment(tmp_path_factory, monkeypatch):
    """
    Point platformdirs and the gitembed config file at a temporary directory layout.
    """
    base = tmp_path_factory.mktemp("gitembed")
    cache_dir = base / "cache"
    config_dir = base / "config"
    for path in (cache_dir, config_dir):
        path.mkdir(parents=True, exist_ok=True)

    monkeypatch.setenv("XDG_CACHE_HOME", str(cache_dir))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(config_dir))
    monkeypatch.setattr(
        platformdirs, "user_cache_dir", lambda *_args, **_kwargs: str(cache_dir)
    )
    monkeypatch.setattr(
        platformdirs, "user_config_dir", lambda *_args, **_kwargs: str(config_dir)
    )

    import gitembed.config as gitembed_config

    monkeypatch.setattr(gitembed_config, "CONFIG_DIR", str(config_dir))
    monkeypatch.setattr(
        gitembed_config, "CONFIG_FILE", str(config_dir / "gitembed.yaml")
    )


@pytest.fixture
def upstream(mocker) -> FakeUpstream:
    fake = FakeUpstream()
    mocker.patch("requests.get", side_effect=fake)
    return fake


@pytest.fixture
def memory_cache() -> InMemoryCache:
    return InMemoryCache()


@pytest.fixture
def response_factory() -> Callable[..., Mock]:
    return make_response


@pytest.fixture
def github_config():
    return get_platform_config("github")


@pytest.fixture
def gitea_config():
    return get_platform_config("gitea", "git.example.org", "Example Gitea")


@pytest.fixture
def gitlab_config():
    return get_platform_config("gitlab", "gitlab.example.com", "Example GitLab")
