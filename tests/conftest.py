"""Root pytest configuration for ipfs-multi-client tests."""
import pytest

from tests.helpers.fake_daemon import FakeDaemon


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires a running IPFS daemon)"
    )


@pytest.fixture(autouse=True)
def test_env(monkeypatch):
    """Keep the developer's IPFS_* environment out of unit tests."""
    for name in ("IPFS_API_URL", "IPFS_HTTP_TIMEOUT", "IPFS_HTTP_RETRY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def daemon():
    """Empty fake daemon; tests register the routes they need."""
    return FakeDaemon()


@pytest.fixture
def service(daemon):
    """IpfsService wired to the fake daemon."""
    with daemon.service() as service:
        yield service
