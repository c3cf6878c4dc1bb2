import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from dragprobe.server import AppServer

from fakes import FakePage


def pytest_configure(config):
    config.addinivalue_line("markers", "e2e: drives a real browser through Playwright")


@pytest.fixture
def fake_page():
    return FakePage()


@pytest.fixture(scope="session")
def app_server():
    server = AppServer().start()
    yield server
    server.stop()
