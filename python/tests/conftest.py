"""
Pytest fixtures for the console tests.
"""
import pytest

from console_stubs import DummyConsoleServer, FakeTerminal, StubClient, StubContext


@pytest.fixture
def terminal():
    return FakeTerminal()


@pytest.fixture
def stub_client():
    return StubClient()


@pytest.fixture
def ctx(stub_client):
    return StubContext(stub_client, prompt=":", timeout_ms=2000, page_size=5)


@pytest.fixture
def server():
    srv = DummyConsoleServer()
    try:
        yield srv
    finally:
        srv.stop()
