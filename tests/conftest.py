import socket
from pathlib import Path

import pytest
from click.testing import CliRunner

from tests.utils.fakes import FakeSpawner


@pytest.fixture()
def free_localhost_port():
    """Function-scoped fixture to get a free port for each test."""
    # Binding to port 0 asks the OS for an arbitrary free port; the socket is
    # closed right away so the port is free again when the test uses it.
    sock = socket.socket()
    sock.bind(("localhost", 0))
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)

    port: int = sock.getsockname()[1]
    sock.close()

    return port


@pytest.fixture()
def fake_jar(tmp_path: Path) -> Path:
    jar = tmp_path / "mockserver-netty-3.10.8-jar-with-dependencies.jar"
    jar.write_bytes(b"PK\x03\x04")
    return jar


@pytest.fixture()
def spawner() -> FakeSpawner:
    return FakeSpawner()


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()
