"""Pytest configuration and shared fixtures for FTPS client tests."""

import io
import socket
from pathlib import Path
from typing import List

import pytest


# Test constants
TEST_FTP_HOST = "127.0.0.1"
TEST_FTP_USER = "testuser"
TEST_FTP_PASS = "testpass"


class FakeSocket:
    """
    Scripted stand-in for a connected control socket.

    Server replies are served from `script` in order; everything the
    client sends is recorded in `sent`.
    """

    def __init__(self, script: bytes = b""):
        self._reader = io.BytesIO(script)
        self.sent: List[bytes] = []
        self.closed = False
        self.timeout = None
        self.family = socket.AF_INET

    def makefile(self, mode: str = "rb"):
        return self._reader

    def settimeout(self, timeout) -> None:
        self.timeout = timeout

    def sendall(self, data: bytes) -> None:
        if self.closed:
            raise OSError("socket is closed")
        self.sent.append(data)

    def getpeername(self):
        return (TEST_FTP_HOST, 21)

    def close(self) -> None:
        self.closed = True

    @property
    def commands(self) -> List[str]:
        """Commands sent by the client, without line endings."""
        return [data.decode("utf-8").rstrip("\r\n") for data in self.sent]


@pytest.fixture
def fake_socket():
    """Factory building a FakeSocket from reply lines."""
    def build(*lines: str) -> FakeSocket:
        script = "".join(f"{line}\r\n" for line in lines)
        return FakeSocket(script.encode("utf-8"))
    return build


@pytest.fixture
def fixtures_path() -> Path:
    """Return the path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def server_cert_file(fixtures_path: Path) -> Path:
    """Self-signed certificate and key for localhost test servers."""
    return fixtures_path / "server.pem"


@pytest.fixture
def temp_settings_file(tmp_path: Path) -> Path:
    """Provide a temporary settings file path for testing."""
    return tmp_path / "settings.json"
