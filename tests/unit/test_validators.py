"""Unit tests for input validators."""

import pytest

from ftpsclient.utils.validators import (
    validate_command_argument,
    validate_host,
    validate_port,
    validate_remote_path,
    validate_timeout,
)


class TestValidateHost:
    """Tests for validate_host."""

    @pytest.mark.parametrize("host", [
        "127.0.0.1",
        "ftp.example.com",
        "localhost",
        "::1",
        "fe80::1%eth0",
    ])
    def test_valid(self, host):
        assert validate_host(host) == (True, None)

    @pytest.mark.parametrize("host", ["", "   ", "bad host", "-leading.example.com"])
    def test_invalid(self, host):
        is_valid, error = validate_host(host)
        assert is_valid is False
        assert error


class TestValidatePort:
    """Tests for validate_port."""

    @pytest.mark.parametrize("port", [1, 21, 990, 65535, "2121"])
    def test_valid(self, port):
        assert validate_port(port) == (True, None)

    @pytest.mark.parametrize("port", [0, 65536, -1, "abc", None])
    def test_invalid(self, port):
        assert validate_port(port)[0] is False


class TestValidateTimeout:
    """Tests for validate_timeout."""

    @pytest.mark.parametrize("timeout", [1, 30, 300, 2.5])
    def test_valid(self, timeout):
        assert validate_timeout(timeout) == (True, None)

    @pytest.mark.parametrize("timeout", [0, 0.5, 301, "soon"])
    def test_invalid(self, timeout):
        assert validate_timeout(timeout)[0] is False


class TestValidateCommandArgument:
    """Tests for command argument and path validation."""

    @pytest.mark.parametrize("value", ["a\rb", "a\nb", "a\x00b"])
    def test_line_breakers_rejected(self, value):
        is_valid, error = validate_command_argument(value)
        assert is_valid is False
        assert "CR, LF or NUL" in error

    def test_spaces_allowed(self):
        assert validate_command_argument("my file.txt") == (True, None)

    def test_remote_path_required(self):
        assert validate_remote_path("")[0] is False
        assert validate_remote_path("/d1/f1") == (True, None)
