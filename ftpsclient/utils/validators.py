"""Input validators for the FTPS client.

Provides validation functions for connection options and for values
that end up on the FTP control connection.
"""

import re
from typing import Optional, Tuple


# IPv4 address pattern
IPV4_PATTERN = re.compile(
    r'^(?:(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)\.){3}'
    r'(?:25[0-5]|2[0-4][0-9]|[01]?[0-9][0-9]?)$'
)

# Hostname pattern (simplified)
HOSTNAME_PATTERN = re.compile(
    r'^(?=.{1,253}$)(?!-)[A-Za-z0-9-]{1,63}(?<!-)(\.[A-Za-z0-9-]{1,63})*$'
)

# IPv6 literal, loosely: hex groups and colons, optional zone
IPV6_PATTERN = re.compile(r'^[0-9A-Fa-f:.]+(%[\w.]+)?$')

# Characters that would split or terminate an FTP command line
COMMAND_BREAKERS = ("\r", "\n", "\x00")


def validate_ip_address(ip: str) -> Tuple[bool, Optional[str]]:
    """
    Validate an IPv4 or IPv6 address.

    Args:
        ip: IP address string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not ip or not ip.strip():
        return False, "IP address is required"

    ip = ip.strip()

    if IPV4_PATTERN.match(ip):
        return True, None
    if ":" in ip and IPV6_PATTERN.match(ip):
        return True, None

    return False, f"Invalid IP address format: {ip}"


def validate_hostname(hostname: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a hostname.

    Args:
        hostname: Hostname string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not hostname or not hostname.strip():
        return False, "Hostname is required"

    hostname = hostname.strip()

    if HOSTNAME_PATTERN.match(hostname):
        return True, None

    return False, f"Invalid hostname format: {hostname}"


def validate_host(host: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a host (IP address or hostname).

    Args:
        host: Host string to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not host or not host.strip():
        return False, "Host is required"

    host = host.strip()

    is_valid_ip, _ = validate_ip_address(host)
    if is_valid_ip:
        return True, None

    is_valid_hostname, _ = validate_hostname(host)
    if is_valid_hostname:
        return True, None

    return False, f"Invalid host: {host}. Must be a valid IP address or hostname."


def validate_port(port: int) -> Tuple[bool, Optional[str]]:
    """
    Validate a port number.

    Args:
        port: Port number to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(port, int):
        try:
            port = int(port)
        except (ValueError, TypeError):
            return False, "Port must be a number"

    if port < 1 or port > 65535:
        return False, f"Port must be between 1 and 65535, got {port}"

    return True, None


def validate_timeout(timeout: float) -> Tuple[bool, Optional[str]]:
    """
    Validate a timeout value in seconds.

    Args:
        timeout: Timeout in seconds

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not isinstance(timeout, (int, float)):
        try:
            timeout = float(timeout)
        except (ValueError, TypeError):
            return False, "Timeout must be a number"

    if timeout < 1 or timeout > 300:
        return False, f"Timeout must be between 1 and 300 seconds, got {timeout}"

    return True, None


def validate_command_argument(argument: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a value sent as an FTP command argument.

    Args:
        argument: Path or other argument text

    Returns:
        Tuple of (is_valid, error_message)
    """
    if any(ch in argument for ch in COMMAND_BREAKERS):
        return False, "Command argument cannot contain CR, LF or NUL characters"

    return True, None


def validate_remote_path(path: str) -> Tuple[bool, Optional[str]]:
    """
    Validate a remote FTP path.

    Args:
        path: Absolute or relative remote path

    Returns:
        Tuple of (is_valid, error_message)
    """
    if not path or not path.strip():
        return False, "FTP path is required"

    return validate_command_argument(path)
