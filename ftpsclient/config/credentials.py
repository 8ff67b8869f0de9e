"""Secure credential storage for the FTPS client.

Uses the system keyring (Windows Credential Manager, macOS Keychain,
Linux Secret Service) so FTP passwords never land in settings.json.
Entries are scoped to one server endpoint: the same account name on
two ports of one host keeps two passwords.
"""

import logging
from typing import Optional

import keyring
from keyring.errors import KeyringError

logger = logging.getLogger("ftpsclient.credentials")


class CredentialManager:
    """FTP passwords in the system keyring, keyed by endpoint and user."""

    SERVICE_NAME = "ftpsclient"

    def _make_key(self, host: str, port: int, username: str) -> str:
        """
        Build the keyring entry name for an account.

        IPv6 hosts are bracketed so the port stays unambiguous.
        """
        host = host.strip().lower()
        if ":" in host and not host.startswith("["):
            host = f"[{host}]"
        return f"{host}:{int(port)}:{username}"

    def save_password(self, host: str, port: int, username: str, password: str) -> bool:
        """
        Save an FTP password.

        Args:
            host: FTP host
            port: FTP control port
            username: FTP username
            password: Password to save

        Returns:
            True if saved successfully, False otherwise
        """
        key = self._make_key(host, port, username)
        try:
            keyring.set_password(self.SERVICE_NAME, key, password)
        except KeyringError as e:
            logger.warning(f"Could not store password for {key}: {e}")
            return False
        return True

    def get_password(self, host: str, port: int, username: str) -> Optional[str]:
        """
        Retrieve a saved password.

        Returns:
            Password string or None if not found or the keyring fails
        """
        key = self._make_key(host, port, username)
        try:
            return keyring.get_password(self.SERVICE_NAME, key)
        except KeyringError as e:
            logger.warning(f"Could not read password for {key}: {e}")
            return None

    def delete_password(self, host: str, port: int, username: str) -> bool:
        """Remove a saved password. Returns False if nothing was removed."""
        key = self._make_key(host, port, username)
        try:
            keyring.delete_password(self.SERVICE_NAME, key)
        except KeyringError as e:
            logger.debug(f"No password removed for {key}: {e}")
            return False
        return True

    def has_password(self, host: str, port: int, username: str) -> bool:
        return self.get_password(host, port, username) is not None
