"""Connection settings management for the FTPS client.

Provides ClientSettings dataclass and SettingsManager for persistence.
"""

import json
from dataclasses import dataclass, asdict
from pathlib import Path
from typing import Optional

from ftpsclient.config.paths import get_settings_path
from ftpsclient.ftp.control import DialOptions, TLSConfig, TLSMode


@dataclass
class ClientSettings:
    """Connection settings that persist between sessions."""

    # Server
    host: str = ""
    port: int = 21
    username: str = ""

    # Security
    tls_mode: str = TLSMode.EXPLICIT.value
    verify_tls: bool = True
    ca_file: str = ""
    insecure_unencrypted: bool = False

    # Transfers
    timeout: int = 30
    prefer_extended_passive: bool = False
    trust_server_pasv_address: bool = False

    def to_dict(self) -> dict:
        """Convert settings to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ClientSettings":
        """Create settings from dictionary, ignoring unknown keys."""
        valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
        filtered = {k: v for k, v in data.items() if k in valid_fields}
        return cls(**filtered)

    def to_dial_options(self, password: str = "") -> DialOptions:
        """
        Build DialOptions from these settings.

        Args:
            password: Password for the saved username

        Returns:
            DialOptions instance

        Raises:
            ValueError: If the settings do not describe a valid connection
        """
        return DialOptions(
            host=self.host,
            port=self.port,
            username=self.username,
            password=password,
            tls_mode=TLSMode(self.tls_mode),
            tls_config=TLSConfig(verify=self.verify_tls, ca_file=self.ca_file or None),
            insecure_unencrypted=self.insecure_unencrypted,
            timeout=self.timeout,
            prefer_extended_passive=self.prefer_extended_passive,
            trust_server_pasv_address=self.trust_server_pasv_address,
        )


class SettingsManager:
    """Manages connection settings persistence."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize settings manager.

        Args:
            config_path: Optional custom path, defaults to platform standard
        """
        self._config_path = config_path or get_settings_path()
        self._settings: Optional[ClientSettings] = None

    @property
    def config_path(self) -> Path:
        """Path to settings file."""
        return self._config_path

    def load(self) -> ClientSettings:
        """
        Load settings from disk.

        Returns:
            ClientSettings instance (defaults if file not found)
        """
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                self._settings = ClientSettings.from_dict(data)
            except (json.JSONDecodeError, IOError):
                # Invalid or unreadable file, use defaults
                self._settings = ClientSettings()
        else:
            self._settings = ClientSettings()

        return self._settings

    def save(self, settings: ClientSettings) -> None:
        """
        Persist settings to disk.

        Args:
            settings: Settings to save
        """
        self._settings = settings

        self._config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(settings.to_dict(), f, indent=2)

    def reset(self) -> ClientSettings:
        """
        Reset to default settings.

        Returns:
            Default ClientSettings instance
        """
        self._settings = ClientSettings()

        if self._config_path.exists():
            self._config_path.unlink()

        return self._settings

    def update(self, **kwargs) -> ClientSettings:
        """
        Update specific settings fields.

        Args:
            **kwargs: Field names and new values

        Returns:
            Updated ClientSettings instance
        """
        if self._settings is None:
            self.load()

        for key, value in kwargs.items():
            if hasattr(self._settings, key):
                setattr(self._settings, key, value)

        self.save(self._settings)
        return self._settings
