"""Configuration module for the FTPS client.

This module handles persisted connection settings and credentials:
- SettingsManager: JSON-based settings persistence
- ClientSettings: Settings dataclass convertible to DialOptions
- CredentialManager: Secure password storage via keyring
- Paths: Config directory discovery
"""
