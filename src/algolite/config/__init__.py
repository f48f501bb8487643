"""Settings and credential providers."""

from algolite.config.credentials import Credentials, CredentialsProvider, SettingsCredentials, StaticCredentials
from algolite.config.settings import Settings

__all__ = ["Credentials", "CredentialsProvider", "Settings", "SettingsCredentials", "StaticCredentials"]
