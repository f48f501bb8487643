"""Credential providers.

The dispatcher asks its provider for the current credentials at the start of
every attempt, so a provider that refreshes its value (key rotation) is
honored between failover attempts.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Protocol

from pydantic import BaseModel, ConfigDict

from algolite.config.settings import Settings
from algolite.exceptions import MissingAPIKeyError, MissingApplicationIDError

logger = logging.getLogger(__name__)


class Credentials(BaseModel):
    """Application id and API key pair."""

    model_config = ConfigDict(frozen=True)

    application_id: str
    api_key: str

    @classmethod
    def from_settings(cls, settings: Settings) -> Credentials:
        """Build credentials from settings.

        Raises:
            MissingApplicationIDError: If no application id is configured.
            MissingAPIKeyError: If no API key is configured.
        """
        if not settings.application_id:
            raise MissingApplicationIDError()
        if not settings.api_key:
            raise MissingAPIKeyError()
        return cls(application_id=settings.application_id, api_key=settings.api_key)


class CredentialsProvider(Protocol):
    """Anything that can hand out the credentials to use right now."""

    def current(self) -> Credentials: ...


class StaticCredentials:
    """Provider returning a fixed, injected credentials value."""

    def __init__(self, credentials: Credentials) -> None:
        self._credentials = credentials

    def current(self) -> Credentials:
        return self._credentials


class SettingsCredentials:
    """Provider resolving credentials from :class:`Settings` on first use.

    The resolved value is cached process-wide for this provider.  Reads are
    lock-free once populated; the first resolution (and any resolution after
    :meth:`refresh`) happens under a lock so only one thread loads settings.

    Args:
        settings_factory: Callable returning fresh settings, ``Settings`` by default.
    """

    def __init__(self, settings_factory: Callable[[], Settings] = Settings) -> None:
        self._settings_factory = settings_factory
        self._credentials: Credentials | None = None
        self._lock = threading.Lock()

    def current(self) -> Credentials:
        credentials = self._credentials
        if credentials is not None:
            return credentials
        with self._lock:
            if self._credentials is None:
                self._credentials = Credentials.from_settings(self._settings_factory())
                logger.debug("Resolved credentials for application %s", self._credentials.application_id)
            return self._credentials

    def refresh(self) -> None:
        """Drop the cached credentials; the next call re-reads settings."""
        with self._lock:
            self._credentials = None
