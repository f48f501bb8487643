"""Transport dispatcher — sends one logical request with cluster failover.

A call walks at most four hosts.  Connection-level failures (DNS, refused
connection, TLS handshake, timeouts) move on to the next host with larger
timeouts.  Any HTTP answer ends the call: 2xx bodies are decoded, anything
else is returned unchanged as :class:`HttpError`.
"""

from __future__ import annotations

import json
import logging
import ssl
from typing import Any

import httpx

from algolite.config.credentials import CredentialsProvider, SettingsCredentials
from algolite.config.settings import TransportSettings
from algolite.exceptions import DecodeError
from algolite.models.request import HostClass, RequestSpec
from algolite.models.response import ApiResponse, Exhausted, HttpError, Success
from algolite.transport.hosts import FAILOVER_HOSTS, resolve_host

logger = logging.getLogger(__name__)

API_PREFIX = "/1/indexes"


def tls12_context() -> ssl.SSLContext:
    """SSL context that negotiates TLS 1.2 and nothing else."""
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.maximum_version = ssl.TLSVersion.TLSv1_2
    return context


class Dispatcher:
    """Dispatches :class:`RequestSpec` values to the Algolia cluster.

    Args:
        credentials: Provider consulted at the start of every attempt.
        settings: Transport settings (provider label, base timeouts, attempts).
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        async with Dispatcher(StaticCredentials(creds)) as dispatcher:
            result = await dispatcher.dispatch(HostClass.READ, RequestSpec(method="GET", path=""))
    """

    def __init__(
        self,
        credentials: CredentialsProvider | None = None,
        settings: TransportSettings | None = None,
        **httpx_kwargs: Any,
    ) -> None:
        self.credentials = credentials or SettingsCredentials()
        self.settings = settings or TransportSettings()
        httpx_kwargs.setdefault("verify", tls12_context())
        self._client = httpx.AsyncClient(**httpx_kwargs)

    async def __aenter__(self) -> Dispatcher:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    def timeout_for(self, attempt: int) -> httpx.Timeout:
        """Timeouts for ``attempt``, scaled linearly from the base values."""
        factor = attempt + 1
        return httpx.Timeout(
            self.settings.read_timeout_ms * factor / 1000,
            connect=self.settings.connect_timeout_ms * factor / 1000,
        )

    async def dispatch(self, host_class: HostClass, spec: RequestSpec) -> ApiResponse:
        """Send ``spec``, failing over across the cluster on transport errors.

        Returns:
            ``Success`` for 2xx answers, ``HttpError`` for any other status,
            ``Exhausted`` once every attempt failed at the transport level.

        Raises:
            ConfigurationError: If credentials are missing.
            DecodeError: If a 2xx answer is not valid JSON.
        """
        attempts = max(1, min(self.settings.max_attempts, FAILOVER_HOSTS + 1))
        for attempt in range(attempts):
            credentials = self.credentials.current()
            host = resolve_host(credentials.application_id, host_class, attempt, self.settings.provider)
            url = self.build_url(host, spec.path)
            headers = [
                *spec.extra_headers,
                ("X-Algolia-API-Key", credentials.api_key),
                ("X-Algolia-Application-Id", credentials.application_id),
            ]
            if spec.body is not None:
                headers.append(("Content-Type", "application/json"))

            logger.debug("%s %s (attempt %d, %s)", spec.method, url, attempt, host_class.value)
            try:
                response = await self._client.request(
                    spec.method,
                    url,
                    headers=headers,
                    content=spec.body,
                    timeout=self.timeout_for(attempt),
                )
            except httpx.TransportError as e:
                logger.warning("Transport failure on %s (attempt %d): %s", host, attempt, e)
                continue

            return self._classify(response)

        logger.error("Unable to reach the cluster after %d attempts for %s %s", attempts, spec.method, spec.path)
        return Exhausted(attempts=attempts)

    @staticmethod
    def build_url(host: str, path: str) -> str:
        """``https://{host}/1/indexes/{path}``; leading slashes in ``path`` are dropped."""
        path = path.lstrip("/")
        if not path:
            return f"https://{host}{API_PREFIX}"
        return f"https://{host}{API_PREFIX}/{path}"

    @staticmethod
    def _classify(response: httpx.Response) -> ApiResponse:
        if 200 <= response.status_code <= 299:
            try:
                return Success(body=json.loads(response.content))
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                raise DecodeError(response.status_code, response.text) from e
        return HttpError(status=response.status_code, body=response.text)
