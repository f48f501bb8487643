"""Raised exceptions.

Failures the service reports (HTTP errors, unreachable cluster) are returned
as result values, see :mod:`algolite.models.response`.  Only configuration
problems, local validation and malformed success payloads are raised.
"""


class AlgoliaError(Exception):
    """Base exception for algolite errors."""


class ConfigurationError(AlgoliaError):
    """Raised when credentials or settings are missing or invalid."""


class MissingApplicationIDError(ConfigurationError):
    """Raised when no application id is configured."""

    def __init__(self) -> None:
        super().__init__(
            "The `application_id` setting is required to use Algolia. Set it in your "
            "config file or as the ALGOLIA_APPLICATION_ID environment variable."
        )


class MissingAPIKeyError(ConfigurationError):
    """Raised when no API key is configured."""

    def __init__(self) -> None:
        super().__init__(
            "The `api_key` setting is required to use Algolia. Set it in your "
            "config file or as the ALGOLIA_API_KEY environment variable."
        )


class DecodeError(AlgoliaError):
    """Raised when a 2xx response does not carry valid JSON."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Malformed JSON in HTTP {status} response: {body[:200]!r}")
        self.status = status
        self.body = body


class MissingAttributeError(AlgoliaError, ValueError):
    """Raised when an argument lacks an attribute the operation requires."""


class MissingObjectIDError(MissingAttributeError):
    """Raised when an object lacks the identifier attribute an operation needs."""
