"""Tagged results returned by every client operation.

Callers dispatch on the concrete type (or on ``kind``)::

    match result:
        case Success(body=body): ...
        case HttpError(status=404): ...
        case Exhausted(): ...
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class _Result(BaseModel):
    model_config = ConfigDict(frozen=True)

    @property
    def ok(self) -> bool:
        return False


class Success(_Result):
    """The service answered with a 2xx status and a JSON body."""

    kind: Literal["success"] = "success"
    body: Any = Field(description="Decoded JSON body")

    @property
    def ok(self) -> bool:
        return True


class HttpError(_Result):
    """The service answered with a non-2xx status. Never retried."""

    kind: Literal["http_error"] = "http_error"
    status: int = Field(description="HTTP status code")
    body: str = Field(default="", description="Raw response body")


class Exhausted(_Result):
    """Every host of the cluster was unreachable."""

    kind: Literal["exhausted"] = "exhausted"
    message: str = "Unable to connect to Algolia"
    attempts: int = Field(default=4, description="Number of attempts made")


class InvalidObjectIDError(_Result):
    """A delete was requested with an empty object id; nothing was sent."""

    kind: Literal["invalid_object_id"] = "invalid_object_id"
    message: str = "The ObjectID cannot be an empty string"


ApiResponse = Success | HttpError | Exhausted | InvalidObjectIDError
"""Union of every result an operation can return."""
