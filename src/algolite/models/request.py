"""Request values handed from operation builders to the dispatcher."""

from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class HostClass(str, Enum):
    """Which endpoint family serves the first attempt of a call."""

    READ = "read"
    WRITE = "write"


class RequestSpec(BaseModel):
    """One logical HTTP request, relative to ``/1/indexes``.

    Immutable: the same value is re-sent on every failover attempt.
    """

    model_config = ConfigDict(frozen=True)

    method: Literal["GET", "POST", "PUT", "DELETE"] = Field(description="HTTP method")
    path: str = Field(default="", description="Path below /1/indexes, already URL-safe")
    body: bytes | None = Field(default=None, description="Encoded JSON body")
    extra_headers: tuple[tuple[str, str], ...] = Field(
        default=(), description="Caller headers, sent before the authentication headers"
    )
