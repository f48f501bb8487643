"""Batch envelope and task handle models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class BatchOperation(BaseModel):
    """One mutation inside a batch request."""

    model_config = ConfigDict(populate_by_name=True)

    action: str = Field(description="Batch action, e.g. addObject, updateObject, deleteObject")
    object_id: str | None = Field(default=None, alias="objectID", description="Target object id")
    body: dict[str, Any] = Field(default_factory=dict, description="Object payload")

    @field_validator("object_id", mode="before")
    @classmethod
    def _stringify_object_id(cls, v: Any) -> str | None:
        """Numeric ids are sent as strings."""
        return None if v is None else str(v)

    def to_payload(self) -> dict[str, Any]:
        """Wire form; ``objectID`` is omitted when the object carried none."""
        payload: dict[str, Any] = {"action": self.action}
        if self.object_id is not None:
            payload["objectID"] = self.object_id
        payload["body"] = self.body
        return payload


class BatchRequest(BaseModel):
    """Ordered list of batch operations; the service applies them in order."""

    requests: list[BatchOperation] = Field(default_factory=list)

    def to_payload(self) -> dict[str, Any]:
        return {"requests": [op.to_payload() for op in self.requests]}


class TaskHandle(BaseModel):
    """Index and task id extracted from a write response."""

    model_config = ConfigDict(frozen=True)

    index: str
    task_id: str

    @field_validator("task_id", mode="before")
    @classmethod
    def _stringify_task_id(cls, v: Any) -> str:
        return str(v)
