"""Batch and response shaping.

Objects handed in by callers may use ``str`` keys, ``bytes`` keys or enum
members as keys.  :func:`normalize_keys` converts them to plain strings once,
at the boundary, so the rest of the code looks up ``objectID`` in one place.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum
from typing import Any

from algolite.exceptions import MissingObjectIDError
from algolite.models.batch import BatchOperation, BatchRequest, TaskHandle
from algolite.models.response import ApiResponse, Success

OBJECT_ID = "objectID"


def canonical_key(key: Any) -> str:
    """Return the string form of a mapping key."""
    if isinstance(key, Enum):
        return str(key.value)
    if isinstance(key, bytes):
        return key.decode()
    return str(key)


def normalize_keys(obj: Mapping[Any, Any]) -> dict[str, Any]:
    """Copy ``obj`` with every top-level key converted to a string."""
    return {canonical_key(k): v for k, v in obj.items()}


def build_batch(objects: Iterable[Mapping[Any, Any]], action: str) -> BatchRequest:
    """Wrap ``objects`` into a batch request, preserving their order.

    ``objectID`` is set on an operation only when the object carries a
    non-null value under that key; otherwise the service assigns one.
    """
    requests = []
    for obj in objects:
        body = normalize_keys(obj)
        requests.append(BatchOperation(action=action, objectID=body.get(OBJECT_ID), body=body))
    return BatchRequest(requests=requests)


def with_object_ids(objects: Iterable[Mapping[Any, Any]], id_attribute: Any) -> list[dict[str, Any]]:
    """Copy each object's ``id_attribute`` value into its ``objectID``.

    Raises:
        MissingObjectIDError: If an object has no value for ``id_attribute``.
    """
    attribute = canonical_key(id_attribute)
    normalized = [normalize_keys(obj) for obj in objects]
    if attribute == OBJECT_ID:
        return normalized

    for obj in normalized:
        object_id = obj.get(attribute)
        if object_id is None:
            raise MissingObjectIDError(f"id attribute `{attribute}` doesn't exist")
        obj[OBJECT_ID] = object_id
    return normalized


def inject_index(response: ApiResponse, index: str) -> ApiResponse:
    """Set ``indexName`` on a successful response body; pass anything else through.

    Write responses shaped this way carry everything :func:`task_handle` needs.
    """
    if isinstance(response, Success) and isinstance(response.body, dict):
        return Success(body={**response.body, "indexName": index})
    return response


def task_handle(response: ApiResponse) -> TaskHandle | None:
    """Extract the task handle from a shaped write response, if it has one."""
    if not isinstance(response, Success) or not isinstance(response.body, dict):
        return None
    index = response.body.get("indexName")
    task_id = response.body.get("taskID")
    if index is None or task_id is None:
        return None
    return TaskHandle(index=index, task_id=task_id)
