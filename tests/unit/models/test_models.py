"""Tests for request, response and batch models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from algolite.models.batch import BatchOperation, TaskHandle
from algolite.models.request import HostClass, RequestSpec
from algolite.models.response import Exhausted, HttpError, InvalidObjectIDError, Success


class TestRequestSpec:
    def test_is_immutable(self) -> None:
        spec = RequestSpec(method="GET", path="products")
        with pytest.raises(ValidationError):
            spec.path = "other"  # type: ignore[misc]

    def test_rejects_unknown_method(self) -> None:
        with pytest.raises(ValidationError):
            RequestSpec(method="PATCH", path="products")  # type: ignore[arg-type]

    def test_host_class_values(self) -> None:
        assert HostClass("read") is HostClass.READ
        assert HostClass("write") is HostClass.WRITE


class TestResults:
    def test_ok_flags(self) -> None:
        assert Success(body={}).ok
        assert not HttpError(status=500).ok
        assert not Exhausted().ok
        assert not InvalidObjectIDError().ok

    def test_pattern_matching(self) -> None:
        def describe(result: object) -> str:
            match result:
                case Success(body=body):
                    return f"ok {body}"
                case HttpError(status=status):
                    return f"http {status}"
                case Exhausted(message=message):
                    return message
                case _:
                    return "other"

        assert describe(Success(body=1)) == "ok 1"
        assert describe(HttpError(status=404)) == "http 404"
        assert describe(Exhausted()) == "Unable to connect to Algolia"
        assert describe(InvalidObjectIDError()) == "other"

    def test_kind_discriminator(self) -> None:
        assert HttpError(status=400, body="x").model_dump() == {"kind": "http_error", "status": 400, "body": "x"}


class TestBatchModels:
    def test_numeric_object_id_stringified(self) -> None:
        assert BatchOperation(action="deleteObject", objectID=12).object_id == "12"

    def test_payload_omits_missing_object_id(self) -> None:
        assert BatchOperation(action="addObject", body={"a": 1}).to_payload() == {"action": "addObject", "body": {"a": 1}}

    def test_task_handle_stringifies_id(self) -> None:
        assert TaskHandle(index="products", task_id=5).task_id == "5"
