"""Async and sync clients for the Algolia indexes API.

Every operation turns its arguments into a :class:`RequestSpec`, hands it to
the :class:`Dispatcher` with the right host class and, for index-scoped
calls, tags the decoded body with ``indexName`` so the result can be passed
straight to :meth:`AsyncAlgoliaClient.wait`.

Usage::

    # Async
    async with AsyncAlgoliaClient() as client:
        result = await client.add_objects("products", objects)
        await client.wait(result)

    # Sync (wraps async client internally)
    client = AlgoliaClient()
    client.wait(client.add_objects("products", objects))
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Coroutine, Iterable, Mapping, Sequence
from typing import Any, TypeVar
from urllib.parse import quote, urlencode

from algolite.config.credentials import CredentialsProvider, SettingsCredentials
from algolite.config.settings import Settings
from algolite.exceptions import MissingAttributeError, MissingObjectIDError
from algolite.models.request import HostClass, RequestSpec
from algolite.models.response import ApiResponse, InvalidObjectIDError
from algolite.shaping import OBJECT_ID, build_batch, canonical_key, inject_index, normalize_keys, with_object_ids
from algolite.tasks.poller import Sleep, TaskPoller
from algolite.transport.dispatcher import Dispatcher

_T = TypeVar("_T")

logger = logging.getLogger(__name__)

Headers = Sequence[tuple[str, str]]

MULTI_STRATEGIES = {
    "none": "none",
    "stop_if_enough_matches": "stopIfEnoughMatches",
}


def _segment(value: Any) -> str:
    """URL-quote a single path segment (index name, object id, facet)."""
    return quote(str(value), safe="")


def _encode(payload: Any) -> bytes:
    return json.dumps(payload).encode()


def _default_credentials(settings: Settings | None) -> SettingsCredentials:
    """Credentials pinned to ``settings``, or read from the environment when None."""
    if settings is None:
        return SettingsCredentials()
    return SettingsCredentials(lambda: settings)


# ═══════════════════════════════════════════════════════════════════════════════
# Async client
# ═══════════════════════════════════════════════════════════════════════════════


class AsyncAlgoliaClient:
    """Async client for the Algolia indexes API.

    Args:
        settings: Settings used for transport and polling defaults. Loaded from
                  the environment when omitted.
        credentials: Credential provider. When omitted, credentials come from
                     ``settings`` if given (fixed for the client's lifetime),
                     otherwise from the environment, re-read after ``refresh()``.
        sleep: Awaitable sleep used between task polls.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        async with AsyncAlgoliaClient() as client:
            result = await client.search("products", "lamp")
            if result.ok:
                print(result.body["hits"])
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        credentials: CredentialsProvider | None = None,
        sleep: Sleep = asyncio.sleep,
        **httpx_kwargs: Any,
    ) -> None:
        if credentials is None:
            credentials = _default_credentials(settings)
        self.settings = settings or Settings()
        self.dispatcher = Dispatcher(credentials, self.settings.transport, **httpx_kwargs)
        self.poller = TaskPoller(self.dispatcher, self.settings.tasks.poll_interval_ms, sleep=sleep)

    async def __aenter__(self) -> AsyncAlgoliaClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self.dispatcher.close()

    async def _send(
        self,
        host_class: HostClass,
        method: str,
        path: str,
        body: Any = None,
        headers: Headers | None = None,
    ) -> ApiResponse:
        spec = RequestSpec(
            method=method,
            path=path,
            body=None if body is None else _encode(body),
            extra_headers=tuple(headers or ()),
        )
        return await self.dispatcher.dispatch(host_class, spec)

    async def _write(
        self,
        index: str,
        method: str,
        path: str,
        body: Any = None,
        headers: Headers | None = None,
    ) -> ApiResponse:
        result = await self._send(HostClass.WRITE, method, path, body, headers)
        return inject_index(result, index)

    # ── Search ──

    async def multi(
        self,
        queries: Iterable[Mapping[Any, Any]],
        *,
        strategy: str | None = "none",
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Run several queries, possibly on several indexes, in one call.

        Args:
            queries: Query parameter mappings, each with an ``index_name`` key.
            strategy: ``"none"`` or ``"stop_if_enough_matches"``; anything else
                      leaves the strategy to the service.

        Raises:
            MissingAttributeError: If a query has no ``index_name``.
        """
        requests = []
        for query in queries:
            params = normalize_keys(query)
            index_name = params.pop("index_name", None)
            if not index_name:
                raise MissingAttributeError("Missing index_name for one of the multiple queries")
            requests.append({"indexName": index_name, "params": urlencode(params)})

        path = "*/queries"
        if strategy in MULTI_STRATEGIES:
            path += "?strategy=" + MULTI_STRATEGIES[strategy]
        return await self._send(HostClass.READ, "POST", path, {"requests": requests}, headers)

    async def search(self, index: str, query: str, *, headers: Headers | None = None, **params: Any) -> ApiResponse:
        """Search a single index.

        Extra keyword arguments become query parameters; list values are
        joined with commas.
        """
        params["query"] = query
        encoded = {k: ",".join(map(str, v)) if isinstance(v, list | tuple) else v for k, v in params.items()}
        path = f"{_segment(index)}?{urlencode(encoded)}"
        return await self._send(HostClass.READ, "GET", path, headers=headers)

    async def search_for_facet_values(
        self,
        index: str,
        facet: str,
        text: str,
        query: Mapping[str, Any] | None = None,
        *,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Search the values of a searchable facet attribute.

        Results are sorted by decreasing count, 10 by default.
        """
        body = {**(query or {}), "facetQuery": text}
        path = f"{_segment(index)}/facets/{_segment(facet)}/query"
        return await self._send(HostClass.READ, "POST", path, body, headers)

    # ── Objects ──

    async def get_object(self, index: str, object_id: str, *, headers: Headers | None = None) -> ApiResponse:
        """Get an object by its objectID."""
        result = await self._send(HostClass.READ, "GET", f"{_segment(index)}/{_segment(object_id)}", headers=headers)
        return inject_index(result, index)

    async def add_object(
        self,
        index: str,
        obj: Mapping[Any, Any],
        *,
        id_attribute: Any = None,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Add an object; the service assigns its objectID.

        With ``id_attribute`` the object is saved under that attribute's value.
        """
        if id_attribute is not None:
            return await self.save_object(index, obj, id_attribute=id_attribute, headers=headers)
        return await self._write(index, "POST", _segment(index), normalize_keys(obj), headers)

    async def add_objects(
        self,
        index: str,
        objects: Iterable[Mapping[Any, Any]],
        *,
        id_attribute: Any = None,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Add several objects in one batch."""
        if id_attribute is not None:
            return await self.save_objects(index, objects, id_attribute=id_attribute, headers=headers)
        return await self._batch(index, build_batch(objects, "addObject").to_payload(), headers)

    async def save_object(
        self,
        index: str,
        obj: Mapping[Any, Any],
        object_id: Any = None,
        *,
        id_attribute: Any = None,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Create or replace an object.

        The objectID is ``object_id`` if given, else the value under
        ``id_attribute``, else the object's own ``objectID``.

        Raises:
            MissingObjectIDError: If no objectID can be found.
        """
        body = normalize_keys(obj)
        if object_id is None:
            attribute = OBJECT_ID if id_attribute is None else canonical_key(id_attribute)
            object_id = body.get(attribute)
            if object_id is None:
                raise MissingObjectIDError(f"Your object does not have an attribute `{attribute}` to save it under")
        return await self._write(index, "PUT", f"{_segment(index)}/{_segment(object_id)}", body, headers)

    async def save_objects(
        self,
        index: str,
        objects: Iterable[Mapping[Any, Any]],
        *,
        id_attribute: Any = OBJECT_ID,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Create or replace several objects in one batch."""
        shaped = with_object_ids(objects, id_attribute)
        return await self._batch(index, build_batch(shaped, "updateObject").to_payload(), headers)

    async def partial_update_object(
        self,
        index: str,
        obj: Mapping[Any, Any],
        object_id: Any,
        *,
        upsert: bool = True,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Update some attributes of an object.

        With ``upsert=False`` a missing object is not created.
        """
        path = f"{_segment(index)}/{_segment(object_id)}/partial"
        if not upsert:
            path += "?createIfNotExists=false"
        return await self._write(index, "POST", path, normalize_keys(obj), headers)

    async def partial_update_objects(
        self,
        index: str,
        objects: Iterable[Mapping[Any, Any]],
        *,
        upsert: bool = True,
        id_attribute: Any = OBJECT_ID,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Partially update several objects in one batch."""
        action = "partialUpdateObject" if upsert else "partialUpdateObjectNoCreate"
        shaped = with_object_ids(objects, id_attribute)
        return await self._batch(index, build_batch(shaped, action).to_payload(), headers)

    async def delete_object(self, index: str, object_id: Any, *, headers: Headers | None = None) -> ApiResponse:
        """Delete an object. A missing or empty objectID is rejected without a request."""
        if object_id is None or object_id == "":
            return InvalidObjectIDError()
        return await self._write(index, "DELETE", f"{_segment(index)}/{_segment(object_id)}", headers=headers)

    async def delete_objects(
        self,
        index: str,
        object_ids: Iterable[Any],
        *,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Delete several objects in one batch."""
        batch = build_batch(({OBJECT_ID: object_id} for object_id in object_ids), "deleteObject")
        return await self._batch(index, batch.to_payload(), headers)

    async def _batch(self, index: str, payload: dict[str, Any], headers: Headers | None) -> ApiResponse:
        logger.debug("Sending batch of %d operation(s) to %s", len(payload["requests"]), index)
        return await self._write(index, "POST", f"{_segment(index)}/batch", payload, headers)

    # ── Indexes ──

    async def list_indexes(self, *, headers: Headers | None = None) -> ApiResponse:
        """List all indexes of the application."""
        return await self._send(HostClass.READ, "GET", "", headers=headers)

    async def delete_index(self, index: str, *, headers: Headers | None = None) -> ApiResponse:
        """Delete an index."""
        return await self._write(index, "DELETE", _segment(index), headers=headers)

    async def clear_index(self, index: str, *, headers: Headers | None = None) -> ApiResponse:
        """Remove every object of an index, keeping its settings."""
        return await self._write(index, "POST", f"{_segment(index)}/clear", headers=headers)

    async def set_settings(
        self,
        index: str,
        settings: Mapping[str, Any],
        *,
        headers: Headers | None = None,
    ) -> ApiResponse:
        """Set index settings."""
        return await self._write(index, "PUT", f"{_segment(index)}/settings", dict(settings), headers)

    async def get_settings(self, index: str, *, headers: Headers | None = None) -> ApiResponse:
        """Get index settings."""
        result = await self._send(HostClass.READ, "GET", f"{_segment(index)}/settings", headers=headers)
        return inject_index(result, index)

    async def move_index(self, src_index: str, dst_index: str, *, headers: Headers | None = None) -> ApiResponse:
        """Rename ``src_index`` to ``dst_index``, replacing it if it exists."""
        return await self._operation(src_index, "move", dst_index, headers)

    async def copy_index(self, src_index: str, dst_index: str, *, headers: Headers | None = None) -> ApiResponse:
        """Copy ``src_index`` to ``dst_index``."""
        return await self._operation(src_index, "copy", dst_index, headers)

    async def _operation(self, src_index: str, operation: str, dst_index: str, headers: Headers | None) -> ApiResponse:
        body = {"operation": operation, "destination": dst_index}
        return await self._write(src_index, "POST", f"{_segment(src_index)}/operation", body, headers)

    # ── Tasks ──

    async def wait_task(
        self,
        index: str,
        task_id: str | int,
        poll_interval_ms: int | None = None,
    ) -> ApiResponse | None:
        """Wait for a task to be published. Returns None when it is."""
        return await self.poller.wait_for_task(index, task_id, poll_interval_ms)

    async def wait(self, response: ApiResponse, poll_interval_ms: int | None = None) -> ApiResponse:
        """Wait on the task of a write result, then return that result."""
        return await self.poller.wait(response, poll_interval_ms)


# ═══════════════════════════════════════════════════════════════════════════════
# Sync client (wraps AsyncAlgoliaClient)
# ═══════════════════════════════════════════════════════════════════════════════


class AlgoliaClient:
    """Synchronous client for the Algolia indexes API.

    Wraps :class:`AsyncAlgoliaClient` using ``asyncio.run``; every call opens
    and closes its own async client, so instances can be shared between threads.

    Args:
        settings: Settings; loaded from the environment when omitted.
        credentials: Credential provider. When omitted, credentials come from
                     ``settings`` if given (fixed for the client's lifetime),
                     otherwise from the environment, re-read after ``refresh()``.
        **httpx_kwargs: Additional keyword arguments passed to ``httpx.AsyncClient``.

    Example::

        client = AlgoliaClient()
        result = client.wait(client.add_object("products", {"name": "Lamp"}))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        credentials: CredentialsProvider | None = None,
        **httpx_kwargs: Any,
    ) -> None:
        if credentials is None:
            credentials = _default_credentials(settings)
        self._settings = settings or Settings()
        self._credentials = credentials
        self._httpx_kwargs = httpx_kwargs

    def _run(self, coro: Coroutine[Any, Any, _T]) -> _T:
        """Run an async coroutine synchronously."""
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop and loop.is_running():
            # Already inside an event loop (e.g. Jupyter), run in a worker thread
            import concurrent.futures

            with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
                return pool.submit(asyncio.run, coro).result()
        return asyncio.run(coro)

    def _make_client(self) -> AsyncAlgoliaClient:
        return AsyncAlgoliaClient(self._settings, credentials=self._credentials, **self._httpx_kwargs)

    def _call(self, name: str, *args: Any, **kwargs: Any) -> Any:
        async def _invoke() -> Any:
            async with self._make_client() as c:
                return await getattr(c, name)(*args, **kwargs)

        return self._run(_invoke())

    def multi(self, queries: Iterable[Mapping[Any, Any]], **kwargs: Any) -> ApiResponse:
        """Run several queries in one call."""
        return self._call("multi", list(queries), **kwargs)

    def search(self, index: str, query: str, **kwargs: Any) -> ApiResponse:
        """Search a single index."""
        return self._call("search", index, query, **kwargs)

    def search_for_facet_values(
        self,
        index: str,
        facet: str,
        text: str,
        query: Mapping[str, Any] | None = None,
        **kwargs: Any,
    ) -> ApiResponse:
        """Search the values of a facet attribute."""
        return self._call("search_for_facet_values", index, facet, text, query, **kwargs)

    def get_object(self, index: str, object_id: str, **kwargs: Any) -> ApiResponse:
        return self._call("get_object", index, object_id, **kwargs)

    def add_object(self, index: str, obj: Mapping[Any, Any], **kwargs: Any) -> ApiResponse:
        return self._call("add_object", index, obj, **kwargs)

    def add_objects(self, index: str, objects: Iterable[Mapping[Any, Any]], **kwargs: Any) -> ApiResponse:
        return self._call("add_objects", index, list(objects), **kwargs)

    def save_object(self, index: str, obj: Mapping[Any, Any], object_id: Any = None, **kwargs: Any) -> ApiResponse:
        return self._call("save_object", index, obj, object_id, **kwargs)

    def save_objects(self, index: str, objects: Iterable[Mapping[Any, Any]], **kwargs: Any) -> ApiResponse:
        return self._call("save_objects", index, list(objects), **kwargs)

    def partial_update_object(self, index: str, obj: Mapping[Any, Any], object_id: Any, **kwargs: Any) -> ApiResponse:
        return self._call("partial_update_object", index, obj, object_id, **kwargs)

    def partial_update_objects(self, index: str, objects: Iterable[Mapping[Any, Any]], **kwargs: Any) -> ApiResponse:
        return self._call("partial_update_objects", index, list(objects), **kwargs)

    def delete_object(self, index: str, object_id: Any, **kwargs: Any) -> ApiResponse:
        return self._call("delete_object", index, object_id, **kwargs)

    def delete_objects(self, index: str, object_ids: Iterable[Any], **kwargs: Any) -> ApiResponse:
        return self._call("delete_objects", index, list(object_ids), **kwargs)

    def list_indexes(self, **kwargs: Any) -> ApiResponse:
        return self._call("list_indexes", **kwargs)

    def delete_index(self, index: str, **kwargs: Any) -> ApiResponse:
        return self._call("delete_index", index, **kwargs)

    def clear_index(self, index: str, **kwargs: Any) -> ApiResponse:
        return self._call("clear_index", index, **kwargs)

    def set_settings(self, index: str, settings: Mapping[str, Any], **kwargs: Any) -> ApiResponse:
        return self._call("set_settings", index, settings, **kwargs)

    def get_settings(self, index: str, **kwargs: Any) -> ApiResponse:
        return self._call("get_settings", index, **kwargs)

    def move_index(self, src_index: str, dst_index: str, **kwargs: Any) -> ApiResponse:
        return self._call("move_index", src_index, dst_index, **kwargs)

    def copy_index(self, src_index: str, dst_index: str, **kwargs: Any) -> ApiResponse:
        return self._call("copy_index", src_index, dst_index, **kwargs)

    def wait_task(self, index: str, task_id: str | int, poll_interval_ms: int | None = None) -> ApiResponse | None:
        """Block until a task is published. Returns None when it is."""
        return self._call("wait_task", index, task_id, poll_interval_ms)

    def wait(self, response: ApiResponse, poll_interval_ms: int | None = None) -> ApiResponse:
        """Block on the task of a write result, then return that result."""
        return self._call("wait", response, poll_interval_ms)
