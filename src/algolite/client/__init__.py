"""algolite client — async and sync entry points.

Quick start::

    from algolite.client import AlgoliaClient

    client = AlgoliaClient()

    result = client.search("products", "lamp", hitsPerPage=5)
    client.wait(client.save_object("products", {"objectID": "1", "name": "Lamp"}))
"""

from algolite.client.client import AlgoliaClient, AsyncAlgoliaClient

__all__ = ["AlgoliaClient", "AsyncAlgoliaClient"]
