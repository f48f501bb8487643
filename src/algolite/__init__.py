"""algolite — Algolia search API client.

Requests are dispatched across the Algolia cluster with failover, and write
operations can be piped into task polling::

    from algolite import AlgoliaClient

    client = AlgoliaClient()
    client.wait(client.add_objects("products", [{"objectID": "1", "name": "Lamp"}]))
"""

__version__ = "0.1.0"

from algolite.client import AlgoliaClient, AsyncAlgoliaClient

__all__ = ["AlgoliaClient", "AsyncAlgoliaClient", "__version__"]
