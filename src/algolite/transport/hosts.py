"""Host naming for the Algolia cluster.

The first attempt goes to the DSN replica for reads and to the main
endpoint for writes.  Failover attempts ignore the host class and walk the
fixed cluster members::

    read,  0  ->  {app}-dsn.algolia.net
    write, 0  ->  {app}.algolia.net
    any, 1..3 ->  {app}-{n}.algolianet.com
"""

from __future__ import annotations

from algolite.models.request import HostClass

FAILOVER_HOSTS = 3
"""Number of cluster members tried after the first host."""


def resolve_host(application_id: str, host_class: HostClass, attempt: int, provider: str = "algolia") -> str:
    """Return the host name for ``attempt`` (0-based) of a call.

    Raises:
        ValueError: If ``attempt`` is outside ``0..FAILOVER_HOSTS``.
    """
    if attempt == 0:
        if host_class is HostClass.READ:
            return f"{application_id}-dsn.{provider}.net"
        return f"{application_id}.{provider}.net"
    if 1 <= attempt <= FAILOVER_HOSTS:
        return f"{application_id}-{attempt}.{provider}net.com"
    raise ValueError(f"No host for attempt {attempt}")
