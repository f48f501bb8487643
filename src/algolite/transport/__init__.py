"""Transport layer — host selection and request dispatch with failover."""

from algolite.transport.dispatcher import Dispatcher
from algolite.transport.hosts import resolve_host

__all__ = ["Dispatcher", "resolve_host"]
