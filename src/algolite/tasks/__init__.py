"""Task completion polling."""

from algolite.tasks.poller import TaskPoller

__all__ = ["TaskPoller"]
