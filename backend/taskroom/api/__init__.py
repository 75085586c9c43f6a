"""API routers."""

from taskroom.api import schedules, tasks

__all__ = [
    "schedules",
    "tasks",
]
