"""The TaskService for the current build run."""

import contextlib
import contextvars
from collections.abc import Iterator

from .service import TaskService, TaskServiceImpl

__all__: list[str] = []

_current: contextvars.ContextVar[TaskService | None] = contextvars.ContextVar(
    "multibundle_task_service", default=None
)


def get_task_service() -> TaskService:
    """Return the TaskService of the current context, installing one if needed."""
    if (service := _current.get()) is None:
        service = TaskServiceImpl()
        _current.set(service)
    return service


@contextlib.contextmanager
def task_service_context(
    service: TaskService | None = None,
) -> Iterator[TaskService]:
    """Make `service` (or a fresh TaskServiceImpl) current within the block."""
    installed = service or TaskServiceImpl()
    token = _current.set(installed)
    try:
        yield installed
    finally:
        _current.reset(token)
