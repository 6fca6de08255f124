"""Task tracking for multibundle.

Build steps that run concurrently (parallel target families, the dev server,
file watchers and the test runner) are scheduled through a `TaskService` so
the caller can wait for them or tear them down together.
"""

from .context import task_service_context, get_task_service
from .service import TaskService

__all__ = ["get_task_service", "task_service_context", "TaskService"]
