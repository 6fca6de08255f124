"""Dev and test loops.

Both loops clean, build the global artifacts once and then run a long lived
collaborator (the dev server or karma) next to file watchers that rebuild the
global artifacts on every source change. The loop ends when any background
task ends; the remaining ones are cancelled.
"""

import asyncio
import logging
from pathlib import Path

from .devserver import DevServer
from .orchestrator import Orchestrator
from .task import TaskService, get_task_service
from .testrunner import KarmaRunner
from .watcher import watch

__all__ = [
    "run_dev",
    "run_tests",
]

_LOGGER = logging.getLogger(__name__)

SOURCE_PATTERNS = ("*.js",)


async def _prepare(orchestrator: Orchestrator) -> None:
    orchestrator.prepare()
    await orchestrator.clean_dist()
    await orchestrator.bundle_global()


async def _run(service: TaskService) -> None:
    _LOGGER.info(
        "Running %d background tasks, interrupt to stop",
        service.get_num_background_tasks(),
    )
    try:
        await service.wait_for_background_tasks()
    finally:
        await service.cancel_background_tasks()


async def run_dev(
    orchestrator: Orchestrator,
    server: DevServer,
    *,
    task_service: TaskService | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Serve the library and rebuild the global artifacts on source changes."""
    await _prepare(orchestrator)
    service = task_service or get_task_service()
    paths = orchestrator.paths

    async def rebuild(changed: set[Path]) -> None:
        await orchestrator.bundle_global()
        await server.reload()

    async def reload(changed: set[Path]) -> None:
        await server.reload()

    service.create_background_task(server.serve(), name="serve")
    service.create_background_task(
        watch(
            [paths.source_dir],
            rebuild,
            patterns=SOURCE_PATTERNS,
            stop_event=stop_event,
        ),
        name="watch:src",
    )
    service.create_background_task(
        watch([paths.examples, paths.extras], reload, stop_event=stop_event),
        name="watch:examples",
    )
    await _run(service)


async def run_tests(
    orchestrator: Orchestrator,
    runner: KarmaRunner,
    *,
    task_service: TaskService | None = None,
    stop_event: asyncio.Event | None = None,
) -> None:
    """Run karma while rebuilding the global artifacts on source changes."""
    await _prepare(orchestrator)
    service = task_service or get_task_service()

    async def rebuild(changed: set[Path]) -> None:
        await orchestrator.bundle_global()

    service.create_background_task(runner.run(), name="karma")
    service.create_background_task(
        watch(
            [orchestrator.paths.source_dir],
            rebuild,
            patterns=SOURCE_PATTERNS,
            stop_event=stop_event,
        ),
        name="watch:test",
    )
    await _run(service)
