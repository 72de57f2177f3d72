"""
Task Poller

Advances generation tasks through their status state machine by polling the
external job API on a fixed interval. One recurring asyncio task per session.
"""

import asyncio
import logging
from traceback import format_exc
from typing import Any, Dict, Optional

from gallery.models import GenerationTask, TaskStatus, parse_external_status
from gallery.sync.engine import SyncEngine

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

DEFAULT_POLL_INTERVAL = 10.0


class TaskPoller:
    """Polls active generation tasks and writes their transitions back."""

    def __init__(self, engine: SyncEngine, interval: float = DEFAULT_POLL_INTERVAL):
        self.engine = engine
        self.interval = interval
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the recurring poll; calling it again while running does nothing."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="generation-task-poller")
        logger.info(f"Task poller started, polling every {self.interval}s")

    async def stop(self) -> None:
        """Cancel the recurring poll and wait for it to finish."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("Task poller stopped")

    async def _run(self) -> None:
        while True:
            try:
                await self.tick()
            except Exception as e:
                # A broken tick must not end the loop
                logger.error(f"Poll tick failed: {str(e)}\n{format_exc()}")
            await asyncio.sleep(self.interval)

    @staticmethod
    def _pollable(task: GenerationTask) -> bool:
        return TaskStatus(task.status).is_active and bool(task.runway_task_id)

    async def tick(self) -> int:
        """
        Poll every pending or running task once.

        Returns:
            Number of tasks whose status changed
        """
        tasks = [task for task in self.engine.store.tasks if self._pollable(task)]
        if not tasks:
            return 0

        results = await asyncio.gather(*(self._poll(task) for task in tasks))
        changed = sum(1 for result in results if result)
        if changed:
            await self.engine.reload()
        return changed

    async def _poll(self, task: GenerationTask) -> bool:
        current = TaskStatus(task.status)
        try:
            report = await self.engine.gateway.get_job(task.runway_task_id)
        except Exception as e:
            logger.error(f"Polling task {task.id} failed: {str(e)}")
            return await self.engine.update_task(
                task.id, status=TaskStatus.FAILED, error_message=str(e)
            )

        new_status = parse_external_status(report.status)
        if new_status is None:
            logger.warning(f"Task {task.id} reported unknown status {report.status!r}")
            return False
        if new_status == current:
            return False
        if not current.can_transition_to(new_status):
            logger.warning(
                f"Ignoring transition {current.value} -> {new_status.value} for task {task.id}"
            )
            return False

        fields: Dict[str, Any] = {"status": new_status}
        if report.output_url:
            fields["output_video_url"] = report.output_url
        if report.error:
            fields["error_message"] = report.error

        logger.info(f"Task {task.id}: {current.value} -> {new_status.value}")
        return await self.engine.update_task(task.id, **fields)
