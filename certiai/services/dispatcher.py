# certiai/services/dispatcher.py
"""
Eigenaar van de achtergrondtaken die verificaties afhandelen.

Elke taak hoort bij precies één verification-id. De dispatcher houdt ze bij
zodat ze te volgen, te annuleren en bij shutdown netjes op te ruimen zijn.
"""
from __future__ import annotations

import asyncio
from typing import Coroutine, Optional

from certiai.core.errors import TaskAlreadyScheduled
from certiai.core.logging_config import logger


class VerificationDispatcher:
    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task] = {}

    def __contains__(self, verification_id: str) -> bool:
        return verification_id in self._tasks

    def __len__(self) -> int:
        return len(self._tasks)

    def active_ids(self) -> list[str]:
        return list(self._tasks)

    def get(self, verification_id: str) -> Optional[asyncio.Task]:
        return self._tasks.get(verification_id)

    def schedule(self, verification_id: str, coro: Coroutine) -> asyncio.Task:
        """Start `coro` als taak voor `verification_id`. Max één live taak per id."""
        if verification_id in self._tasks:
            coro.close()
            raise TaskAlreadyScheduled(f"Verification {verification_id} is already being processed")

        task = asyncio.get_running_loop().create_task(
            coro, name=f"verification:{verification_id}"
        )
        self._tasks[verification_id] = task
        task.add_done_callback(lambda t: self._on_done(verification_id, t))
        logger.debug("verification_task_scheduled", verification_id=verification_id)
        return task

    def _on_done(self, verification_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(verification_id) is task:
            del self._tasks[verification_id]

        if task.cancelled():
            logger.info("verification_task_cancelled", verification_id=verification_id)
            return

        exc = task.exception()
        if exc is not None:
            logger.error(
                "verification_task_crashed",
                verification_id=verification_id,
                error=repr(exc),
            )

    def cancel(self, verification_id: str) -> bool:
        task = self._tasks.get(verification_id)
        if task is None or task.done():
            return False
        return task.cancel()

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wacht tot alle lopende taken klaar zijn (ook taken die intussen bijkomen)."""
        while True:
            pending = [t for t in self._tasks.values() if not t.done()]
            if not pending:
                break
            _, not_done = await asyncio.wait(pending, timeout=timeout)
            if not_done:
                raise asyncio.TimeoutError(f"{len(not_done)} verification tasks still running")
        # done-callbacks draaien via call_soon
        await asyncio.sleep(0)

    async def shutdown(self) -> None:
        tasks = list(self._tasks.values())
        for t in tasks:
            t.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("verification_dispatcher_stopped", cancelled=len(tasks))
