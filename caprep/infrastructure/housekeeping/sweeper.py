from __future__ import annotations

import asyncio
import logging
from contextlib import suppress
from typing import Callable

logger = logging.getLogger(__name__)


class PeriodicSweeper:
    """
    Runs every registered ``sweep()`` on a fixed interval, independent of
    request traffic. One failing job is logged and does not stop the others.
    """

    def __init__(self, *, interval: float = 60.0) -> None:
        self.interval = interval
        self._jobs: list[tuple[str, Callable[[], int]]] = []
        self._task: asyncio.Task | None = None

    def register(self, name: str, job: Callable[[], int]) -> None:
        self._jobs.append((name, job))

    def run_once(self) -> dict[str, int]:
        removed: dict[str, int] = {}
        for name, job in self._jobs:
            try:
                removed[name] = job()
            except Exception:  # noqa: BLE001
                logger.exception("sweep failed", extra={"job": name})
                continue
            if removed[name]:
                logger.debug("swept", extra={"job": name, "removed": removed[name]})
        return removed

    async def run_forever(self) -> None:
        logger.info(
            "sweeper started", extra={"interval": self.interval, "jobs": len(self._jobs)}
        )
        while True:
            await asyncio.sleep(self.interval)
            self.run_once()

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self.run_forever())

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("sweeper stopped")
