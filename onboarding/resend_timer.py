"""
Resend cooldown — a single cancellable countdown per OTP challenge.

The host either calls tick() once per second itself, or constructs the
timer with an interval so it schedules its own asyncio task.
"""

import asyncio
import logging

from onboarding.config import settings

logger = logging.getLogger(__name__)


class ResendTimer:
    def __init__(self, duration: int | None = None, interval: float | None = None):
        self.duration = duration if duration is not None else settings.OTP_RESEND_COOLDOWN_SEC
        self.remaining = 0
        self.stopped = True
        self._interval = interval
        self._task: asyncio.Task | None = None

    @property
    def active(self) -> bool:
        return self.remaining > 0

    def start(self, duration: int | None = None) -> None:
        """(Re)start the countdown; any running one is cancelled first."""
        self.cancel()
        self.remaining = duration if duration is not None else self.duration
        self.stopped = False
        if self._interval is not None and self.remaining > 0:
            self._task = asyncio.get_running_loop().create_task(self._run())

    def tick(self) -> int:
        if not self.stopped and self.remaining > 0:
            self.remaining -= 1
            if self.remaining == 0:
                logger.debug("Resend cooldown finished")
        return self.remaining

    def cancel(self) -> None:
        """Stop counting. `remaining` keeps its last value."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.stopped = True

    async def _run(self) -> None:
        while not self.stopped and self.remaining > 0:
            await asyncio.sleep(self._interval)
            self.tick()
