"""Countdown to the end of a contest."""

import asyncio
from datetime import datetime
from typing import Callable, Optional


ENDED = "Ended"


def _now_for(end_time: datetime) -> datetime:
    """Wall-clock time comparable with end_time (naive or aware)."""
    if end_time.tzinfo is not None:
        return datetime.now(end_time.tzinfo)
    return datetime.now()


def format_time_remaining(
    end_time: Optional[datetime], now: Optional[datetime] = None
) -> str:
    """
    Human-readable time left until end_time.
    Uses the coarsest non-zero pair of units, "Ended" once it has passed
    and an empty string when there is no end time.
    """
    if end_time is None:
        return ""
    if now is None:
        now = _now_for(end_time)

    diff = (end_time - now).total_seconds()
    if diff <= 0:
        return ENDED

    days, rest = divmod(int(diff), 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)

    if days > 0:
        return f"{days}d {hours}h remaining"
    if hours > 0:
        return f"{hours}h {minutes}m remaining"
    if minutes > 0:
        return f"{minutes}m {seconds}s remaining"
    return f"{seconds}s remaining"


class CountdownClock:
    """Recomputes the remaining time once per second for a single end time."""

    def __init__(
        self,
        on_tick: Optional[Callable[[str], None]] = None,
        interval: float = 1.0,
        now: Optional[Callable[[datetime], datetime]] = None,
    ):
        self.on_tick = on_tick
        self.interval = interval
        self.now = now or _now_for
        self.end_time: Optional[datetime] = None
        self.text = ""
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self, end_time: Optional[datetime]) -> None:
        """Replace the running timer with one counting down to end_time."""
        self.stop()
        self.end_time = end_time
        if end_time is None:
            self._emit("")
            return

        self._emit(format_time_remaining(end_time, self.now(end_time)))
        if self.text != ENDED:
            self._task = asyncio.get_running_loop().create_task(self._run(end_time))

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None

    def clear(self) -> None:
        """Stop and forget the end time."""
        self.stop()
        self.end_time = None
        self.text = ""

    async def _run(self, end_time: datetime) -> None:
        while True:
            await asyncio.sleep(self.interval)
            self._emit(format_time_remaining(end_time, self.now(end_time)))
            if self.text == ENDED:
                return

    def _emit(self, text: str) -> None:
        self.text = text
        if self.on_tick is not None:
            self.on_tick(text)
