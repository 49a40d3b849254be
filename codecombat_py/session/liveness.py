"""Contest liveness polling and the action clamp."""

import asyncio
from typing import Callable, Optional

from rich.console import Console
from rich.markup import escape

from ..client.errors import ClampRefusal, CodeCombatError, NotFound
from ..client.models import ContestStatus
from ..config.global_config import DEFAULT_POLL_INTERVAL


console = Console()

StatusSource = Callable[[], Optional[ContestStatus]]


def ensure_live(status: Optional[ContestStatus], action: str = "") -> None:
    """
    Refuse an action once the contest is known to be inactive or deleted.
    An unknown status (no sample yet) lets the action through.
    """
    if status is not None and not status.allows_actions:
        raise ClampRefusal(status, action)


class LivenessMonitor:
    """
    Polls the status of the contest owning a problem.
    Starts Unknown (status is None) and becomes Known after the first
    answer. Polling goes on forever while the contest exists and stops
    for good once it is reported deleted.
    """

    def __init__(
        self,
        client,
        problem_id: int,
        on_status: Optional[Callable[[ContestStatus], None]] = None,
        interval: float = DEFAULT_POLL_INTERVAL,
    ):
        self.client = client
        self.problem_id = problem_id
        self.on_status = on_status
        self.interval = interval
        self.status: Optional[ContestStatus] = None
        self._task: Optional[asyncio.Task] = None
        self._first_sample = asyncio.Event()
        self._stopped = False

    @property
    def known(self) -> bool:
        return self.status is not None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running or self._stopped:
            return
        self._task = asyncio.get_running_loop().create_task(self._poll_forever())

    def stop(self) -> None:
        self._stopped = True
        task, self._task = self._task, None
        if task is not None and task is not asyncio.current_task():
            task.cancel()
        self._first_sample.set()

    async def wait_first_sample(self) -> None:
        await self._first_sample.wait()

    async def check(self) -> Optional[ContestStatus]:
        """Take one sample. Returns None if the fetch failed transiently."""
        try:
            try:
                status = await asyncio.to_thread(
                    self.client.get_contest_status, self.problem_id
                )
            except NotFound:
                status = ContestStatus.deleted()
            except CodeCombatError as e:
                console.print(
                    f"[yellow]Error checking contest status: {escape(str(e))}[/yellow]"
                )
                return None

            if self._stopped:
                return None
            self.status = status
            if self.on_status is not None:
                self.on_status(status)
            return status
        finally:
            # waiters must never hang, whatever the sample did
            self._first_sample.set()

    async def _poll_forever(self) -> None:
        while not self._stopped:
            status = await self.check()
            if status is not None and not status.exists:
                self._stopped = True
                return
            await asyncio.sleep(self.interval)
