"""Previous/next navigation over the ordered problem list."""

import asyncio
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from ..client.errors import CodeCombatError
from .liveness import StatusSource, ensure_live


console = Console()


class NavigationSequencer:
    """Locates the current problem in the flat problem list."""

    def __init__(self, client, liveness: StatusSource):
        self.client = client
        self.liveness = liveness
        self.problem_ids: List[int] = []
        self.index = -1

    async def load(self, problem_id: int) -> None:
        """Fetch the problem list and find problem_id in it."""
        try:
            problems = await asyncio.to_thread(self.client.get_problems)
        except CodeCombatError as e:
            console.print(f"[yellow]Error fetching problems: {escape(str(e))}[/yellow]")
            problems = []
        self.locate([p.id for p in problems], problem_id)

    def locate(self, problem_ids: List[int], problem_id: int) -> int:
        self.problem_ids = list(problem_ids)
        try:
            self.index = self.problem_ids.index(problem_id)
        except ValueError:
            self.index = -1
        return self.index

    @property
    def can_go_prev(self) -> bool:
        return self.index > 0

    @property
    def can_go_next(self) -> bool:
        return 0 <= self.index < len(self.problem_ids) - 1

    def previous(self) -> Optional[int]:
        """Id of the preceding problem, or None at the start of the list."""
        ensure_live(self.liveness(), "Previous")
        if not self.can_go_prev:
            return None
        return self.problem_ids[self.index - 1]

    def next(self) -> Optional[int]:
        """Id of the following problem, or None at the end of the list."""
        ensure_live(self.liveness(), "Next")
        if not self.can_go_next:
            return None
        return self.problem_ids[self.index + 1]
