"""Fetch problem data and prior submissions off the event loop."""

import asyncio
from typing import Optional

from rich.console import Console
from rich.markup import escape

from ..client.errors import CodeCombatError, NotFound
from ..client.models import Problem, SnippetSet, Submission


console = Console()


class ProblemResolver:
    """Resolves problem metadata and per-language starter code."""

    def __init__(self, client):
        self.client = client

    async def resolve_problem(self, problem_id: int) -> Problem:
        """Fetch the problem. NotFound means the problem is gone."""
        return await asyncio.to_thread(self.client.get_problem, problem_id)

    async def resolve_snippets(self, problem_id: int) -> SnippetSet:
        """Fetch starter code; any failure gives an empty snippet set."""
        try:
            return await asyncio.to_thread(self.client.get_snippets, problem_id)
        except CodeCombatError as e:
            console.print(
                f"[yellow]Snippet fetch failed for problem {problem_id}: "
                f"{escape(str(e))}[/yellow]"
            )
            return {}


class SubmissionResolver:
    """Resolves the competitor's latest submission for a problem."""

    def __init__(self, client):
        self.client = client

    async def resolve(self, problem_id: int) -> Optional[Submission]:
        """
        Return the latest submission, or None if there is none.
        Unexpected failures are reported and treated as no submission.
        """
        try:
            return await asyncio.to_thread(self.client.get_user_submission, problem_id)
        except NotFound:
            return None
        except CodeCombatError as e:
            console.print(
                f"[yellow]Unexpected error fetching submission for problem "
                f"{problem_id}: {escape(str(e))}[/yellow]"
            )
            return None
