"""Test runs and submissions, gated by contest liveness."""

import asyncio

from ..client.models import Language, Verdict
from .liveness import StatusSource, ensure_live


class SubmissionDispatcher:
    """
    Sends code to the judge.
    test() is evaluated and thrown away; submit() replaces the
    competitor's stored submission for the problem. Both refuse with
    ClampRefusal, without a request, while the contest is not live.
    """

    def __init__(self, client, liveness: StatusSource):
        self.client = client
        self.liveness = liveness

    async def test(self, problem_id: int, code: str, language: Language) -> Verdict:
        ensure_live(self.liveness(), "Test")
        return await asyncio.to_thread(
            self.client.test_solution, problem_id, code, language
        )

    async def submit(self, problem_id: int, code: str, language: Language) -> Verdict:
        ensure_live(self.liveness(), "Submit")
        return await asyncio.to_thread(self.client.submit, problem_id, code, language)
