import asyncio
import threading
import time
from collections import Counter

import pytest

from codecombat_py.client.errors import NotFound
from codecombat_py.client.models import (
    CodeSnippet,
    ContestStatus,
    Language,
    Problem,
    Submission,
    TestCaseOutcome,
    Verdict,
    VerdictStatus,
)


class FakeBackend:
    """In-memory stand-in for CodeCombatClient with gated calls."""

    def __init__(self):
        self.problems = {}
        self.order = []
        self.snippets = {}
        self.submissions = {}
        self.statuses = []
        self.default_status = ContestStatus(
            exists=True, active=True, contest_name="Weekly Round"
        )
        self.failures = {}
        self.calls = Counter()
        self.gates = {}
        self.verdict_status = VerdictStatus.AC
        self._lock = threading.Lock()

    def add_problem(self, problem_id, contest_id=7, snippets=None):
        self.problems[problem_id] = Problem(
            id=problem_id, title=f"Problem {problem_id}", contest_id=contest_id
        )
        self.order.append(problem_id)
        self.snippets[problem_id] = {
            Language.parse(lang): CodeSnippet(Language.parse(lang), code, "")
            for lang, code in (snippets or {}).items()
        }

    def hold(self, name):
        self.gates[name] = threading.Event()

    def release(self, name):
        self.gates[name].set()

    def _enter(self, name):
        with self._lock:
            self.calls[name] += 1
        gate = self.gates.get(name)
        if gate is not None:
            gate.wait(timeout=5)
        error = self.failures.get(name)
        if error is not None:
            raise error

    def get_problem(self, problem_id):
        self._enter("get_problem")
        if problem_id not in self.problems:
            raise NotFound(f"/problems/{problem_id} not found")
        return self.problems[problem_id]

    def get_problems(self):
        self._enter("get_problems")
        return [self.problems[pid] for pid in self.order]

    def get_snippets(self, problem_id):
        self._enter("get_snippets")
        return dict(self.snippets.get(problem_id, {}))

    def get_contest_status(self, problem_id):
        self._enter("get_contest_status")
        with self._lock:
            item = self.statuses.pop(0) if self.statuses else self.default_status
        if isinstance(item, Exception):
            raise item
        return item

    def get_user_submission(self, problem_id):
        self._enter("get_user_submission")
        if problem_id not in self.submissions:
            raise NotFound(f"No submission for problem {problem_id}")
        return self.submissions[problem_id]

    def _verdict(self, persisted):
        return Verdict(
            status=self.verdict_status,
            test_cases_passed=2,
            total_test_cases=3,
            test_cases=[
                TestCaseOutcome(1, True, False),
                TestCaseOutcome(2, True, False),
                TestCaseOutcome(3, False, True),
            ],
            persisted=persisted,
        )

    def test_solution(self, problem_id, code, language):
        self._enter("test_solution")
        return self._verdict(persisted=False)

    def submit(self, problem_id, code, language):
        self._enter("submit")
        verdict = self._verdict(persisted=True)
        self.submissions[problem_id] = Submission(
            id=problem_id * 100,
            problem_id=problem_id,
            code=code,
            language=language,
            status=verdict.status,
        )
        return verdict


@pytest.fixture
def backend():
    fake = FakeBackend()
    fake.add_problem(
        1, snippets={"JAVA": "class Main {}", "PYTHON": "print('starter')"}
    )
    fake.add_problem(2, snippets={"CPP": "int main() {}"})
    fake.add_problem(3)
    return fake


async def wait_until(predicate, timeout=3.0):
    """Yield to the event loop until predicate() holds."""
    deadline = time.monotonic() + timeout
    while not predicate():
        if time.monotonic() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)


@pytest.fixture(name="wait_until")
def wait_until_fixture():
    return wait_until
