"""Per-problem solving session: seeding, liveness locking, run/submit, navigation."""

import asyncio
from typing import Callable, List, Optional

from rich.console import Console
from rich.markup import escape

from ..client.errors import AuthError, ClampRefusal, CodeCombatError, NotFound
from ..client.models import DEFAULT_LANGUAGE, ContestStatus, Language, Verdict
from ..config.global_config import DEFAULT_POLL_INTERVAL
from .countdown import CountdownClock
from .dispatcher import SubmissionDispatcher
from .liveness import LivenessMonitor
from .navigation import NavigationSequencer
from .resolvers import ProblemResolver, SubmissionResolver
from .state import (
    CONTESTS_PATH,
    LockReason,
    Notice,
    NoticeLevel,
    SessionPhase,
    SessionState,
)


console = Console()


class SessionController:
    """
    Owns the session state for the problem currently open.

    Every fetch is started as its own task and may finish in any order.
    Results are tagged with the generation they were issued for and
    dropped if another problem has been opened since. The editor buffer
    is seeded once per activation: from the prior submission when there
    is one, otherwise from the starter snippet of the selected language.
    """

    def __init__(
        self,
        client,
        default_language: Language = DEFAULT_LANGUAGE,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        tick_interval: float = 1.0,
        on_change: Optional[Callable[[SessionState], None]] = None,
    ):
        self.client = client
        self.default_language = default_language
        self.poll_interval = poll_interval
        self.on_change = on_change

        self.problems = ProblemResolver(client)
        self.submissions = SubmissionResolver(client)
        self.dispatcher = SubmissionDispatcher(client, liveness=self._liveness)
        self.countdown = CountdownClock(self._on_tick, interval=tick_interval)

        self.state = SessionState(language=default_language)
        self.monitor: Optional[LivenessMonitor] = None
        self.navigator: Optional[NavigationSequencer] = None

        self._generation = 0
        self._tasks: List[asyncio.Task] = []
        self._seed_applied = False
        self._snippets_loaded = False
        self._submission_checked = False

    # Lifecycle

    def open(self, problem_id: int) -> None:
        """Start a fresh session for problem_id, discarding the previous one."""
        self._teardown()
        self._generation += 1
        generation = self._generation

        self.state = SessionState(problem_id=problem_id, language=self.default_language)
        self._seed_applied = False
        self._snippets_loaded = False
        self._submission_checked = False

        self.navigator = NavigationSequencer(self.client, liveness=self._liveness)
        self.monitor = LivenessMonitor(
            self.client,
            problem_id,
            on_status=lambda status: self._on_status(generation, status),
            interval=self.poll_interval,
        )

        self._launch(self._load_problem(generation, problem_id))
        self._launch(self._load_snippets(generation, problem_id))
        self._launch(self._load_submission(generation, problem_id))
        self._launch(self._load_navigation(generation, self.navigator, problem_id))
        self.monitor.start()
        self._changed()

    def close(self) -> None:
        """Cancel every outstanding task; the session is discarded."""
        self._teardown()
        self._generation += 1

    async def wait_loaded(self) -> None:
        """Wait for the initial fetches and the first liveness sample."""
        pending = list(self._tasks)
        monitor = self.monitor
        if pending:
            await asyncio.gather(*pending, return_exceptions=True)
        if monitor is not None:
            await monitor.wait_first_sample()

    def _teardown(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks = []
        if self.monitor is not None:
            self.monitor.stop()
        self.countdown.clear()

    def _launch(self, coro) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.append(task)
        return task

    def _is_current(self, generation: int) -> bool:
        return generation == self._generation

    def _liveness(self) -> Optional[ContestStatus]:
        return self.state.liveness

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.state)

    # Fetch results

    async def _load_problem(self, generation: int, problem_id: int) -> None:
        try:
            problem = await self.problems.resolve_problem(problem_id)
        except NotFound:
            if self._is_current(generation):
                self._mark_not_found()
            return
        except CodeCombatError as e:
            if self._is_current(generation):
                console.print(f"[red]Problem fetch error: {escape(str(e))}[/red]")
                self.state.load_error = str(e)
                self._changed()
            return

        if not self._is_current(generation) or self.state.not_found:
            return
        self.state.problem = problem
        self.state.load_error = None
        if self.state.phase is SessionPhase.INITIALIZING:
            self.state.phase = SessionPhase.READY
        self._changed()

    async def _load_snippets(self, generation: int, problem_id: int) -> None:
        snippets = await self.problems.resolve_snippets(problem_id)
        if not self._is_current(generation):
            return
        self.state.snippets = snippets
        self._snippets_loaded = True
        self._seed()

    async def _load_submission(self, generation: int, problem_id: int) -> None:
        submission = await self.submissions.resolve(problem_id)
        if not self._is_current(generation):
            return
        self.state.prior_submission = submission
        self.state.has_prior_submission = submission is not None
        self._submission_checked = True
        self._seed()

    async def _load_navigation(
        self, generation: int, navigator: NavigationSequencer, problem_id: int
    ) -> None:
        await navigator.load(problem_id)
        if not self._is_current(generation):
            return
        self.state.problem_ids = list(navigator.problem_ids)
        self.state.index = navigator.index
        self._changed()

    def _seed(self) -> None:
        """Fill the editor buffer once both sources have been heard from."""
        if self._seed_applied or not self._submission_checked:
            return

        state = self.state
        submission = state.prior_submission
        if submission is not None:
            self._seed_applied = True
            state.code = submission.code
            state.language = submission.language
            status = submission.status.value if submission.status else "UNKNOWN"
            state.output = Notice(
                f"Already submitted. Loaded your last submission (Status: {status}). "
                "If you submit again, your original code will be replaced."
            )
        elif self._snippets_loaded:
            self._seed_applied = True
            snippet = state.snippets.get(state.language)
            state.code = snippet.starter_code if snippet else ""
        self._changed()

    def _on_status(self, generation: int, status: ContestStatus) -> None:
        if not self._is_current(generation) or self.state.not_found:
            return

        state = self.state
        state.contest_status = status
        if not status.exists:
            self._mark_not_found()
            return

        if not status.active:
            state.phase = SessionPhase.LOCKED
            state.lock_reason = LockReason.DEACTIVATED
            state.show_banner = True
        elif state.phase is SessionPhase.LOCKED:
            state.phase = (
                SessionPhase.READY if state.problem is not None
                else SessionPhase.INITIALIZING
            )
            state.lock_reason = None
            state.show_banner = False
            state.redirect_to = None

        if status.end_time != self.countdown.end_time:
            self.countdown.start(status.end_time)
        self._changed()

    def _on_tick(self, text: str) -> None:
        self.state.time_remaining = text
        self._changed()

    def _mark_not_found(self) -> None:
        """Problem or contest is gone; nothing can revive this session."""
        state = self.state
        state.problem = None
        state.not_found = True
        state.phase = SessionPhase.LOCKED
        state.lock_reason = LockReason.DELETED
        state.show_banner = True
        state.time_remaining = ""
        if self.monitor is not None:
            self.monitor.stop()
        self.countdown.stop()
        self._changed()

    # User actions

    def set_code(self, code: str) -> None:
        """Editor change. Once the user has typed, the buffer is never reseeded."""
        self._seed_applied = True
        self.state.code = code
        self._changed()

    def select_language(self, language) -> None:
        """
        Switch language and load its starter code.
        Unsaved edits are discarded: the buffer becomes the new language's
        snippet, or empty when it has none.
        """
        selected = Language.parse(language)
        if selected is None:
            raise ValueError(f"Unknown language: {language}")

        self._seed_applied = True
        self.state.language = selected
        snippet = self.state.snippets.get(selected)
        self.state.code = snippet.starter_code if snippet else ""
        self._changed()

    async def run_tests(self) -> Optional[Verdict]:
        """Evaluate the buffer without storing it."""
        return await self._dispatch(self.dispatcher.test, "Test")

    async def submit(self) -> Optional[Verdict]:
        """Store the buffer as the competitor's submission for this problem."""
        return await self._dispatch(self.dispatcher.submit, "Submit")

    async def go_previous(self) -> Optional[int]:
        return await self._navigate(lambda nav: nav.previous())

    async def go_next(self) -> Optional[int]:
        return await self._navigate(lambda nav: nav.next())

    async def _dispatch(self, operation, label: str) -> Optional[Verdict]:
        generation = self._generation
        state = self.state
        if state.problem_id is None:
            return None

        try:
            state.busy = label
            verdict = await operation(state.problem_id, state.code, state.language)
        except ClampRefusal:
            self._refuse()
            raise
        except AuthError:
            raise
        except CodeCombatError as e:
            if self._is_current(generation):
                state.output = Notice(f"{label} failed: {e}", NoticeLevel.ERROR)
                self._changed()
            return None
        finally:
            state.busy = None

        if self._is_current(generation):
            state.output = verdict
            if verdict.persisted:
                state.has_prior_submission = True
            self._changed()
        return verdict

    async def _navigate(self, step) -> Optional[int]:
        if self.navigator is None:
            return None
        try:
            target = step(self.navigator)
        except ClampRefusal:
            self._refuse()
            raise
        if target is None:
            return None
        self.open(target)
        return target

    def _refuse(self) -> None:
        self.state.show_banner = True
        self.state.redirect_to = CONTESTS_PATH
        self._changed()
