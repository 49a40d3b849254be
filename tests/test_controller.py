import asyncio
import re
from datetime import datetime, timedelta

import pytest

from codecombat_py.client.errors import ClampRefusal, TransientFetchError
from codecombat_py.client.models import ContestStatus, Language, Submission, Verdict
from codecombat_py.session import (
    LockReason,
    Notice,
    NoticeLevel,
    SessionController,
    SessionPhase,
)

ACTIVE = ContestStatus(exists=True, active=True, contest_name="Weekly Round")
INACTIVE = ContestStatus(exists=True, active=False, contest_name="Weekly Round")


def make_controller(backend, **kwargs):
    kwargs.setdefault("poll_interval", 0.02)
    return SessionController(backend, **kwargs)


def run_session(backend, problem_id, **kwargs):
    """Open a problem, wait for every fetch, and return the final state."""

    async def scenario():
        controller = make_controller(backend, **kwargs)
        controller.open(problem_id)
        await controller.wait_loaded()
        controller.close()
        return controller.state

    return asyncio.run(scenario())


def prior_submission(problem_id=1, code="print('mine')"):
    return Submission(
        id=11, problem_id=problem_id, code=code, language=Language.PYTHON
    )


def test_seeds_starter_code_of_default_language(backend):
    state = run_session(backend, 1)
    assert state.phase is SessionPhase.READY
    assert state.problem.title == "Problem 1"
    assert state.language is Language.JAVA
    assert state.code == "class Main {}"
    assert not state.has_prior_submission
    assert state.output is None


def test_configured_default_language(backend):
    state = run_session(backend, 1, default_language=Language.PYTHON)
    assert state.code == "print('starter')"


def test_missing_snippet_gives_empty_buffer(backend):
    state = run_session(backend, 2)
    assert state.phase is SessionPhase.READY
    assert state.code == ""


def test_snippet_failure_does_not_block_session(backend):
    backend.failures["get_snippets"] = TransientFetchError("snippets down")
    state = run_session(backend, 1)
    assert state.phase is SessionPhase.READY
    assert state.snippets == {}
    assert state.code == ""


def test_submission_failure_fails_open(backend):
    backend.failures["get_user_submission"] = TransientFetchError("500")
    state = run_session(backend, 1)
    assert not state.has_prior_submission
    assert state.code == "class Main {}"


def test_prior_submission_wins_when_snippets_arrive_late(backend, wait_until):
    backend.submissions[1] = prior_submission()
    backend.hold("get_snippets")

    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await wait_until(lambda: controller.state.has_prior_submission)
        seeded = controller.state.code
        backend.release("get_snippets")
        await controller.wait_loaded()
        controller.close()
        return seeded, controller.state

    seeded, state = asyncio.run(scenario())
    assert seeded == "print('mine')"
    assert state.code == "print('mine')"
    assert state.language is Language.PYTHON
    assert isinstance(state.output, Notice)
    assert "Already submitted" in state.output.text


def test_prior_submission_wins_when_it_arrives_late(backend, wait_until):
    backend.submissions[1] = prior_submission()
    backend.hold("get_user_submission")

    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await wait_until(lambda: bool(controller.state.snippets))
        before = controller.state.code
        backend.release("get_user_submission")
        await controller.wait_loaded()
        controller.close()
        return before, controller.state

    before, state = asyncio.run(scenario())
    assert before == ""
    assert state.code == "print('mine')"
    assert state.language is Language.PYTHON


def test_typing_before_seed_is_never_overwritten(backend, wait_until):
    backend.submissions[1] = prior_submission()
    backend.hold("get_user_submission")

    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await wait_until(lambda: bool(controller.state.snippets))
        controller.set_code("draft")
        backend.release("get_user_submission")
        await controller.wait_loaded()
        controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert state.code == "draft"
    assert state.has_prior_submission


def test_language_switch_discards_edits(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        controller.set_code("my unsaved work")
        controller.select_language("PYTHON")
        python_code = controller.state.code
        controller.set_code("more unsaved work")
        controller.select_language(Language.CPP)
        controller.close()
        return python_code, controller.state

    python_code, state = asyncio.run(scenario())
    assert python_code == "print('starter')"
    assert state.language is Language.CPP
    assert state.code == ""


def test_unknown_language_rejected(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        try:
            with pytest.raises(ValueError):
                controller.select_language("COBOL")
        finally:
            controller.close()

    asyncio.run(scenario())


def test_missing_problem_is_terminal_not_found(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(99)
        await controller.wait_loaded()
        with pytest.raises(ClampRefusal):
            await controller.run_tests()
        controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert state.not_found
    assert state.problem is None
    assert state.phase is SessionPhase.LOCKED
    assert state.lock_reason is LockReason.DELETED
    assert backend.calls["test_solution"] == 0


def test_deactivation_clamps_every_action_until_reactivated(backend, wait_until):
    backend.default_status = INACTIVE

    async def scenario():
        controller = make_controller(backend)
        controller.open(2)
        await controller.wait_loaded()
        state = controller.state
        assert state.phase is SessionPhase.LOCKED
        assert state.lock_reason is LockReason.DEACTIVATED
        assert state.can_go_prev and state.can_go_next

        for action in (
            controller.run_tests,
            controller.submit,
            controller.go_previous,
            controller.go_next,
        ):
            with pytest.raises(ClampRefusal):
                await action()
        assert state.redirect_to == "/contests"
        assert state.show_banner
        assert "Deactivated" in state.banner_text

        backend.default_status = ACTIVE
        await wait_until(lambda: controller.state.phase is SessionPhase.READY)
        verdict = await controller.run_tests()
        target = await controller.go_next()
        controller.close()
        return verdict, target, controller.state

    verdict, target, state = asyncio.run(scenario())
    assert isinstance(verdict, Verdict)
    assert target == 3
    assert state.problem_id == 3
    assert backend.calls["test_solution"] == 1
    assert backend.calls["submit"] == 0


def test_deletion_is_terminal(backend):
    backend.statuses = [ContestStatus.deleted()]

    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        await asyncio.sleep(0.1)
        controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert state.not_found
    assert state.problem is None
    assert state.phase is SessionPhase.LOCKED
    assert state.lock_reason is LockReason.DELETED
    assert backend.calls["get_contest_status"] == 1
    assert "Deleted" in state.banner_text


def test_submit_twice_stores_one_submission(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        controller.set_code("class Main { }")
        await controller.submit()
        await controller.submit()
        controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert list(backend.submissions) == [1]
    assert backend.submissions[1].code == "class Main { }"
    assert state.has_prior_submission
    assert isinstance(state.output, Verdict)
    assert state.output.persisted


def test_test_run_does_not_mark_submission(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        verdict = await controller.run_tests()
        controller.close()
        return verdict, controller.state

    verdict, state = asyncio.run(scenario())
    assert not verdict.persisted
    assert verdict.hidden_count == 1
    assert not state.has_prior_submission
    assert backend.submissions == {}


def test_transport_failure_shows_inline_error(backend):
    backend.failures["test_solution"] = TransientFetchError("timed out")

    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        verdict = await controller.run_tests()
        controller.close()
        return verdict, controller.state

    verdict, state = asyncio.run(scenario())
    assert verdict is None
    assert state.phase is SessionPhase.READY
    assert isinstance(state.output, Notice)
    assert state.output.level is NoticeLevel.ERROR
    assert state.output.text == "Test failed: timed out"


def test_navigation_boundaries_and_reset(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        first = controller.state
        assert not first.can_go_prev
        assert first.can_go_next
        assert await controller.go_previous() is None

        controller.set_code("edited")
        assert await controller.go_next() == 2
        assert controller.state is not first
        await controller.wait_loaded()
        controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert state.problem_id == 2
    assert state.index == 1
    assert state.code == ""


def test_problem_change_discards_stale_results(backend):
    backend.submissions[1] = prior_submission()
    backend.hold("get_user_submission")

    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await asyncio.sleep(0.02)
        controller.open(3)
        backend.release("get_user_submission")
        await controller.wait_loaded()
        await asyncio.sleep(0.05)
        controller.close()
        return controller.state

    state = asyncio.run(scenario())
    assert state.problem_id == 3
    assert state.problem.id == 3
    assert not state.has_prior_submission
    assert state.code == ""
    assert state.index == 2


def test_countdown_follows_contest_end_time(backend):
    backend.default_status = ContestStatus(
        exists=True,
        active=True,
        contest_name="Weekly Round",
        end_time=datetime.now() + timedelta(seconds=90),
    )
    state = run_session(backend, 1)
    assert re.match(r"^1m \d+s remaining$", state.time_remaining)


def test_close_stops_polling(backend):
    async def scenario():
        controller = make_controller(backend)
        controller.open(1)
        await controller.wait_loaded()
        controller.close()
        calls = backend.calls["get_contest_status"]
        await asyncio.sleep(0.1)
        return calls

    calls = asyncio.run(scenario())
    assert backend.calls["get_contest_status"] == calls


def test_transient_problem_failure_records_load_error(backend):
    backend.failures["get_problem"] = TransientFetchError("502 Bad Gateway")
    state = run_session(backend, 1)
    assert state.load_error == "502 Bad Gateway"
    assert state.phase is SessionPhase.INITIALIZING
    assert not state.not_found
    assert state.problem is None
