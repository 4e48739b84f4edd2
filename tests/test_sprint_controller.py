import asyncio

import pytest

from studysprint.modules.grading import Grader, GradingRequest
from studysprint.modules.notices import NoticeChannel
from studysprint.modules.repository import ValidationError
from studysprint.modules.sprint_controller import (
    InvalidTransitionError,
    SprintOutcome,
    SprintSessionController,
    SprintState,
    TransitionInProgressError,
)
from studysprint.modules.sprint_registry import SprintSessionRegistry
from tests.fakes import FakeRepository, make_problem, make_problem_row


USER_ID = "user-1"


def make_controller(repository=None, **kwargs):
    repository = repository or FakeRepository([make_problem_row(1)])
    kwargs.setdefault("tick_interval", 60)
    return SprintSessionController(repository, **kwargs)


async def run_out_clock(controller):
    while not controller.timer.expired:
        await controller.timer.tick()


@pytest.mark.asyncio
async def test_start_creates_sprint_and_runs_timer():
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository)

    # Execute
    started = await controller.start(USER_ID, make_problem(1))

    # Verify
    assert started is True
    assert controller.state == SprintState.RUNNING
    assert controller.sprint_id == 1
    assert controller.timer.enabled
    assert controller.timer.remaining_seconds == 1500
    assert repository.sprints[1]["problem_id"] == 1
    assert repository.sprints[1]["duration_minutes"] == 25
    assert repository.sprints[1]["completed"] is False
    assert controller.snapshot().notices[0].level == "success"

    controller.close()


@pytest.mark.asyncio
async def test_full_sprint_submission_completes_row():
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))

    # Execute
    await controller.pause()
    await controller.resume()
    submitted = await controller.submit("def solve():\n    return 42\n")

    # Verify
    assert submitted is True
    sprint = repository.sprints[1]
    assert sprint["completed"] is True
    assert sprint["submission_id"] == controller.submission_id
    assert sprint["finished_at"] is not None
    assert repository.submissions[controller.submission_id]["status"] == "accepted"
    assert controller.state == SprintState.TERMINATED
    assert controller.outcome == SprintOutcome.SUBMITTED
    assert not controller.timer.enabled

    controller.close()


@pytest.mark.asyncio
async def test_expiry_closes_row_but_keeps_sprint_reference():
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository, duration_minutes=1)
    await controller.start(USER_ID, make_problem(1))
    controller.snapshot()

    # Execute
    await run_out_clock(controller)

    # Verify
    snapshot = controller.snapshot()
    assert snapshot.state == "terminated"
    assert snapshot.outcome == "expired"
    assert snapshot.sprint_id == 1
    assert snapshot.remaining_seconds == 0
    assert repository.sprints[1]["completed"] is False
    assert repository.sprints[1]["finished_at"] is not None
    assert [n.level for n in snapshot.notices] == ["warning"]
    assert snapshot.notices[0].message.startswith("Time's up!")


@pytest.mark.asyncio
async def test_submit_after_expiry_records_submission_time():
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository, duration_minutes=1)
    await controller.start(USER_ID, make_problem(1))
    await run_out_clock(controller)
    expired_at = repository.sprints[1]["finished_at"]
    await asyncio.sleep(0.01)

    # Execute
    submitted = await controller.submit("print('late')")

    # Verify
    assert submitted is True
    assert repository.sprints[1]["finished_at"] > expired_at
    assert controller.finished_at == repository.sprints[1]["finished_at"]
    assert repository.sprints[1]["completed"] is True
    assert repository.sprints[1]["submission_id"] == controller.submission_id
    assert controller.outcome == SprintOutcome.SUBMITTED


@pytest.mark.asyncio
async def test_paused_timer_does_not_expire():
    controller = make_controller(duration_minutes=1)
    await controller.start(USER_ID, make_problem(1))
    await controller.pause()

    await controller.expire()

    assert controller.state == SprintState.PAUSED
    controller.close()


@pytest.mark.asyncio
@pytest.mark.parametrize("code", ["", "   \n\t  "])
async def test_empty_submission_is_rejected_without_persistence(code):
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))

    # Execute
    with pytest.raises(ValidationError, match="write some code"):
        await controller.submit(code)

    # Verify
    assert "create_submission" not in repository.calls
    assert controller.state == SprintState.RUNNING
    assert controller.submission_id is None

    controller.close()


@pytest.mark.asyncio
async def test_submission_failure_leaves_state_for_retry():
    # Setup
    repository = FakeRepository(fail_on=("create_submission",))
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))
    controller.snapshot()

    # Execute
    submitted = await controller.submit("x = 1")

    # Verify
    assert submitted is False
    assert controller.state == SprintState.RUNNING
    assert repository.sprints[1]["completed"] is False
    assert [n.level for n in controller.snapshot().notices] == ["error"]

    repository.fail_on.clear()
    assert await controller.submit("x = 1") is True
    assert controller.state == SprintState.TERMINATED


@pytest.mark.asyncio
async def test_start_failure_stays_idle():
    # Setup
    repository = FakeRepository(fail_on=("create_sprint",))
    controller = make_controller(repository)

    # Execute
    started = await controller.start(USER_ID, make_problem(1))

    # Verify
    assert started is False
    assert controller.state == SprintState.IDLE
    assert controller.sprint_id is None
    assert not controller.timer.enabled
    assert controller.snapshot().notices[0].message == "Failed to start sprint"


@pytest.mark.asyncio
async def test_start_requires_user_and_problem():
    repository = FakeRepository()
    controller = make_controller(repository)

    with pytest.raises(ValidationError):
        await controller.start(None, make_problem(1))
    with pytest.raises(ValidationError):
        await controller.start(USER_ID, None)

    assert repository.calls == []
    assert controller.state == SprintState.IDLE


@pytest.mark.asyncio
async def test_stop_abandons_and_resets():
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))
    await controller.timer.tick()

    # Execute
    await controller.stop()

    # Verify
    assert controller.state == SprintState.IDLE
    assert controller.outcome == SprintOutcome.STOPPED
    assert controller.sprint_id is None
    assert controller.timer.remaining_seconds == 1500
    assert not controller.timer.enabled
    assert repository.sprints[1]["completed"] is False
    assert repository.sprints[1]["finished_at"] is not None


@pytest.mark.asyncio
async def test_stop_resets_even_when_update_fails():
    repository = FakeRepository(fail_on=("update_sprint",))
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))
    await controller.pause()

    await controller.stop()

    assert controller.state == SprintState.IDLE
    levels = [n.level for n in controller.snapshot().notices]
    assert "error" in levels


@pytest.mark.asyncio
async def test_invalid_transitions():
    controller = make_controller()

    with pytest.raises(InvalidTransitionError):
        await controller.pause()
    with pytest.raises(InvalidTransitionError):
        await controller.resume()
    with pytest.raises(InvalidTransitionError):
        await controller.stop()
    with pytest.raises(InvalidTransitionError):
        await controller.submit("x = 1")

    await controller.start(USER_ID, make_problem(1))
    with pytest.raises(InvalidTransitionError):
        await controller.start(USER_ID, make_problem(1))
    with pytest.raises(InvalidTransitionError):
        await controller.resume()

    await controller.submit("x = 1")
    with pytest.raises(InvalidTransitionError, match="already submitted"):
        await controller.submit("x = 2")
    with pytest.raises(InvalidTransitionError):
        await controller.stop()


@pytest.mark.asyncio
async def test_pause_twice_is_a_no_op():
    controller = make_controller()
    await controller.start(USER_ID, make_problem(1))

    await controller.pause()
    await controller.pause()

    assert controller.state == SprintState.PAUSED
    assert not controller.timer.enabled
    controller.close()


@pytest.mark.asyncio
async def test_new_sprint_after_termination():
    repository = FakeRepository()
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))
    await controller.submit("x = 1")

    assert await controller.start(USER_ID, make_problem(2)) is True

    assert controller.sprint_id == 2
    assert controller.submission_id is None
    assert controller.outcome is None
    assert controller.timer.remaining_seconds == 1500
    controller.close()


@pytest.mark.asyncio
async def test_action_during_in_flight_transition_is_rejected():
    # Setup
    repository = FakeRepository()
    gate = asyncio.Event()
    repository.gates["create_sprint"] = gate
    controller = make_controller(repository)

    # Execute
    starting = asyncio.create_task(controller.start(USER_ID, make_problem(1)))
    await asyncio.sleep(0)

    # Verify
    with pytest.raises(TransitionInProgressError):
        await controller.pause()
    with pytest.raises(TransitionInProgressError):
        await controller.start(USER_ID, make_problem(1))

    gate.set()
    assert await starting is True
    assert repository.calls.count("create_sprint") == 1
    controller.close()


@pytest.mark.asyncio
async def test_expiry_waits_for_in_flight_stop():
    # Setup
    repository = FakeRepository()
    controller = make_controller(repository)
    await controller.start(USER_ID, make_problem(1))
    gate = asyncio.Event()
    repository.gates["update_sprint"] = gate

    # Execute
    stopping = asyncio.create_task(controller.stop())
    await asyncio.sleep(0)
    expiring = asyncio.create_task(controller.expire())
    await asyncio.sleep(0)
    gate.set()
    await stopping
    await expiring

    # Verify
    assert controller.state == SprintState.IDLE
    assert controller.outcome == SprintOutcome.STOPPED
    assert repository.calls.count("update_sprint") == 1


@pytest.mark.asyncio
async def test_custom_grader_verdict_is_recorded():
    class RejectingGrader(Grader):
        async def grade(self, request: GradingRequest) -> str:
            assert request.test_cases == []
            return "wrong_answer"

    repository = FakeRepository()
    controller = make_controller(repository, grader=RejectingGrader())
    await controller.start(USER_ID, make_problem(1))

    await controller.submit("x = 1", language="python")

    assert repository.submissions[controller.submission_id]["status"] == "wrong_answer"


@pytest.mark.asyncio
async def test_notices_reach_subscribers():
    received = []
    notices = NoticeChannel()
    notices.subscribe(received.append)
    controller = make_controller(notices=notices)

    await controller.start(USER_ID, make_problem(1))

    assert [n.message for n in received] == ["Sprint started! Focus mode activated"]
    controller.close()


def test_registry_keeps_one_session_per_user():
    registry = SprintSessionRegistry(FakeRepository(), duration_minutes=10)

    first = registry.get("a")

    assert registry.get("a") is first
    assert registry.get("b") is not first
    assert len(registry) == 2
    assert first.timer.duration_seconds == 600

    registry.close_all()
    assert len(registry) == 0


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.asyncio
async def test_registry_evicts_sessions_without_live_sprint():
    # Setup
    clock = FakeClock()
    registry = SprintSessionRegistry(
        FakeRepository(),
        tick_interval=60,
        session_ttl_seconds=100,
        clock=clock
    )
    idle = registry.get("idle")
    finished = registry.get("finished")
    running = registry.get("running")
    paused = registry.get("paused")
    await finished.start("finished", make_problem(1))
    await finished.submit("x = 1")
    await running.start("running", make_problem(2))
    await paused.start("paused", make_problem(3))
    await paused.pause()

    # Execute
    clock.now = 101
    registry.get("newcomer")

    # Verify
    assert len(registry) == 3
    assert registry.get("running") is running
    assert registry.get("paused") is paused
    assert registry.get("idle") is not idle
    assert registry.get("finished") is not finished
    assert not finished.timer.enabled

    registry.close_all()


def test_registry_keeps_recently_used_sessions():
    clock = FakeClock()
    registry = SprintSessionRegistry(
        FakeRepository(), session_ttl_seconds=100, clock=clock
    )
    first = registry.get("a")
    registry.get("b")

    clock.now = 60
    assert registry.get("a") is first
    clock.now = 150

    assert registry.evict_inactive() == 1
    assert len(registry) == 1
    assert registry.get("a") is first
