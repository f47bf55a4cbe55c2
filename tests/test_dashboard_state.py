from typing import Callable, List, Tuple

import pytest

from dashboard_state import (
    HOME_ROUTE,
    NAVIGATION_DELAY_SECONDS,
    DashboardController,
    PendingNavigation,
)
from issue_models import (
    ACCESS_DENIED_MESSAGE,
    LOAD_FAILURE_MESSAGE,
    IssueRecord,
    LoadError,
    LoadPhase,
)


class FakeTask:
    def __init__(self, delay: float, action: Callable[[], None]) -> None:
        self.delay = delay
        self.action = action
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def fire(self) -> None:
        self.action()


class FakeScheduler:
    def __init__(self) -> None:
        self.tasks: List[FakeTask] = []

    def __call__(self, delay: float, action: Callable[[], None]) -> FakeTask:
        task = FakeTask(delay, action)
        self.tasks.append(task)
        return task


@pytest.fixture()
def scheduler() -> FakeScheduler:
    return FakeScheduler()


@pytest.fixture()
def navigations() -> List[str]:
    return []


@pytest.fixture()
def controller(scheduler, navigations) -> DashboardController:
    return DashboardController(navigate=navigations.append, scheduler=scheduler)


def scenario_a() -> List[IssueRecord]:
    return [
        IssueRecord.from_dict({"id": 1, "status": "Pending", "category": "Road"}),
        IssueRecord.from_dict({"id": 2, "status": "Resolved", "category": "Water"}),
    ]


def ids(controller: DashboardController) -> Tuple[str, ...]:
    return tuple(issue.id for issue in controller.issues)


def test_initial_state(controller):
    assert controller.load_phase is LoadPhase.LOADING
    assert controller.issues == ()
    assert controller.error_message is None


def test_scenario_a_load_success(controller):
    controller.on_load_succeeded(scenario_a())
    summary = controller.summary()

    assert controller.load_phase is LoadPhase.READY
    assert summary.total == 2
    assert summary.pending == 1
    assert summary.resolved == 1
    assert summary.status_counts == {"Pending": 1, "Resolved": 1}
    assert summary.category_counts == {"Road": 1, "Water": 1}


def test_scenario_b_update_moves_issue_to_resolved(controller):
    controller.on_load_succeeded(scenario_a())
    controller.on_issue_updated(
        IssueRecord.from_dict({"id": 1, "status": "Resolved", "category": "Road"})
    )
    summary = controller.summary()

    assert summary.status_counts == {"Resolved": 2}
    assert summary.resolved == 2
    assert summary.pending == 0


def test_scenario_c_delete(controller):
    controller.on_load_succeeded(scenario_a())
    controller.on_issue_deleted("2")
    summary = controller.summary()

    assert summary.total == 1
    assert summary.category_counts == {"Road": 1}


def test_scenario_d_access_denied_schedules_navigation(controller, scheduler, navigations):
    controller.on_load_failed(LoadError.access_denied())

    assert controller.load_phase is LoadPhase.FAILED
    assert controller.error_message == ACCESS_DENIED_MESSAGE
    assert len(scheduler.tasks) == 1
    assert scheduler.tasks[0].delay == NAVIGATION_DELAY_SECONDS

    scheduler.tasks[0].fire()
    assert navigations == [HOME_ROUTE]


def test_load_failure_does_not_navigate(controller, scheduler):
    controller.on_load_failed(LoadError.load_failure(500))

    assert controller.load_phase is LoadPhase.FAILED
    assert controller.error_message == LOAD_FAILURE_MESSAGE
    assert controller.issues == ()
    assert scheduler.tasks == []


def test_update_preserves_length_and_position(controller):
    issues = scenario_a() + [IssueRecord(id="3", status="Pending", category="Road")]
    controller.on_load_succeeded(issues)
    updated = IssueRecord(id="2", status="Pending", category="Water")

    controller.on_issue_updated(updated)

    assert ids(controller) == ("1", "2", "3")
    assert controller.issues[1] is updated


def test_update_with_unknown_id_is_noop(controller):
    controller.on_load_succeeded(scenario_a())
    before = controller.issues

    controller.on_issue_updated(IssueRecord(id="nonexistent", status="Resolved"))

    assert controller.issues == before


def test_delete_removes_exactly_one(controller):
    controller.on_load_succeeded(scenario_a() + [IssueRecord(id="3")])

    controller.on_issue_deleted("1")

    assert ids(controller) == ("2", "3")


def test_delete_unknown_id_is_noop(controller):
    controller.on_load_succeeded(scenario_a())

    controller.on_issue_deleted("missing")

    assert ids(controller) == ("1", "2")


def test_update_and_delete_before_load_are_noops(controller):
    controller.on_issue_updated(IssueRecord(id="1", status="Resolved"))
    controller.on_issue_deleted("1")

    assert controller.issues == ()
    assert controller.load_phase is LoadPhase.LOADING


def test_load_outcome_is_accepted_once(controller, scheduler):
    controller.on_load_succeeded(scenario_a())
    controller.on_load_failed(LoadError.access_denied())
    controller.on_load_succeeded([])

    assert controller.load_phase is LoadPhase.READY
    assert len(controller.issues) == 2
    assert scheduler.tasks == []


def test_issues_snapshot_is_read_only(controller):
    controller.on_load_succeeded(scenario_a())
    snapshot = controller.issues

    controller.on_issue_deleted("1")

    assert len(snapshot) == 2
    assert len(controller.issues) == 1


def test_writes_after_teardown_are_ignored(controller):
    controller.teardown()
    controller.on_load_succeeded(scenario_a())

    assert controller.load_phase is LoadPhase.LOADING
    assert controller.issues == ()


def test_teardown_cancels_pending_navigation(controller, scheduler, navigations):
    controller.on_load_failed(LoadError.access_denied())
    controller.teardown()

    task = scheduler.tasks[0]
    assert task.cancelled
    task.fire()
    assert navigations == []


def test_default_scheduler_holds_navigation_until_fired(navigations):
    controller = DashboardController(navigate=navigations.append)
    controller.on_load_failed(LoadError.access_denied())

    pending = controller.pending_navigation
    assert isinstance(pending, PendingNavigation)
    assert pending.delay == NAVIGATION_DELAY_SECONDS
    assert navigations == []

    assert pending.fire()
    assert not pending.fire()
    assert navigations == [HOME_ROUTE]


def test_default_scheduler_cancelled_by_teardown(navigations):
    controller = DashboardController(navigate=navigations.append)
    controller.on_load_failed(LoadError.access_denied())
    controller.teardown()

    assert controller.pending_navigation.cancelled
    assert not controller.pending_navigation.fire()
    assert navigations == []
