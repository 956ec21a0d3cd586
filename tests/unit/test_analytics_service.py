"""Unit tests for analytics_service statistics."""

from datetime import timedelta

import pytest

from src.domain.task import Priority
from src.services import analytics_service
from tests.unit.conftest import NOW


@pytest.mark.unit
class TestFormatDuration:
    """Tests for turnaround presentation."""

    @pytest.mark.parametrize(
        ("duration", "expected"),
        [
            (timedelta(seconds=30), "Just now"),
            (timedelta(minutes=1), "Just now"),
            (timedelta(minutes=1, seconds=1), "2 minutes"),
            (timedelta(minutes=45), "45 minutes"),
            (timedelta(minutes=61), "2 hours"),
            (timedelta(hours=24), "24 hours"),
            (timedelta(hours=25), "2 days"),
            (timedelta(days=3), "3 days"),
        ],
    )
    def test_collapses_to_coarsest_unit_rounded_up(self, duration, expected):
        assert analytics_service.format_duration(duration) == expected


@pytest.mark.unit
class TestTurnaround:
    """Tests for per-task and average turnaround time."""

    def test_completed_task(self, make_task):
        task = make_task("t", completed=True, completed_at=NOW + timedelta(hours=5))

        assert analytics_service.turnaround_duration(task) == timedelta(hours=5)
        assert analytics_service.turnaround_time(task) == "5 hours"

    def test_open_task_has_no_turnaround(self, make_task):
        assert analytics_service.turnaround_time(make_task("t")) is None

    def test_completed_without_timestamp_has_no_turnaround(self, make_task):
        task = make_task("t", completed=True, completed_at=None)

        assert analytics_service.turnaround_time(task) is None

    def test_average_over_completed_tasks(self, make_task):
        tasks = [
            make_task("a", completed=True, completed_at=NOW + timedelta(days=2)),
            make_task("b", completed=True, completed_at=NOW + timedelta(days=4)),
            make_task("open"),
        ]

        assert analytics_service.average_turnaround(tasks) == "3 days"

    def test_average_in_hours(self, make_task):
        tasks = [make_task("a", completed=True, completed_at=NOW + timedelta(hours=3))]

        assert analytics_service.average_turnaround(tasks) == "3 hours"

    def test_average_under_an_hour(self, make_task):
        tasks = [make_task("a", completed=True, completed_at=NOW + timedelta(minutes=20))]

        assert analytics_service.average_turnaround(tasks) == "Less than 1 hour"

    def test_average_with_nothing_completed(self, make_task):
        assert analytics_service.average_turnaround([make_task("a")]) == "N/A"
        assert analytics_service.average_turnaround([]) == "N/A"


@pytest.mark.unit
class TestRates:
    """Tests for completion and on-time rates."""

    def test_completion_rate(self, make_task):
        tasks = [make_task("a", completed=True, completed_at=NOW), make_task("b"), make_task("c")]

        assert analytics_service.completion_rate(tasks) == 33

    def test_completion_rate_empty(self):
        assert analytics_service.completion_rate([]) == 0

    def test_on_time_rate_with_no_completed_tasks_is_100(self, make_task):
        assert analytics_service.on_time_rate([make_task("a")]) == 100
        assert analytics_service.on_time_rate([]) == 100

    def test_on_time_rate(self, make_task):
        tasks = [
            make_task("on_time", deadline="2026-03-12", completed=True, completed_at=NOW),
            make_task("late", deadline="2026-03-01", completed=True, completed_at=NOW),
            make_task("no_deadline", deadline=None, completed=True, completed_at=NOW),
            make_task("open", deadline="2026-03-01"),
        ]

        assert analytics_service.on_time_rate(tasks) == 67


@pytest.mark.unit
class TestLedgerAndDeadlines:
    """Tests for tracked time and deadline labels."""

    def test_total_time_tracked(self):
        ledger = {"a": timedelta(minutes=25), "b": timedelta(minutes=50)}

        assert analytics_service.total_time_tracked(ledger) == "2 hours"

    def test_total_time_tracked_empty(self):
        assert analytics_service.total_time_tracked({}) == "0 minutes"

    @pytest.mark.parametrize(
        ("deadline", "expected"),
        [
            ("2026-03-08", "2 days overdue"),
            ("2026-03-10T12:00:00+00:00", "Due today"),
            ("2026-03-11", "Due tomorrow"),
            ("2026-03-15", "5 days left"),
        ],
    )
    def test_days_until_deadline(self, make_task, deadline, expected):
        assert analytics_service.days_until_deadline(make_task("t", deadline=deadline), NOW) == expected

    def test_days_until_deadline_not_applicable(self, make_task):
        done = make_task("done", completed=True, completed_at=NOW)
        undated = make_task("undated", deadline=None)

        assert analytics_service.days_until_deadline(done, NOW) == "N/A"
        assert analytics_service.days_until_deadline(undated, NOW) == "N/A"


@pytest.mark.unit
def test_summarize(make_task):
    tasks = [
        make_task("done", completed=True, completed_at=NOW + timedelta(hours=2)),
        make_task("overdue", priority=Priority.HIGH, deadline="2026-03-01"),
        *[make_task(f"h{i}") for i in range(3)],
    ]

    summary = analytics_service.summarize(tasks, {"overdue": timedelta(minutes=30)}, NOW)

    assert summary.total == 5
    assert summary.completed == 1
    assert summary.active == 4
    assert summary.pending == 1
    assert summary.overdue == 1
    assert summary.completion_rate == 20
    assert summary.on_time_rate == 100
    assert summary.average_turnaround == "2 hours"
    assert summary.time_tracked == "30 minutes"
