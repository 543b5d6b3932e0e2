"""Tests for fairness metrics and week scoring."""

from datetime import date

import pytest

from carpoolhelper.domain.models import (
    GroupEntity,
    ScheduleAssignment,
    ScheduleStatus,
    UserEntity,
    WeeklySchedule,
)
from carpoolhelper.scheduling.fairness import (
    FairnessCalculator,
    calculate_schedule_fairness_score,
)

from tests.helpers import MONDAY, make_group


def week(schedule_id, drivers_and_riders, group_id="G1", week_start=MONDAY, **kwargs):
    assignments = [
        ScheduleAssignment(
            id=f"{schedule_id}-{day}",
            day_of_week=day,
            date=date(2024, 1, 15 + day),
            driver_id=driver,
            passengers=list(riders),
        )
        for day, (driver, riders) in enumerate(drivers_and_riders)
    ]
    return WeeklySchedule(
        id=schedule_id,
        group_id=group_id,
        week_start=week_start,
        assignments=assignments,
        status=ScheduleStatus.PUBLISHED,
        **kwargs,
    )


def drivers_only(*drivers):
    return [
        ScheduleAssignment(id=str(i), day_of_week=i, date=date(2024, 1, 15 + i), driver_id=d)
        for i, d in enumerate(drivers)
    ]


class TestFairnessCalculator:
    """Tests for FairnessCalculator."""

    @pytest.fixture
    def calculator(self):
        return FairnessCalculator()

    def test_empty_group(self, calculator):
        assert calculator.calculate_fairness_metrics(GroupEntity(id="G1"), []) == []

    def test_no_history_everyone_fair(self, calculator, group):
        metrics = calculator.calculate_fairness_metrics(group, [])
        assert [m.user_id for m in metrics] == ["A", "B", "C"]
        for m in metrics:
            assert m.total_assignments == 0
            assert m.fairness_score == 1.0
            assert m.fairness_debt == pytest.approx(1 / 3)

    def test_one_metric_per_member(self, calculator):
        group = make_group(["A", "B", "C", "D"])
        history = [week("S1", [("A", ["B"])])]
        metrics = calculator.calculate_fairness_metrics(group, history)
        assert sorted(m.user_id for m in metrics) == ["A", "B", "C", "D"]

    def test_sorted_ascending_by_score(self, calculator, group):
        history = [
            week("S1", [
                ("A", ["B", "C"]),
                ("A", ["B", "C"]),
                ("B", ["A", "C"]),
                ("C", ["A", "B"]),
                ("A", ["B", "C"]),
            ]),
        ]
        metrics = calculator.calculate_fairness_metrics(group, history)
        scores = [m.fairness_score for m in metrics]
        assert scores == sorted(scores)
        assert metrics[-1].user_id == "A"

        by_id = {m.user_id: m for m in metrics}
        assert by_id["A"].driving_assignments == 3
        assert by_id["A"].passenger_assignments == 2
        assert by_id["B"].driving_assignments == 1
        assert by_id["B"].passenger_assignments == 4

    def test_ignores_other_groups(self, calculator, group):
        history = [week("S1", [("A", ["B"])], group_id="OTHER")]
        metrics = calculator.calculate_fairness_metrics(group, history)
        assert all(m.total_assignments == 0 for m in metrics)

    def test_ignores_superseded_schedules(self, calculator, group):
        history = [
            week("OLD", [("A", ["B"])], superseded_by="NEW"),
            week("NEW", [("B", ["A"])]),
        ]
        by_id = {m.user_id: m for m in calculator.calculate_fairness_metrics(group, history)}
        assert by_id["A"].driving_assignments == 0
        assert by_id["B"].driving_assignments == 1

    def test_former_members_excluded(self, calculator, group):
        history = [week("S1", [("Z", ["A"])])]
        metrics = calculator.calculate_fairness_metrics(group, history)
        assert "Z" not in {m.user_id for m in metrics}

    def test_names_from_lookup(self, group):
        users = {"A": UserEntity(id="A", first_name="Alice", last_name="Adams")}
        calculator = FairnessCalculator(users.get)
        by_id = {m.user_id: m for m in calculator.calculate_fairness_metrics(group, [])}
        assert by_id["A"].user_name == "Alice Adams"
        assert by_id["B"].user_name == "B"

    def test_deterministic(self, calculator, group):
        history = [week("S1", [("A", ["B"]), ("C", ["A"])])]
        first = calculator.calculate_fairness_metrics(group, history)
        second = calculator.calculate_fairness_metrics(group, history)
        assert first == second


class TestScheduleFairnessScore:
    """Tests for calculate_schedule_fairness_score."""

    def test_empty_week(self):
        assert calculate_schedule_fairness_score([]) == 1.0

    def test_five_distinct_drivers(self):
        assert calculate_schedule_fairness_score(drivers_only("A", "B", "C", "D", "E")) == 1.0

    def test_single_driver_all_week(self):
        """One driver has zero variance across drivers."""
        assert calculate_schedule_fairness_score(drivers_only("A", "A", "A", "A", "A")) == 1.0

    def test_three_member_rotation(self):
        """Counts {2, 2, 1} have variance 2/9."""
        score = calculate_schedule_fairness_score(drivers_only("A", "B", "C", "A", "B"))
        assert score == pytest.approx(7 / 9)

    def test_uneven_split_clamps_at_zero(self):
        """Counts {4, 1} have variance 2.25."""
        assert calculate_schedule_fairness_score(drivers_only("A", "A", "A", "A", "B")) == 0.0

    @pytest.mark.parametrize(
        "drivers",
        [("A",), ("A", "B"), ("A", "A", "B"), ("A", "B", "B", "C", "C")],
    )
    def test_bounds(self, drivers):
        assert 0.0 <= calculate_schedule_fairness_score(drivers_only(*drivers)) <= 1.0
