"""Tests for carpool assignment policies."""

import pytest

from carpoolhelper.domain.models import FairnessMetric, ScheduleStatus
from carpoolhelper.domain.policies import (
    DefaultPassengerPolicy,
    DefaultScheduleStatusPolicy,
    FairnessDebtDriverPolicy,
    RoundRobinDriverPolicy,
    driver_policy_for,
    parse_status,
)


def metric(user_id: str, debt: float) -> FairnessMetric:
    return FairnessMetric(user_id=user_id, user_name=user_id, fairness_debt=debt)


class TestFairnessDebtDriverPolicy:
    """Tests for FairnessDebtDriverPolicy."""

    def test_picks_highest_debt(self):
        """The member who has driven least should drive."""
        policy = FairnessDebtDriverPolicy()
        metrics = [metric("A", -0.2), metric("B", 0.3), metric("C", 0.1)]
        assert policy.select_driver(["A", "B", "C"], metrics, 0) == "B"

    def test_ignores_unavailable_members(self):
        """A member with high debt who cannot drive is skipped."""
        policy = FairnessDebtDriverPolicy()
        metrics = [metric("A", -0.2), metric("B", 0.3), metric("C", 0.1)]
        assert policy.select_driver(["A", "C"], metrics, 0) == "C"

    def test_ties_keep_metric_order(self):
        """Equal debt falls back to the order of the metrics list."""
        policy = FairnessDebtDriverPolicy()
        metrics = [metric("C", 0.0), metric("A", 0.0)]
        assert policy.select_driver(["A", "C"], metrics, 0) == "C"

    def test_falls_back_to_first_available(self):
        """Without matching metrics the first available driver is used."""
        policy = FairnessDebtDriverPolicy()
        assert policy.select_driver(["B", "A"], [], 3) == "B"
        assert policy.select_driver(["B", "A"], [metric("Z", 1.0)], 3) == "B"


class TestRoundRobinDriverPolicy:
    """Tests for RoundRobinDriverPolicy."""

    def test_rotates_by_weekday(self):
        policy = RoundRobinDriverPolicy()
        drivers = ["A", "B", "C"]
        picks = [policy.select_driver(drivers, [], day) for day in range(5)]
        assert picks == ["A", "B", "C", "A", "B"]

    def test_ignores_fairness(self):
        policy = RoundRobinDriverPolicy()
        assert policy.select_driver(["A", "B"], [metric("B", 0.9)], 0) == "A"

    def test_single_driver(self):
        policy = RoundRobinDriverPolicy()
        assert all(policy.select_driver(["A"], [], d) == "A" for d in range(5))


class TestDriverPolicyFor:
    """Tests for choosing the driver rule from options."""

    def test_fairness_mode(self):
        assert isinstance(driver_policy_for(True), FairnessDebtDriverPolicy)

    def test_round_robin_mode(self):
        assert isinstance(driver_policy_for(False), RoundRobinDriverPolicy)


class TestDefaultPassengerPolicy:
    """Tests for DefaultPassengerPolicy."""

    def test_default_seat_limit(self):
        """A car carries four passengers by default."""
        assert DefaultPassengerPolicy().max_passengers() == 4

    def test_excludes_driver(self):
        policy = DefaultPassengerPolicy()
        assert policy.select_passengers(["A", "B", "C"], "B") == ["A", "C"]

    def test_caps_at_seat_limit_in_group_order(self):
        policy = DefaultPassengerPolicy()
        riders = ["A", "B", "C", "D", "E", "F"]
        assert policy.select_passengers(riders, "A") == ["B", "C", "D", "E"]

    def test_custom_seat_limit(self):
        policy = DefaultPassengerPolicy(seat_limit=2)
        assert policy.select_passengers(["A", "B", "C"], "Z") == ["A", "B"]

    def test_only_driver_available(self):
        assert DefaultPassengerPolicy().select_passengers(["A"], "A") == []


class TestDefaultScheduleStatusPolicy:
    """Tests for schedule lifecycle transitions."""

    @pytest.mark.parametrize(
        "current,target",
        [
            (ScheduleStatus.DRAFT, ScheduleStatus.PUBLISHED),
            (ScheduleStatus.DRAFT, ScheduleStatus.ARCHIVED),
            (ScheduleStatus.PUBLISHED, ScheduleStatus.ARCHIVED),
            (ScheduleStatus.PUBLISHED, ScheduleStatus.PUBLISHED),
        ],
    )
    def test_allowed(self, current, target):
        assert DefaultScheduleStatusPolicy().can_transition(current, target) is True

    @pytest.mark.parametrize(
        "current,target",
        [
            (ScheduleStatus.PUBLISHED, ScheduleStatus.DRAFT),
            (ScheduleStatus.ARCHIVED, ScheduleStatus.DRAFT),
            (ScheduleStatus.ARCHIVED, ScheduleStatus.PUBLISHED),
        ],
    )
    def test_rejected(self, current, target):
        assert DefaultScheduleStatusPolicy().can_transition(current, target) is False


class TestParseStatus:
    """Tests for parse_status."""

    def test_accepts_enum_and_value(self):
        assert parse_status(ScheduleStatus.ARCHIVED) is ScheduleStatus.ARCHIVED
        assert parse_status("published") is ScheduleStatus.PUBLISHED

    def test_unknown_value(self):
        assert parse_status("cancelled") is None
