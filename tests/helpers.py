"""Builders shared by the carpool scheduling tests."""

from datetime import date, datetime

from carpoolhelper.domain.models import (
    WEEKDAY_NAMES,
    DayPreference,
    GroupEntity,
    GroupMember,
    WeeklyPreference,
)

MONDAY = date(2024, 1, 15)
FIXED_NOW = datetime(2024, 1, 10, 9, 30)


def flexible_week() -> dict[str, DayPreference]:
    """Preferences for a member who can drive or ride every day."""
    return {name: DayPreference.flexible() for name in WEEKDAY_NAMES}


def rider_week() -> dict[str, DayPreference]:
    """Preferences for a member who can only ride."""
    return {name: DayPreference(can_passenger=True) for name in WEEKDAY_NAMES}


def make_preference(user_id: str, days=None, group_id: str = "G1", week_start=MONDAY):
    return WeeklyPreference(
        id=f"P-{user_id}",
        user_id=user_id,
        group_id=group_id,
        week_start=week_start,
        preferences=days if days is not None else flexible_week(),
    )


def make_group(member_ids, group_id: str = "G1", admin_id: str = "ADMIN") -> GroupEntity:
    return GroupEntity(
        id=group_id,
        name="Test Carpool",
        members=[GroupMember(user_id=m) for m in member_ids],
        group_admin_id=admin_id,
    )
