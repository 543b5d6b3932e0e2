"""Tests for weekly schedule generation and publishing."""

from datetime import date

import pytest

from carpoolhelper.domain.models import (
    DayPreference,
    ScheduleGenerationOptions,
    ScheduleStatus,
)
from carpoolhelper.domain.results import BadRequestError
from carpoolhelper.integrations.collaborators import InMemoryDirectory, TripMaterializer
from carpoolhelper.scheduling.weekly_scheduler import ScheduleGenerator, describe_week
from carpoolhelper.storage.repositories import (
    InMemoryPreferenceRepository,
    InMemoryScheduleRepository,
)

from tests.helpers import FIXED_NOW, MONDAY, make_group, rider_week


class ExplodingTripMaterializer(TripMaterializer):
    """Trip layer that always raises."""

    def create_trip(self, spec, actor_id):
        raise RuntimeError("trip service unavailable")


@pytest.fixture
def preference_repository():
    return InMemoryPreferenceRepository(clock=lambda: FIXED_NOW)


@pytest.fixture
def schedule_repository():
    return InMemoryScheduleRepository()


@pytest.fixture
def generator(directory, preference_repository, schedule_repository, trips, notifications):
    return ScheduleGenerator(
        directory,
        preference_repository,
        schedule_repository,
        trip_materializer=trips,
        notification_dispatcher=notifications,
        clock=lambda: FIXED_NOW,
    )


def submit_all_flexible(repository, members=("A", "B", "C"), week_start=MONDAY):
    for member_id in members:
        repository.upsert(
            member_id, "G1", week_start,
            {name: DayPreference.flexible() for name in
             ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday"]},
        )


def options(**kwargs):
    kwargs.setdefault("group_id", "G1")
    kwargs.setdefault("week_start_date", MONDAY)
    return ScheduleGenerationOptions(**kwargs)


class TestScheduleGenerator:
    """Tests for ScheduleGenerator.generate."""

    def test_unknown_group(self, generator):
        with pytest.raises(BadRequestError, match="Group not found"):
            generator.generate(options(group_id="NOPE"))

    def test_full_week_round_robin(self, generator, preference_repository):
        submit_all_flexible(preference_repository)
        result = generator.generate(options(consider_fairness=False))

        schedule = result.schedule
        assert [a.driver_id for a in schedule.assignments] == ["A", "B", "C", "A", "B"]
        assert schedule.get_assignment_for_day(0).passengers == ["B", "C"]
        assert schedule.fairness_score == pytest.approx(7 / 9)
        assert result.warnings == []
        assert schedule.notes is None

    def test_week_start_normalized(self, generator, preference_repository):
        submit_all_flexible(preference_repository)
        result = generator.generate(options(week_start_date=date(2024, 1, 18)))
        schedule = result.schedule
        assert schedule.week_start == MONDAY
        assert [a.date for a in schedule.assignments] == schedule.schedule_dates

    def test_fairness_spreads_driving(self, generator, preference_repository):
        """With no history everyone has equal debt, so drivers rotate as history grows."""
        submit_all_flexible(preference_repository)
        first = generator.generate(options()).schedule
        assert len(first.assignments) == 5

        submit_all_flexible(preference_repository, week_start=date(2024, 1, 22))
        second = generator.generate(options(week_start_date=date(2024, 1, 22))).schedule
        # Week one used the first available driver for every day
        assert {a.driver_id for a in first.assignments} == {"A"}
        assert {a.driver_id for a in second.assignments} == {"B"}

    def test_each_member_at_most_once_per_day(self, generator, preference_repository):
        submit_all_flexible(preference_repository)
        schedule = generator.generate(options()).schedule
        for a in schedule.assignments:
            assert len(a.participants) == len(set(a.participants))
            assert len(a.passengers) <= 4
        assert len({a.day_of_week for a in schedule.assignments}) == len(schedule.assignments)

    def test_dry_run_not_persisted(self, generator, preference_repository,
                                   schedule_repository, trips):
        submit_all_flexible(preference_repository)
        result = generator.generate(options(dry_run=True))
        assert result.schedule.status == ScheduleStatus.DRAFT
        assert len(schedule_repository) == 0
        assert trips.trips == []
        assert result.trip_ids == []

    def test_publish_persists_and_creates_trips(self, generator, preference_repository,
                                                schedule_repository, trips):
        submit_all_flexible(preference_repository)
        result = generator.generate(options(requester_id="ADMIN"))

        schedule = result.schedule
        assert schedule.status == ScheduleStatus.PUBLISHED
        assert schedule.generated_by == "ADMIN"
        assert schedule.generated_at == FIXED_NOW
        assert schedule_repository.get(schedule.id) is schedule
        assert len(trips.trips) == 5
        assert result.trip_ids == [trip_id for trip_id, _, _ in trips.trips]

        _, spec, actor = trips.trips[0]
        assert actor == "ADMIN"
        assert spec.group_id == "G1"
        assert spec.driver_id == schedule.assignments[0].driver_id
        assert spec.passengers == schedule.assignments[0].passengers
        assert spec.scheduled_start_time == schedule.assignments[0].start_datetime
        assert spec.pickup_address == "Default pickup address"
        assert schedule.id in spec.notes

    def test_generated_by_defaults_to_system(self, generator, preference_repository):
        submit_all_flexible(preference_repository)
        assert generator.generate(options()).schedule.generated_by == "system"

    def test_trip_failure_becomes_warning(self, generator, preference_repository,
                                          schedule_repository, trips):
        submit_all_flexible(preference_repository)
        trips.fail_for_drivers.add("B")
        result = generator.generate(options(consider_fairness=False))

        assert len(schedule_repository) == 1
        assert len(trips.trips) == 3
        assert result.warnings == [
            "Failed to create trip for Tuesday: Driver B cannot accept trips",
            "Failed to create trip for Friday: Driver B cannot accept trips",
        ]

    def test_trip_failures_recorded_in_notes(self, generator, preference_repository,
                                             schedule_repository, trips):
        submit_all_flexible(preference_repository)
        trips.fail_for_drivers.add("B")
        schedule = generator.generate(options(consider_fairness=False)).schedule

        stored = schedule_repository.get(schedule.id)
        assert stored.notes == (
            "Warnings: Failed to create trip for Tuesday: Driver B cannot accept trips; "
            "Failed to create trip for Friday: Driver B cannot accept trips"
        )

    def test_trip_exception_becomes_warning(self, directory, preference_repository,
                                            schedule_repository):
        generator = ScheduleGenerator(
            directory, preference_repository, schedule_repository,
            trip_materializer=ExplodingTripMaterializer(),
        )
        submit_all_flexible(preference_repository)
        result = generator.generate(options())
        assert result.schedule.status == ScheduleStatus.PUBLISHED
        assert len(result.warnings) == 5
        assert "trip service unavailable" in result.warnings[0]

    def test_unfilled_days_reported(self, generator, preference_repository):
        for member_id in ["A", "B", "C"]:
            days = {name: DayPreference.flexible() for name in ["Monday", "Tuesday", "Thursday"]}
            preference_repository.upsert(member_id, "G1", MONDAY, days)

        result = generator.generate(options())
        assert len(result.schedule.assignments) == 3
        assert result.warnings == [
            "No available drivers for Wednesday",
            "No available drivers for Friday",
        ]
        assert result.schedule.notes == (
            "Warnings: No available drivers for Wednesday; No available drivers for Friday"
        )

    def test_partial_generation_disallowed(self, generator, preference_repository,
                                           schedule_repository, trips):
        for member_id in ["A", "B", "C"]:
            preference_repository.upsert(member_id, "G1", MONDAY, rider_week())

        with pytest.raises(BadRequestError, match="Unable to fill every weekday"):
            generator.generate(options(allow_partial_generation=False))
        assert len(schedule_repository) == 0
        assert trips.trips == []

    def test_no_preferences_gives_empty_week(self, generator):
        result = generator.generate(options())
        assert result.schedule.assignments == ()
        assert result.schedule.fairness_score == 1.0
        assert len(result.warnings) == 5

    def test_regeneration_supersedes_published(self, generator, preference_repository,
                                               schedule_repository):
        submit_all_flexible(preference_repository)
        first = generator.generate(options()).schedule
        second_result = generator.generate(options())
        second = second_result.schedule

        assert second_result.superseded_ids == [first.id]
        assert first.status == ScheduleStatus.ARCHIVED
        assert first.superseded_by == second.id
        assert second.status == ScheduleStatus.PUBLISHED

    def test_competing_publish_leaves_one_published(self, directory, preference_repository):
        class InterleavingScheduleRepository(InMemoryScheduleRepository):
            """Lets another generation publish first, once."""

            interleaved = False

            def publish(self, schedule, supersede=True):
                if not self.interleaved:
                    self.interleaved = True
                    competing.append(generator.generate(options()).schedule)
                return super().publish(schedule, supersede)

        competing = []
        repository = InterleavingScheduleRepository()
        generator = ScheduleGenerator(directory, preference_repository, repository)
        submit_all_flexible(preference_repository)
        result = generator.generate(options())

        [other] = competing
        published = repository.query(group_id="G1", status=ScheduleStatus.PUBLISHED)
        assert published == [result.schedule]
        assert result.superseded_ids == [other.id]
        assert other.superseded_by == result.schedule.id

    def test_regeneration_does_not_double_count(self, generator, preference_repository):
        submit_all_flexible(preference_repository)
        generator.generate(options())
        generator.generate(options())

        group = generator.directory.get_group_by_id("G1")
        metrics = generator.calculate_fairness_metrics(group)
        assert sum(m.driving_assignments for m in metrics) == 5

    def test_notify_participants(self, generator, preference_repository, notifications):
        submit_all_flexible(preference_repository)
        schedule = generator.generate(options(notify_participants=True)).schedule
        notified = [member_id for member_id, _ in notifications.schedule_notices]
        assert sorted(notified) == ["A", "B", "C"]
        assert all(sid == schedule.id for _, sid in notifications.schedule_notices)

    def test_no_notices_by_default(self, generator, preference_repository, notifications):
        submit_all_flexible(preference_repository)
        generator.generate(options())
        assert notifications.schedule_notices == []


class TestDescribeWeek:
    """Tests for describe_week."""

    def test_lines_per_weekday(self, generator, preference_repository):
        for member_id in ["A", "B"]:
            preference_repository.upsert(
                member_id, "G1", MONDAY, {"Monday": DayPreference.flexible()}
            )
        lines = describe_week(generator.generate(options(dry_run=True)).schedule)
        assert len(lines) == 5
        assert lines[0].startswith("Monday")
        assert "driver=A" in lines[0]
        assert "passengers=B" in lines[0]
        assert lines[1].endswith("(no carpool)")

    def test_display_names(self, generator, preference_repository):
        for member_id in ["A", "B", "C"]:
            preference_repository.upsert(
                member_id, "G1", MONDAY, {"Monday": DayPreference.flexible()}
            )
        schedule = generator.generate(options(dry_run=True)).schedule
        lines = describe_week(schedule, {"A": "Alice", "C": "Carol"})
        assert "driver=Alice" in lines[0]
        assert lines[0].endswith("passengers=B, Carol")

    def test_overlapping_ids_named_whole(self, preference_repository):
        group = make_group(["U1", "U10"], group_id="G2")
        generator = ScheduleGenerator(
            InMemoryDirectory(groups=[group]),
            preference_repository,
            InMemoryScheduleRepository(),
        )
        for member_id in ["U1", "U10"]:
            preference_repository.upsert(
                member_id, "G2", MONDAY, {"Monday": DayPreference.flexible()}
            )
        schedule = generator.generate(options(group_id="G2", dry_run=True)).schedule
        lines = describe_week(schedule, {"U1": "Una", "U10": "Ulric"})
        assert "driver=Una " in lines[0]
        assert lines[0].endswith("passengers=Ulric")
