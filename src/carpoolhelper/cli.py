"""Command-line interface for the carpool scheduling tool."""

import argparse
import logging
import sys
from datetime import date, timedelta
from typing import Optional

from carpoolhelper.domain.models import (
    WEEKDAY_NAMES,
    DayPreference,
    GroupEntity,
    GroupMember,
    ScheduleGenerationOptions,
    UserEntity,
    UserRole,
    week_start_for,
)
from carpoolhelper.integrations.collaborators import (
    InMemoryDirectory,
    RecordingNotificationDispatcher,
    RecordingTripMaterializer,
)
from carpoolhelper.output.pdf_generator import PDFGenerator
from carpoolhelper.scheduling.service import SchedulingService
from carpoolhelper.scheduling.weekly_scheduler import describe_week

DEMO_GROUP_ID = "G001"
DEMO_ADMIN_ID = "ADMIN"


def create_sample_group(count: int = 5) -> tuple[GroupEntity, list[UserEntity]]:
    """Create a sample carpool group and its parents.

    Args:
        count: Number of member families to create.
    """
    names = [
        "Alice", "Bob", "Carol", "David", "Eve", "Frank", "Grace", "Henry",
        "Ivy", "Jack", "Kate", "Leo", "Mia", "Noah", "Olivia", "Paul",
    ]

    users = [UserEntity(id=DEMO_ADMIN_ID, first_name="Group", last_name="Admin",
                        role=UserRole.GROUP_ADMIN)]
    members = []
    for i in range(count):
        name = names[i % len(names)]
        if i >= len(names):
            name = f"{name}{i // len(names) + 1}"
        user_id = f"U{i + 1:03d}"
        users.append(UserEntity(id=user_id, first_name=name, last_name="Parent"))
        # Every fourth family has no car
        members.append(GroupMember(user_id=user_id, can_drive=i % 4 != 3))

    group = GroupEntity(
        id=DEMO_GROUP_ID,
        name="Demo Elementary Carpool",
        members=members,
        group_admin_id=DEMO_ADMIN_ID,
    )
    return group, users


def create_sample_preferences(group: GroupEntity, week_index: int = 0) -> dict[str, dict]:
    """Create weekly preferences for every group member.

    Availability varies by member and week so the rotation is visible.
    """
    result = {}
    for i, member in enumerate(group.members):
        days = {}
        for d, name in enumerate(WEEKDAY_NAMES):
            if (i + d + week_index) % 7 == 6:
                # Occasional day out
                days[name] = DayPreference.unavailable()
                continue
            days[name] = DayPreference(
                can_drive=member.can_drive and (i + d) % 5 != 4,
                can_passenger=True,
            )
        result[member.user_id] = days
    return result


def run_demo(
    member_count: int = 5,
    weeks: int = 1,
    consider_fairness: bool = True,
    output_path: Optional[str] = None,
    start: Optional[date] = None,
) -> int:
    """Run a demo: collect preferences, generate schedules, print fairness."""
    first_week = week_start_for(start or date.today())
    print(f"Generating {weeks} week(s) of carpool for {member_count} families "
          f"starting {first_week}...")

    group, users = create_sample_group(member_count)
    directory = InMemoryDirectory(groups=[group], users=users)
    trips = RecordingTripMaterializer()
    notifications = RecordingNotificationDispatcher()
    service = SchedulingService(
        directory,
        trip_materializer=trips,
        notification_dispatcher=notifications,
    )
    names = {u.id: u.display_name for u in users}

    schedule = None
    for week_index in range(weeks):
        week_start = first_week + timedelta(weeks=week_index)
        for user_id, days in create_sample_preferences(group, week_index).items():
            submitted = service.submit_weekly_preferences(user_id, group.id, week_start, days)
            if not submitted.success:
                print(f"  Preference submission failed for {user_id}: {submitted.error}")
                return 1

        result = service.generate_weekly_schedule(
            ScheduleGenerationOptions(
                group_id=group.id,
                week_start_date=week_start,
                consider_fairness=consider_fairness,
                notify_participants=True,
                requester_id=DEMO_ADMIN_ID,
            )
        )
        if not result.success:
            print(f"  Generation failed: {result.error}")
            return 1

        schedule = result.data
        print(f"\n{'=' * 60}")
        print(f"Week of {schedule.week_start} "
              f"(fairness score {schedule.fairness_score:.2f})")
        print(f"{'=' * 60}")
        for line in describe_week(schedule, names):
            print(f"  {line}")

        if result.warnings:
            print(f"\nWarnings ({len(result.warnings)}):")
            for warning in result.warnings:
                print(f"    - {warning}")

    metrics_result = service.get_fairness_metrics(group.id, DEMO_ADMIN_ID)
    metrics = metrics_result.data or []
    print(f"\nFairness Metrics (least driving first):")
    for metric in metrics:
        print(f"  {metric.user_name:<16} drove {metric.driving_assignments:>2}  "
              f"rode {metric.passenger_assignments:>2}  "
              f"score {metric.fairness_score:.2f}  debt {metric.fairness_debt:+.2f}")

    print(f"\nTrips created: {len(trips.trips)}")
    print(f"Schedule notices sent: {len(notifications.schedule_notices)}")

    if output_path and schedule is not None:
        print(f"\nGenerating PDF: {output_path}")
        PDFGenerator().generate(schedule, names, output_path, fairness_metrics=metrics)
        print("  PDF created successfully!")

    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = argparse.ArgumentParser(
        description="Carpool Helper - Weekly Carpool Scheduling Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s demo                       Schedule one week for 5 families
  %(prog)s demo --count 8             Schedule one week for 8 families
  %(prog)s demo --weeks 4             Schedule four weeks and show fairness
  %(prog)s demo --no-fairness         Use round-robin driver rotation
  %(prog)s demo --output week.pdf     Generate PDF roster
        """,
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    demo_parser = subparsers.add_parser("demo", help="Run demo carpool scheduling")
    demo_parser.add_argument(
        "--count", "-c",
        type=int,
        default=5,
        help="Number of families in the group (default: 5)",
    )
    demo_parser.add_argument(
        "--weeks", "-w",
        type=int,
        default=1,
        help="Number of consecutive weeks to schedule (default: 1)",
    )
    demo_parser.add_argument(
        "--start", "-s",
        type=date.fromisoformat,
        help="Any date in the first week, YYYY-MM-DD (default: today)",
    )
    demo_parser.add_argument(
        "--no-fairness",
        action="store_true",
        help="Rotate drivers round-robin instead of by fairness debt",
    )
    demo_parser.add_argument(
        "--output", "-o",
        type=str,
        help="Output PDF file path for the last week",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "demo":
        return run_demo(
            member_count=args.count,
            weeks=args.weeks,
            consider_fairness=not args.no_fairness,
            output_path=args.output,
            start=args.start,
        )
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
