"""Scheduling engine for generating weekly carpool schedules."""

from carpoolhelper.scheduling.day_assignment import DayAssignmentEngine
from carpoolhelper.scheduling.fairness import (
    FairnessCalculator,
    calculate_schedule_fairness_score,
)
from carpoolhelper.scheduling.service import SchedulingService
from carpoolhelper.scheduling.weekly_scheduler import (
    GenerationResult,
    ScheduleGenerator,
    describe_week,
)

__all__ = [
    # Service entry point
    "SchedulingService",
    # Engines
    "ScheduleGenerator",
    "GenerationResult",
    "DayAssignmentEngine",
    "FairnessCalculator",
    "calculate_schedule_fairness_score",
    "describe_week",
]
