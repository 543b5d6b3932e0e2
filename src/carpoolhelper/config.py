"""Configuration for the carpool scheduling service."""

from dataclasses import dataclass, field
from datetime import time


@dataclass
class SchedulingConfig:
    """Tunable defaults for schedule generation.

    Real pickup/dropoff times and addresses come from the group's
    schedule configuration; these placeholders fill in until then.

    Attributes:
        max_passengers: Seats available per trip (driver excluded).
        default_start_time: Placeholder departure time for every trip.
        default_end_time: Placeholder arrival time for every trip.
        estimated_distance: Placeholder trip distance in miles.
        pickup_address: Placeholder pickup address sent to the trip layer.
        dropoff_address: Placeholder dropoff address sent to the trip layer.
        system_admin_roles: Directory roles with access to every group.
        default_generated_by: Recorded author when no requester is given.
        supersede_published: Archive the previously published schedule for a
            week when a new one is published.
    """

    max_passengers: int = 4
    default_start_time: time = time(8, 0)
    default_end_time: time = time(8, 30)
    estimated_distance: float = 10.0
    pickup_address: str = "Default pickup address"
    dropoff_address: str = "Default dropoff address"
    system_admin_roles: frozenset[str] = field(
        default_factory=lambda: frozenset({"super_admin", "group_admin"})
    )
    default_generated_by: str = "system"
    supersede_published: bool = True
