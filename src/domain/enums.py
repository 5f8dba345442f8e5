"""Domain enumerations and state-transition rules."""

import enum


class RideStatus(str, enum.Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    ACCEPTED = "accepted"
    DRIVER_ARRIVED = "driver_arrived"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class RideEvent(str, enum.Enum):
    REQUEST = "request"
    ACCEPT = "accept"
    DRIVER_ARRIVED = "driver_arrived"
    START = "start"
    COMPLETE = "complete"
    CANCEL = "cancel"
    RESET = "reset"


# State machine: maps current status -> set of valid next statuses.
# IDLE stands for "no ride"; a cancelled ride goes straight back to IDLE.
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.IDLE: {RideStatus.SEARCHING},
    RideStatus.SEARCHING: {RideStatus.ACCEPTED, RideStatus.IDLE},
    RideStatus.ACCEPTED: {RideStatus.DRIVER_ARRIVED, RideStatus.IDLE},
    RideStatus.DRIVER_ARRIVED: {RideStatus.IN_PROGRESS, RideStatus.IDLE},
    RideStatus.IN_PROGRESS: {RideStatus.COMPLETED, RideStatus.IDLE},
    RideStatus.COMPLETED: set(),
}

# Event -> status it leads to.  Legality is decided by RIDE_TRANSITIONS;
# RESET is absent because it bypasses the table.
EVENT_TARGETS: dict[RideEvent, RideStatus] = {
    RideEvent.REQUEST: RideStatus.SEARCHING,
    RideEvent.ACCEPT: RideStatus.ACCEPTED,
    RideEvent.DRIVER_ARRIVED: RideStatus.DRIVER_ARRIVED,
    RideEvent.START: RideStatus.IN_PROGRESS,
    RideEvent.COMPLETE: RideStatus.COMPLETED,
    RideEvent.CANCEL: RideStatus.IDLE,
}

# Statuses during which the vehicle drives along a leg.
MOVING_STATUSES: frozenset[RideStatus] = frozenset(
    {RideStatus.ACCEPTED, RideStatus.IN_PROGRESS}
)


class VehicleType(str, enum.Enum):
    MOTO = "moto"
    AUTO = "auto"
    FLASH = "flash"  # economy auto


class DiagnosticKind(str, enum.Enum):
    ILLEGAL_TRANSITION = "illegal_transition"
    DUPLICATE_REQUEST = "duplicate_request"
    INVALID_REQUEST = "invalid_request"
