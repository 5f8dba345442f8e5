"""
Domain entities and value objects.

All entities are frozen dataclasses: a ride never changes in place, every
lifecycle transition produces a new ``RideRequest`` snapshot (see
``src.domain.state_machine``).  Route paths are tuples so a leg is replaced
wholesale instead of being edited.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import DiagnosticKind, RideStatus, VehicleType


class InvalidStateTransition(Exception):
    """Raised when a ride status change violates the state machine."""


# ── Value Objects ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: Optional[str] = None


RoutePath = tuple[Location, ...]


@dataclass(frozen=True)
class SimulationCursor:
    """Position along the current ``RoutePath`` plus the last heading."""

    index: int = 0
    heading: float = 0.0


# ── Entities ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RideRequest:
    id: str
    client_id: str
    client_name: str
    origin: Location
    destination: Location
    status: RideStatus
    estimated_price: float
    distance_km: float
    estimated_time_min: int
    vehicle_type: VehicleType
    driver_id: Optional[str] = None


@dataclass(frozen=True)
class CompletedRide:
    ride: RideRequest
    completed_at: datetime


@dataclass(frozen=True)
class Diagnostic:
    kind: DiagnosticKind
    message: str
    status: RideStatus
    at: datetime


@dataclass(frozen=True)
class RouteResult:
    path: RoutePath
    distance_m: float
    duration_s: float


@dataclass(frozen=True)
class SimulationSnapshot:
    """Read-only view handed to rendering consumers."""

    ride: Optional[RideRequest]
    status: RideStatus
    vehicle: Optional[Location]
    heading: float
    route: RoutePath = field(default_factory=tuple)
    cursor_index: int = 0
    route_pending: bool = False
