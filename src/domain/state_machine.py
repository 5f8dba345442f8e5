"""
Ride Lifecycle State Machine
============================

Two layers:

* ``transition(ride, event)`` -- a pure mapping from (current ride, event)
  to a ``TransitionResult``.  Events are small frozen dataclasses (a tagged
  variant keyed by ``RideEvent``); legality comes from ``RIDE_TRANSITIONS``.
* ``RideStateMachine`` -- the explicit context object holding the single
  active ride, the completed-ride history and driver earnings.  Its seven
  named operations are the only way ride state changes.

Policy
------
Illegal calls never raise to the caller.  The guard raises
``InvalidStateTransition`` internally; ``transition`` turns it into a
rejected result carrying the unchanged ride, and the context logs it as a
diagnostic.  A duplicate ``request_ride`` silently keeps the existing ride,
and a request for an unknown vehicle type is rejected the same way.

Lifecycle::

    idle -> searching -> accepted -> driver_arrived -> in_progress -> completed
      ^         |            |              |               |
      +---------+------------+--------------+---------------+   (cancel)
"""

from __future__ import annotations

import logging
import uuid
from collections import deque
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Callable, ClassVar, Optional, Union

from .entities import (
    CompletedRide,
    Diagnostic,
    InvalidStateTransition,
    Location,
    RideRequest,
)
from .enums import (
    EVENT_TARGETS,
    RIDE_TRANSITIONS,
    DiagnosticKind,
    RideEvent,
    RideStatus,
    VehicleType,
)
from .pricing import round_half_up

logger = logging.getLogger(__name__)

MINUTES_PER_KM_ESTIMATE = 3


# ── Events ────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class RequestRide:
    ride_id: str
    origin: Location
    destination: Location
    price: float
    distance_km: float
    vehicle_type: Union[VehicleType, str]
    client_id: str
    client_name: str
    kind: ClassVar[RideEvent] = RideEvent.REQUEST


@dataclass(frozen=True)
class AcceptRide:
    driver_id: str
    kind: ClassVar[RideEvent] = RideEvent.ACCEPT


@dataclass(frozen=True)
class DriverArrived:
    kind: ClassVar[RideEvent] = RideEvent.DRIVER_ARRIVED


@dataclass(frozen=True)
class StartTrip:
    kind: ClassVar[RideEvent] = RideEvent.START


@dataclass(frozen=True)
class CompleteTrip:
    kind: ClassVar[RideEvent] = RideEvent.COMPLETE


@dataclass(frozen=True)
class CancelRide:
    kind: ClassVar[RideEvent] = RideEvent.CANCEL


@dataclass(frozen=True)
class Reset:
    kind: ClassVar[RideEvent] = RideEvent.RESET


Event = Union[
    RequestRide, AcceptRide, DriverArrived, StartTrip, CompleteTrip, CancelRide, Reset
]


@dataclass(frozen=True)
class TransitionResult:
    ride: Optional[RideRequest]
    changed: bool
    diagnostic: Optional[DiagnosticKind] = None
    message: str = ""


# ── Pure transition function ──────────────────────────────────────────


def status_of(ride: Optional[RideRequest]) -> RideStatus:
    return ride.status if ride is not None else RideStatus.IDLE


def _target_status(ride: Optional[RideRequest], event: Event) -> RideStatus:
    """Return the status *event* leads to, or raise if it is illegal now."""
    current = status_of(ride)
    if event.kind is RideEvent.RESET:
        return RideStatus.IDLE

    target = EVENT_TARGETS[event.kind]
    if target not in RIDE_TRANSITIONS[current]:
        if event.kind is RideEvent.REQUEST:
            raise InvalidStateTransition(
                "Ride already active, cannot request new one"
            )
        raise InvalidStateTransition(
            f"Cannot {event.kind.value} ride in status {current.value}"
        )
    return target


def _new_ride(event: RequestRide) -> RideRequest:
    return RideRequest(
        id=event.ride_id,
        client_id=event.client_id,
        client_name=event.client_name,
        origin=event.origin,
        destination=event.destination,
        status=RideStatus.SEARCHING,
        estimated_price=event.price,
        distance_km=event.distance_km,
        estimated_time_min=round_half_up(event.distance_km * MINUTES_PER_KM_ESTIMATE),
        vehicle_type=VehicleType(event.vehicle_type),
    )


def transition(ride: Optional[RideRequest], event: Event) -> TransitionResult:
    """Apply *event* to *ride*.  Never raises; rejected events keep *ride*."""
    if ride is None and event.kind is RideEvent.CANCEL:
        return TransitionResult(ride=None, changed=False)

    try:
        target = _target_status(ride, event)
    except InvalidStateTransition as exc:
        kind = (
            DiagnosticKind.DUPLICATE_REQUEST
            if event.kind is RideEvent.REQUEST
            else DiagnosticKind.ILLEGAL_TRANSITION
        )
        return TransitionResult(ride=ride, changed=False, diagnostic=kind, message=str(exc))

    if target is RideStatus.IDLE:
        return TransitionResult(ride=None, changed=ride is not None)
    if isinstance(event, RequestRide):
        try:
            new_ride = _new_ride(event)
        except ValueError:
            return TransitionResult(
                ride=ride,
                changed=False,
                diagnostic=DiagnosticKind.INVALID_REQUEST,
                message=f"Unknown vehicle type: {event.vehicle_type}",
            )
        return TransitionResult(ride=new_ride, changed=True)
    if isinstance(event, AcceptRide):
        return TransitionResult(
            ride=replace(ride, status=target, driver_id=event.driver_id), changed=True
        )
    return TransitionResult(ride=replace(ride, status=target), changed=True)


# ── Context object ────────────────────────────────────────────────────


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_ride_id() -> str:
    return f"ride-{uuid.uuid4().hex[:12]}"


class RideStateMachine:
    """Holds at most one active ride plus completed-ride bookkeeping."""

    def __init__(
        self,
        *,
        driver_earnings_share: float = 0.85,
        initial_earnings: float = 0.0,
        diagnostics_buffer_size: int = 100,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_ride_id,
    ):
        self.driver_earnings_share = driver_earnings_share
        self._clock = clock
        self._id_factory = id_factory
        self._ride: Optional[RideRequest] = None
        self._history: list[CompletedRide] = []
        self._earnings = initial_earnings
        self._diagnostics: deque[Diagnostic] = deque(maxlen=diagnostics_buffer_size)

    # ── Read side ─────────────────────────────────────────────────

    @property
    def active_ride(self) -> Optional[RideRequest]:
        return self._ride

    @property
    def status(self) -> RideStatus:
        return status_of(self._ride)

    @property
    def history(self) -> tuple[CompletedRide, ...]:
        """Completed rides, most recent first."""
        return tuple(self._history)

    @property
    def earnings(self) -> float:
        return self._earnings

    @property
    def diagnostics(self) -> tuple[Diagnostic, ...]:
        return tuple(self._diagnostics)

    # ── Commands ──────────────────────────────────────────────────

    def request_ride(
        self,
        origin: Location,
        destination: Location,
        price: float,
        distance_km: float,
        vehicle_type: VehicleType | str,
        client_id: str,
        client_name: str,
    ) -> Optional[RideRequest]:
        event = RequestRide(
            ride_id=self._id_factory(),
            origin=origin,
            destination=destination,
            price=price,
            distance_km=distance_km,
            vehicle_type=vehicle_type,
            client_id=client_id,
            client_name=client_name,
        )
        return self._dispatch(event)

    def accept_ride(self, driver_id: str) -> Optional[RideRequest]:
        return self._dispatch(AcceptRide(driver_id=driver_id))

    def driver_arrived(self) -> Optional[RideRequest]:
        return self._dispatch(DriverArrived())

    def start_trip(self) -> Optional[RideRequest]:
        return self._dispatch(StartTrip())

    def complete_trip(self) -> Optional[RideRequest]:
        return self._dispatch(CompleteTrip())

    def cancel_ride(self) -> Optional[RideRequest]:
        return self._dispatch(CancelRide())

    def reset(self) -> Optional[RideRequest]:
        return self._dispatch(Reset())

    # ── Internals ─────────────────────────────────────────────────

    def _dispatch(self, event: Event) -> Optional[RideRequest]:
        before = self.status
        result = transition(self._ride, event)

        if result.diagnostic is not None:
            logger.warning("%s (event=%s)", result.message, event.kind.value)
            self._diagnostics.append(
                Diagnostic(
                    kind=result.diagnostic,
                    message=result.message,
                    status=before,
                    at=self._clock(),
                )
            )
            return self._ride

        if result.changed:
            ride_id = (result.ride or self._ride).id
            logger.info(
                "Ride %s: %s -> %s", ride_id, before.value, status_of(result.ride).value
            )
            if status_of(result.ride) is RideStatus.COMPLETED:
                self._record_completion(result.ride)
        self._ride = result.ride
        return self._ride

    def _record_completion(self, ride: RideRequest) -> None:
        self._history.insert(0, CompletedRide(ride=ride, completed_at=self._clock()))
        self._earnings += ride.estimated_price * self.driver_earnings_share
