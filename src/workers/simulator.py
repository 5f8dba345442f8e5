"""
Movement Simulator
==================

Drives the simulated vehicle along the current leg and feeds arrivals back
into the ``RideStateMachine``.

Scheduling
----------
* ``start()`` launches one asyncio task that calls ``step()`` every
  ``poll_interval`` (default 10 ms).  ``step()`` is synchronous, so two
  ticks can never be in flight at once.
* A step only *acts* once ``tick_interval`` (default 40 ms, 25 Hz) has
  elapsed since the last acted tick; earlier calls are no-ops.
* ``stop()`` cancels the loop and any outstanding route fetch; it is
  idempotent and makes every later ``step()`` a no-op.

Legs
----
The leg is re-evaluated only when the observed (status, ride id) pair
changes:

* ``accepted``    -- vehicle -> ride origin (vehicle spawned near the origin
  if its position is still unknown);
* ``in_progress`` -- vehicle (or origin) -> ride destination;
* anything else   -- no leg, path and cursor cleared.

Route fetches run as separate tasks tagged with a leg generation.  A result
is applied only if its generation, ride and status are still current;
otherwise it is dropped.  A failed fetch degrades to a straight two-point
leg so the simulation never stalls.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np

from src.domain.distance import bearing_deg
from src.domain.entities import (
    Location,
    RideRequest,
    RoutePath,
    SimulationCursor,
    SimulationSnapshot,
)
from src.domain.enums import MOVING_STATUSES, RideStatus
from src.domain.state_machine import RideStateMachine, status_of
from src.infrastructure.routing import RouteProvider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Leg:
    generation: int
    ride_id: str
    status: RideStatus
    start: Location
    end: Location


class MovementSimulator:
    def __init__(
        self,
        machine: RideStateMachine,
        route_provider: RouteProvider,
        *,
        rng: Optional[np.random.Generator] = None,
        tick_interval_s: float = 0.040,
        poll_interval_s: float = 0.010,
        spawn_offset_deg: float = 0.02,
        heading_epsilon: float = 1e-6,
        completed_reset_delay_s: Optional[float] = 3.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.machine = machine
        self.route_provider = route_provider
        self.rng = rng if rng is not None else np.random.default_rng()
        self.tick_interval_s = tick_interval_s
        self.poll_interval_s = poll_interval_s
        self.spawn_offset_deg = spawn_offset_deg
        self.heading_epsilon = heading_epsilon
        self.completed_reset_delay_s = completed_reset_delay_s
        self._clock = clock

        self._vehicle: Optional[Location] = None
        self._heading = 0.0
        self._path: RoutePath = ()
        self._cursor = SimulationCursor()

        self._observed: tuple[RideStatus, Optional[str]] = (RideStatus.IDLE, None)
        self._generation = 0
        self._fetches: set[asyncio.Task] = set()
        self._last_tick_at: Optional[float] = None
        self._completed_seen_at: Optional[float] = None

        self._task: Optional[asyncio.Task] = None
        self._stop_event: Optional[asyncio.Event] = None
        self._closed = False

    # ── Read side ─────────────────────────────────────────────────

    @property
    def vehicle(self) -> Optional[Location]:
        return self._vehicle

    @property
    def heading(self) -> float:
        return self._heading

    @property
    def route(self) -> RoutePath:
        return self._path

    @property
    def cursor(self) -> SimulationCursor:
        return self._cursor

    @property
    def route_pending(self) -> bool:
        return bool(self._fetches)

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def snapshot(self) -> SimulationSnapshot:
        ride = self.machine.active_ride
        return SimulationSnapshot(
            ride=ride,
            status=status_of(ride),
            vehicle=self._vehicle,
            heading=self._heading,
            route=self._path,
            cursor_index=self._cursor.index,
            route_pending=self.route_pending,
        )

    # ── Lifecycle ─────────────────────────────────────────────────

    async def start(self) -> None:
        if self.running:
            return
        self._closed = False
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._loop(self._stop_event))
        logger.info(
            "Movement simulator started (tick=%.0fms, poll=%.0fms)",
            self.tick_interval_s * 1000,
            self.poll_interval_s * 1000,
        )

    async def stop(self) -> None:
        self._closed = True
        if self._stop_event:
            self._stop_event.set()

        task, self._task = self._task, None
        if task:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
            logger.info("Movement simulator stopped")

        fetches = list(self._fetches)
        for fetch in fetches:
            fetch.cancel()
        if fetches:
            await asyncio.gather(*fetches, return_exceptions=True)

    async def wait_for_routes(self) -> None:
        """Wait until every outstanding route fetch has settled."""
        while self._fetches:
            await asyncio.gather(*list(self._fetches), return_exceptions=True)

    async def _loop(self, stop_event: asyncio.Event) -> None:
        while not stop_event.is_set():
            try:
                self.step()
            except Exception:
                logger.exception("Unhandled error in simulation tick")
            try:
                await asyncio.wait_for(
                    stop_event.wait(), timeout=self.poll_interval_s
                )
                break
            except asyncio.TimeoutError:
                pass  # next poll

    # ── Tick ──────────────────────────────────────────────────────

    def step(self, now: Optional[float] = None) -> bool:
        """Evaluate one tick.  Returns True if the vehicle moved."""
        if self._closed:
            return False
        now = self._clock() if now is None else now

        ride = self.machine.active_ride
        status = status_of(ride)
        key = (status, ride.id if ride else None)
        if key != self._observed:
            self._observed = key
            self._on_phase_change(ride, status, now)

        if status is RideStatus.COMPLETED:
            self._maybe_reset_completed(now)
            return False

        if status not in MOVING_STATUSES or not self._path:
            return False
        if (
            self._last_tick_at is not None
            and now - self._last_tick_at < self.tick_interval_s
        ):
            return False

        self._last_tick_at = now
        self._advance(status)
        return True

    def _advance(self, status: RideStatus) -> None:
        last = len(self._path) - 1
        index = self._cursor.index
        if index < last:
            prev, nxt = self._path[index], self._path[index + 1]
            self._heading = bearing_deg(prev, nxt, self._heading, self.heading_epsilon)
            self._cursor = SimulationCursor(index=index + 1, heading=self._heading)
            self._vehicle = nxt

        if self._cursor.index >= last:
            self._arrive(status)

    def _arrive(self, status: RideStatus) -> None:
        # Path goes first: with no path left no second arrival can fire.
        self._clear_path()
        if status is RideStatus.ACCEPTED:
            logger.info("Vehicle reached pickup")
            self.machine.driver_arrived()
        elif status is RideStatus.IN_PROGRESS:
            logger.info("Vehicle reached destination")
            self.machine.complete_trip()

    def _maybe_reset_completed(self, now: float) -> None:
        if self.completed_reset_delay_s is None or self._completed_seen_at is None:
            return
        if now - self._completed_seen_at >= self.completed_reset_delay_s:
            self._completed_seen_at = None
            self.machine.reset()

    # ── Legs ──────────────────────────────────────────────────────

    def _on_phase_change(
        self, ride: Optional[RideRequest], status: RideStatus, now: float
    ) -> None:
        self._generation += 1
        self._clear_path()
        self._completed_seen_at = now if status is RideStatus.COMPLETED else None

        if ride is None or status not in MOVING_STATUSES:
            return

        if status is RideStatus.ACCEPTED:
            if self._vehicle is None:
                self._vehicle = self._spawn_near(ride.origin)
            start, end = self._vehicle, ride.origin
        else:
            start, end = self._vehicle or ride.origin, ride.destination

        leg = Leg(
            generation=self._generation,
            ride_id=ride.id,
            status=status,
            start=start,
            end=end,
        )
        task = asyncio.get_running_loop().create_task(self._fetch(leg))
        self._fetches.add(task)
        task.add_done_callback(self._fetches.discard)

    def _spawn_near(self, origin: Location) -> Location:
        d_lat = (self.rng.random() - 0.5) * self.spawn_offset_deg
        d_lng = (self.rng.random() - 0.5) * self.spawn_offset_deg
        return Location(origin.latitude + d_lat, origin.longitude + d_lng)

    async def _fetch(self, leg: Leg) -> None:
        try:
            result = await self.route_provider.get_route(leg.start, leg.end)
        except Exception:
            logger.exception("Route provider failed for ride %s", leg.ride_id)
            result = None

        if not self._is_current(leg):
            logger.debug(
                "Discarding stale route for ride %s (%s)", leg.ride_id, leg.status.value
            )
            return

        if result is None or not result.path:
            logger.warning(
                "No route for ride %s, falling back to straight line", leg.ride_id
            )
            self._adopt((leg.start, leg.end))
        else:
            self._adopt(result.path)

    def _is_current(self, leg: Leg) -> bool:
        ride = self.machine.active_ride
        return (
            not self._closed
            and leg.generation == self._generation
            and ride is not None
            and ride.id == leg.ride_id
            and ride.status is leg.status
        )

    def _adopt(self, path: RoutePath) -> None:
        self._path = tuple(path)
        self._cursor = SimulationCursor(index=0, heading=self._heading)

    def _clear_path(self) -> None:
        self._path = ()
        self._cursor = SimulationCursor(index=0, heading=self._heading)
