"""
Shared test fixtures.

Routing is replaced by ``ScriptedRouteProvider`` so tests control what
comes back and when (an ``asyncio.Event`` gate holds fetches open to
exercise stale results).  Clocks are fixed so history timestamps and tick
gating are deterministic.
"""

from __future__ import annotations

import asyncio
from collections import deque
from datetime import datetime, timezone
from typing import Optional, Union

import numpy as np
import pytest
import pytest_asyncio

from src.domain.distance import interpolate
from src.domain.entities import Location, RouteResult
from src.domain.enums import RideStatus
from src.domain.state_machine import RideStateMachine
from src.workers.simulator import MovementSimulator

FIXED_NOW = datetime(2026, 3, 14, 12, 30, tzinfo=timezone.utc)

# La Rioja city centre -> a few blocks north-east
ORIGIN = Location(-29.4131, -66.8558, "Plaza 25 de Mayo")
DESTINATION = Location(-29.4100, -66.8500)


class ScriptedRouteProvider:
    """Route provider double.

    Queued entries are returned in order (an ``Exception`` entry is raised);
    once the queue is empty every call gets a three-point path from start to
    end.  When ``gate`` is set, each call waits on it before answering.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Location, Location]] = []
        self.results: deque[Union[Optional[RouteResult], Exception]] = deque()
        self.gate: Optional[asyncio.Event] = None
        self.closed = False

    async def get_route(self, start: Location, end: Location) -> Optional[RouteResult]:
        self.calls.append((start, end))
        if self.gate is not None:
            await self.gate.wait()
        if self.results:
            result = self.results.popleft()
            if isinstance(result, Exception):
                raise result
            return result
        path = (start, interpolate(start, end, 0.5), end)
        return RouteResult(path=path, distance_m=1000.0, duration_s=240.0)

    async def aclose(self) -> None:
        self.closed = True


def request_default_ride(machine: RideStateMachine, **overrides):
    kwargs = dict(
        origin=ORIGIN,
        destination=DESTINATION,
        price=1000,
        distance_km=5,
        vehicle_type="auto",
        client_id="c1",
        client_name="X",
    )
    kwargs.update(overrides)
    return machine.request_ride(**kwargs)


def drive_to(machine: RideStateMachine, status: RideStatus) -> None:
    """Walk a fresh machine through the legal path up to *status*."""
    steps = [
        (RideStatus.SEARCHING, lambda: request_default_ride(machine)),
        (RideStatus.ACCEPTED, lambda: machine.accept_ride("driver-1")),
        (RideStatus.DRIVER_ARRIVED, machine.driver_arrived),
        (RideStatus.IN_PROGRESS, machine.start_trip),
        (RideStatus.COMPLETED, machine.complete_trip),
    ]
    if status is RideStatus.IDLE:
        return
    for reached, command in steps:
        command()
        if reached is status:
            return


@pytest.fixture
def machine() -> RideStateMachine:
    counter = iter(range(1, 1000))
    return RideStateMachine(
        clock=lambda: FIXED_NOW,
        id_factory=lambda: f"ride-{next(counter)}",
    )


@pytest.fixture
def provider() -> ScriptedRouteProvider:
    return ScriptedRouteProvider()


@pytest_asyncio.fixture
async def simulator(machine, provider):
    sim = MovementSimulator(
        machine,
        provider,
        rng=np.random.default_rng(42),
        tick_interval_s=0.040,
        completed_reset_delay_s=None,
        clock=lambda: 0.0,
    )
    yield sim
    await sim.stop()
