"""
Concurrency safety tests.

Demonstrates:
1. A route fetch that resolves after its leg is gone is discarded.
2. Ticking continues (as no-ops) while a fetch is outstanding.
3. Teardown stops ticking and is idempotent.
4. Racing ride requests still leave exactly one active ride.
"""

from __future__ import annotations

import asyncio

import pytest

from src.domain.entities import Location
from src.domain.enums import RideStatus
from tests.conftest import ORIGIN, drive_to, request_default_ride


class TestStaleRoutes:
    @pytest.mark.asyncio
    async def test_route_for_cancelled_ride_is_discarded(
        self, machine, simulator, provider
    ):
        provider.gate = asyncio.Event()
        request_default_ride(machine)
        machine.accept_ride("driver-1")
        simulator.step(0.0)
        await asyncio.sleep(0)  # let the fetch start and block on the gate
        assert simulator.route_pending

        machine.cancel_ride()
        simulator.step(0.1)

        provider.gate.set()
        await simulator.wait_for_routes()

        assert simulator.route == ()
        assert simulator.step(1.0) is False

    @pytest.mark.asyncio
    async def test_route_for_previous_ride_is_discarded(
        self, machine, simulator, provider
    ):
        provider.gate = asyncio.Event()
        request_default_ride(machine)
        machine.accept_ride("driver-1")
        simulator.step(0.0)
        await asyncio.sleep(0)

        # Same status, different ride: the first fetch must not win.
        machine.reset()
        second_origin = Location(-29.4300, -66.8700)
        request_default_ride(machine, origin=second_origin)
        machine.accept_ride("driver-1")
        simulator.step(0.1)
        await asyncio.sleep(0)

        provider.gate.set()
        await simulator.wait_for_routes()

        assert len(provider.calls) == 2
        assert provider.calls[0][1] == ORIGIN
        assert simulator.route[-1] == second_origin

    @pytest.mark.asyncio
    async def test_route_resolving_before_step_observes_change_is_discarded(
        self, machine, simulator, provider
    ):
        provider.gate = asyncio.Event()
        request_default_ride(machine)
        machine.accept_ride("driver-1")
        simulator.step(0.0)
        await asyncio.sleep(0)

        # The ride moves on but no tick has observed it yet.
        machine.driver_arrived()
        provider.gate.set()
        await simulator.wait_for_routes()

        assert simulator.route == ()

    @pytest.mark.asyncio
    async def test_ticks_are_noops_while_fetch_outstanding(
        self, machine, simulator, provider
    ):
        provider.gate = asyncio.Event()
        request_default_ride(machine)
        machine.accept_ride("driver-1")
        simulator.step(0.0)
        vehicle = simulator.vehicle

        for t in (1.0, 2.0, 3.0):
            assert simulator.step(t) is False
        assert simulator.vehicle == vehicle
        assert machine.status == RideStatus.ACCEPTED

        provider.gate.set()
        await simulator.wait_for_routes()
        assert simulator.step(4.0) is True


class TestTeardown:
    @pytest.mark.asyncio
    async def test_stop_twice_is_safe(self, simulator):
        await simulator.start()
        assert simulator.running
        await simulator.stop()
        await simulator.stop()
        assert not simulator.running

    @pytest.mark.asyncio
    async def test_no_ticks_after_stop(self, machine, simulator):
        request_default_ride(machine)
        machine.accept_ride("driver-1")
        simulator.step(0.0)
        await simulator.wait_for_routes()

        await simulator.stop()
        assert simulator.step(1.0) is False
        assert simulator.cursor.index == 0
        assert machine.status == RideStatus.ACCEPTED

    @pytest.mark.asyncio
    async def test_stop_cancels_outstanding_fetch(self, machine, simulator, provider):
        provider.gate = asyncio.Event()
        request_default_ride(machine)
        machine.accept_ride("driver-1")
        simulator.step(0.0)
        await asyncio.sleep(0)
        assert simulator.route_pending

        await simulator.stop()
        assert not simulator.route_pending
        assert simulator.route == ()

    @pytest.mark.asyncio
    async def test_reset_stops_movement(self, machine, simulator):
        drive_to(machine, RideStatus.IN_PROGRESS)
        simulator.step(0.0)
        await simulator.wait_for_routes()
        assert simulator.step(1.0) is True

        machine.reset()
        assert simulator.step(2.0) is False
        assert simulator.route == ()
        assert simulator.step(3.0) is False


class TestSingleActiveRide:
    @pytest.mark.asyncio
    async def test_racing_requests_create_one_ride(self, machine):
        async def request(client_id):
            await asyncio.sleep(0)
            return request_default_ride(machine, client_id=client_id)

        results = await asyncio.gather(*(request(f"c{i}") for i in range(5)))

        ids = {ride.id for ride in results}
        assert len(ids) == 1
        assert len(machine.diagnostics) == 4
