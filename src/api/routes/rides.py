"""
Ride endpoints
==============

POST  /api/v1/rides/quote           -- price a trip (route distance + surge)
POST  /api/v1/rides                 -- request a ride (returns 202 Accepted)
GET   /api/v1/rides/active          -- simulation snapshot for rendering
PATCH /api/v1/rides/active/accept   -- driver accepts
PATCH /api/v1/rides/active/arrive   -- driver reached the pickup
PATCH /api/v1/rides/active/start    -- trip started
PATCH /api/v1/rides/active/complete -- trip completed
PATCH /api/v1/rides/active/cancel   -- cancel the active ride
POST  /api/v1/rides/reset           -- drop whatever ride is active

Lifecycle commands never fail with 409: an out-of-order command returns
the unchanged ride with ``changed=false``, and the rejection is listed
under ``/admin/diagnostics``.
"""

from typing import Callable, Optional

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_machine, get_pricing, get_simulator
from src.api.middleware import limiter, rate_limit
from src.api.schemas import (
    AcceptRequest,
    QuoteRequest,
    QuoteResponse,
    RideCreateRequest,
    RideStateResponse,
    SnapshotResponse,
)
from src.domain.entities import RideRequest
from src.domain.pricing import PricingEngine
from src.domain.state_machine import RideStateMachine
from src.workers.simulator import MovementSimulator

router = APIRouter(prefix="/rides", tags=["rides"])


def _run_command(
    machine: RideStateMachine, command: Callable[[], Optional[RideRequest]]
) -> RideStateResponse:
    before = machine.active_ride
    after = command()
    return RideStateResponse.build(after, changed=after is not before)


@router.post(
    "/quote",
    response_model=QuoteResponse,
    summary="Quote a fare for a trip",
)
@limiter.limit(rate_limit)
async def quote_fare(
    request: Request,
    body: QuoteRequest,
    pricing: PricingEngine = Depends(get_pricing),
):
    quote = await pricing.quote(
        body.origin.to_domain(),
        body.destination.to_domain(),
        body.vehicle_type,
        body.demand_multiplier,
    )
    return QuoteResponse.from_domain(quote)


@router.post(
    "",
    status_code=202,
    response_model=RideStateResponse,
    summary="Request a ride",
    responses={
        202: {
            "description": (
                "Request processed.  If a ride was already active it is "
                "returned unchanged with changed=false."
            )
        }
    },
)
@limiter.limit(rate_limit)
async def request_ride(
    request: Request,
    body: RideCreateRequest,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(
        machine,
        lambda: machine.request_ride(
            origin=body.origin.to_domain(),
            destination=body.destination.to_domain(),
            price=body.price,
            distance_km=body.distance_km,
            vehicle_type=body.vehicle_type,
            client_id=body.client_id,
            client_name=body.client_name,
        ),
    )


@router.get(
    "/active",
    response_model=SnapshotResponse,
    summary="Active ride, vehicle position, heading and route",
)
@limiter.limit(rate_limit)
async def get_active(
    request: Request,
    simulator: MovementSimulator = Depends(get_simulator),
):
    return SnapshotResponse.from_domain(simulator.snapshot())


@router.patch("/active/accept", response_model=RideStateResponse, summary="Accept ride")
@limiter.limit(rate_limit)
async def accept_ride(
    request: Request,
    body: AcceptRequest,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(machine, lambda: machine.accept_ride(body.driver_id))


@router.patch(
    "/active/arrive", response_model=RideStateResponse, summary="Driver arrived"
)
@limiter.limit(rate_limit)
async def driver_arrived(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(machine, machine.driver_arrived)


@router.patch("/active/start", response_model=RideStateResponse, summary="Start trip")
@limiter.limit(rate_limit)
async def start_trip(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(machine, machine.start_trip)


@router.patch(
    "/active/complete", response_model=RideStateResponse, summary="Complete trip"
)
@limiter.limit(rate_limit)
async def complete_trip(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(machine, machine.complete_trip)


@router.patch(
    "/active/cancel",
    response_model=RideStateResponse,
    summary="Cancel the active ride",
    description="Any status except completed; the ride is not retained.",
)
@limiter.limit(rate_limit)
async def cancel_ride(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(machine, machine.cancel_ride)


@router.post("/reset", response_model=RideStateResponse, summary="Reset")
@limiter.limit(rate_limit)
async def reset(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return _run_command(machine, machine.reset)
