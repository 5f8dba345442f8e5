"""
Admin / observability endpoints
===============================

GET /api/v1/admin/history     -- completed rides, most recent first
GET /api/v1/admin/earnings    -- driver earnings so far
GET /api/v1/admin/diagnostics -- recently rejected commands
GET /api/v1/admin/health      -- simple health check
"""

from fastapi import APIRouter, Depends, Request

from src.api.dependencies import get_machine, get_simulator
from src.api.middleware import limiter, rate_limit
from src.api.schemas import (
    CompletedRideResponse,
    DiagnosticResponse,
    EarningsResponse,
    HealthResponse,
)
from src.domain.state_machine import RideStateMachine
from src.workers.simulator import MovementSimulator

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get(
    "/history",
    response_model=list[CompletedRideResponse],
    summary="Completed rides, most recent first",
)
@limiter.limit(rate_limit)
async def get_history(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return [CompletedRideResponse.from_domain(done) for done in machine.history]


@router.get("/earnings", response_model=EarningsResponse, summary="Driver earnings")
@limiter.limit(rate_limit)
async def get_earnings(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return EarningsResponse(
        earnings=machine.earnings, completed_rides=len(machine.history)
    )


@router.get(
    "/diagnostics",
    response_model=list[DiagnosticResponse],
    summary="Recently rejected lifecycle commands",
)
@limiter.limit(rate_limit)
async def get_diagnostics(
    request: Request,
    machine: RideStateMachine = Depends(get_machine),
):
    return [DiagnosticResponse.from_domain(d) for d in machine.diagnostics]


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(simulator: MovementSimulator = Depends(get_simulator)):
    return HealthResponse(simulator_running=simulator.running)
