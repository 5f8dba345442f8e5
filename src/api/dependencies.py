"""FastAPI dependency injection helpers."""

from fastapi import Request

from src.domain.pricing import PricingEngine
from src.domain.state_machine import RideStateMachine
from src.workers.simulator import MovementSimulator


def get_machine(request: Request) -> RideStateMachine:
    return request.app.state.machine


def get_simulator(request: Request) -> MovementSimulator:
    return request.app.state.simulator


def get_pricing(request: Request) -> PricingEngine:
    return request.app.state.pricing
