"""
FastAPI application factory.

* Builds the per-app ride context: state machine, route provider, pricing
  engine and movement simulator (stored on ``app.state``).
* Starts / stops the movement simulator via lifespan events and closes the
  route provider's HTTP client on shutdown.
* Applies rate-limiting.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging
from typing import Optional

import numpy as np
from fastapi import FastAPI
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from src.api.middleware import configure_rate_limit, limiter
from src.api.routes import admin, rides
from src.config import Settings, settings as default_settings
from src.domain.pricing import PricingEngine
from src.domain.state_machine import RideStateMachine
from src.infrastructure.routing import RouteProvider, build_route_provider
from src.workers.simulator import MovementSimulator


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the movement simulator on startup; stop on shutdown."""
    await app.state.simulator.start()
    yield
    await app.state.simulator.stop()
    await app.state.route_provider.aclose()


def create_app(
    settings: Optional[Settings] = None,
    route_provider: Optional[RouteProvider] = None,
) -> FastAPI:
    settings = settings or default_settings
    logging.basicConfig(level=settings.log_level)

    app = FastAPI(
        title="Ride Hailing Trip Simulator API",
        description=(
            "Single-active-ride simulation: lifecycle commands, fare quotes "
            "with time-of-day surge, and a vehicle that drives itself along "
            "the pickup and drop-off legs."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    if route_provider is None:
        route_provider = build_route_provider(
            settings.routing_backend,
            osrm_base_url=settings.osrm_base_url,
            timeout_seconds=settings.routing_timeout_seconds,
            step_m=settings.straight_line_step_m,
            minutes_per_km=settings.city_minutes_per_km,
        )
    rng = np.random.default_rng(settings.random_seed)

    machine = RideStateMachine(
        driver_earnings_share=settings.driver_earnings_share,
        initial_earnings=settings.initial_earnings,
        diagnostics_buffer_size=settings.diagnostics_buffer_size,
    )
    app.state.machine = machine
    app.state.route_provider = route_provider
    app.state.pricing = PricingEngine(
        route_provider, rng=rng, minutes_per_km=settings.city_minutes_per_km
    )
    app.state.simulator = MovementSimulator(
        machine,
        route_provider,
        rng=rng,
        tick_interval_s=settings.tick_interval_ms / 1000,
        poll_interval_s=settings.poll_interval_ms / 1000,
        spawn_offset_deg=settings.spawn_offset_deg,
        heading_epsilon=settings.heading_epsilon,
        completed_reset_delay_s=settings.completed_reset_delay_seconds,
    )

    # Rate limiter
    configure_rate_limit(settings.rate_limit)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
