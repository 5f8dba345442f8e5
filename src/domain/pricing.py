"""
Fare Calculator
===============

Formula
-------
Price = round( (Base + PerKm x Distance + PerMin x Duration) x Demand_Multiplier )

* **Rates** are per vehicle class (``RATES``); the economy classes are
  cheaper than the standard ``auto`` class.
* **Demand_Multiplier** defaults to ``get_surge_multiplier(hour)``: drawn from
  ``[1.2, 1.6)`` during the two daily peak windows, ``[1.0, 1.1)`` otherwise.

The randomness comes from an injectable ``numpy.random.Generator`` so a
seeded generator makes every price reproducible.

Complexity: O(1) per price calculation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Optional

import numpy as np

from .distance import location_distance_km
from .entities import Location
from .enums import VehicleType

if TYPE_CHECKING:
    from src.infrastructure.routing import RouteProvider


@dataclass(frozen=True)
class Rate:
    base: float
    per_km: float
    per_min: float


RATES: dict[VehicleType, Rate] = {
    VehicleType.MOTO: Rate(base=400, per_km=150, per_min=20),
    VehicleType.AUTO: Rate(base=650, per_km=250, per_min=35),
    VehicleType.FLASH: Rate(base=500, per_km=200, per_min=30),
}

# Inclusive hour ranges: 7-9 am and 5-8 pm.
PEAK_WINDOWS: tuple[tuple[int, int], ...] = ((7, 9), (17, 20))

PEAK_RANGE = (1.2, 1.6)
OFF_PEAK_RANGE = (1.0, 1.1)


def round_half_up(value: float) -> int:
    """Round .5 away from zero for positive amounts (not banker's rounding)."""
    return int(math.floor(value + 0.5))


def is_peak_hour(hour: int) -> bool:
    return any(start <= hour <= end for start, end in PEAK_WINDOWS)


def get_surge_multiplier(
    hour: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> float:
    """Demand multiplier for *hour* (local wall-clock hour when omitted)."""
    if hour is None:
        hour = datetime.now().hour
    if rng is None:
        rng = np.random.default_rng()

    low, high = PEAK_RANGE if is_peak_hour(hour) else OFF_PEAK_RANGE
    return float(low + rng.random() * (high - low))


def calculate_fare(
    distance_km: float,
    duration_min: float,
    vehicle_type: VehicleType | str,
    demand_multiplier: Optional[float] = None,
    *,
    hour: Optional[int] = None,
    rng: Optional[np.random.Generator] = None,
) -> int:
    """Price a trip as an integer currency amount."""
    rates = RATES[VehicleType(vehicle_type)]
    multiplier = (
        demand_multiplier
        if demand_multiplier is not None
        else get_surge_multiplier(hour, rng)
    )
    raw_fare = (
        rates.base + rates.per_km * distance_km + rates.per_min * duration_min
    )
    return round_half_up(raw_fare * multiplier)


# ── Engine facade ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class FareQuote:
    price: int
    distance_km: float
    duration_min: float
    multiplier: float
    vehicle_type: VehicleType


class PricingEngine:
    """High-level API used by the quote endpoint."""

    def __init__(
        self,
        route_provider: "RouteProvider",
        rng: Optional[np.random.Generator] = None,
        minutes_per_km: float = 4.5,
        hour_source: Callable[[], int] = lambda: datetime.now().hour,
    ):
        self.route_provider = route_provider
        self.rng = rng if rng is not None else np.random.default_rng()
        self.minutes_per_km = minutes_per_km
        self.hour_source = hour_source

    def surge(self) -> float:
        return get_surge_multiplier(self.hour_source(), self.rng)

    async def quote(
        self,
        origin: Location,
        destination: Location,
        vehicle_type: VehicleType,
        demand_multiplier: Optional[float] = None,
    ) -> FareQuote:
        route = await self.route_provider.get_route(origin, destination)
        if route is not None:
            distance_km = route.distance_m / 1000
            duration_min = route.duration_s / 60
        else:
            distance_km = location_distance_km(origin, destination)
            duration_min = distance_km * self.minutes_per_km

        distance_km = round(distance_km, 2)
        duration_min = float(round_half_up(duration_min))
        multiplier = (
            demand_multiplier if demand_multiplier is not None else self.surge()
        )
        price = calculate_fare(distance_km, duration_min, vehicle_type, multiplier)
        return FareQuote(
            price=price,
            distance_km=distance_km,
            duration_min=duration_min,
            multiplier=multiplier,
            vehicle_type=VehicleType(vehicle_type),
        )
