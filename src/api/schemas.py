"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from src.domain.entities import (
    CompletedRide,
    Diagnostic,
    Location,
    RideRequest,
    SimulationSnapshot,
)
from src.domain.enums import DiagnosticKind, RideStatus, VehicleType
from src.domain.pricing import FareQuote


# ── Shared ────────────────────────────────────────────────────────────


class LocationSchema(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    address: Optional[str] = Field(None, max_length=255)

    def to_domain(self) -> Location:
        return Location(latitude=self.lat, longitude=self.lng, address=self.address)

    @classmethod
    def from_domain(cls, loc: Location) -> "LocationSchema":
        return cls(lat=loc.latitude, lng=loc.longitude, address=loc.address)


# ── Requests ──────────────────────────────────────────────────────────


class QuoteRequest(BaseModel):
    origin: LocationSchema
    destination: LocationSchema
    vehicle_type: VehicleType = VehicleType.AUTO
    demand_multiplier: Optional[float] = Field(
        None,
        gt=0,
        description="Fixed multiplier; omitted means time-of-day surge.",
    )


class RideCreateRequest(BaseModel):
    origin: LocationSchema
    destination: LocationSchema
    price: float = Field(..., ge=0)
    distance_km: float = Field(..., ge=0)
    vehicle_type: VehicleType = VehicleType.AUTO
    client_id: str = Field(..., min_length=1, max_length=64)
    client_name: str = Field(..., min_length=1, max_length=120)


class AcceptRequest(BaseModel):
    driver_id: str = Field(..., min_length=1, max_length=64)


# ── Responses ─────────────────────────────────────────────────────────


class RideResponse(BaseModel):
    id: str
    client_id: str
    client_name: str
    origin: LocationSchema
    destination: LocationSchema
    status: RideStatus
    estimated_price: float
    distance_km: float
    estimated_time_min: int
    vehicle_type: VehicleType
    driver_id: Optional[str] = None

    @classmethod
    def from_domain(cls, ride: RideRequest) -> "RideResponse":
        return cls(
            id=ride.id,
            client_id=ride.client_id,
            client_name=ride.client_name,
            origin=LocationSchema.from_domain(ride.origin),
            destination=LocationSchema.from_domain(ride.destination),
            status=ride.status,
            estimated_price=ride.estimated_price,
            distance_km=ride.distance_km,
            estimated_time_min=ride.estimated_time_min,
            vehicle_type=ride.vehicle_type,
            driver_id=ride.driver_id,
        )


class RideStateResponse(BaseModel):
    ride: Optional[RideResponse] = None
    status: RideStatus = RideStatus.IDLE
    changed: bool = Field(
        False, description="False when the command was rejected or had no effect."
    )

    @classmethod
    def build(cls, ride: Optional[RideRequest], changed: bool) -> "RideStateResponse":
        if ride is None:
            return cls(changed=changed)
        return cls(ride=RideResponse.from_domain(ride), status=ride.status, changed=changed)


class SnapshotResponse(BaseModel):
    ride: Optional[RideResponse] = None
    status: RideStatus
    vehicle: Optional[LocationSchema] = None
    heading: float
    route: list[LocationSchema] = []
    cursor_index: int = 0
    route_pending: bool = False

    @classmethod
    def from_domain(cls, snap: SimulationSnapshot) -> "SnapshotResponse":
        return cls(
            ride=RideResponse.from_domain(snap.ride) if snap.ride else None,
            status=snap.status,
            vehicle=LocationSchema.from_domain(snap.vehicle) if snap.vehicle else None,
            heading=snap.heading,
            route=[LocationSchema.from_domain(p) for p in snap.route],
            cursor_index=snap.cursor_index,
            route_pending=snap.route_pending,
        )


class QuoteResponse(BaseModel):
    price: int
    distance_km: float
    duration_min: float
    multiplier: float
    vehicle_type: VehicleType

    @classmethod
    def from_domain(cls, quote: FareQuote) -> "QuoteResponse":
        return cls(
            price=quote.price,
            distance_km=quote.distance_km,
            duration_min=quote.duration_min,
            multiplier=quote.multiplier,
            vehicle_type=quote.vehicle_type,
        )


class CompletedRideResponse(BaseModel):
    ride: RideResponse
    completed_at: datetime

    @classmethod
    def from_domain(cls, done: CompletedRide) -> "CompletedRideResponse":
        return cls(ride=RideResponse.from_domain(done.ride), completed_at=done.completed_at)


class EarningsResponse(BaseModel):
    earnings: float
    completed_rides: int


class DiagnosticResponse(BaseModel):
    kind: DiagnosticKind
    message: str
    status: RideStatus
    at: datetime

    @classmethod
    def from_domain(cls, diag: Diagnostic) -> "DiagnosticResponse":
        return cls(kind=diag.kind, message=diag.message, status=diag.status, at=diag.at)


class HealthResponse(BaseModel):
    status: str = "ok"
    simulator_running: bool = False
