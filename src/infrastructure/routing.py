"""
Route providers.

The simulator only needs ``await provider.get_route(start, end)`` returning
a ``RouteResult`` or ``None`` ("no route").  Providers never raise for
network or data problems; they log and return ``None`` so the caller can
fall back to a straight two-point leg.

* ``OsrmRouteProvider``         -- public OSRM HTTP route service (httpx).
* ``StraightLineRouteProvider`` -- offline; evenly spaced waypoints on the
  straight segment, used for local runs and tests.
"""

from __future__ import annotations

import logging
import math
from typing import Optional, Protocol

import httpx

from src.domain.distance import interpolate, location_distance_km
from src.domain.entities import Location, RouteResult

logger = logging.getLogger(__name__)


class RouteProvider(Protocol):
    async def get_route(
        self, start: Location, end: Location
    ) -> Optional[RouteResult]: ...

    async def aclose(self) -> None: ...


class OsrmRouteProvider:
    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    def _url(self, start: Location, end: Location) -> str:
        # OSRM expects "lng,lat"
        return (
            f"{self.base_url}/{start.longitude},{start.latitude};"
            f"{end.longitude},{end.latitude}"
        )

    async def get_route(
        self, start: Location, end: Location
    ) -> Optional[RouteResult]:
        try:
            response = await self._client.get(
                self._url(start, end),
                params={"overview": "full", "geometries": "geojson"},
            )
            response.raise_for_status()
            data = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Failed to fetch route: %s", exc)
            return None

        if not isinstance(data, dict):
            logger.warning("Unexpected OSRM payload type: %s", type(data).__name__)
            return None

        routes = data.get("routes") or []
        if data.get("code") != "Ok" or not routes:
            logger.warning("OSRM returned no route (code=%s)", data.get("code"))
            return None

        route = routes[0]
        try:
            path = tuple(
                Location(latitude=float(lat), longitude=float(lng))
                for lng, lat, *_ in route["geometry"]["coordinates"]
            )
            distance_m = float(route["distance"])
            duration_s = float(route["duration"])
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Malformed OSRM route payload: %s", exc)
            return None

        if not path:
            return None
        return RouteResult(path=path, distance_m=distance_m, duration_s=duration_s)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


class StraightLineRouteProvider:
    def __init__(self, step_m: float = 25.0, minutes_per_km: float = 4.5):
        if step_m <= 0:
            raise ValueError("step_m must be positive")
        self.step_m = step_m
        self.minutes_per_km = minutes_per_km

    async def get_route(
        self, start: Location, end: Location
    ) -> Optional[RouteResult]:
        distance_km = location_distance_km(start, end)
        steps = max(1, math.ceil(distance_km * 1000 / self.step_m))
        path = tuple(interpolate(start, end, i / steps) for i in range(steps)) + (end,)
        return RouteResult(
            path=path,
            distance_m=distance_km * 1000,
            duration_s=distance_km * self.minutes_per_km * 60,
        )

    async def aclose(self) -> None:
        return None


def build_route_provider(
    backend: str,
    *,
    osrm_base_url: str,
    timeout_seconds: float,
    step_m: float,
    minutes_per_km: float,
) -> RouteProvider:
    if backend == "osrm":
        return OsrmRouteProvider(osrm_base_url, timeout_seconds=timeout_seconds)
    if backend == "straight":
        return StraightLineRouteProvider(step_m=step_m, minutes_per_km=minutes_per_km)
    raise ValueError(f"Unknown routing backend: {backend}")
