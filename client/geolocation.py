"""
One-shot device location with a bounded wait

locate() never fails for the usual reasons (no capability, permission
denied, timeout, provider error): it returns the default center instead and
records why on the returned fix. Cancelling the awaiting task cancels the
lookup.
"""
import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from algorithms.haversine import GeoPoint
from donorlink.errors import (
    DonorLinkError, GeolocationError, GeolocationTimeout, GeolocationUnavailable, InvalidCoordinate,
)

logger = logging.getLogger(__name__)

# Mek'ele
DEFAULT_CENTER = GeoPoint(39.45389, 13.5169)
DEFAULT_TIMEOUT = 15.0


class LocationSource(str, Enum):
    DEVICE = 'device'
    FALLBACK = 'fallback'


@dataclass(frozen=True)
class LocationFix:
    point: GeoPoint
    source: LocationSource
    error: Optional[DonorLinkError] = None

    @property
    def is_fallback(self):
        return self.source is LocationSource.FALLBACK


def _as_point(position):
    if isinstance(position, GeoPoint):
        return position
    # Anything else must be a [longitude, latitude] pair
    return GeoPoint.from_coordinates(position)


async def locate(provider=None, timeout=DEFAULT_TIMEOUT, default=DEFAULT_CENTER) -> LocationFix:
    """
    Await ``provider()`` (an async callable returning a GeoPoint or a
    ``[longitude, latitude]`` pair) for at most ``timeout`` seconds.

    Providers report failures by raising a GeolocationError subclass.
    """
    if provider is None:
        error = GeolocationUnavailable(detail="No location provider on this device")
    else:
        try:
            position = await asyncio.wait_for(provider(), timeout)
            return LocationFix(_as_point(position), LocationSource.DEVICE)
        except asyncio.TimeoutError:
            error = GeolocationTimeout(detail=f"No position after {timeout:g}s")
        except GeolocationError as exc:
            error = exc
        except InvalidCoordinate as exc:
            error = GeolocationUnavailable('Device reported an invalid position', detail=exc.detail)

    logger.warning("Using default map center: %s", error)
    return LocationFix(default, LocationSource.FALLBACK, error)
