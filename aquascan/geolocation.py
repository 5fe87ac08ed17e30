"""
Best-effort device geolocation.

The adapter never raises: timeouts, denials and missing providers all resolve to None.
"""

import asyncio
import inspect
import logging
from typing import Callable, Optional

import requests

from models import Location

logger = logging.getLogger(__name__)

# Sync providers run in the default executor; async providers are awaited directly
LocationProvider = Callable[[], Optional[Location]]


class StaticLocationProvider:
    """Reports a fixed, configured position."""

    def __init__(self, latitude: float, longitude: float, region_name: Optional[str] = None):
        self.location = Location(latitude=latitude, longitude=longitude, region_name=region_name)

    def __call__(self) -> Optional[Location]:
        return self.location


class IpLocationProvider:
    """Looks up an approximate position from an IP geolocation service."""

    def __init__(self, url: str, timeout: float = 5.0):
        self.url = url
        self.timeout = timeout

    def __call__(self) -> Optional[Location]:
        response = requests.get(self.url, timeout=self.timeout)
        response.raise_for_status()
        data = response.json()

        lat = data.get("latitude", data.get("lat"))
        lon = data.get("longitude", data.get("lon"))
        if lat is None or lon is None:
            return None
        return Location(latitude=float(lat), longitude=float(lon), region_name=data.get("city"))


class GeolocationAdapter:
    """Time-bounded wrapper around a location provider."""

    TIMEOUT_SECONDS = 5.0

    def __init__(self, provider: Optional[LocationProvider] = None, timeout: Optional[float] = None):
        self.provider = provider
        self.timeout = timeout or self.TIMEOUT_SECONDS

    async def get_current_location(self) -> Optional[Location]:
        """Return the device position, or None if it cannot be determined in time."""
        if self.provider is None:
            return None

        if inspect.iscoroutinefunction(self.provider):
            pending = self.provider()
        else:
            loop = asyncio.get_event_loop()
            pending = loop.run_in_executor(None, self.provider)

        try:
            return await asyncio.wait_for(pending, timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Geolocation timed out after {self.timeout}s, continuing without location")
        except Exception as e:
            logger.warning(f"Geolocation unavailable: {str(e)}")
        return None
