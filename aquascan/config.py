"""
Runtime configuration, read from the environment (and a .env file if present).
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from geolocation import GeolocationAdapter, IpLocationProvider, StaticLocationProvider
from translations import DEFAULT_LANGUAGE


def _optional_float(name: str) -> Optional[float]:
    value = os.getenv(name)
    return float(value) if value not in (None, "") else None


@dataclass
class Settings:
    gemini_api_key: Optional[str] = None
    model_name: str = "gemini-2.5-flash"
    model_timeout: float = 60.0
    data_dir: str = "~/.aquascan"
    location_timeout: float = 5.0
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    geoip_url: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            gemini_api_key=os.getenv("GEMINI_API_KEY") or None,
            model_name=os.getenv("AQUASCAN_MODEL", cls.model_name),
            model_timeout=float(os.getenv("AQUASCAN_MODEL_TIMEOUT", cls.model_timeout)),
            data_dir=os.getenv("AQUASCAN_DATA_DIR", cls.data_dir),
            location_timeout=float(os.getenv("AQUASCAN_LOCATION_TIMEOUT", cls.location_timeout)),
            latitude=_optional_float("AQUASCAN_LATITUDE"),
            longitude=_optional_float("AQUASCAN_LONGITUDE"),
            geoip_url=os.getenv("AQUASCAN_GEOIP_URL") or None,
            language=os.getenv("AQUASCAN_LANGUAGE", cls.language),
            log_level=os.getenv("AQUASCAN_LOG_LEVEL", cls.log_level).upper(),
        )

    def geolocation(self) -> GeolocationAdapter:
        """Adapter for the configured position source: fixed position, then GeoIP, else none."""
        if self.latitude is not None and self.longitude is not None:
            provider = StaticLocationProvider(self.latitude, self.longitude)
        elif self.geoip_url:
            provider = IpLocationProvider(self.geoip_url, timeout=self.location_timeout)
        else:
            provider = None
        return GeolocationAdapter(provider=provider, timeout=self.location_timeout)
