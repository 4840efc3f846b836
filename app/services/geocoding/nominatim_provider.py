import logging
from typing import Any, Dict, Optional

import requests

from .base import GeocodingProvider, empty_result

logger = logging.getLogger(__name__)


class NominatimProvider(GeocodingProvider):
    """
    OpenStreetMap Nominatim reverse-geocoding provider.

    - No API key required.
    - Sends a User-Agent header as required by the Nominatim usage policy.
    - Never raises upstream exceptions; returns empty fields on failure.
    """

    BASE_URL = "https://nominatim.openstreetmap.org/reverse"
    name = "nominatim"

    def __init__(self, user_agent: str = "indra-incident-hub/1.0", timeout: float = 3.0):
        self.user_agent = user_agent
        self.timeout = timeout

    def reverse_geocode(self, latitude: float, longitude: float) -> Dict[str, Optional[str]]:
        params = {
            "lat": latitude,
            "lon": longitude,
            "format": "json",
            "addressdetails": 1,
        }
        headers = {"User-Agent": self.user_agent}

        try:
            resp = requests.get(self.BASE_URL, params=params, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Nominatim reverse-geocode error: {e}")
            return empty_result(self.name)

        if resp.status_code != 200:
            logger.warning(f"Nominatim reverse-geocode failed with status {resp.status_code}")
            return empty_result(self.name)

        try:
            data: Dict[str, Any] = resp.json()
        except ValueError as e:
            logger.warning(f"Nominatim returned invalid JSON: {e}")
            return empty_result(self.name)

        address = data.get("address") or {}
        # Nominatim names the municipality differently depending on its size
        city = (
            address.get("city")
            or address.get("town")
            or address.get("village")
            or address.get("county")
            or address.get("state_district")
        )

        return {
            "formatted_address": data.get("display_name"),
            "city": city,
            "state": address.get("state"),
            "country": address.get("country"),
            "provider": self.name,
        }
