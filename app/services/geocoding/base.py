from abc import ABC, abstractmethod
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class GeocodingProvider(ABC):
    """
    Abstract reverse-geocoding provider used by area detection.

    Contract:
    - Input: latitude, longitude (floats)
    - Output: dict with keys formatted_address, city, state, country, provider
    - Never raises upstream exceptions; every field is None on failure
    """

    name = "none"

    @abstractmethod
    def reverse_geocode(self, latitude: float, longitude: float) -> Dict[str, Optional[str]]:
        raise NotImplementedError


class NoOpProvider(GeocodingProvider):
    """Used when GEOCODING_PROVIDER=none (offline development, tests)."""

    def reverse_geocode(self, latitude: float, longitude: float) -> Dict[str, Optional[str]]:
        return empty_result(self.name)


def empty_result(provider: str) -> Dict[str, Optional[str]]:
    return {
        "formatted_address": None,
        "city": None,
        "state": None,
        "country": None,
        "provider": provider,
    }
