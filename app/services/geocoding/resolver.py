import logging
from typing import Optional

from app.core.settings import settings
from .base import GeocodingProvider, NoOpProvider
from .nominatim_provider import NominatimProvider

logger = logging.getLogger(__name__)

_provider_instance: Optional[GeocodingProvider] = None


def get_geocoding_provider() -> GeocodingProvider:
    """
    Resolve the active geocoding provider based on settings.

    Rules:
    - Default: Nominatim (no API key required).
    - GEOCODING_PROVIDER='none' disables network lookups (no-op provider).
    """
    global _provider_instance
    if _provider_instance is not None:
        return _provider_instance

    provider_name = (settings.GEOCODING_PROVIDER or "nominatim").lower()

    if provider_name == "none":
        _provider_instance = NoOpProvider()
    else:
        if provider_name != "nominatim":
            logger.warning(f"Unknown GEOCODING_PROVIDER '{provider_name}'. Falling back to Nominatim.")
        _provider_instance = NominatimProvider(
            user_agent=settings.GEOCODING_USER_AGENT,
            timeout=settings.GEOCODING_TIMEOUT_SECONDS,
        )

    logger.info(f"Geocoding provider initialized: {_provider_instance.name}")
    return _provider_instance


def reset_geocoding_provider() -> None:
    """Forget the cached provider so the next call re-reads settings."""
    global _provider_instance
    _provider_instance = None
