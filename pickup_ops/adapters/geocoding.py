"""
Reverse geocoding for partner hub pins (Nominatim)

Best-effort: any failure leaves the caller's address fields untouched.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from ..config import get_settings
from ..core.exceptions import GeocodeError
from ..core.models import GeocodedAddress

logger = logging.getLogger(__name__)


def parse_nominatim(data: Dict[str, Any]) -> GeocodedAddress:
    """Pick street/city/state/postcode out of a Nominatim reverse response"""
    address = data.get("address")
    if not address:
        raise GeocodeError("No address in geocoder response")
    display_first = (data.get("display_name") or "").split(",")[0]
    return GeocodedAddress(
        street=address.get("road") or address.get("suburb") or display_first or "",
        city=address.get("city") or address.get("town") or address.get("village") or "",
        state=address.get("state") or "",
        postal_code=address.get("postcode") or "",
    )


class ReverseGeocoder:
    """Resolves a map pin to a postal address"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        settings = get_settings()
        self.base_url = base_url or settings.GEOCODER_URL
        self.timeout = timeout if timeout is not None else settings.GEOCODER_TIMEOUT_SEC
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT
        self.transport = transport

    async def reverse(self, lat: float, lng: float) -> Optional[GeocodedAddress]:
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "zoom": 18,
            "addressdetails": 1,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                headers={"User-Agent": self.user_agent},
                transport=self.transport,
            ) as http:
                response = await http.get(self.base_url, params=params)
                response.raise_for_status()
                return parse_nominatim(response.json())
        except (httpx.HTTPError, ValueError, GeocodeError) as e:
            logger.warning(f"⚠️ Reverse geocode failed for ({lat}, {lng}): {e}")
            return None
