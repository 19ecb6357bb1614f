# core/field_location.py

import asyncio
from typing import Callable, Optional

from .latest import LatestRequestGuard
from .models import GeoPoint
from tools.geocoding_api import get_address_for_coordinates, get_coordinates_for_address

class FieldLocationPicker:
    """
    Holds the location and address being edited in the field form.
    Picking points quickly fires several reverse lookups; only the newest may fill in the address.
    """
    def __init__(self, address: str = "", location: Optional[GeoPoint] = None,
                 reverse_lookup: Callable[[float, float], Optional[str]] = get_address_for_coordinates,
                 forward_lookup: Callable[[str], dict] = get_coordinates_for_address):
        self.address = address
        self.location = location
        self._reverse_lookup = reverse_lookup
        self._forward_lookup = forward_lookup
        self._guard = LatestRequestGuard()

    async def pick_point(self, lat: float, lng: float) -> Optional[str]:
        """Sets the location, then fills the address from reverse geocoding unless a newer pick happened."""
        self.location = GeoPoint(lat=lat, lng=lng)
        is_latest, resolved = await self._guard.run(asyncio.to_thread(self._reverse_lookup, lat, lng))
        if is_latest and resolved:
            self.address = resolved
        return self.address

    async def locate_address(self, address: Optional[str] = None) -> Optional[GeoPoint]:
        """Moves the location to the geocoded address; leaves it as-is when the lookup fails."""
        query = (address or self.address or "").strip()
        if not query:
            return self.location
        result = await asyncio.to_thread(self._forward_lookup, query)
        if "error" in result:
            print(f"---FIELD LOCATION: {result['error']}---")
            return self.location
        self.location = GeoPoint(lat=result["latitude"], lng=result["longitude"])
        self.address = query
        return self.location

    def clear_location(self):
        self.location = None
