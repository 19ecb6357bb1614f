# tools/geocoding_api.py

import requests
from typing import Optional

from core.config import settings

NOMINATIM_URL = "https://nominatim.openstreetmap.org"

def _headers() -> dict:
    # Nominatim requires a user-agent
    return {'User-Agent': settings.nominatim_user_agent}

def get_coordinates_for_address(address: str) -> dict:
    """
    Fetches the latitude and longitude for a free-text field address (e.g., "Menemen, İzmir").
    Returns a dictionary with 'latitude' and 'longitude' or an error message.
    """
    print(f"---TOOL: Geocoding for '{address}'---")
    params = {'q': address, 'format': 'json', 'limit': 1}

    try:
        response = requests.get(f"{NOMINATIM_URL}/search", params=params, headers=_headers(), timeout=10)
        response.raise_for_status()
        data = response.json()

        if data:
            lat = float(data[0]['lat'])
            lon = float(data[0]['lon'])
            return {"latitude": lat, "longitude": lon}
        else:
            return {"error": "Location not found."}

    except requests.exceptions.RequestException as e:
        return {"error": f"API request failed: {e}"}
    except (KeyError, IndexError, TypeError, ValueError) as e:
        return {"error": f"Error parsing geocoding data: {e}"}

def get_address_for_coordinates(lat: float, lng: float) -> Optional[str]:
    """Reverse geocodes a picked map point into a display address, or None when nothing is found."""
    print(f"---TOOL: Reverse geocoding for ({lat}, {lng})---")
    params = {'format': 'jsonv2', 'lat': lat, 'lon': lng, 'zoom': 16, 'addressdetails': 0}

    try:
        response = requests.get(f"{NOMINATIM_URL}/reverse", params=params, headers=_headers(), timeout=10)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.RequestException as e:
        print(f"---TOOL: Reverse geocoding failed: {e}---")
        return None
    except ValueError as e:
        print(f"---TOOL: Error parsing reverse geocoding data: {e}---")
        return None

    return data.get("display_name") if isinstance(data, dict) else None
