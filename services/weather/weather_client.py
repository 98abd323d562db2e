"""Current weather for the farm location from Open-Meteo."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

import httpx

LOGGER = logging.getLogger(__name__)

DEFAULT_LATITUDE = 28.6139
DEFAULT_LONGITUDE = 77.209
DEFAULT_LOCATION = "Your Location"

WEATHER_DESCRIPTIONS: Dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
}


class WeatherError(Exception):
    """Weather data could not be fetched."""


def weather_icon(code: int) -> str:
    if code <= 3:
        return "sun"
    if code >= 51:
        return "rain"
    return "cloud"


class WeatherClient:
    """Fetch current conditions and a place name for coordinates."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        weather_base_url: str = "https://api.open-meteo.com/v1",
        geocode_base_url: str = "https://geocode.maps.co",
    ) -> None:
        self.client = client
        self.weather_base_url = weather_base_url.rstrip("/")
        self.geocode_base_url = geocode_base_url.rstrip("/")

    async def current(self, latitude: float, longitude: float) -> Dict[str, Any]:
        """Return `{temperature, humidity, windSpeed, description, location, icon}`."""
        if not -90 <= latitude <= 90 or not -180 <= longitude <= 180:
            raise ValueError("Latitude or longitude out of range.")
        try:
            response = await self.client.get(
                f"{self.weather_base_url}/forecast",
                params={
                    "latitude": latitude,
                    "longitude": longitude,
                    "current": "temperature_2m,relative_humidity_2m,wind_speed_10m,weather_code",
                },
            )
            response.raise_for_status()
            current = response.json()["current"]
            raw_code = current.get("weather_code")
            code = int(raw_code) if raw_code is not None else -1
            weather = {
                "temperature": round(current["temperature_2m"]),
                "humidity": current["relative_humidity_2m"],
                "windSpeed": round(current["wind_speed_10m"]),
                "description": WEATHER_DESCRIPTIONS.get(code, "Unknown"),
                "icon": weather_icon(code),
            }
        except (httpx.HTTPError, KeyError, TypeError, ValueError, AttributeError) as exc:
            LOGGER.error("Weather fetch error: %s", exc)
            raise WeatherError("Weather fetch failed") from exc

        weather["location"] = await self._location_name(latitude, longitude)
        return weather

    async def _location_name(self, latitude: float, longitude: float) -> str:
        try:
            response = await self.client.get(
                f"{self.geocode_base_url}/reverse",
                params={"lat": latitude, "lon": longitude, "format": "json"},
            )
        except httpx.HTTPError as exc:
            LOGGER.warning("Reverse geocoding failed: %s", exc)
            return DEFAULT_LOCATION
        if response.status_code != 200:
            return DEFAULT_LOCATION
        try:
            address: Optional[Dict[str, Any]] = response.json().get("address")
        except ValueError:
            return DEFAULT_LOCATION
        if not address:
            return DEFAULT_LOCATION
        return address.get("city") or address.get("town") or address.get("village") or DEFAULT_LOCATION
