"""OpenWeatherMap client for current conditions and the 5-day forecast.

Two upstream calls make up the combined view: ``/weather`` by city name,
then ``/forecast`` by the coordinates the first call returned (or by city
name again when it returned none). The forecast is reduced to daily records
by ``bucket_forecast``.
"""

import logging
from typing import Any

import httpx

from app.models import (
    CombinedWeatherData,
    ConfigurationError,
    ForecastSummary,
    InputValidationError,
    Units,
    UpstreamNetworkError,
    error_for_status,
)

from .forecast import bucket_forecast

logger = logging.getLogger(__name__)


class OpenWeatherService:
    """OpenWeatherMap REST client.

    A single ``httpx.AsyncClient`` is created lazily and reused. Tests pass a
    ``transport`` (``httpx.MockTransport``) to stand in for the network.
    """

    DEFAULT_BASE_URL = "https://api.openweathermap.org/data/2.5"

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None

    @staticmethod
    def parse_units(units: str | None) -> Units:
        try:
            return Units((units or Units.METRIC.value).lower())
        except ValueError:
            raise InputValidationError(
                "Invalid units parameter",
                f"Expected one of: {', '.join(u.value for u in Units)}",
            ) from None

    async def _request(self, path: str, params: dict[str, Any], target: str) -> dict:
        if not self._api_key:
            raise ConfigurationError(
                "OpenWeatherMap API key is not configured",
                "Please set OPENWEATHERMAP_API_KEY in your .env file",
            )

        client = self._get_client()
        try:
            response = await client.get(
                f"{self._base_url}{path}",
                params={**params, "appid": self._api_key},
            )
        except httpx.TransportError as e:
            logger.warning(f"[WEATHER] {path} for {target}: no response ({type(e).__name__})")
            raise UpstreamNetworkError(
                "Failed to fetch weather data", f"Weather service unreachable: {e}"
            ) from e

        if response.status_code == 200:
            return response.json()

        upstream_message = _upstream_message(response)
        logger.warning(
            f"[WEATHER] {path} for {target} failed: {response.status_code} {upstream_message}"
        )
        if response.status_code == 401:
            raise error_for_status(
                401,
                "Invalid API key",
                "The API key is invalid or not activated yet. "
                "It may take up to 2 hours after registration to activate.",
            )
        if response.status_code == 404:
            raise error_for_status(
                404, "City not found", f'Could not find weather data for "{target}"'
            )
        if response.status_code == 429:
            raise error_for_status(
                429, "Too many requests", "You have exceeded the API rate limit"
            )
        raise error_for_status(
            response.status_code,
            "OpenWeatherMap API error",
            upstream_message or "Unknown error",
        )

    async def get_current(self, city: str, units: Units | str = Units.METRIC) -> dict:
        """Current conditions for a city, as returned by OpenWeatherMap."""
        unit = self.parse_units(units.value if isinstance(units, Units) else units)
        logger.info(f"[WEATHER] Current conditions for {city} ({unit.value})")
        return await self._request("/weather", {"q": city, "units": unit.value}, city)

    async def get_forecast(
        self,
        city: str,
        units: Units | str = Units.METRIC,
        coordinates: tuple[float, float] | None = None,
    ) -> dict:
        """Raw 3-hour forecast, by coordinates when known, else by city name."""
        unit = self.parse_units(units.value if isinstance(units, Units) else units)
        if coordinates is not None:
            lat, lon = coordinates
            params: dict[str, Any] = {"lat": lat, "lon": lon, "units": unit.value}
        else:
            params = {"q": city, "units": unit.value}
        return await self._request("/forecast", params, city)

    async def get_combined(
        self,
        city: str,
        units: Units | str = Units.METRIC,
        days: int = 5,
        skip_today: bool = False,
    ) -> CombinedWeatherData:
        """Current conditions plus the forecast bucketed into daily records."""
        current = await self.get_current(city, units)

        coord = current.get("coord") or {}
        coordinates = None
        if coord.get("lat") is not None and coord.get("lon") is not None:
            coordinates = (coord["lat"], coord["lon"])

        forecast = await self.get_forecast(city, units, coordinates=coordinates)
        city_info = forecast.get("city") or {}
        offset = city_info.get("timezone", current.get("timezone", 0)) or 0

        daily = bucket_forecast(
            forecast.get("list") or [], offset, days=days, skip_today=skip_today
        )
        logger.info(f"[WEATHER] {city}: {len(daily)} forecast days")
        return CombinedWeatherData(
            current=current,
            forecast=ForecastSummary(
                city=city_info.get("name") or current.get("name", city),
                timezone_offset=offset,
                daily=daily,
            ),
        )


def _upstream_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200]
    if isinstance(body, dict):
        return str(body.get("message", ""))
    return ""
