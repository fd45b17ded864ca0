"""
WeatherAPI.com client — forecast, current conditions, city search.

Every network call lives in a fetch_* method. Forecast and current
lookups return Success/Failure instead of raising; suggestions are
best-effort and come back as an empty list on any failure.

The formatting helpers are pure and shared with the views.
"""

import logging
import math
from datetime import datetime
from typing import Optional

import requests

from config import (
    WEATHER_API_KEY,
    WEATHER_API_BASE_URL,
    REQUEST_TIMEOUT,
    FORECAST_DAYS,
    MIN_QUERY_LENGTH,
    MAX_SUGGESTIONS,
)
from models import CurrentReport, Failure, ForecastResult, Outcome, Success, Suggestion

log = logging.getLogger(__name__)

ICON_CDN = "https://cdn.weatherapi.com/weather/64x64"
INVALID_DATE = "Invalid Date"


class WeatherError(Exception):
    """Base class for everything the widget reports to the user."""


class NetworkError(WeatherError):
    """Non-2xx response, transport failure, or an unusable payload."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status


class ValidationError(WeatherError):
    """Input rejected before any request was made."""


# ── Formatting ──────────────────────────────────────────────────

def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def format_number(value) -> str:
    """14.0 -> '14', 14.4 -> '14.4'."""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_temperature(celsius: float, unit: str = "C") -> str:
    if unit.upper() == "F":
        return f"{_round_half_up(celsius * 9 / 5 + 32)}°F"
    return f"{_round_half_up(celsius)}°C"


def _parse_timestamp(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith("Z"):
        # fromisoformat only accepts a "Z" suffix from Python 3.11
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        pass
    # WeatherAPI local times are "2024-05-01 9:05", hour not zero-padded
    for fmt in ("%Y-%m-%d %H:%M", "%Y-%m-%dT%H:%M"):
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue
    return None


def format_time(timestamp) -> str:
    """'Monday 3:45 PM'."""
    dt = _parse_timestamp(timestamp)
    if dt is None:
        return INVALID_DATE
    hour = dt.hour % 12 or 12
    meridiem = "AM" if dt.hour < 12 else "PM"
    return f"{dt:%A} {hour}:{dt:%M} {meridiem}"


def day_name(date) -> str:
    """'Mon'."""
    dt = _parse_timestamp(date)
    if dt is None:
        return INVALID_DATE
    return f"{dt:%a}"


def weather_icon_url(code, is_day: bool = True) -> str:
    return f"{ICON_CDN}/{'day' if is_day else 'night'}/{code}.png"


def validate_city(name: Optional[str]) -> str:
    city = (name or "").strip()
    if not city:
        raise ValidationError("Please enter a city name.")
    return city


def _error_detail(resp: requests.Response) -> str:
    """Pull WeatherAPI's {"error": {"message": ...}} body if there is one."""
    try:
        return resp.json()["error"]["message"]
    except (ValueError, KeyError, TypeError):
        return ""


class WeatherClient:
    def __init__(
        self,
        api_key: str = WEATHER_API_KEY,
        base_url: str = WEATHER_API_BASE_URL,
        timeout: float = REQUEST_TIMEOUT,
        forecast_days: int = FORECAST_DAYS,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.forecast_days = forecast_days
        # Without an injected session each call goes through requests.get,
        # which opens its own session, so worker threads share nothing
        self.session = session

    def _get(self, endpoint: str, **params):
        params = {"key": self.api_key, **params}
        try:
            resp = (self.session or requests).get(
                f"{self.base_url}/{endpoint}", params=params, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.HTTPError as e:
            status = e.response.status_code if e.response is not None else None
            detail = _error_detail(e.response) if e.response is not None else ""
            message = f"HTTP error! status: {status}"
            if detail:
                message += f" ({detail})"
            raise NetworkError(message, status=status) from e
        except requests.RequestException as e:
            raise NetworkError(f"Request to {endpoint} failed: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise NetworkError(f"Invalid JSON from {endpoint}") from e

    # ── Lookups ─────────────────────────────────────────────────

    def fetch_forecast(self, city_name: str) -> Outcome:
        """Current conditions plus the N-day forecast for a city."""
        try:
            city = validate_city(city_name)
        except ValidationError as e:
            return Failure(e)

        try:
            payload = self._get("forecast.json", q=city, days=self.forecast_days, aqi="no")
            result = ForecastResult.from_api(payload)
        except NetworkError as e:
            log.error(f"Error fetching weather data for {city}: {e}")
            return Failure(e)
        except (KeyError, TypeError, AttributeError) as e:
            log.error(f"Invalid weather data received for {city}: {e!r}")
            return Failure(NetworkError("Invalid weather data received"))

        log.debug(f"Forecast for {city}: {len(result.days)} day(s)")
        return Success(result)

    def fetch_current(self, city_name: str) -> Outcome:
        """Current conditions only."""
        try:
            city = validate_city(city_name)
        except ValidationError as e:
            return Failure(e)

        try:
            payload = self._get("current.json", q=city, aqi="no")
            return Success(CurrentReport.from_api(payload))
        except NetworkError as e:
            log.error(f"Error fetching current weather for {city}: {e}")
            return Failure(e)
        except (KeyError, TypeError, AttributeError) as e:
            log.error(f"Invalid current weather received for {city}: {e!r}")
            return Failure(NetworkError("Invalid weather data received"))

    def fetch_suggestions(self, query_text: str) -> list[Suggestion]:
        """Autocomplete matches for a partial city name, at most five."""
        if len(query_text) < MIN_QUERY_LENGTH:
            return []
        try:
            matches = self._get("search.json", q=query_text)
            return [Suggestion.from_api(m) for m in matches[:MAX_SUGGESTIONS]]
        except NetworkError as e:
            log.warning(f"Error fetching city suggestions for {query_text!r}: {e}")
        except (KeyError, TypeError, AttributeError) as e:
            log.warning(f"Invalid suggestions received for {query_text!r}: {e!r}")
        return []

    # Formatting helpers, exposed on the client as well
    format_temperature = staticmethod(format_temperature)
    format_time = staticmethod(format_time)
    day_name = staticmethod(day_name)
    weather_icon_url = staticmethod(weather_icon_url)
