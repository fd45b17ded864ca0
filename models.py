"""
Data models for forecasts, suggestions, and widget state.

Everything here is transient: built from WeatherAPI.com payloads and
held in memory for the lifetime of a browser session.
"""

from __future__ import annotations
from dataclasses import dataclass, field, asdict
from typing import Any, Generic, Optional, TypeVar, Union

T = TypeVar("T")


def _icon_url(icon: str) -> str:
    # The API hands out protocol-relative icon URLs ("//cdn.weatherapi.com/...")
    if icon.startswith("//"):
        return "https:" + icon
    return icon


@dataclass
class Location:
    name: str
    country: str = ""
    region: str = ""
    lat: float = 0.0
    lon: float = 0.0
    localtime: str = ""

    @classmethod
    def from_api(cls, data: dict) -> Location:
        return cls(
            name=data["name"],
            country=data.get("country", ""),
            region=data.get("region", ""),
            lat=data.get("lat", 0.0),
            lon=data.get("lon", 0.0),
            localtime=data.get("localtime", ""),
        )


@dataclass
class Condition:
    text: str = ""
    icon: str = ""
    code: int = 0

    @classmethod
    def from_api(cls, data: dict) -> Condition:
        return cls(
            text=data.get("text", ""),
            icon=_icon_url(data.get("icon", "")),
            code=data.get("code", 0),
        )


@dataclass
class CurrentConditions:
    temp_c: float
    feelslike_c: float
    humidity: int
    wind_kph: float
    uv: float
    condition: Condition = field(default_factory=Condition)
    is_day: bool = True

    @classmethod
    def from_api(cls, data: dict) -> CurrentConditions:
        return cls(
            temp_c=data["temp_c"],
            feelslike_c=data["feelslike_c"],
            humidity=data["humidity"],
            wind_kph=data["wind_kph"],
            uv=data["uv"],
            condition=Condition.from_api(data["condition"]),
            is_day=bool(data.get("is_day", 1)),
        )


@dataclass
class ForecastDay:
    date: str
    mintemp_c: float
    maxtemp_c: float
    condition: Condition = field(default_factory=Condition)

    @classmethod
    def from_api(cls, data: dict) -> ForecastDay:
        day = data["day"]
        return cls(
            date=data["date"],
            mintemp_c=day["mintemp_c"],
            maxtemp_c=day["maxtemp_c"],
            condition=Condition.from_api(day["condition"]),
        )


@dataclass
class CurrentReport:
    location: Location
    current: CurrentConditions

    @classmethod
    def from_api(cls, payload: dict) -> CurrentReport:
        return cls(
            location=Location.from_api(payload["location"]),
            current=CurrentConditions.from_api(payload["current"]),
        )


@dataclass
class ForecastResult:
    location: Location
    current: CurrentConditions
    days: list[ForecastDay] = field(default_factory=list)

    @classmethod
    def from_api(cls, payload: dict) -> ForecastResult:
        return cls(
            location=Location.from_api(payload["location"]),
            current=CurrentConditions.from_api(payload["current"]),
            days=[ForecastDay.from_api(d) for d in payload["forecast"]["forecastday"]],
        )

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class Suggestion:
    name: str
    country: str = ""
    region: str = ""

    @classmethod
    def from_api(cls, data: dict) -> Suggestion:
        return cls(
            name=data["name"],
            country=data.get("country", ""),
            region=data.get("region", ""),
        )


# ── Lookup outcomes ─────────────────────────────────────────────

@dataclass
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True


@dataclass
class Failure:
    error: Exception

    @property
    def ok(self) -> bool:
        return False


Outcome = Union[Success, Failure]


# ── Widget state ────────────────────────────────────────────────

@dataclass
class AppState:
    current_city: str = ""
    recent_searches: list[str] = field(default_factory=list)
    active_view: Optional[ForecastResult] = None
    suggestions: list[Suggestion] = field(default_factory=list)
    suggestions_visible: bool = False
    suggestion_query: str = ""
    loading: bool = False
    error: str = ""
    unit: str = "C"

    def summary(self) -> dict[str, Any]:
        return {
            "current_city": self.current_city,
            "recent_searches": list(self.recent_searches),
            "loading": self.loading,
            "error": self.error,
            "unit": self.unit,
            "weather": self.active_view.to_dict() if self.active_view else None,
        }
