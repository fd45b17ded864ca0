import pytest
from unittest.mock import Mock

from models import ForecastResult, Success, Suggestion
from services.weatherapi import WeatherClient
from store import SessionStore, connect
from payloads import forecast_payload


@pytest.fixture
def make_forecast():
    def _make(city: str = "London", **kwargs) -> ForecastResult:
        return ForecastResult.from_api(forecast_payload(city, **kwargs))
    return _make


@pytest.fixture
def fake_client(make_forecast):
    """WeatherClient stand-in: every city resolves, no suggestions."""
    client = Mock(spec=WeatherClient)
    client.fetch_forecast.side_effect = lambda city: Success(make_forecast(city))
    client.fetch_suggestions.return_value = []
    return client


@pytest.fixture
def suggestions():
    return [
        Suggestion(name="London", country="United Kingdom", region="City of London, Greater London"),
        Suggestion(name="London", country="Canada", region="Ontario"),
        Suggestion(name="Londonderry", country="United Kingdom", region="Derry"),
    ]


@pytest.fixture
def conn():
    connection = connect(":memory:")
    yield connection
    connection.close()


@pytest.fixture
def session_store(conn):
    return SessionStore("test-session", conn=conn)
