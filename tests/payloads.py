"""Canned WeatherAPI.com responses."""


def forecast_payload(city: str = "London", days: int = 7, temp_c: float = 15.0) -> dict:
    """A trimmed-down forecast.json response."""
    return {
        "location": {
            "name": city,
            "region": "City of London, Greater London",
            "country": "United Kingdom",
            "lat": 51.52,
            "lon": -0.11,
            "localtime": "2024-05-01 9:05",
        },
        "current": {
            "temp_c": temp_c,
            "feelslike_c": 13.6,
            "humidity": 72,
            "wind_kph": 14.4,
            "uv": 4.0,
            "is_day": 1,
            "condition": {
                "text": "Partly cloudy",
                "icon": "//cdn.weatherapi.com/weather/64x64/day/116.png",
                "code": 1003,
            },
        },
        "forecast": {
            "forecastday": [
                {
                    "date": f"2024-05-{i + 1:02d}",
                    "day": {
                        "maxtemp_c": 18.0 + i,
                        "mintemp_c": 9.0 + i,
                        "condition": {
                            "text": "Sunny",
                            "icon": "//cdn.weatherapi.com/weather/64x64/day/113.png",
                            "code": 1000,
                        },
                    },
                }
                for i in range(days)
            ]
        },
    }
