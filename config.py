"""
Configuration — loads from .env, provides defaults.
"""

import os
from dotenv import load_dotenv

load_dotenv()

# WeatherAPI.com
WEATHER_API_KEY = os.getenv("WEATHER_API_KEY", "")
WEATHER_API_BASE_URL = os.getenv("WEATHER_API_BASE_URL", "https://api.weatherapi.com/v1")
REQUEST_TIMEOUT = float(os.getenv("REQUEST_TIMEOUT", "10"))  # seconds

# Widget defaults
DEFAULT_CITY = os.getenv("DEFAULT_CITY", "London")
FORECAST_DAYS = int(os.getenv("FORECAST_DAYS", "7"))
TEMPERATURE_UNIT = os.getenv("TEMPERATURE_UNIT", "C").upper()

# Fixed widget limits
MIN_QUERY_LENGTH = 2
MAX_SUGGESTIONS = 5
MAX_RECENT_SEARCHES = 5
HISTORY_KEY = "weatherSearchHistory"

# Web server
WEB_HOST = os.getenv("WEB_HOST", "127.0.0.1")
WEB_PORT = int(os.getenv("WEB_PORT", "8080"))
WEB_SECRET = os.getenv("WEB_SECRET", "change-me-in-production")

# Session store
DB_PATH = os.getenv("DB_PATH", "widget.db")
SESSION_TTL = int(os.getenv("SESSION_TTL", "86400"))  # seconds
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "100"))
PURGE_INTERVAL = int(os.getenv("PURGE_INTERVAL", "3600"))  # seconds
