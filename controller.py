"""
App controller — owns one browser session's widget state.

Turns UI actions (search, keystrokes, clicks on suggestions or recent
searches) into weather client calls, updates AppState and re-renders
the affected views.

Architecture:
  - One controller per browser session, built with an injected client,
    session store and set of views
  - Runs on a single event loop; blocking HTTP calls go to a worker
    thread, so the only suspension points are the network calls
  - Every search and every suggestion lookup takes a token before it
    suspends; a response arriving for a stale token is dropped
  - Recent searches are written to the session store after every change
"""

from __future__ import annotations
import asyncio
import logging
from typing import Optional

from config import DEFAULT_CITY, MAX_RECENT_SEARCHES, MIN_QUERY_LENGTH, TEMPERATURE_UNIT
from models import AppState, Failure
from services.weatherapi import ValidationError, WeatherClient, validate_city
from store import SessionStore, load_history, save_history
from views import Page, View, build_views

log = logging.getLogger(__name__)


class WeatherApp:
    def __init__(
        self,
        client: WeatherClient,
        store: SessionStore,
        views: Optional[dict[str, View]] = None,
        page: Optional[Page] = None,
        unit: str = TEMPERATURE_UNIT,
    ):
        self.client = client
        self.store = store
        self.page = page or Page()
        self.views = views if views is not None else build_views(self.page)
        self.state = AppState(unit=unit if unit in ("C", "F") else "C")
        self._search_token = 0
        self._suggest_token = 0

    async def start(self, default_city: str = DEFAULT_CITY):
        """
        Restore recent searches and show a city.

        A session with no history gets the default city. A returning
        session gets its most recent city back, which is already at the
        front of the history, so the order is unchanged.
        """
        self.state.recent_searches = load_history(self.store)
        log.info(f"Restored {len(self.state.recent_searches)} recent search(es)")
        self._render("recent", "suggestions", "status")
        if self.state.recent_searches:
            await self.search(self.state.recent_searches[0])
        else:
            await self.search(default_city)

    # ── Search ──────────────────────────────────────────────────

    async def search(self, city_name: str) -> bool:
        """
        Fetch and display the forecast for a city.
        Returns True if this call's result ended up on screen.
        """
        try:
            city = validate_city(city_name)
        except ValidationError as e:
            self._show_error(str(e))
            return False

        self._search_token += 1
        token = self._search_token
        log.info(f"Searching for city: {city}")
        self._set_loading(True)

        outcome = await asyncio.to_thread(self.client.fetch_forecast, city)

        if token != self._search_token:
            log.info(f"Discarding stale forecast for {city} (request {token}, latest {self._search_token})")
            return False

        self.state.loading = False
        if isinstance(outcome, Failure):
            log.error(f"Error searching city {city}: {outcome.error}")
            self._show_error(f"Error fetching weather for {city}")
            return False

        self.state.current_city = city
        self.state.active_view = outcome.value
        self.state.error = ""
        self._add_to_history(city)
        self._render("main", "forecast", "metrics", "recent", "status")
        log.info(f"Weather data loaded for {city}")
        return True

    async def submit_query(self, text: str) -> bool:
        """Enter pressed in the city field."""
        city = (text or "").strip()
        if not city:
            return False
        self.hide_suggestions()
        return await self.search(city)

    async def select_suggestion(self, name: str) -> bool:
        self.hide_suggestions()
        return await self.search(name)

    async def select_recent_search(self, name: str) -> bool:
        return await self.search(name)

    # ── Suggestions ─────────────────────────────────────────────

    async def update_suggestions(self, query_text: str) -> bool:
        """
        Refresh the suggestion dropdown for what's typed so far.
        Returns True if this call's result ended up on screen.
        """
        query = (query_text or "").strip()
        self._suggest_token += 1
        token = self._suggest_token

        if len(query) < MIN_QUERY_LENGTH:
            self.hide_suggestions()
            return True

        suggestions = await asyncio.to_thread(self.client.fetch_suggestions, query)

        if token != self._suggest_token:
            log.debug(f"Discarding stale suggestions for {query!r}")
            return False

        self.state.suggestion_query = query
        self.state.suggestions = list(suggestions)
        self.state.suggestions_visible = True
        self._render("suggestions")
        return True

    def hide_suggestions(self):
        self.state.suggestions_visible = False
        self._render("suggestions")

    # ── Display settings ────────────────────────────────────────

    def set_unit(self, unit: str):
        unit = (unit or "").strip().upper()
        if unit not in ("C", "F"):
            raise ValidationError(f"Unknown temperature unit: {unit!r}")
        self.state.unit = unit
        self._render("main", "forecast", "metrics")

    def snapshot(self) -> dict:
        return {**self.page.snapshot(), **self.state.summary()}

    # ── Helpers ─────────────────────────────────────────────────

    def _add_to_history(self, city: str):
        history = [c for c in self.state.recent_searches if c != city]
        history.insert(0, city)
        self.state.recent_searches = history[:MAX_RECENT_SEARCHES]
        save_history(self.store, self.state.recent_searches)

    def _set_loading(self, loading: bool):
        self.state.loading = loading
        self._render("status")

    def _show_error(self, message: str):
        self.state.error = message
        self._render("status")

    def _render(self, *names: str):
        for name in names:
            view = self.views.get(name)
            if view:
                view.render(self.state)
