"""
Views — one per widget panel, each rendering AppState onto a Page.

A Page is the in-memory stand-in for the widget's fixed DOM surface:
element ids mapped to their HTML children and CSS classes. Every render
replaces an element's children wholesale, so rendering the same state
twice produces the same page.
"""

from __future__ import annotations
import os

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import escape

from models import AppState
from services.weatherapi import day_name, format_number, format_temperature, format_time

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "templates")

_env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=select_autoescape(["html"]),
    trim_blocks=True,
    lstrip_blocks=True,
)
_env.filters["temperature"] = format_temperature
_env.filters["day_name"] = day_name


class Page:
    def __init__(self):
        self.elements: dict[str, str] = {}
        self.classes: dict[str, set[str]] = {}

    def replace_children(self, element_id: str, html: str):
        self.elements[element_id] = str(html)

    def set_text(self, element_id: str, text):
        self.elements[element_id] = str(escape("" if text is None else text))

    def toggle_class(self, element_id: str, name: str, on: bool):
        classes = self.classes.setdefault(element_id, set())
        if on:
            classes.add(name)
        else:
            classes.discard(name)

    def has_class(self, element_id: str, name: str) -> bool:
        return name in self.classes.get(element_id, ())

    def snapshot(self) -> dict:
        return {
            "elements": dict(self.elements),
            "classes": {k: sorted(v) for k, v in self.classes.items()},
        }


class View:
    template = ""

    def __init__(self, page: Page):
        self.page = page

    def render(self, state: AppState):
        raise NotImplementedError

    def _fragment(self, **context) -> str:
        return _env.get_template(self.template).render(**context)


class MainPanelView(View):
    """City name, local time, temperature and condition."""

    template = "fragments/condition_icon.html"
    fields = ("city-name", "time", "temperature", "condition", "condition-icon")

    def render(self, state: AppState):
        weather = state.active_view
        if weather is None:
            for element_id in self.fields:
                self.page.set_text(element_id, "")
            return

        location, current = weather.location, weather.current
        self.page.set_text("city-name", location.name)
        self.page.set_text("time", format_time(location.localtime))
        self.page.set_text("temperature", format_temperature(current.temp_c, state.unit))
        self.page.set_text("condition", current.condition.text)
        self.page.replace_children("condition-icon", self._fragment(condition=current.condition))


class ForecastView(View):
    template = "fragments/forecast.html"

    def render(self, state: AppState):
        days = state.active_view.days if state.active_view else []
        self.page.replace_children("forecast-wrapper", self._fragment(days=days, unit=state.unit))


class MetricsView(View):
    """Humidity, wind, UV index and feels-like."""

    def render(self, state: AppState):
        weather = state.active_view
        if weather is None:
            for element_id in ("humidity", "wind-speed", "uv-index", "feels-like"):
                self.page.set_text(element_id, "")
            return

        current = weather.current
        self.page.set_text("humidity", f"{current.humidity}%")
        self.page.set_text("wind-speed", f"{format_number(current.wind_kph)} km/h")
        self.page.set_text("uv-index", format_number(current.uv))
        self.page.set_text("feels-like", format_temperature(current.feelslike_c, state.unit))


class RecentSearchesView(View):
    template = "fragments/recent_searches.html"

    def render(self, state: AppState):
        self.page.replace_children(
            "location-history",
            self._fragment(cities=state.recent_searches, active=state.current_city),
        )


class SuggestionsView(View):
    template = "fragments/suggestions.html"

    def render(self, state: AppState):
        if state.suggestions_visible:
            self.page.replace_children(
                "city-suggestions", self._fragment(suggestions=state.suggestions)
            )
        self.page.toggle_class("city-suggestions", "show", state.suggestions_visible)


class StatusView(View):
    """Loading indicator and the error banner."""

    def render(self, state: AppState):
        self.page.toggle_class("app", "loading", state.loading)
        self.page.set_text("error-message", state.error)
        self.page.toggle_class("error-message", "show", bool(state.error))


def build_views(page: Page) -> dict[str, View]:
    return {
        "main": MainPanelView(page),
        "forecast": ForecastView(page),
        "metrics": MetricsView(page),
        "recent": RecentSearchesView(page),
        "suggestions": SuggestionsView(page),
        "status": StatusView(page),
    }
