"""
Web host — Flask app serving the widget page and its JSON actions.

Provides:
  - The widget page, pre-rendered from the session's controller
  - JSON endpoints the page script calls on keystrokes, clicks and Enter
  - A registry holding one controller per browser session

Controllers live on the background event loop; each request submits a
coroutine there and returns the resulting page snapshot.
"""

import asyncio
import logging
import uuid

from flask import Flask, jsonify, render_template, request, session

from config import MAX_SESSIONS, WEB_SECRET
from controller import WeatherApp
from services.weatherapi import ValidationError, WeatherClient
from store import SessionStore
from views import TEMPLATE_DIR

log = logging.getLogger(__name__)


class SessionRegistry:
    """Controllers by session id, least recently used evicted first.

    Only touched from the event loop thread.
    """

    def __init__(self, client: WeatherClient, max_sessions: int = MAX_SESSIONS,
                 store_factory=SessionStore):
        self.client = client
        self.max_sessions = max_sessions
        self.store_factory = store_factory
        self.controllers: dict[str, WeatherApp] = {}

    async def acquire(self, session_id: str) -> WeatherApp:
        controller = self.controllers.pop(session_id, None)
        if controller is not None:
            self.controllers[session_id] = controller
            return controller

        controller = WeatherApp(self.client, self.store_factory(session_id))
        # Registered before start() so concurrent requests share it
        self.controllers[session_id] = controller
        while len(self.controllers) > self.max_sessions:
            evicted = next(iter(self.controllers))
            self.controllers.pop(evicted)
            log.info(f"Evicted controller for session {evicted[:8]}")
        log.info(f"Started controller for session {session_id[:8]}")
        await controller.start()
        return controller


def create_app(runner, client: WeatherClient = None) -> Flask:
    """runner: anything with run(coro) that executes on the event loop."""
    registry = SessionRegistry(client or WeatherClient())

    app = Flask(__name__, template_folder=TEMPLATE_DIR)
    app.secret_key = WEB_SECRET
    app.extensions["widget_registry"] = registry

    def _session_id() -> str:
        if "sid" not in session:
            session["sid"] = uuid.uuid4().hex
        return session["sid"]

    def _dispatch(action=None) -> dict:
        sid = _session_id()

        async def run():
            controller = await registry.acquire(sid)
            if action is not None:
                result = action(controller)
                if asyncio.iscoroutine(result):
                    await result
            return controller.snapshot()

        return runner.run(run())

    def _city_from_body():
        data = request.get_json(silent=True) or {}
        city = data.get("city")
        if not isinstance(city, str):
            return None
        return city

    # ── Page ────────────────────────────────────────────────

    @app.route("/")
    def index():
        return render_template("index.html", snapshot=_dispatch())

    # ── API endpoints ───────────────────────────────────────

    @app.route("/api/state", methods=["GET"])
    def api_state():
        return jsonify(_dispatch())

    @app.route("/api/search", methods=["POST"])
    def api_search():
        city = _city_from_body()
        if city is None:
            return jsonify({"error": "city is required"}), 400
        return jsonify(_dispatch(lambda c: c.submit_query(city)))

    @app.route("/api/suggestions", methods=["GET"])
    def api_suggestions():
        query = request.args.get("q", "")
        return jsonify(_dispatch(lambda c: c.update_suggestions(query)))

    @app.route("/api/suggestions/select", methods=["POST"])
    def api_select_suggestion():
        city = _city_from_body()
        if city is None:
            return jsonify({"error": "city is required"}), 400
        return jsonify(_dispatch(lambda c: c.select_suggestion(city)))

    @app.route("/api/suggestions/hide", methods=["POST"])
    def api_hide_suggestions():
        return jsonify(_dispatch(lambda c: c.hide_suggestions()))

    @app.route("/api/recent/select", methods=["POST"])
    def api_select_recent():
        city = _city_from_body()
        if city is None:
            return jsonify({"error": "city is required"}), 400
        return jsonify(_dispatch(lambda c: c.select_recent_search(city)))

    @app.route("/api/unit", methods=["POST"])
    def api_unit():
        data = request.get_json(silent=True) or {}
        unit = data.get("unit")
        if not isinstance(unit, str):
            return jsonify({"error": "unit is required"}), 400
        try:
            snapshot = _dispatch(lambda c: c.set_unit(unit))
        except ValidationError as e:
            return jsonify({"error": str(e)}), 400
        return jsonify(snapshot)

    return app
