import asyncio

import pytest
from bs4 import BeautifulSoup

import store
from models import Failure, Success
from server import EventLoopThread
from services.weatherapi import NetworkError
from store import SessionStore, load_history
from web import SessionRegistry, create_app


@pytest.fixture
def runner():
    loop_thread = EventLoopThread(name="test-loop").start()
    yield loop_thread
    loop_thread.stop()


@pytest.fixture
def flask_app(runner, fake_client, conn, monkeypatch):
    monkeypatch.setattr(store, "_conn", conn)
    app = create_app(runner, client=fake_client)
    app.config["TESTING"] = True
    return app


@pytest.fixture
def browser(flask_app):
    return flask_app.test_client()


def test_first_visit_renders_london(browser, fake_client):
    resp = browser.get("/")

    assert resp.status_code == 200
    soup = BeautifulSoup(resp.data, "html.parser")
    assert soup.select_one("#city-name").get_text() == "London"
    assert len(soup.select("#forecast-wrapper .day")) == 7
    active = soup.select("#location-history .city-location.active")
    assert [a["data-city"] for a in active] == ["London"]
    fake_client.fetch_forecast.assert_called_once_with("London")


def test_controller_is_reused_within_a_session(browser, fake_client):
    browser.get("/")
    browser.get("/api/state")
    assert fake_client.fetch_forecast.call_count == 1


def test_search_endpoint(browser):
    browser.get("/")

    data = browser.post("/api/search", json={"city": "Paris"}).get_json()

    assert data["current_city"] == "Paris"
    assert data["recent_searches"] == ["Paris", "London"]
    assert data["elements"]["city-name"] == "Paris"


def test_search_requires_a_city(browser):
    resp = browser.post("/api/search", json={})
    assert resp.status_code == 400
    assert resp.get_json()["error"] == "city is required"


def test_suggestions_endpoint(browser, fake_client, suggestions):
    fake_client.fetch_suggestions.return_value = suggestions

    data = browser.get("/api/suggestions?q=Lon").get_json()

    assert "show" in data["classes"]["city-suggestions"]
    items = BeautifulSoup(data["elements"]["city-suggestions"], "html.parser")
    assert len(items.select(".city-suggestion-item")) == 3


def test_short_query_hides_suggestions(browser, fake_client):
    data = browser.get("/api/suggestions?q=L").get_json()

    assert "show" not in data["classes"]["city-suggestions"]
    fake_client.fetch_suggestions.assert_not_called()


def test_select_suggestion_and_hide(browser, fake_client, suggestions):
    fake_client.fetch_suggestions.return_value = suggestions
    browser.get("/api/suggestions?q=Lon")

    data = browser.post("/api/suggestions/select", json={"city": "Londonderry"}).get_json()
    assert data["current_city"] == "Londonderry"
    assert "show" not in data["classes"]["city-suggestions"]

    assert browser.post("/api/suggestions/hide").status_code == 200


def test_select_recent(browser):
    browser.post("/api/search", json={"city": "Paris"})

    data = browser.post("/api/recent/select", json={"city": "London"}).get_json()

    assert data["current_city"] == "London"
    assert data["recent_searches"] == ["London", "Paris"]


def test_unit_endpoint(browser):
    browser.get("/")

    data = browser.post("/api/unit", json={"unit": "F"}).get_json()
    assert data["unit"] == "F"
    assert data["elements"]["temperature"] == "59°F"

    assert browser.post("/api/unit", json={"unit": "K"}).status_code == 400
    assert browser.post("/api/unit", json={}).status_code == 400


def test_failed_search_reports_error(browser, fake_client, make_forecast):
    browser.get("/")
    fake_client.fetch_forecast.side_effect = lambda city: (
        Failure(NetworkError("HTTP error! status: 400", status=400))
        if city == "Atlantis" else Success(make_forecast(city))
    )

    data = browser.post("/api/search", json={"city": "Atlantis"}).get_json()

    assert data["error"] == "Error fetching weather for Atlantis"
    assert data["current_city"] == "London"


def test_sessions_are_isolated(flask_app):
    alice, bob = flask_app.test_client(), flask_app.test_client()

    alice.post("/api/search", json={"city": "Paris"})
    data = bob.get("/api/state").get_json()

    assert data["recent_searches"] == ["London"]


def test_purge_runs_on_the_loop_thread(runner, conn, session_store):
    store.save_history(session_store, ["Paris"])
    conn.execute("UPDATE session_items SET updated_at = updated_at - 7200")

    purging = runner.submit(store.purge_forever(3600, interval=60, conn=conn))
    runner.run(asyncio.sleep(0.05), timeout=5)
    purging.cancel()

    assert load_history(session_store) == []


# ── Session registry ────────────────────────────────────────────

@pytest.fixture
def registry(fake_client, conn):
    return SessionRegistry(
        fake_client, max_sessions=2,
        store_factory=lambda sid: SessionStore(sid, conn=conn),
    )


def test_registry_evicts_least_recently_used(registry):
    async def scenario():
        await registry.acquire("alice")
        await registry.acquire("bob")
        await registry.acquire("alice")  # alice is now the most recent
        await registry.acquire("carol")

    asyncio.run(scenario())

    assert list(registry.controllers) == ["alice", "carol"]


def test_evicted_session_comes_back_unchanged(registry, fake_client, conn):
    async def scenario():
        alice = await registry.acquire("alice")
        await alice.search("Paris")
        await alice.search("Rome")
        before = (alice.state.current_city, list(alice.state.recent_searches))

        await registry.acquire("bob")
        await registry.acquire("carol")
        assert "alice" not in registry.controllers

        returning = await registry.acquire("alice")
        return before, (returning.state.current_city, list(returning.state.recent_searches))

    before, after = asyncio.run(scenario())

    assert before == ("Rome", ["Rome", "Paris", "London"])
    assert after == before
    assert load_history(SessionStore("alice", conn=conn)) == ["Rome", "Paris", "London"]
