"""
Weather widget server — entry point.

Starts the event loop every widget controller runs on, then serves the
widget page and its JSON actions with Flask.

Usage:
  python server.py
"""

import asyncio
import logging
import threading

from config import PURGE_INTERVAL, SESSION_TTL, WEB_HOST, WEB_PORT
import store

logging.basicConfig(
    format="%(asctime)s [%(name)s] %(levelname)s %(message)s",
    level=logging.INFO,
)
log = logging.getLogger("server")


class EventLoopThread:
    """An asyncio loop running forever in a daemon thread.

    Flask request threads hand coroutines to it with run(), so all
    controller state is only ever touched from this one thread.
    """

    def __init__(self, name: str = "widget-loop"):
        self.loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)

    def _run(self):
        asyncio.set_event_loop(self.loop)
        self.loop.run_forever()

    def start(self) -> "EventLoopThread":
        self._thread.start()
        return self

    def run(self, coro, timeout: float = None):
        """Run a coroutine on the loop and wait for its result."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop).result(timeout)

    def submit(self, coro):
        """Schedule a coroutine on the loop without waiting for it."""
        return asyncio.run_coroutine_threadsafe(coro, self.loop)

    def stop(self):
        self.loop.call_soon_threadsafe(self.loop.stop)
        self._thread.join(timeout=5)
        self.loop.close()


def main():
    runner = EventLoopThread().start()
    # Purges share the loop thread with every other store access
    purging = runner.submit(store.purge_forever(SESSION_TTL, PURGE_INTERVAL))

    from web import create_app
    app = create_app(runner)
    # Suppress Flask request logs in the main console
    logging.getLogger("werkzeug").setLevel(logging.WARNING)

    log.info(f"Widget: http://{WEB_HOST}:{WEB_PORT}")
    try:
        app.run(host=WEB_HOST, port=WEB_PORT, use_reloader=False)
    finally:
        purging.cancel()
        runner.stop()


if __name__ == "__main__":
    main()
