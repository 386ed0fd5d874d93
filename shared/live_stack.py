"""Shared live-server helpers for the integration and E2E test suites."""

from __future__ import annotations

import os
import threading
import time
from collections.abc import Callable, Generator

import requests
from flask import Flask
from werkzeug.serving import make_server


def is_server_ready(url: str, timeout: int = 2) -> bool:
    """Return True when the health endpoint responds with 200."""
    try:
        response = requests.get(f"{url}/api/health", timeout=timeout)
    except requests.RequestException:
        return False
    return response.status_code == 200


def wait_for_healthy(url: str, timeout: int = 30, interval: float = 0.2) -> None:
    """Poll the health endpoint until ready or timeout."""
    deadline = time.time() + timeout
    while time.time() < deadline:
        if is_server_ready(url):
            return
        time.sleep(interval)
    raise RuntimeError(f"Dashboard at {url} not healthy after {timeout}s")


class ServerThread(threading.Thread):
    """
    Serve a Flask app from a background thread.

    Binding to port 0 lets the OS pick a free port, so parallel test runs
    never collide.
    """

    def __init__(self, app: Flask, host: str = "127.0.0.1", port: int = 0):
        super().__init__(daemon=True)
        self.server = make_server(host, port, app, threaded=True)
        self.host = host
        self.port = self.server.server_port

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    def run(self) -> None:
        self.server.serve_forever()

    def shutdown(self) -> None:
        self.server.shutdown()
        self.join(timeout=5)


def live_server_url(
    app_factory: Callable[[], Flask],
    *,
    base_url_env: str = "TEST_BASE_URL",
) -> Generator[str, None, None]:
    """
    Yield a healthy dashboard base URL.

    Priority:
    1. Use the explicit base URL from `base_url_env` (and wait for health).
    2. Start the stub dashboard in a background thread and stop it on exit.
    """
    provided_base_url = os.getenv(base_url_env)
    if provided_base_url:
        wait_for_healthy(provided_base_url)
        yield provided_base_url.rstrip("/")
        return

    server = ServerThread(app_factory())
    server.start()
    try:
        wait_for_healthy(server.url)
        yield server.url
    finally:
        server.shutdown()
