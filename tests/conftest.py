"""Shared test fixtures for zonecache.

Provides reusable fixtures for isolating configuration, resetting output
state, building mock HTTP transports, ageing cache files, and running a
local HTTP stub server.  These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import os
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from zonecache.output import OutputFormat, OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the duration of a test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config, and clears all
    ZONECACHE_* environment variables.
    """
    monkeypatch.setattr("zonecache.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in [
        "ZONECACHE_TIMEOUT_MS",
        "ZONECACHE_TTL_SECONDS",
        "ZONECACHE_CACHE_DIR",
    ]:
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    """An empty, writable cache directory."""
    path = tmp_path / "cache"
    path.mkdir()
    return path


# ---------------------------------------------------------------------------
# Cache file helpers
# ---------------------------------------------------------------------------


def age_file(path: Path, seconds: float) -> float:
    """Backdate *path* by *seconds* and return the new timestamp."""
    stamp = time.time() - seconds
    os.utime(path, (stamp, stamp))
    return stamp


@pytest.fixture
def aged() -> Callable[[Path, float], float]:
    """Return :func:`age_file` so tests can backdate cache entries."""
    return age_file


# ---------------------------------------------------------------------------
# Mock transport
# ---------------------------------------------------------------------------


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request it receives.

    Args:
        body: Response body for every request.
        status_code: Response status for every request.
        handler: Optional custom handler; overrides *body*/*status_code*.
    """

    def __init__(
        self,
        body: bytes = b"",
        status_code: int = 200,
        handler: Callable[[httpx.Request], httpx.Response] | None = None,
    ) -> None:
        self.requests: list[httpx.Request] = []
        self.body = body
        self.status_code = status_code
        self._custom = handler
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self._custom is not None:
            return self._custom(request)
        return httpx.Response(self.status_code, content=self.body)

    @property
    def calls(self) -> int:
        return len(self.requests)


@pytest.fixture
def transport_factory() -> Callable[..., RecordingTransport]:
    """Build :class:`RecordingTransport` instances."""
    return RecordingTransport


# ---------------------------------------------------------------------------
# Local HTTP stub server
# ---------------------------------------------------------------------------


class StubServer:
    """A threaded HTTP server on 127.0.0.1 with configurable routes.

    ``routes`` maps a request path to ``(status, body)``.  When ``delay``
    is set, every response is held back for that many seconds (or until
    the fixture is torn down).  When ``trickle`` is set, the raw response,
    status line and headers included, is sent one byte at a time with
    that many seconds between bytes.
    """

    def __init__(self) -> None:
        self.routes: dict[str, tuple[int, bytes]] = {}
        self.delay: float = 0.0
        self.trickle: float = 0.0
        self.requests: list[dict[str, Any]] = []
        self.release = threading.Event()
        stub = self

        class Handler(BaseHTTPRequestHandler):
            def do_GET(self) -> None:  # noqa: N802
                stub.requests.append({"path": self.path, "headers": dict(self.headers)})
                if stub.delay:
                    stub.release.wait(stub.delay)
                status, body = stub.routes.get(self.path, (404, b"not found"))
                if stub.trickle:
                    self._send_slowly(status, body)
                    return
                try:
                    self.send_response(status)
                    self.send_header("Content-Length", str(len(body)))
                    self.end_headers()
                    self.wfile.write(body)
                except OSError:
                    pass  # client already gave up

            def _send_slowly(self, status: int, body: bytes) -> None:
                raw = (
                    f"HTTP/1.1 {status} OK\r\nContent-Length: {len(body)}\r\n\r\n".encode()
                    + body
                )
                self.close_connection = True
                try:
                    for byte in raw:
                        self.wfile.write(bytes([byte]))
                        if stub.release.wait(stub.trickle):
                            return
                except OSError:
                    pass  # client already gave up

            def log_message(self, format: str, *args: Any) -> None:
                pass

        self._server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self._server.daemon_threads = True
        self._thread = threading.Thread(target=self._server.serve_forever, daemon=True)

    def url(self, path: str) -> str:
        host, port = self._server.server_address[:2]
        return f"http://{host}:{port}{path}"

    def start(self) -> None:
        self._thread.start()

    def stop(self) -> None:
        self.release.set()
        self._server.shutdown()
        self._server.server_close()


@pytest.fixture
def http_server() -> StubServer:
    """A running :class:`StubServer`, stopped after the test."""
    server = StubServer()
    server.start()
    yield server
    server.stop()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
