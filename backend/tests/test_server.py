import logging
import socket
import threading
import time

import httpx
import pytest

from backend.status_server import server as server_module
from backend.status_server.core.config import Settings
from backend.status_server.core.errors import StartupBindError
from backend.status_server.main import create_app
from backend.status_server.server import bind_socket, create_server


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def _free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as probe:
        probe.bind(("127.0.0.1", 0))
        return probe.getsockname()[1]


@pytest.fixture
def occupied_port():
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    yield listener.getsockname()[1]
    listener.close()


@pytest.fixture
def local_env(monkeypatch):
    monkeypatch.setenv("STATUS_HOST", "127.0.0.1")
    monkeypatch.delenv("STATUS_OTEL_ENABLED", raising=False)
    return monkeypatch


def test_bind_socket_raises_when_port_in_use(occupied_port):
    with pytest.raises(StartupBindError) as excinfo:
        bind_socket("127.0.0.1", occupied_port)

    assert excinfo.value.port == occupied_port
    assert isinstance(excinfo.value.__cause__, OSError)


def test_bind_socket_on_ephemeral_port():
    sock = bind_socket("127.0.0.1", 0)
    try:
        assert sock.getsockname()[1] > 0
    finally:
        sock.close()


def test_server_accepts_connections_on_configured_port(local_env):
    port = _free_port()
    local_env.setenv("PORT", str(port))
    settings = Settings()
    assert settings.app.port == port

    sock = bind_socket(settings.app.host, settings.app.port)
    server = create_server(create_app(settings), settings)
    thread = threading.Thread(target=server.run, kwargs={"sockets": [sock]}, daemon=True)
    thread.start()
    try:
        deadline = time.monotonic() + 10
        while not server.started and time.monotonic() < deadline:
            time.sleep(0.05)
        assert server.started

        response = httpx.get(f"http://127.0.0.1:{port}/status", timeout=5)
    finally:
        server.should_exit = True
        thread.join(timeout=10)

    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_serve_logs_startup_message_after_bind(local_env, monkeypatch):
    local_env.setenv("PORT", "0")
    served = {}

    class _FakeServer:
        def run(self, sockets=None):
            served["sockets"] = sockets
            for sock in sockets:
                sock.close()

    monkeypatch.setattr(server_module, "create_server", lambda app, settings: _FakeServer())
    handler = _ListHandler()
    server_module.logger.addHandler(handler)
    try:
        server_module.serve(Settings())
    finally:
        server_module.logger.removeHandler(handler)

    assert len(served["sockets"]) == 1
    messages = [record.getMessage() for record in handler.records]
    assert any(message.startswith("🚀 Server running on port ") for message in messages)


def test_serve_does_not_start_when_port_in_use(local_env, monkeypatch, occupied_port):
    local_env.setenv("PORT", str(occupied_port))

    def _unexpected(app, settings):
        raise AssertionError("server must not be created")

    monkeypatch.setattr(server_module, "create_server", _unexpected)

    with pytest.raises(StartupBindError):
        server_module.serve(Settings())


def test_main_exits_nonzero_when_port_in_use(local_env, monkeypatch, occupied_port):
    local_env.setenv("PORT", str(occupied_port))
    monkeypatch.setattr(server_module, "get_settings", Settings)

    assert server_module.main() == 1
