from __future__ import annotations

import socket
from typing import Optional

import uvicorn
from fastapi import FastAPI

from .core.config import Settings, get_settings
from .core.errors import StartupBindError
from .main import create_app
from .observability.logging import get_logger, setup_logging

logger = get_logger("server")


def bind_socket(host: str, port: int) -> socket.socket:
    """Bind a TCP socket on host:port, raising StartupBindError if the OS refuses."""
    family = socket.AF_INET6 if ":" in host else socket.AF_INET
    sock = socket.socket(family, socket.SOCK_STREAM)
    try:
        sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        sock.bind((host, port))
    except OSError as exc:
        sock.close()
        raise StartupBindError(host, port, exc.strerror or str(exc)) from exc
    sock.set_inheritable(True)
    return sock


def create_server(app: FastAPI, settings: Settings) -> uvicorn.Server:
    app_settings = settings.app
    config = uvicorn.Config(
        app,
        host=app_settings.host,
        port=app_settings.port,
        log_config=None,
        log_level=app_settings.log_level.lower(),
        access_log=False,
    )
    return uvicorn.Server(config)


def serve(settings: Optional[Settings] = None) -> None:
    """
    Bind the configured port and serve the app until interrupted.

    Raises StartupBindError if the port cannot be bound.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    sock = bind_socket(app_settings.host, app_settings.port)
    server = create_server(create_app(settings), settings)

    logger.info("🚀 Server running on port %s", sock.getsockname()[1])
    server.run(sockets=[sock])


def main() -> int:
    settings = get_settings()
    setup_logging(settings.app.log_level)
    try:
        serve(settings)
    except StartupBindError as exc:
        logger.error(
            "Server failed to start",
            extra={"host": exc.host, "port": exc.port, "error": str(exc)},
        )
        return 1
    return 0
