from __future__ import annotations

import logging
from typing import Callable

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config, socketio_async_mode
from .game.presence import PresenceManager, TimerStarter
from .game.registry import RoomRegistry
from .game.service import GameService
from .realtime.gateway import SocketIOGateway
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp

logger = logging.getLogger(__name__)


def _background_timer(socketio: SocketIO) -> TimerStarter:
    def start(delay: float, callback: Callable[[], None]) -> None:
        def _runner() -> None:
            socketio.sleep(delay)
            try:
                callback()
            except Exception:
                logger.exception("[PRESENCE] grace timer failed")

        socketio.start_background_task(_runner)

    return start


def create_app(
    async_mode: str | None = None,
    start_timer: TimerStarter | None = None,
) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(Config)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode or socketio_async_mode(),
    )

    presence = PresenceManager(
        grace_period_sec=app.config["GRACE_PERIOD_SEC"],
        start_timer=start_timer or _background_timer(socketio),
    )
    game = GameService(
        registry=RoomRegistry(),
        gateway=SocketIOGateway(socketio),
        presence=presence,
        min_players=app.config["MIN_PLAYERS"],
    )
    app.extensions["impostor"] = game

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")

    register_socketio_handlers(socketio, game)

    logger.info("[APP] socketio async_mode=%s grace=%.1fs", socketio.async_mode, presence.grace_period_sec)
    return app, socketio
