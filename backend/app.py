import logging
import os

from pathlib import Path

from dotenv import load_dotenv


def main() -> None:
    # .env first: Config reads the environment at import time.
    load_dotenv(Path(__file__).resolve().parents[1] / ".env")

    try:
        from backend.impostor.config import Config, socketio_async_mode
    except ImportError:  # pragma: no cover
        from impostor.config import Config, socketio_async_mode

    async_mode = socketio_async_mode()
    if async_mode == "eventlet":
        import eventlet

        eventlet.monkey_patch()

    logging.basicConfig(
        level=Config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        from backend.impostor.server import create_app
    except ImportError:  # pragma: no cover
        from impostor.server import create_app

    app, socketio = create_app(async_mode=async_mode)

    socketio.run(
        app,
        host=os.environ.get("HOST", "0.0.0.0"),
        port=int(os.environ.get("PORT", "3001")),
        debug=os.environ.get("FLASK_DEBUG", "1") == "1",
        allow_unsafe_werkzeug=os.environ.get("ALLOW_UNSAFE_WERKZEUG", "1") == "1",
        use_reloader=os.environ.get("FLASK_USE_RELOADER", "0") == "1",
    )


if __name__ == "__main__":
    main()
