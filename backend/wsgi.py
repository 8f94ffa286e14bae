import logging

try:
    from backend.impostor.config import Config
    from backend.impostor.server import create_app
except ImportError:  # pragma: no cover
    from impostor.config import Config
    from impostor.server import create_app

logging.basicConfig(level=Config.LOG_LEVEL)

# Async mode comes from socketio_async_mode(); the WSGI server worker does its own patching.
app, socketio = create_app()
