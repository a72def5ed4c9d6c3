try:
    from backend.skiblo.config import Config
    from backend.skiblo.logging_config import setup_logging
    from backend.skiblo.server import create_app
except ImportError:  # pragma: no cover
    from skiblo.config import Config
    from skiblo.logging_config import setup_logging
    from skiblo.server import create_app

setup_logging(Config.LOG_LEVEL)
app, socketio = create_app()
