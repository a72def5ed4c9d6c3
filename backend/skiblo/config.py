import os


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    # Socket.IO async mode ("" picks per platform)
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Game
    ROUND_DURATION_SEC = int(os.environ.get("ROUND_DURATION_SEC", "60"))
    ROUNDS_PER_MATCH = int(os.environ.get("ROUNDS_PER_MATCH", "3"))
    WORD_CHOICES_COUNT = int(os.environ.get("WORD_CHOICES_COUNT", "3"))
    CHOOSE_DURATION_SEC = int(os.environ.get("CHOOSE_DURATION_SEC", "15"))
    REVEAL_DURATION_SEC = int(os.environ.get("REVEAL_DURATION_SEC", "5"))
    HINT_REVEAL_SEC = int(os.environ.get("HINT_REVEAL_SEC", "30"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))

    # Rooms nobody is in are deleted after this many seconds
    EMPTY_ROOM_TTL_SEC = int(os.environ.get("EMPTY_ROOM_TTL_SEC", "10"))

    # "socketio" runs a background tick loop; "manual" never ticks on its own
    TICK_SCHEDULER = os.environ.get("TICK_SCHEDULER", "socketio")
