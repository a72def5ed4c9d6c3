from __future__ import annotations

import logging
import random
import string
from threading import RLock
from typing import Callable

from ..errors import RoomNotFoundError
from .engine import GameEngine
from .models import ACTIVE_PHASES, DrawingPhase, GameState, RoundEndPhase, WordSelectionPhase
from .scheduler import ManualTickScheduler, TickScheduler
from .transcript import now_ms
from .words import WordCatalog


logger = logging.getLogger(__name__)

ROOM_CODE_ALPHABET = string.ascii_uppercase + string.digits
ROOM_CODE_LENGTH = 6

SchedulerFactory = Callable[[], TickScheduler]

_lock = RLock()
_sessions: dict[str, GameEngine] = {}
_code_rng = random.SystemRandom()


def _new_room_code() -> str:
    while True:
        code = "".join(_code_rng.choice(ROOM_CODE_ALPHABET) for _ in range(ROOM_CODE_LENGTH))
        if code not in _sessions:
            return code


def create_session(scheduler_factory: SchedulerFactory | None = None) -> GameEngine:
    with _lock:
        code = _new_room_code()
        scheduler = scheduler_factory() if scheduler_factory else ManualTickScheduler()
        engine = GameEngine(room_code=code, scheduler=scheduler)
        _sessions[code] = engine
        logger.info("session %s created", code)
        return engine


def get_session(code: str) -> GameEngine | None:
    with _lock:
        return _sessions.get((code or "").strip().upper())


def require_session(code: str) -> GameEngine:
    engine = get_session(code)
    if engine is None:
        raise RoomNotFoundError(code)
    return engine


def delete_session(code: str) -> bool:
    with _lock:
        engine = _sessions.pop((code or "").strip().upper(), None)
    if engine is None:
        return False
    engine.close()
    logger.info("session %s deleted", code)
    return True


def reap_empty_sessions(ttl_ms: int, now: int | None = None) -> list[str]:
    """Delete sessions nobody has been in for at least ``ttl_ms``."""
    now = now_ms() if now is None else now
    with _lock:
        expired = []
        for code, engine in _sessions.items():
            empty_since = engine.state.last_empty_at_ms
            if empty_since is not None and now - empty_since >= ttl_ms:
                expired.append(code)
    for code in expired:
        delete_session(code)
    return expired


def list_sessions() -> list[GameEngine]:
    with _lock:
        return list(_sessions.values())


def clear_sessions() -> None:
    with _lock:
        engines = list(_sessions.values())
        _sessions.clear()
    for engine in engines:
        engine.close()


def get_word_choices(count: int, custom_words: list[str] | None = None) -> list[str]:
    return WordCatalog.with_custom_words(custom_words or []).draw(count)


def word_hint(state: GameState) -> str | None:
    """Underscore mask of the word; the first letter shows once the hint delay passed."""
    stage = state.stage
    if not isinstance(stage, DrawingPhase):
        return None
    word = stage.word
    mask = ["_" if ch != " " else " " for ch in word]
    delay = state.settings.hint_reveal_time
    elapsed = state.settings.time_per_round - state.time_left
    if delay > 0 and elapsed >= delay and mask:
        mask[0] = word[0]
    return " ".join(mask)


def _player_dict(p) -> dict:
    return {
        "id": p.id,
        "name": p.name,
        "avatar": p.avatar,
        "isHost": p.is_host,
        "score": p.score,
        "isDrawing": p.is_drawing,
        "hasGuessed": p.has_guessed,
    }


def _settings_dict(settings) -> dict:
    return {
        "timePerRound": settings.time_per_round,
        "rounds": settings.rounds,
        "wordCount": settings.word_count,
        "hintRevealTime": settings.hint_reveal_time,
        "gameMode": settings.game_mode.value,
        "difficulty": settings.difficulty.value,
        "isPublic": settings.is_public,
        "allowJoinViaLink": settings.allow_join_via_link,
        "animationsEnabled": settings.animations_enabled,
        "customWords": list(settings.custom_words),
    }


def room_public_state(engine: GameEngine, viewer_id: str | None = None) -> dict:
    """State as seen by ``viewer_id`` (None for spectators).

    Guessers only ever see the word length and the hint; the word itself goes
    to the drawer, or to everyone once the round has ended.
    """
    with engine.lock:
        st = engine.state
        stage = st.stage
        is_drawer = viewer_id is not None and viewer_id == st.current_drawer_id

        payload = {
            "roomCode": st.room_code,
            "phase": st.phase.value,
            "players": [_player_dict(p) for p in st.roster],
            "leaderboard": [p.id for p in st.roster.by_score()],
            "currentRound": st.current_round,
            "totalRounds": st.total_rounds,
            "currentDrawerId": st.current_drawer_id,
            "wordToGuess": None,
            "wordOptions": [],
            "wordLength": st.word_length,
            "wordHint": word_hint(st),
            "timeLeft": st.time_left if st.phase in ACTIVE_PHASES else 0,
            "messages": [m.to_dict() for m in st.transcript],
            "settings": _settings_dict(st.settings),
            "winnerId": st.winner_id,
        }

        if isinstance(stage, RoundEndPhase) or (is_drawer and isinstance(stage, DrawingPhase)):
            payload["wordToGuess"] = stage.word

        if is_drawer and isinstance(stage, WordSelectionPhase):
            payload["wordOptions"] = list(stage.word_options)

        return payload
