from __future__ import annotations

import logging
from typing import Any

from flask import request
from flask_socketio import SocketIO, emit

from ..errors import InvalidNameError, NotEnoughPlayersError, RoomNotFoundError
from ..game import service
from ..game.engine import GameEngine
from ..game.service import SchedulerFactory
from . import events


logger = logging.getLogger(__name__)


def _validate_name(name: str) -> bool:
    n = (name or "").strip()
    if not n:
        return False
    if len(n) > 16:
        return False
    # Avoid obvious HTML/script injection.
    if "<" in n or ">" in n:
        return False
    # No control characters.
    for ch in n:
        if ord(ch) < 32:
            return False
    return True


def _normalize_avatar(raw: Any) -> str:
    a = str(raw or "").strip()
    # Uploaded pictures are handled outside the game server.
    if a.startswith("data:") or len(a) > 512:
        return ""
    return a


def _payload(data: Any) -> dict:
    return data if isinstance(data, dict) else {}


def _fail(event: str, code: str) -> dict:
    emit(event, {"error": code})
    return {"ok": False, "error": code}


def register_socketio_handlers(
    socketio: SocketIO,
    scheduler_factory: SchedulerFactory | None = None,
    empty_room_ttl_sec: float | None = None,
) -> None:
    # sid -> (room code, participant id)
    members: dict[str, tuple[str, str]] = {}
    subscribed: set[str] = set()

    def _broadcast_room_state(engine: GameEngine) -> None:
        code = engine.state.room_code
        for sid, (room_code, pid) in list(members.items()):
            if room_code != code:
                continue
            socketio.emit(events.ROOM_STATE, service.room_public_state(engine, viewer_id=pid), to=sid)

    def _safe_broadcast_room_state(engine: GameEngine) -> None:
        try:
            _broadcast_room_state(engine)
        except Exception:
            logger.exception("broadcast failed for room %s", engine.state.room_code)

    def _ensure_subscribed(engine: GameEngine) -> None:
        code = engine.state.room_code
        if code in subscribed:
            return
        subscribed.add(code)
        engine.subscribe(_safe_broadcast_room_state)

    def _current() -> tuple[GameEngine | None, str | None]:
        member = members.get(request.sid)
        if not member:
            return None, None
        room_code, pid = member
        return service.get_session(room_code), pid

    def _require_host(event: str) -> tuple[GameEngine | None, dict | None]:
        engine, pid = _current()
        if engine is None:
            return None, _fail(event, "not_in_room")
        host = engine.state.roster.host()
        if host is None or host.id != pid:
            return None, _fail(event, "only_host")
        return engine, None

    def _leave(sid: str) -> None:
        member = members.pop(sid, None)
        if not member:
            return
        room_code, pid = member
        engine = service.get_session(room_code)
        if engine is None:
            return
        engine.remove_participant(pid)
        # Bots don't keep a room alive.
        if not any(rc == room_code for rc, _ in members.values()):
            subscribed.discard(room_code)
            service.delete_session(room_code)

    def _reap_empty_rooms() -> None:
        ttl_ms = int(empty_room_ttl_sec * 1000)
        while True:
            socketio.sleep(1)
            for code in service.reap_empty_sessions(ttl_ms):
                subscribed.discard(code)
                logger.info("room %s reaped after %ss empty", code, empty_room_ttl_sec)

    if empty_room_ttl_sec is not None:
        socketio.start_background_task(_reap_empty_rooms)

    @socketio.on(events.ROOM_JOIN)
    def room_join(data):
        payload = _payload(data)
        mode = str(payload.get("mode", "create")).strip()
        room_code = str(payload.get("roomCode", "")).strip().upper()
        name = str(payload.get("name", "")).strip()
        avatar = _normalize_avatar(payload.get("avatar", ""))

        if mode not in ("create", "join") or not _validate_name(name):
            return _fail(events.ROOM_ERROR, "invalid_payload")

        if request.sid in members:
            _leave(request.sid)

        if mode == "create":
            engine = service.create_session(scheduler_factory)
        else:
            try:
                engine = service.require_session(room_code)
            except RoomNotFoundError as exc:
                return _fail(events.ROOM_ERROR, exc.code)
            if not engine.state.settings.allow_join_via_link and len(engine.state.roster):
                return _fail(events.ROOM_ERROR, "join_disabled")
            # First one into a pre-created room owns it.
            if not len(engine.state.roster):
                mode = "create"

        try:
            player = engine.submit_join(name, avatar, mode=mode)
        except InvalidNameError as exc:
            return _fail(events.ROOM_ERROR, exc.code)

        code = engine.state.room_code
        members[request.sid] = (code, player.id)
        _ensure_subscribed(engine)
        _safe_broadcast_room_state(engine)
        return {"ok": True, "roomCode": code, "playerId": player.id}

    @socketio.on(events.ROOM_LEAVE)
    def room_leave(data=None):
        _leave(request.sid)
        return {"ok": True}

    @socketio.on(events.ROOM_KICK)
    def room_kick(data):
        engine, err = _require_host(events.ROOM_ERROR)
        if err:
            return err

        target_id = str(_payload(data).get("playerId", "")).strip()
        if not target_id or target_id not in engine.state.roster:
            return _fail(events.ROOM_ERROR, "invalid_target")

        for sid, (room_code, pid) in list(members.items()):
            if room_code == engine.state.room_code and pid == target_id:
                members.pop(sid, None)
                socketio.emit(events.ROOM_KICKED, {"roomCode": room_code}, to=sid)
        engine.remove_participant(target_id)
        return {"ok": True}

    @socketio.on(events.ROOM_ADD_BOT)
    def room_add_bot(data=None):
        engine, err = _require_host(events.ROOM_ERROR)
        if err:
            return err
        bot = engine.add_bot()
        if bot is None:
            return _fail(events.ROOM_ERROR, "not_in_lobby")
        return {"ok": True, "playerId": bot.id}

    @socketio.on(events.ROOM_SETTINGS)
    def room_settings(data):
        engine, err = _require_host(events.ROOM_ERROR)
        if err:
            return err

        payload = _payload(data)
        changes = {
            attr: payload[key]
            for key, attr in events.SETTINGS_KEYS.items()
            if key in payload
        }
        if not engine.update_settings(**changes):
            return _fail(events.ROOM_ERROR, "settings_frozen")
        return {"ok": True}

    @socketio.on(events.GAME_START)
    def game_start(data=None):
        engine, err = _require_host(events.GAME_ERROR)
        if err:
            return err
        try:
            started = engine.start_game()
        except NotEnoughPlayersError as exc:
            return _fail(events.GAME_ERROR, exc.code)
        if not started:
            return _fail(events.GAME_ERROR, "not_in_lobby")
        return {"ok": True}

    @socketio.on(events.GAME_CHOOSE_WORD)
    def game_choose_word(data):
        engine, pid = _current()
        if engine is None:
            return _fail(events.GAME_ERROR, "not_in_room")

        word = str(_payload(data).get("word", "")).strip()
        if not engine.select_word(pid, word):
            return _fail(events.GAME_ERROR, "choose_not_allowed")
        return {"ok": True}

    @socketio.on(events.GUESS_SUBMIT)
    def guess_submit(data):
        engine, pid = _current()
        if engine is None:
            return _fail(events.GAME_ERROR, "not_in_room")

        text = str(_payload(data).get("text", ""))
        msg = engine.submit_guess(pid, text)
        return {"ok": msg is not None, "correct": bool(msg and msg.is_correct_guess)}

    socketio.on(events.CHAT_MESSAGE)(guess_submit)

    @socketio.on(events.GAME_RESET)
    def game_reset(data=None):
        engine, err = _require_host(events.GAME_ERROR)
        if err:
            return err
        if not engine.reset_to_lobby():
            return _fail(events.GAME_ERROR, "game_not_over")
        return {"ok": True}

    @socketio.on("disconnect")
    def on_disconnect(*args):
        _leave(request.sid)
