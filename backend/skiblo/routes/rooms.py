from __future__ import annotations

from flask import Blueprint, current_app, jsonify

from ..errors import RoomNotFoundError
from ..game import service

bp = Blueprint("rooms", __name__)


@bp.post("/rooms")
def create_room():
    # Room starts in LOGIN; the first socket to join it becomes host.
    # Nobody joining within EMPTY_ROOM_TTL_SEC gets it reaped.
    factory = current_app.extensions["skiblo"]["scheduler_factory"]
    engine = service.create_session(factory)
    return jsonify({"roomCode": engine.state.room_code}), 201


@bp.get("/rooms/<code>")
def get_room(code: str):
    try:
        engine = service.require_session(code)
    except RoomNotFoundError as exc:
        return jsonify({"error": exc.code}), 404
    return jsonify(service.room_public_state(engine))
