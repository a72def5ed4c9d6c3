from __future__ import annotations

from flask import Blueprint, jsonify

from ..game import service

bp = Blueprint("health", __name__)


@bp.get("/health")
def health():
    return jsonify({"ok": True, "rooms": len(service.list_sessions())})
