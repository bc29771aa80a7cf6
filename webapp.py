"""Flask based JSON API for promotion matching and travel suggestions."""
from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

from flask import Flask, jsonify, request

from miles_core import create_config_from_form, get_best_promotion_for_goal, run_matching_workflow, run_suggestion_sync
from miles_core.config import load_settings, parse_miles
from miles_core.processor import prepare_goals, prepare_promotions
from suggestion_repository import SuggestionRepository

SETTINGS = load_settings()

LOGGER = logging.getLogger(__name__)
logging.basicConfig(level=getattr(logging, SETTINGS.log_level, logging.INFO))

app = Flask(__name__)

suggestion_repository: Optional[SuggestionRepository] = None


def get_repository() -> SuggestionRepository:
    global suggestion_repository
    if suggestion_repository is None:
        suggestion_repository = SuggestionRepository(SETTINGS.db_path)
    return suggestion_repository


def _json_body() -> Optional[Dict[str, Any]]:
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return None
    return payload


def _bad_request(message: str) -> Tuple[Any, int]:
    return jsonify({"error": message}), 400


def _records(payload: Dict[str, Any], key: str) -> list:
    value = payload.get(key) or []
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


@app.route("/api/matches", methods=["POST"])
def matches():
    payload = _json_body()
    if payload is None:
        return _bad_request("JSON object expected")

    filters = payload.get("filters") or {}
    if not isinstance(filters, dict):
        return _bad_request("filters must be an object")
    dismissed_payload = payload.get("dismissed") or []
    if not isinstance(dismissed_payload, list):
        return _bad_request("dismissed must be a list")
    config = create_config_from_form(filters)
    dismissed = {str(key) for key in dismissed_payload}

    result = run_matching_workflow(
        _records(payload, "promotions"), _records(payload, "goals"), config, dismissed=dismissed
    )
    return jsonify(result.to_dict())


@app.route("/api/best-promotion", methods=["POST"])
def best_promotion():
    payload = _json_body()
    if payload is None:
        return _bad_request("JSON object expected")

    goal_payload = payload.get("goal")
    if not isinstance(goal_payload, dict):
        return _bad_request("goal required")
    goals = prepare_goals([goal_payload], include_completed=True)
    if not goals:
        return _bad_request("goal needs a name or description")

    filters = payload.get("filters") or {}
    if not isinstance(filters, dict):
        return _bad_request("filters must be an object")
    config = create_config_from_form(filters)
    promotions = prepare_promotions(_records(payload, "promotions"), config)
    user_miles = parse_miles(payload.get("user_miles")) or 0

    match = get_best_promotion_for_goal(promotions, goals[0], user_miles)
    return jsonify({"match": match.to_dict() if match else None})


@app.route("/api/suggestions/sync", methods=["POST"])
def sync_suggestions():
    payload = _json_body()
    if payload is None:
        return _bad_request("JSON object expected")

    user_id = payload.get("user_id")
    result = run_suggestion_sync(
        get_repository(),
        _records(payload, "promotions"),
        card_rules=_records(payload, "card_rules"),
        mileage_programs=_records(payload, "mileage_programs"),
        user_id=str(user_id) if user_id else None,
    )
    return jsonify(result.to_dict())


@app.route("/api/suggestions/<user_id>")
def list_suggestions(user_id: str):
    stored = get_repository().list_for_user(user_id)
    return jsonify({"user_id": user_id, "suggestions": [item.to_dict() for item in stored]})


@app.route("/api/suggestions/<user_id>/<promotion_id>/viewed", methods=["POST"])
def mark_suggestion_viewed(user_id: str, promotion_id: str):
    if not get_repository().mark_viewed(user_id, promotion_id):
        return jsonify({"error": "unknown suggestion"}), 404
    return jsonify({"user_id": user_id, "promotion_id": promotion_id, "is_viewed": True})


if __name__ == "__main__":
    app.run(debug=True)
