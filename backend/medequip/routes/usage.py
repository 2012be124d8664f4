# backend/medequip/routes/usage.py
"""
Usage session routes.

Starting a session marks the equipment in_use. Ending or cancelling one
marks it available again, whatever status it had in the meantime.
"""
from flask import Blueprint, request

from ..services.equipment_state import USAGE_STATUSES, get_equipment_state
from ..validation import USAGE_CLOSE_POLICY, USAGE_START_POLICY, ValidationError, validate_payload


usage_bp = Blueprint("usage", __name__, url_prefix="/api/usage")


@usage_bp.get("")
def list_usage_route():
    status = request.args.get("status")
    if status is not None and status not in USAGE_STATUSES:
        return {"error": f"status must be one of: {', '.join(USAGE_STATUSES)}"}, 400

    state = get_equipment_state()
    items = state.list_usage(status=status, equipment_id=request.args.get("equipment_id"))
    return {"usage": items}, 200


@usage_bp.post("/start")
def start_usage_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=USAGE_START_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if state.enforce_single_active_usage and state.active_usage_for(patch["equipmentId"]):
        return {"error": "Equipment already has an active usage"}, 409
    if not state.start_usage(patch["equipmentId"], patch["purpose"], patch.get("notes")):
        return {"error": "Failed to start usage"}, 500
    return {"usage": state.last_created}, 201


def _close(usage_id: str, action):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=USAGE_CLOSE_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not action(state, usage_id, patch.get("notes")):
        return {"error": "Failed to close usage"}, 500
    return {"usage": state.get_usage(usage_id)}, 200


@usage_bp.post("/<usage_id>/end")
def end_usage_route(usage_id: str):
    return _close(usage_id, lambda state, uid, notes: state.end_usage(uid, notes))


@usage_bp.post("/<usage_id>/cancel")
def cancel_usage_route(usage_id: str):
    return _close(usage_id, lambda state, uid, notes: state.cancel_usage(uid, notes))
