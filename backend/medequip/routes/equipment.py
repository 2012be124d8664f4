# backend/medequip/routes/equipment.py
"""
Equipment routes.

Query parameters for listing:
- q: case-insensitive search over name, serial number and manufacturer
- department_id / status: exact filters ("all" or missing matches everything)

Date fields (purchaseDate, nextMaintenanceDate, ...) are accepted as
ISO-8601 dates or datetimes and stored as YYYY-MM-DD.
"""
from flask import Blueprint, current_app, request

from ..services.equipment_state import get_equipment_state
from ..services.stats_service import EQUIPMENT_STATUSES
from ..validation import (
    EQUIPMENT_POLICY,
    STATUS_CHANGE_POLICY,
    ValidationError,
    enforce_rules_equipment_create,
    validate_payload,
)


equipment_bp = Blueprint("equipment", __name__, url_prefix="/api/equipment")


@equipment_bp.get("")
def list_equipment_route():
    status = request.args.get("status")
    if status not in (None, "", "all") and status not in EQUIPMENT_STATUSES:
        return {"error": f"status must be one of: {', '.join(EQUIPMENT_STATUSES)}"}, 400

    state = get_equipment_state()
    items = state.search_equipment(
        request.args.get("q", ""),
        department_id=request.args.get("department_id"),
        status=status,
    )
    return {"equipment": items, "count": len(items)}, 200


@equipment_bp.post("")
def create_equipment_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=EQUIPMENT_POLICY, partial=False)
        enforce_rules_equipment_create(patch)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.add_equipment(patch):
        return {"error": "Failed to add equipment"}, 500
    return {"equipment": state.last_created}, 201


@equipment_bp.get("/maintenance-due")
def maintenance_due_route():
    days = request.args.get("days", type=int)
    if days is None:
        days = current_app.config["MEDEQUIP_MAINTENANCE_DAYS"]
    if days < 0:
        return {"error": "days must be >= 0"}, 400

    state = get_equipment_state()
    items = state.maintenance_due(days)
    return {"equipment": items, "days": days}, 200


@equipment_bp.get("/<equipment_id>")
def get_equipment_route(equipment_id: str):
    state = get_equipment_state()
    item = state.get_equipment(equipment_id)
    if item is None:
        return {"error": "Equipment not found"}, 404
    return {
        "equipment": item,
        "active_usage": state.active_usage_for(equipment_id),
    }, 200


@equipment_bp.patch("/<equipment_id>")
def update_equipment_route(equipment_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=EQUIPMENT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.update_equipment(equipment_id, patch):
        return {"error": "Failed to update equipment"}, 500
    return {"equipment": state.get_equipment(equipment_id)}, 200


@equipment_bp.delete("/<equipment_id>")
def delete_equipment_route(equipment_id: str):
    state = get_equipment_state()
    if not state.delete_equipment(equipment_id):
        return {"error": "Failed to delete equipment"}, 500
    return {"ok": True}, 200


@equipment_bp.post("/<equipment_id>/status")
def change_status_route(equipment_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=STATUS_CHANGE_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.change_equipment_status(equipment_id, patch["status"]):
        return {"error": "Failed to change equipment status"}, 500
    return {"equipment": state.get_equipment(equipment_id)}, 200
