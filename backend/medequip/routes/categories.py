# backend/medequip/routes/categories.py
from flask import Blueprint, request

from ..services.equipment_state import get_equipment_state
from ..validation import CATEGORY_POLICY, ValidationError, validate_payload


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
def list_categories_route():
    state = get_equipment_state()
    department_id = request.args.get("department_id")
    if department_id:
        return {"categories": state.department_categories(department_id)}, 200
    return {"categories": state.categories}, 200


@categories_bp.post("")
def create_category_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=CATEGORY_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.add_category(patch):
        return {"error": "Failed to add category"}, 500
    return {"category": state.last_created}, 201


@categories_bp.patch("/<category_id>")
def update_category_route(category_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=CATEGORY_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.update_category(category_id, patch):
        return {"error": "Failed to update category"}, 500
    return {"category": state.get_category(category_id)}, 200


@categories_bp.delete("/<category_id>")
def delete_category_route(category_id: str):
    state = get_equipment_state()
    if not state.delete_category(category_id):
        return {"error": "Failed to delete category"}, 500
    return {"ok": True}, 200
