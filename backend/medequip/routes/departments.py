# backend/medequip/routes/departments.py
"""
Department routes.

Deleting a department also deletes its categories and equipment. Callers
that want to refuse deletion while equipment is registered can pass
?require_empty=1.
"""
from flask import Blueprint, request

from ..services.equipment_state import get_equipment_state
from ..validation import DEPARTMENT_POLICY, ValidationError, validate_payload


departments_bp = Blueprint("departments", __name__, url_prefix="/api/departments")


@departments_bp.get("")
def list_departments_route():
    state = get_equipment_state()
    return {"departments": state.departments}, 200


@departments_bp.post("")
def create_department_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=DEPARTMENT_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.add_department(patch):
        return {"error": "Failed to add department"}, 500
    return {"department": state.last_created}, 201


@departments_bp.get("/<department_id>")
def get_department_route(department_id: str):
    state = get_equipment_state()
    department = state.get_department(department_id)
    if department is None:
        return {"error": "Department not found"}, 404
    return {
        "department": department,
        "categories": state.department_categories(department_id),
        "equipment": state.department_equipment(department_id),
        "stats": state.department_stats_for(department_id),
    }, 200


@departments_bp.patch("/<department_id>")
def update_department_route(department_id: str):
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=DEPARTMENT_POLICY, partial=True)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    if not state.update_department(department_id, patch):
        return {"error": "Failed to update department"}, 500
    return {"department": state.get_department(department_id)}, 200


@departments_bp.delete("/<department_id>")
def delete_department_route(department_id: str):
    state = get_equipment_state()

    if request.args.get("require_empty") in ("1", "true"):
        count = len(state.department_equipment(department_id))
        if count:
            return {"error": f"Department still has {count} equipment item(s)"}, 409

    if not state.delete_department(department_id):
        return {"error": "Failed to delete department"}, 500
    return {"ok": True}, 200
