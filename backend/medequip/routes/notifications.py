# backend/medequip/routes/notifications.py
from flask import Blueprint, request

from ..services.equipment_state import get_equipment_state
from ..validation import NOTIFICATION_POLICY, ValidationError, validate_payload


notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


@notifications_bp.get("")
def list_notifications_route():
    unread_only = request.args.get("unread") in ("1", "true")
    state = get_equipment_state()
    return {
        "notifications": state.list_notifications(unread_only=unread_only),
        "unread_count": state.unread_notification_count(),
    }, 200


@notifications_bp.post("")
def create_notification_route():
    payload = request.get_json(silent=True) or {}
    try:
        patch = validate_payload(payload=payload, policy=NOTIFICATION_POLICY, partial=False)
    except ValidationError as e:
        return {"error": str(e)}, 400

    state = get_equipment_state()
    patch.setdefault("userId", state.user_id)
    if not state.add_notification(patch):
        return {"error": "Failed to add notification"}, 500
    return {"notification": state.last_created}, 201


@notifications_bp.post("/<notification_id>/read")
def mark_read_route(notification_id: str):
    state = get_equipment_state()
    if not state.mark_notification_as_read(notification_id):
        return {"error": "Failed to update notification"}, 500
    return {"notification": state.get_notification(notification_id)}, 200


@notifications_bp.post("/read-all")
def mark_all_read_route():
    state = get_equipment_state()
    if not state.mark_all_notifications_as_read():
        return {"error": "Failed to update notifications"}, 500
    return {"unread_count": state.unread_notification_count()}, 200
