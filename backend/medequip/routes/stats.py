# backend/medequip/routes/stats.py
"""
Statistics and state maintenance routes.

Stats are the cached copies kept by the state manager; /refresh recomputes
them from the current collections, /api/state/reload re-reads everything
from the store first.
"""
from flask import Blueprint

from ..services.equipment_state import get_equipment_state


stats_bp = Blueprint("stats", __name__, url_prefix="/api")


@stats_bp.get("/stats")
def stats_route():
    state = get_equipment_state()
    return {
        "equipment": state.stats,
        "departments": state.department_stats,
        "unread_notifications": state.unread_notification_count(),
    }, 200


@stats_bp.post("/stats/refresh")
def refresh_stats_route():
    state = get_equipment_state()
    if not state.refresh_stats():
        return {"error": "Failed to refresh stats"}, 500
    return {"equipment": state.stats, "departments": state.department_stats}, 200


@stats_bp.post("/state/reload")
def reload_state_route():
    state = get_equipment_state()
    if not state.refresh_data():
        return {"error": "Failed to reload state"}, 500
    return {
        "departments": len(state.departments),
        "categories": len(state.categories),
        "equipment": len(state.equipment),
        "usage": len(state.usage),
        "notifications": len(state.notifications),
    }, 200
