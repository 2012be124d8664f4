# backend/medequip/routes/system.py
"""
System health endpoint.

Reports whether the state store is reachable and which collection keys it
currently holds.
"""

import time
from flask import Blueprint, current_app

from ..services.blob_store import SqlBlobStore, StoreError
from medequip.time_utils import now_iso

system_bp = Blueprint("system", __name__)


def check_store_health() -> dict:
    """
    Check store connectivity by listing stored keys.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        blobs = SqlBlobStore(attempts=1).describe()
        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy",
            "latency_ms": round(elapsed_ms, 2),
            "details": {"keys": blobs},
        }
    except StoreError:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Store health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Store error",
        }


@system_bp.get("/health")
def health_route():
    store = check_store_health()
    code = 200 if store["status"] == "healthy" else 503
    return {"status": store["status"], "time": now_iso(), "store": store}, code
