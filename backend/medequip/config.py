# backend/medequip/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: bool = False) -> bool:
    raw = os.environ.get(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB holding the state blobs (one row per collection key)
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///medequip.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Placeholder identity stamped into createdBy/updatedBy and usage rows
    MEDEQUIP_ACTOR = os.environ.get("MEDEQUIP_ACTOR", "admin")
    MEDEQUIP_USER_ID = os.environ.get("MEDEQUIP_USER_ID", "current-user")
    MEDEQUIP_USER_NAME = os.environ.get("MEDEQUIP_USER_NAME", "Current User")

    # Look-ahead window for maintenance due notifications
    MEDEQUIP_MAINTENANCE_DAYS = int(os.environ.get("MEDEQUIP_MAINTENANCE_DAYS", "14"))

    # Reject a second active usage for the same equipment (off: source behaviour)
    MEDEQUIP_SINGLE_ACTIVE_USAGE = _env_flag("MEDEQUIP_SINGLE_ACTIVE_USAGE")

    # Emit notifications when usage sessions start/end
    MEDEQUIP_USAGE_NOTIFICATIONS = _env_flag("MEDEQUIP_USAGE_NOTIFICATIONS")
