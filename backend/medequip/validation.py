from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from medequip.services.stats_service import EQUIPMENT_STATUSES
from medequip.services.equipment_state import NOTIFICATION_TYPES, RELATED_TYPES
from medequip.time_utils import parse_iso_date


class ValidationError(ValueError):
    """400-level input problem."""


@dataclass(frozen=True)
class ValidationPolicy:
    """
    Central policy layer for API payloads:
    - writable_fields: what clients are allowed to set (anything else is rejected)
    - required_on_create: fields required for POST
    - text_fields / date_fields / bool_fields: how each field is coerced
    - choices: allowed values for enumerated fields
    - max_lengths: String(n)-style limits on text fields
    """
    writable_fields: frozenset[str]
    required_on_create: frozenset[str] = frozenset()
    date_fields: frozenset[str] = frozenset()
    bool_fields: frozenset[str] = frozenset()
    choices: dict[str, tuple] = field(default_factory=dict)
    max_lengths: dict[str, int] = field(default_factory=dict)


def _coerce_value(policy: ValidationPolicy, key: str, value: Any):
    if key in policy.bool_fields:
        if isinstance(value, bool):
            return value
        raise ValidationError(f"{key} must be a boolean")

    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()

    if key in policy.date_fields:
        if value == "":
            return None
        try:
            parsed = parse_iso_date(value)
        except ValueError:
            raise ValidationError(f"{key} must be an ISO-8601 date")
        return parsed.isoformat()

    if key in policy.choices and value not in policy.choices[key]:
        raise ValidationError(f"{key} must be one of: {', '.join(policy.choices[key])}")

    limit = policy.max_lengths.get(key)
    if limit and len(value) > limit:
        raise ValidationError(f"{key} exceeds max length {limit}")

    return value


def validate_payload(*, payload: Any, policy: ValidationPolicy, partial: bool) -> dict:
    """
    Validates + normalizes incoming JSON against a policy.
    Returns a cleaned patch dict with only writable fields.

    partial=False: create semantics (enforce required_on_create, non-blank)
    partial=True: patch semantics (validate only provided keys)

    Referenced ids (departmentId, categoryId) are only checked for shape;
    whether they exist is deliberately not checked.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    if not partial:
        missing = sorted(f for f in policy.required_on_create if f not in payload)
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    for k in payload.keys():
        if k not in policy.writable_fields:
            raise ValidationError(f"Field not allowed: {k}")

    patch: dict = {}
    for k, raw in payload.items():
        if raw is None:
            if k in policy.required_on_create or k in policy.choices:
                raise ValidationError(f"{k} cannot be null")
            patch[k] = None
            continue

        val = _coerce_value(policy, k, raw)
        if k in policy.required_on_create and val == "":
            raise ValidationError(f"{k} cannot be blank")
        patch[k] = val

    return patch


DEPARTMENT_POLICY = ValidationPolicy(
    writable_fields=frozenset({"name", "code", "description"}),
    required_on_create=frozenset({"name", "code"}),
    max_lengths={"name": 120, "code": 32},
)

CATEGORY_POLICY = ValidationPolicy(
    writable_fields=frozenset({"name", "description", "departmentId"}),
    required_on_create=frozenset({"name", "departmentId"}),
    max_lengths={"name": 120},
)

EQUIPMENT_POLICY = ValidationPolicy(
    writable_fields=frozenset({
        "name",
        "serialNumber",
        "model",
        "manufacturer",
        "categoryId",
        "departmentId",
        "status",
        "location",
        "purchaseDate",
        "warrantyExpiry",
        "lastMaintenanceDate",
        "nextMaintenanceDate",
        "notes",
    }),
    required_on_create=frozenset({"name", "departmentId"}),
    date_fields=frozenset({"purchaseDate", "warrantyExpiry", "lastMaintenanceDate", "nextMaintenanceDate"}),
    choices={"status": EQUIPMENT_STATUSES},
    max_lengths={"name": 255, "serialNumber": 64},
)

STATUS_CHANGE_POLICY = ValidationPolicy(
    writable_fields=frozenset({"status"}),
    required_on_create=frozenset({"status"}),
    choices={"status": EQUIPMENT_STATUSES},
)

USAGE_START_POLICY = ValidationPolicy(
    writable_fields=frozenset({"equipmentId", "purpose", "notes"}),
    required_on_create=frozenset({"equipmentId", "purpose"}),
)

USAGE_CLOSE_POLICY = ValidationPolicy(
    writable_fields=frozenset({"notes"}),
)

NOTIFICATION_POLICY = ValidationPolicy(
    writable_fields=frozenset({"userId", "title", "message", "type", "isRead", "relatedId", "relatedType"}),
    required_on_create=frozenset({"title", "message", "type"}),
    bool_fields=frozenset({"isRead"}),
    choices={"type": NOTIFICATION_TYPES, "relatedType": RELATED_TYPES},
    max_lengths={"title": 255},
)


def enforce_rules_equipment_create(patch: dict) -> None:
    """Equipment added through the API starts out available unless stated."""
    if not patch.get("status"):
        patch["status"] = "available"
    patch.setdefault("categoryId", "")
