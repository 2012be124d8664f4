# Overview: Domain state manager; owns the dashboard collections and persists them through a blob store.

"""
Equipment dashboard state.

EquipmentState holds the seven collections (departments, categories,
equipment, usage records, notifications and the two derived stats caches)
and writes each one back to its own store key after every mutation.

Contract for write operations:
- Returns True on success, False when the store rejects a write.
- On False nothing in memory has changed (the store may already hold some of
  the keys written before the failing one).
- Updating or deleting an id that does not exist is a successful no-op.
- Foreign keys (departmentId, categoryId, equipmentId) are never validated.

Time semantics:
- All timestamps are ISO-8601 UTC strings with millisecond precision.
- Timestamps issued by one instance are strictly increasing.
"""

from __future__ import annotations

import copy
import logging
import uuid
from datetime import date, datetime, timedelta
from typing import Any, Callable, Optional

from flask import current_app

from .blob_store import (
    ALL_KEYS,
    KEY_CATEGORIES,
    KEY_DEPARTMENTS,
    KEY_DEPARTMENT_STATS,
    KEY_EQUIPMENT,
    KEY_EQUIPMENT_STATS,
    KEY_NOTIFICATIONS,
    KEY_USAGE,
    BlobStore,
    SqlBlobStore,
    StoreError,
)
from .stats_service import (
    EQUIPMENT_STATUSES,
    STATUS_AVAILABLE,
    STATUS_IN_USE,
    STATUS_RETIRED,
    compute_department_stats,
    compute_equipment_stats,
)
from medequip.time_utils import parse_iso_date, parse_iso_datetime, to_utc_z, utcnow


logger = logging.getLogger(__name__)

USAGE_ACTIVE = "active"
USAGE_COMPLETED = "completed"
USAGE_CANCELLED = "cancelled"
USAGE_STATUSES = (USAGE_ACTIVE, USAGE_COMPLETED, USAGE_CANCELLED)

NOTIFICATION_TYPES = ("info", "warning", "error", "success")
RELATED_TYPES = ("equipment", "maintenance", "usage")

ID_PREFIXES = {
    KEY_DEPARTMENTS: "dept",
    KEY_CATEGORIES: "cat",
    KEY_EQUIPMENT: "eq",
    KEY_USAGE: "usage",
    KEY_NOTIFICATIONS: "notif",
}

# Fields an update may never overwrite
_IMMUTABLE_FIELDS = {"id", "createdAt"}

_ATTRS = {
    KEY_DEPARTMENTS: "_departments",
    KEY_CATEGORIES: "_categories",
    KEY_EQUIPMENT: "_equipment",
    KEY_USAGE: "_usage",
    KEY_NOTIFICATIONS: "_notifications",
    KEY_EQUIPMENT_STATS: "_stats",
    KEY_DEPARTMENT_STATS: "_department_stats",
}


def default_id_factory(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex}"


def _index_of(items: list[dict], entity_id: str) -> Optional[int]:
    for idx, item in enumerate(items):
        if item.get("id") == entity_id:
            return idx
    return None


def _require_equipment_status(status: Any) -> None:
    if status not in EQUIPMENT_STATUSES:
        raise ValueError(f"status must be one of: {', '.join(EQUIPMENT_STATUSES)}")


class EquipmentState:
    def __init__(
        self,
        store: BlobStore,
        *,
        actor: str = "admin",
        user_id: str = "current-user",
        user_name: str = "Current User",
        id_factory: Callable[[str], str] | None = None,
        clock: Callable[[], datetime] | None = None,
        enforce_single_active_usage: bool = False,
        notify_usage_events: bool = False,
    ):
        self.store = store
        self.actor = actor
        self.user_id = user_id
        self.user_name = user_name
        self.id_factory = id_factory or default_id_factory
        self.clock = clock or utcnow
        self.enforce_single_active_usage = enforce_single_active_usage
        self.notify_usage_events = notify_usage_events

        self._departments: list[dict] = []
        self._categories: list[dict] = []
        self._equipment: list[dict] = []
        self._usage: list[dict] = []
        self._notifications: list[dict] = []
        self._stats: dict | None = None
        self._department_stats: list[dict] = []

        self._last_time: datetime | None = None
        # Record created by the most recent successful add_*/start_usage call
        self.last_created: dict | None = None

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def departments(self) -> list[dict]:
        return copy.deepcopy(self._departments)

    @property
    def categories(self) -> list[dict]:
        return copy.deepcopy(self._categories)

    @property
    def equipment(self) -> list[dict]:
        return copy.deepcopy(self._equipment)

    @property
    def usage(self) -> list[dict]:
        return copy.deepcopy(self._usage)

    @property
    def notifications(self) -> list[dict]:
        return copy.deepcopy(self._notifications)

    @property
    def stats(self) -> dict | None:
        return copy.deepcopy(self._stats)

    @property
    def department_stats(self) -> list[dict]:
        return copy.deepcopy(self._department_stats)

    def get_department(self, department_id: str) -> dict | None:
        return self._find(KEY_DEPARTMENTS, department_id)

    def get_category(self, category_id: str) -> dict | None:
        return self._find(KEY_CATEGORIES, category_id)

    def get_equipment(self, equipment_id: str) -> dict | None:
        return self._find(KEY_EQUIPMENT, equipment_id)

    def get_usage(self, usage_id: str) -> dict | None:
        return self._find(KEY_USAGE, usage_id)

    def get_notification(self, notification_id: str) -> dict | None:
        return self._find(KEY_NOTIFICATIONS, notification_id)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _items(self, key: str) -> list[dict]:
        return getattr(self, _ATTRS[key])

    def _find(self, key: str, entity_id: str) -> dict | None:
        items = self._items(key)
        idx = _index_of(items, entity_id)
        return copy.deepcopy(items[idx]) if idx is not None else None

    def _now(self, after: str | None = None) -> str:
        """
        Issue a timestamp later than every one issued before, and later than
        `after` when given.
        """
        current = self.clock()
        current = current.replace(microsecond=current.microsecond // 1000 * 1000)
        floor = self._last_time
        if after:
            try:
                previous = parse_iso_datetime(after)
            except ValueError:
                previous = None
            if previous is not None and (floor is None or previous > floor):
                floor = previous
        if floor is not None and current <= floor:
            current = floor.replace(microsecond=floor.microsecond // 1000 * 1000) + timedelta(milliseconds=1)
        self._last_time = current
        return to_utc_z(current)

    def _new_id(self, key: str) -> str:
        existing = {item.get("id") for item in self._items(key)}
        new_id = self.id_factory(ID_PREFIXES[key])
        while new_id in existing:
            new_id = self.id_factory(ID_PREFIXES[key])
        return new_id

    def _commit(
        self,
        label: str,
        changes: dict[str, Any],
        *,
        recalc: bool = False,
        stored: dict[str, Any] | None = None,
    ) -> bool:
        """
        Save every changed key, then swap the new values into memory.

        With recalc=True the stats caches are recomputed from the new
        collections and saved alongside them. `stored` holds values that
        already match the store: they are swapped in with the changes but
        not written again.
        """
        stored = stored or {}
        if recalc:
            departments = changes.get(KEY_DEPARTMENTS, stored.get(KEY_DEPARTMENTS, self._departments))
            equipment = changes.get(KEY_EQUIPMENT, stored.get(KEY_EQUIPMENT, self._equipment))
            changes = {
                **changes,
                KEY_EQUIPMENT_STATS: compute_equipment_stats(equipment),
                KEY_DEPARTMENT_STATS: compute_department_stats(departments, equipment),
            }
        try:
            for key, value in changes.items():
                self.store.save(key, value)
        except StoreError:
            logger.exception("Failed to %s", label)
            return False

        for key, value in {**stored, **changes}.items():
            setattr(self, _ATTRS[key], value)
        return True

    def _add(self, key: str, data: dict, label: str, *, recalc: bool = False) -> bool:
        now = self._now()
        record = {**data, "id": self._new_id(key), "createdAt": now, "updatedAt": now}
        if not self._commit(label, {key: self._items(key) + [record]}, recalc=recalc):
            return False
        self.last_created = copy.deepcopy(record)
        return True

    def _update(
        self,
        key: str,
        entity_id: str,
        partial: dict,
        label: str,
        *,
        recalc: bool = False,
        touch: bool = True,
    ) -> bool:
        items = self._items(key)
        idx = _index_of(items, entity_id)
        if idx is None:
            logger.debug("%s: %s not found, nothing to do", label, entity_id)
            return True

        current = items[idx]
        merged = {**current, **{k: v for k, v in partial.items() if k not in _IMMUTABLE_FIELDS}}
        if touch:
            merged["updatedAt"] = self._now(after=current.get("updatedAt"))

        updated = list(items)
        updated[idx] = merged
        return self._commit(label, {key: updated}, recalc=recalc)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Initialize from persistence; same as refresh_data()."""
        return self.refresh_data()

    def refresh_data(self) -> bool:
        """
        Replace every in-memory collection with the stored copy.

        Whatever another writer saved last wins; nothing is merged. The
        stored stats caches are not trusted: fresh ones are computed from the
        loaded collections and saved before anything in memory changes.
        """
        try:
            loaded = {key: self.store.load(key) for key in ALL_KEYS}
        except StoreError:
            logger.exception("Failed to load equipment state")
            return False

        collections = {
            key: loaded[key] or []
            for key in (KEY_DEPARTMENTS, KEY_CATEGORIES, KEY_EQUIPMENT, KEY_USAGE, KEY_NOTIFICATIONS)
        }
        return self._commit("refresh equipment state", {}, recalc=True, stored=collections)

    def refresh_stats(self) -> bool:
        return self._commit("refresh stats", {}, recalc=True)

    def flush(self) -> bool:
        """Write every collection back to the store."""
        return self._commit(
            "flush equipment state",
            {key: getattr(self, attr) for key, attr in _ATTRS.items() if key not in (KEY_EQUIPMENT_STATS, KEY_DEPARTMENT_STATS)},
            recalc=True,
        )

    # ------------------------------------------------------------------
    # Departments
    # ------------------------------------------------------------------

    def add_department(self, data: dict) -> bool:
        return self._add(KEY_DEPARTMENTS, data, "add department", recalc=True)

    def update_department(self, department_id: str, partial: dict) -> bool:
        return self._update(KEY_DEPARTMENTS, department_id, partial, "update department", recalc=True)

    def delete_department(self, department_id: str) -> bool:
        """Delete a department together with its categories and equipment."""
        departments = [d for d in self._departments if d.get("id") != department_id]
        categories = [c for c in self._categories if c.get("departmentId") != department_id]
        equipment = [e for e in self._equipment if e.get("departmentId") != department_id]

        if (
            len(departments) == len(self._departments)
            and len(categories) == len(self._categories)
            and len(equipment) == len(self._equipment)
        ):
            return True

        removed = (len(self._categories) - len(categories), len(self._equipment) - len(equipment))
        ok = self._commit(
            "delete department",
            {KEY_DEPARTMENTS: departments, KEY_CATEGORIES: categories, KEY_EQUIPMENT: equipment},
            recalc=True,
        )
        if ok:
            logger.info(
                "Deleted department %s with %d categories and %d equipment",
                department_id, removed[0], removed[1],
            )
        return ok

    def department_equipment(self, department_id: str) -> list[dict]:
        return [copy.deepcopy(e) for e in self._equipment if e.get("departmentId") == department_id]

    def department_categories(self, department_id: str) -> list[dict]:
        return [copy.deepcopy(c) for c in self._categories if c.get("departmentId") == department_id]

    def department_stats_for(self, department_id: str) -> dict | None:
        for row in self._department_stats:
            if row.get("departmentId") == department_id:
                return copy.deepcopy(row)
        return None

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    def add_category(self, data: dict) -> bool:
        return self._add(KEY_CATEGORIES, data, "add category")

    def update_category(self, category_id: str, partial: dict) -> bool:
        return self._update(KEY_CATEGORIES, category_id, partial, "update category")

    def delete_category(self, category_id: str) -> bool:
        categories = [c for c in self._categories if c.get("id") != category_id]
        if len(categories) == len(self._categories):
            return True
        return self._commit("delete category", {KEY_CATEGORIES: categories})

    # ------------------------------------------------------------------
    # Equipment
    # ------------------------------------------------------------------

    def add_equipment(self, data: dict) -> bool:
        data = dict(data)
        data.setdefault("status", STATUS_AVAILABLE)
        _require_equipment_status(data["status"])
        data.setdefault("createdBy", self.actor)
        data.setdefault("updatedBy", self.actor)
        return self._add(KEY_EQUIPMENT, data, "add equipment", recalc=True)

    def update_equipment(self, equipment_id: str, partial: dict) -> bool:
        if "status" in partial:
            _require_equipment_status(partial["status"])
        return self._update(KEY_EQUIPMENT, equipment_id, partial, "update equipment", recalc=True)

    def delete_equipment(self, equipment_id: str) -> bool:
        """Delete one equipment item. Usage records pointing at it are kept."""
        equipment = [e for e in self._equipment if e.get("id") != equipment_id]
        if len(equipment) == len(self._equipment):
            return True
        return self._commit("delete equipment", {KEY_EQUIPMENT: equipment}, recalc=True)

    def _equipment_with_status(self, equipment_id: str, status: str) -> list[dict] | None:
        """The equipment list with one item's status changed, or None if the id is unknown."""
        _require_equipment_status(status)
        idx = _index_of(self._equipment, equipment_id)
        if idx is None:
            return None
        current = self._equipment[idx]
        equipment = list(self._equipment)
        equipment[idx] = {**current, "status": status, "updatedAt": self._now(after=current.get("updatedAt"))}
        return equipment

    def change_equipment_status(self, equipment_id: str, status: str) -> bool:
        equipment = self._equipment_with_status(equipment_id, status)
        if equipment is None:
            logger.debug("change equipment status: %s not found, nothing to do", equipment_id)
            return True
        return self._commit("change equipment status", {KEY_EQUIPMENT: equipment}, recalc=True)

    def search_equipment(
        self,
        term: str = "",
        department_id: str | None = None,
        status: str | None = None,
    ) -> list[dict]:
        """
        Case-insensitive match on name, serial number or manufacturer.

        department_id / status of None or "all" match everything.
        """
        needle = (term or "").strip().lower()
        results = []
        for eq in self._equipment:
            if department_id not in (None, "", "all") and eq.get("departmentId") != department_id:
                continue
            if status not in (None, "", "all") and eq.get("status") != status:
                continue
            if needle:
                haystack = (eq.get("name"), eq.get("serialNumber"), eq.get("manufacturer"))
                if not any(needle in (value or "").lower() for value in haystack):
                    continue
            results.append(copy.deepcopy(eq))
        return results

    def maintenance_due(self, within_days: int, today: date | None = None) -> list[dict]:
        """
        Equipment whose nextMaintenanceDate falls on or before today + within_days.

        Overdue items are included. Retired equipment and unparseable dates
        are skipped. Each returned copy carries daysUntilDue (negative when
        overdue), ordered soonest first.
        """
        today = today or self.clock().date()
        horizon = today + timedelta(days=within_days)
        due = []
        for eq in self._equipment:
            if eq.get("status") == STATUS_RETIRED:
                continue
            try:
                next_date = parse_iso_date(eq.get("nextMaintenanceDate"))
            except ValueError:
                logger.debug("Skipping %s: bad nextMaintenanceDate %r", eq.get("id"), eq.get("nextMaintenanceDate"))
                continue
            if next_date is None or next_date > horizon:
                continue
            item = copy.deepcopy(eq)
            item["daysUntilDue"] = (next_date - today).days
            due.append(item)
        due.sort(key=lambda item: item["daysUntilDue"])
        return due

    # ------------------------------------------------------------------
    # Usage
    # ------------------------------------------------------------------

    def active_usage_for(self, equipment_id: str) -> list[dict]:
        return [
            copy.deepcopy(u)
            for u in self._usage
            if u.get("equipmentId") == equipment_id and u.get("status") == USAGE_ACTIVE
        ]

    def list_usage(self, *, status: str | None = None, equipment_id: str | None = None) -> list[dict]:
        return [
            copy.deepcopy(u)
            for u in self._usage
            if (status is None or u.get("status") == status)
            and (equipment_id is None or u.get("equipmentId") == equipment_id)
        ]

    def start_usage(self, equipment_id: str, purpose: str, notes: str | None = None) -> bool:
        """
        Open a usage session and mark the equipment in use.

        A second active session for the same equipment is allowed unless
        enforce_single_active_usage is set.
        """
        if self.enforce_single_active_usage and self.active_usage_for(equipment_id):
            logger.warning("Equipment %s already has an active usage; start rejected", equipment_id)
            return False

        equipment = self._find(KEY_EQUIPMENT, equipment_id)
        now = self._now()
        record = {
            "id": self._new_id(KEY_USAGE),
            "equipmentId": equipment_id,
            "userId": self.user_id,
            "userName": self.user_name,
            "departmentId": (equipment or {}).get("departmentId", ""),
            "startTime": now,
            "purpose": purpose,
            "status": USAGE_ACTIVE,
            "createdAt": now,
            "updatedAt": now,
        }
        if notes is not None:
            record["notes"] = notes

        changes: dict[str, Any] = {KEY_USAGE: self._usage + [record]}
        equipment_list = self._equipment_with_status(equipment_id, STATUS_IN_USE)
        if equipment_list is not None:
            changes[KEY_EQUIPMENT] = equipment_list
        if not self._commit("start usage", changes, recalc=True):
            return False
        self.last_created = copy.deepcopy(record)

        if self.notify_usage_events:
            name = (equipment or {}).get("name", equipment_id)
            self.add_notification({
                "userId": self.user_id,
                "title": "Usage started",
                "message": f"{name} is now in use ({purpose}).",
                "type": "info",
                "relatedId": record["id"],
                "relatedType": "usage",
            })
        return True

    def _close_usage(self, usage_id: str, status: str, notes: str | None, label: str) -> tuple[bool, dict | None]:
        idx = _index_of(self._usage, usage_id)
        if idx is None:
            logger.debug("%s: %s not found, nothing to do", label, usage_id)
            return True, None

        record = self._usage[idx]
        now = self._now(after=record.get("updatedAt"))
        closed = {**record, "endTime": now, "status": status, "updatedAt": now}
        if notes is not None:
            closed["notes"] = notes

        usage = list(self._usage)
        usage[idx] = closed
        changes: dict[str, Any] = {KEY_USAGE: usage}

        equipment_id = record.get("equipmentId")
        equipment = self._find(KEY_EQUIPMENT, equipment_id)
        equipment_list = self._equipment_with_status(equipment_id, STATUS_AVAILABLE)
        if equipment_list is not None:
            changes[KEY_EQUIPMENT] = equipment_list
        if not self._commit(label, changes, recalc=True):
            return False, None

        if equipment and equipment.get("status") != STATUS_IN_USE:
            logger.warning(
                "%s %s resets equipment %s from %s to available",
                label, usage_id, equipment_id, equipment.get("status"),
            )
        return True, equipment

    def end_usage(self, usage_id: str, notes: str | None = None) -> bool:
        """
        Complete a usage session and return the equipment to available.

        The reset happens whatever the equipment's current status is, so an
        item moved to maintenance mid-session becomes available again.
        """
        ok, equipment = self._close_usage(usage_id, USAGE_COMPLETED, notes, "end usage")
        if ok and equipment is not None and self.notify_usage_events:
            self.add_notification({
                "userId": self.user_id,
                "title": "Usage completed",
                "message": f"{equipment.get('name', equipment.get('id'))} usage has been completed.",
                "type": "success",
                "relatedId": equipment.get("id"),
                "relatedType": "equipment",
            })
        return ok

    def cancel_usage(self, usage_id: str, notes: str | None = None) -> bool:
        """Cancel an active session. Sessions already closed are left alone."""
        record = self._find(KEY_USAGE, usage_id)
        if record is None or record.get("status") != USAGE_ACTIVE:
            return True
        ok, _ = self._close_usage(usage_id, USAGE_CANCELLED, notes, "cancel usage")
        return ok

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def add_notification(self, data: dict) -> bool:
        now = self._now()
        record = {"isRead": False, "type": "info", **data, "id": self._new_id(KEY_NOTIFICATIONS), "createdAt": now}
        record.pop("updatedAt", None)
        if not self._commit("add notification", {KEY_NOTIFICATIONS: self._notifications + [record]}):
            return False
        self.last_created = copy.deepcopy(record)
        return True

    def mark_notification_as_read(self, notification_id: str) -> bool:
        return self._update(
            KEY_NOTIFICATIONS, notification_id, {"isRead": True}, "mark notification as read", touch=False,
        )

    def mark_all_notifications_as_read(self) -> bool:
        if all(n.get("isRead") for n in self._notifications):
            return True
        notifications = [{**n, "isRead": True} for n in self._notifications]
        return self._commit("mark all notifications as read", {KEY_NOTIFICATIONS: notifications})

    def list_notifications(self, unread_only: bool = False) -> list[dict]:
        items = [n for n in self._notifications if not (unread_only and n.get("isRead"))]
        return [copy.deepcopy(n) for n in sorted(items, key=lambda n: n.get("createdAt") or "", reverse=True)]

    def unread_notification_count(self) -> int:
        return sum(1 for n in self._notifications if not n.get("isRead"))

    def notify_maintenance_due(self, within_days: int, today: date | None = None) -> int | None:
        """
        Add a warning for each equipment item coming due for maintenance.

        Items that already have an unread maintenance notification are
        skipped. Returns how many were added, or None if the store failed.
        """
        pending = {
            n.get("relatedId")
            for n in self._notifications
            if n.get("relatedType") == "maintenance" and not n.get("isRead")
        }
        created = []
        for item in self.maintenance_due(within_days, today=today):
            if item["id"] in pending:
                continue
            overdue = item["daysUntilDue"] < 0
            created.append({
                "id": self._new_id(KEY_NOTIFICATIONS),
                "userId": self.user_id,
                "title": "Maintenance overdue" if overdue else "Maintenance due",
                "message": (
                    f"{item.get('name', item['id'])} maintenance "
                    f"{'was due' if overdue else 'is due'} on {item.get('nextMaintenanceDate')}."
                ),
                "type": "error" if overdue else "warning",
                "isRead": False,
                "relatedId": item["id"],
                "relatedType": "maintenance",
                "createdAt": self._now(),
            })

        if not created:
            return 0
        if not self._commit("notify maintenance due", {KEY_NOTIFICATIONS: self._notifications + created}):
            return None
        logger.info("Added %d maintenance notifications", len(created))
        return len(created)

    # ------------------------------------------------------------------
    # Sample data
    # ------------------------------------------------------------------

    def is_empty(self) -> bool:
        """No departments, categories, equipment or notifications."""
        return not (self._departments or self._categories or self._equipment or self._notifications)

    def seed_sample_data(self) -> bool:
        """
        Populate an empty dashboard with three departments, three
        categories, two instruments and a few notifications.
        Returns False without touching anything unless is_empty().
        """
        if not self.is_empty():
            return False

        now_dt = self.clock()
        now = self._now()

        def _ago(hours: int) -> str:
            return to_utc_z(now_dt - timedelta(hours=hours))

        departments = [
            {"id": "dept-1", "name": "Surgery", "code": "SURG", "description": "General surgery operating rooms"},
            {"id": "dept-2", "name": "Orthopedics", "code": "ORTH", "description": "Orthopedic operating rooms"},
            {"id": "dept-3", "name": "Neurosurgery", "code": "NEURO", "description": "Neurosurgery operating rooms"},
        ]
        categories = [
            {"id": "cat-1", "name": "Scalpels", "description": "Surgical scalpels", "departmentId": "dept-1"},
            {"id": "cat-2", "name": "Forceps", "description": "Surgical forceps", "departmentId": "dept-1"},
            {"id": "cat-3", "name": "Drills", "description": "Bone drills", "departmentId": "dept-2"},
        ]
        equipment = [
            {
                "id": "eq-1",
                "name": "Scalpel #11",
                "serialNumber": "SCAL-001",
                "model": "Bard-Parker",
                "manufacturer": "BD",
                "categoryId": "cat-1",
                "departmentId": "dept-1",
                "status": STATUS_AVAILABLE,
                "location": "Operating Room A",
                "purchaseDate": "2023-01-15",
                "warrantyExpiry": "2025-01-15",
                "lastMaintenanceDate": "2024-01-15",
                "nextMaintenanceDate": "2024-07-15",
                "notes": "Routine inspection complete",
            },
            {
                "id": "eq-2",
                "name": "Forceps 15cm",
                "serialNumber": "FORC-002",
                "model": "Adson",
                "manufacturer": "Medline",
                "categoryId": "cat-2",
                "departmentId": "dept-1",
                "status": STATUS_IN_USE,
                "location": "Operating Room B",
                "purchaseDate": "2023-02-20",
                "warrantyExpiry": "2025-02-20",
                "lastMaintenanceDate": "2024-02-20",
                "nextMaintenanceDate": "2024-08-20",
                "notes": "Currently in surgery",
            },
        ]
        for row in departments + categories:
            row.update(createdAt=now, updatedAt=now)
        for row in equipment:
            row.update(createdAt=now, updatedAt=now, createdBy=self.actor, updatedBy=self.actor)

        notifications = [
            {
                "id": "notif-1",
                "userId": self.user_id,
                "title": "Maintenance due",
                "message": "Scalpel #11 maintenance is due on 2024-07-15.",
                "type": "warning",
                "isRead": False,
                "relatedId": "eq-1",
                "relatedType": "maintenance",
                "createdAt": _ago(2),
            },
            {
                "id": "notif-2",
                "userId": self.user_id,
                "title": "Usage completed",
                "message": "Forceps 15cm usage has been completed.",
                "type": "success",
                "isRead": False,
                "relatedId": "eq-2",
                "relatedType": "equipment",
                "createdAt": _ago(4),
            },
            {
                "id": "notif-3",
                "userId": self.user_id,
                "title": "New equipment registered",
                "message": "New equipment was registered in Surgery.",
                "type": "info",
                "isRead": True,
                "relatedId": "dept-1",
                "relatedType": "equipment",
                "createdAt": _ago(24),
            },
        ]

        return self._commit(
            "seed sample data",
            {
                KEY_DEPARTMENTS: departments,
                KEY_CATEGORIES: categories,
                KEY_EQUIPMENT: equipment,
                KEY_NOTIFICATIONS: notifications,
            },
            recalc=True,
        )


def build_equipment_state(config: dict, store: BlobStore | None = None) -> EquipmentState:
    return EquipmentState(
        store or SqlBlobStore(),
        actor=config.get("MEDEQUIP_ACTOR", "admin"),
        user_id=config.get("MEDEQUIP_USER_ID", "current-user"),
        user_name=config.get("MEDEQUIP_USER_NAME", "Current User"),
        enforce_single_active_usage=bool(config.get("MEDEQUIP_SINGLE_ACTIVE_USAGE", False)),
        notify_usage_events=bool(config.get("MEDEQUIP_USAGE_NOTIFICATIONS", False)),
    )


def get_equipment_state() -> EquipmentState:
    """
    The application's EquipmentState, loaded from the store on first use.

    Raises StoreError if the initial load fails; nothing is cached then, so
    the next call tries again.
    """
    state = current_app.extensions.get("equipment_state")
    if state is None:
        state = build_equipment_state(current_app.config)
        if not state.load():
            raise StoreError("Could not load equipment state")
        current_app.extensions["equipment_state"] = state
    return state


def reset_equipment_state() -> None:
    """Drop the cached instance so the next get_equipment_state() reloads."""
    current_app.extensions.pop("equipment_state", None)
