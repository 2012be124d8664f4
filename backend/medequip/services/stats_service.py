# Overview: Derived equipment statistics; pure functions over the current collections.

from __future__ import annotations

from collections import Counter


STATUS_AVAILABLE = "available"
STATUS_IN_USE = "in_use"
STATUS_MAINTENANCE = "maintenance"
STATUS_REPAIR = "repair"
STATUS_RETIRED = "retired"
STATUS_LOST = "lost"
STATUS_DAMAGED = "damaged"
EQUIPMENT_STATUSES = (
    STATUS_AVAILABLE,
    STATUS_IN_USE,
    STATUS_MAINTENANCE,
    STATUS_REPAIR,
    STATUS_RETIRED,
    STATUS_LOST,
    STATUS_DAMAGED,
)

# Output field for each status in EquipmentStats
_STATS_FIELDS = {
    STATUS_AVAILABLE: "available",
    STATUS_IN_USE: "inUse",
    STATUS_MAINTENANCE: "maintenance",
    STATUS_REPAIR: "repair",
    STATUS_RETIRED: "retired",
    STATUS_LOST: "lost",
    STATUS_DAMAGED: "damaged",
}


def compute_equipment_stats(equipment: list[dict]) -> dict:
    """
    Count equipment by status.

    Items with a status outside the known set still count toward total.
    """
    counts = Counter(eq.get("status") for eq in equipment)
    stats = {"total": len(equipment)}
    for status, field in _STATS_FIELDS.items():
        stats[field] = counts.get(status, 0)
    return stats


def utilization_rate(in_use_count: int, equipment_count: int) -> float:
    if equipment_count <= 0:
        return 0
    return in_use_count / equipment_count * 100


def compute_department_stats(departments: list[dict], equipment: list[dict]) -> list[dict]:
    """
    One row per department, in department order.

    Equipment pointing at an unknown department is not reported anywhere.
    """
    by_department: dict[str, list[dict]] = {}
    for eq in equipment:
        by_department.setdefault(eq.get("departmentId"), []).append(eq)

    rows = []
    for dept in departments:
        dept_equipment = by_department.get(dept["id"], [])
        counts = Counter(eq.get("status") for eq in dept_equipment)
        in_use = counts.get(STATUS_IN_USE, 0)
        rows.append({
            "departmentId": dept["id"],
            "departmentName": dept.get("name", ""),
            "equipmentCount": len(dept_equipment),
            "availableCount": counts.get(STATUS_AVAILABLE, 0),
            "inUseCount": in_use,
            "maintenanceCount": counts.get(STATUS_MAINTENANCE, 0),
            "utilizationRate": utilization_rate(in_use, len(dept_equipment)),
        })
    return rows
