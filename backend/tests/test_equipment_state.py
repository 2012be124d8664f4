# Overview: Pytest coverage for the equipment state manager.

"""
EquipmentState Tests

Covers the write contract of the state manager:
1. add_* assigns unique ids and equal createdAt/updatedAt
2. update_* merges only the supplied fields and moves updatedAt forward
3. update/delete of a missing id is a successful no-op
4. Department deletion cascades to categories and equipment
5. Store failures return False and leave memory untouched
6. Stats caches follow every equipment/department mutation
"""

import logging

import pytest

from medequip.services.blob_store import (
    KEY_CATEGORIES,
    KEY_DEPARTMENTS,
    KEY_DEPARTMENT_STATS,
    KEY_EQUIPMENT,
    KEY_EQUIPMENT_STATS,
    MemoryBlobStore,
)
from medequip.services.equipment_state import EquipmentState


class TestAdd:
    def test_add_department_assigns_id_and_timestamps(self, state):
        assert state.add_department({"name": "Surgery", "code": "SURG", "id": "ignored"})

        dept = state.departments[0]
        assert dept["id"] != "ignored"
        assert dept["id"].startswith("dept-")
        assert dept["createdAt"] == dept["updatedAt"]
        assert dept["createdAt"].endswith("Z")

    def test_rapid_adds_get_unique_ids(self, state):
        for i in range(50):
            assert state.add_category({"name": f"Cat {i}", "departmentId": "dept-x"})

        ids = [c["id"] for c in state.categories]
        assert len(set(ids)) == 50

    def test_colliding_id_factory_is_retried(self, store):
        issued = iter(["dup", "dup", "dup", "fresh"])
        state = EquipmentState(store, id_factory=lambda prefix: next(issued))
        assert state.load()

        assert state.add_department({"name": "A", "code": "A"})
        assert state.add_department({"name": "B", "code": "B"})

        assert [d["id"] for d in state.departments] == ["dup", "fresh"]

    def test_add_equipment_stamps_actor(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"])

        assert item["createdBy"] == "admin"
        assert item["updatedBy"] == "admin"
        assert item["status"] == "available"

    def test_add_equipment_accepts_unknown_foreign_keys(self, state):
        assert state.add_equipment({"name": "Orphan", "departmentId": "nope", "categoryId": "nope"})

        assert state.equipment[0]["departmentId"] == "nope"

    def test_add_equipment_rejects_unknown_status(self, state):
        with pytest.raises(ValueError):
            state.add_equipment({"name": "X", "departmentId": "d", "status": "broken"})
        assert state.equipment == []

    def test_add_persists_collection(self, state, store):
        assert state.add_department({"name": "Surgery", "code": "SURG"})

        assert store.load(KEY_DEPARTMENTS) == state.departments


class TestUpdate:
    def test_update_changes_only_supplied_fields(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"], serialNumber="SCAL-001", location="OR A")

        assert state.update_equipment(item["id"], {"location": "OR B"})

        updated = state.get_equipment(item["id"])
        assert updated["location"] == "OR B"
        assert updated["updatedAt"] > item["updatedAt"]
        for key, value in item.items():
            if key not in ("location", "updatedAt"):
                assert updated[key] == value

    def test_update_cannot_change_id_or_created_at(self, state, surgery):
        assert state.update_department(surgery["id"], {"id": "other", "createdAt": "1999-01-01T00:00:00.000Z"})

        dept = state.get_department(surgery["id"])
        assert dept["createdAt"] == surgery["createdAt"]

    def test_updated_at_increases_with_frozen_clock(self, store):
        from datetime import datetime

        frozen = datetime(2024, 5, 1, 12, 0, 0)
        state = EquipmentState(store, clock=lambda: frozen)
        assert state.load()
        assert state.add_department({"name": "Surgery", "code": "SURG"})
        dept = state.last_created

        assert state.update_department(dept["id"], {"description": "OR"})
        assert state.update_department(dept["id"], {"description": "OR 2"})

        assert state.get_department(dept["id"])["updatedAt"] > dept["updatedAt"]

    def test_update_missing_id_is_noop_success(self, state, surgery):
        before = state.departments
        saves = state.store.save_count

        assert state.update_department("missing", {"name": "X"})
        assert state.update_category("missing", {"name": "X"})
        assert state.update_equipment("missing", {"name": "X"})

        assert state.departments == before
        assert state.store.save_count == saves

    def test_update_equipment_rejects_unknown_status(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"])
        with pytest.raises(ValueError):
            state.update_equipment(item["id"], {"status": "gone"})


class TestDelete:
    def test_delete_department_cascades(self, state, make_equipment):
        assert state.add_department({"name": "Surgery", "code": "SURG"})
        surg = state.last_created
        assert state.add_department({"name": "Orthopedics", "code": "ORTH"})
        ortho = state.last_created

        assert state.add_category({"name": "Scalpels", "departmentId": surg["id"]})
        assert state.add_category({"name": "Drills", "departmentId": ortho["id"]})
        make_equipment(surg["id"], "Scalpel")
        make_equipment(surg["id"], "Forceps")
        drill = make_equipment(ortho["id"], "Drill")

        assert state.delete_department(surg["id"])

        assert [d["id"] for d in state.departments] == [ortho["id"]]
        assert [c["name"] for c in state.categories] == ["Drills"]
        assert [e["id"] for e in state.equipment] == [drill["id"]]
        assert not any(c["departmentId"] == surg["id"] for c in state.categories)
        assert not any(e["departmentId"] == surg["id"] for e in state.equipment)
        assert state.stats["total"] == 1
        assert [row["departmentId"] for row in state.department_stats] == [ortho["id"]]

    def test_delete_department_persists_all_collections(self, state, store, surgery, make_equipment):
        make_equipment(surgery["id"])

        assert state.delete_department(surgery["id"])

        assert store.load(KEY_DEPARTMENTS) == []
        assert store.load(KEY_CATEGORIES) == []
        assert store.load(KEY_EQUIPMENT) == []
        assert store.load(KEY_EQUIPMENT_STATS)["total"] == 0

    def test_delete_missing_ids_is_noop_success(self, state, surgery, make_equipment):
        make_equipment(surgery["id"])
        before = (state.departments, state.categories, state.equipment)

        assert state.delete_department("missing")
        assert state.delete_category("missing")
        assert state.delete_equipment("missing")

        assert (state.departments, state.categories, state.equipment) == before

    def test_delete_equipment_keeps_usage_records(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"])
        assert state.start_usage(item["id"], "Appendectomy")

        assert state.delete_equipment(item["id"])

        assert state.equipment == []
        assert len(state.usage) == 1
        assert state.usage[0]["equipmentId"] == item["id"]
        assert state.stats["total"] == 0

    def test_delete_category_does_not_touch_equipment(self, state, surgery, make_equipment):
        category = state.categories[0]
        item = make_equipment(surgery["id"], categoryId=category["id"])

        assert state.delete_category(category["id"])

        assert state.categories == []
        assert state.get_equipment(item["id"])["categoryId"] == category["id"]


class TestStatus:
    def test_change_status_updates_only_status(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"], notes="sharp")

        assert state.change_equipment_status(item["id"], "maintenance")

        updated = state.get_equipment(item["id"])
        assert updated["status"] == "maintenance"
        assert updated["notes"] == "sharp"
        assert state.stats["maintenance"] == 1
        assert state.department_stats_for(surgery["id"])["maintenanceCount"] == 1

    def test_change_status_rejects_unknown_value(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"])
        with pytest.raises(ValueError):
            state.change_equipment_status(item["id"], "misplaced")


class TestStoreFailures:
    def test_failed_add_leaves_memory_unchanged(self, state, surgery):
        before = state.departments
        state.store.fail_writes = True

        assert state.add_department({"name": "Orthopedics", "code": "ORTH"}) is False

        assert state.departments == before

    def test_failed_update_leaves_memory_unchanged(self, state, surgery, make_equipment):
        item = make_equipment(surgery["id"])
        state.store.fail_writes = True

        assert state.change_equipment_status(item["id"], "repair") is False

        assert state.get_equipment(item["id"])["status"] == "available"
        assert state.stats["available"] == 1

    def test_failed_delete_leaves_memory_unchanged(self, state, surgery, make_equipment):
        make_equipment(surgery["id"])
        state.store.fail_writes = True

        assert state.delete_department(surgery["id"]) is False

        assert len(state.departments) == 1
        assert len(state.equipment) == 1

    def test_delete_department_partial_failure_keeps_memory(self, state, store, surgery, make_equipment):
        make_equipment(surgery["id"])
        store.fail_keys = {KEY_EQUIPMENT}

        assert state.delete_department(surgery["id"]) is False

        assert [d["id"] for d in state.departments] == [surgery["id"]]
        assert len(state.categories) == 1
        assert len(state.equipment) == 1
        # keys saved before the failing one already hold the new values
        assert store.load(KEY_DEPARTMENTS) == []

    def test_failure_is_logged(self, state, caplog):
        state.store.fail_writes = True
        with caplog.at_level(logging.ERROR, logger="medequip.services.equipment_state"):
            assert state.add_category({"name": "X", "departmentId": "d"}) is False
        assert "Failed to add category" in caplog.text

    def test_failed_load_returns_false(self, store):
        store.fail_reads = True
        state = EquipmentState(store)

        assert state.load() is False
        assert state.departments == []


class TestRefresh:
    def test_refresh_data_last_writer_wins(self, store):
        first = EquipmentState(store)
        second = EquipmentState(store)
        assert first.load() and second.load()

        assert first.add_department({"name": "Surgery", "code": "SURG"})
        assert second.add_department({"name": "Orthopedics", "code": "ORTH"})

        assert first.refresh_data()
        assert [d["name"] for d in first.departments] == ["Orthopedics"]

    def test_refresh_data_recomputes_stale_stats(self):
        store = MemoryBlobStore({
            KEY_DEPARTMENTS: [{"id": "d1", "name": "Surgery", "code": "SURG"}],
            KEY_EQUIPMENT: [
                {"id": "e1", "name": "Scalpel", "departmentId": "d1", "status": "in_use"},
                {"id": "e2", "name": "Drill", "departmentId": "d1", "status": "available"},
            ],
            KEY_EQUIPMENT_STATS: {"total": 99},
            KEY_DEPARTMENT_STATS: [],
        })
        state = EquipmentState(store)

        assert state.load()

        assert state.stats["total"] == 2
        assert state.stats["inUse"] == 1
        assert state.department_stats[0]["utilizationRate"] == 50
        assert store.load(KEY_EQUIPMENT_STATS)["total"] == 2

    def test_failed_stats_save_keeps_previous_memory(self, state, store, surgery):
        store.save(KEY_DEPARTMENTS, [{"id": "d1", "name": "Orthopedics", "code": "ORTH"}])
        store.fail_keys = {KEY_EQUIPMENT_STATS}

        assert state.refresh_data() is False

        assert [d["id"] for d in state.departments] == [surgery["id"]]
        assert state.department_stats_for("d1") is None

    def test_refresh_stats_without_reload(self, state, store, surgery, make_equipment):
        make_equipment(surgery["id"])
        store.save(KEY_EQUIPMENT, [])

        assert state.refresh_stats()

        assert state.stats["total"] == 1

    def test_flush_rewrites_every_key(self, state, surgery, make_equipment):
        make_equipment(surgery["id"])
        fresh = MemoryBlobStore()
        state.store = fresh

        assert state.flush()

        assert set(fresh.keys()) == {
            "categories", "department_stats", "departments", "equipment",
            "equipment_stats", "equipment_usage", "notifications",
        }
        assert fresh.load(KEY_EQUIPMENT) == state.equipment

    def test_reads_return_copies(self, state, surgery):
        state.departments[0]["name"] = "Changed"

        assert state.departments[0]["name"] == "Surgery"


class TestSearch:
    def test_search_by_term_department_and_status(self, state, surgery, make_equipment):
        make_equipment(surgery["id"], "Scalpel #11", serialNumber="SCAL-001", manufacturer="BD")
        make_equipment(surgery["id"], "Forceps", serialNumber="FORC-002", manufacturer="Medline", status="in_use")
        make_equipment("dept-other", "Drill", manufacturer="Stryker")

        assert [e["name"] for e in state.search_equipment("scal")] == ["Scalpel #11"]
        assert [e["name"] for e in state.search_equipment("MEDLINE")] == ["Forceps"]
        assert len(state.search_equipment(department_id=surgery["id"])) == 2
        assert [e["name"] for e in state.search_equipment(status="in_use")] == ["Forceps"]
        assert len(state.search_equipment("", department_id="all", status="all")) == 3

    def test_maintenance_due(self, state, surgery, make_equipment):
        from datetime import date

        make_equipment(surgery["id"], "Overdue", nextMaintenanceDate="2024-06-01")
        make_equipment(surgery["id"], "Soon", nextMaintenanceDate="2024-06-20")
        make_equipment(surgery["id"], "Later", nextMaintenanceDate="2024-09-01")
        make_equipment(surgery["id"], "Retired", nextMaintenanceDate="2024-06-01", status="retired")
        make_equipment(surgery["id"], "Garbage", nextMaintenanceDate="soon")
        make_equipment(surgery["id"], "Never")

        due = state.maintenance_due(14, today=date(2024, 6, 10))

        assert [e["name"] for e in due] == ["Overdue", "Soon"]
        assert [e["daysUntilDue"] for e in due] == [-9, 10]
