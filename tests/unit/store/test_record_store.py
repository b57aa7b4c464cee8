"""Unit tests for record store CRUD and persistence."""

from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import json

import pytest

from core.config import LedgerConfig
from core.errors import LedgerBackupError, LedgerCollectionError, LedgerStorageError
from core.types import DuplicateIdentity, NotFound, StorageFailure
from store import record_store as record_store_module
from store.record_store import RecordStore


def _config(tmp_path, **overrides) -> LedgerConfig:
    return replace(LedgerConfig.from_env(), data_root=tmp_path, **overrides)


def _fixed_clock() -> datetime:
    return datetime(2024, 3, 1, 8, 30, tzinfo=timezone.utc)


def _failing_write(*_args) -> None:
    raise LedgerStorageError("disk full")


def test_store_initializes_metadata_and_default_collections(tmp_path) -> None:
    """Initialization should write metadata and empty default collections."""
    store = RecordStore(_config(tmp_path))

    metadata = json.loads((tmp_path / "metadata.json").read_text(encoding="utf-8"))
    contracts = json.loads(
        (tmp_path / "collections" / "contracts.json").read_text(encoding="utf-8")
    )

    assert (
        metadata["schemaVersion"] == 1
        and metadata["deviceId"] == store.metadata.device_id
        and store.metadata.device_id.startswith("device_")
        and contracts == []
    )


def test_store_keeps_metadata_across_restarts(tmp_path) -> None:
    """A second store over the same root should reuse the device id."""
    first = RecordStore(_config(tmp_path))

    second = RecordStore(_config(tmp_path))

    assert second.metadata == first.metadata


def test_get_all_returns_empty_for_unknown_collection(tmp_path) -> None:
    """Never-written collections should read as empty."""
    store = RecordStore(_config(tmp_path))

    records = store.get_all("invoices")

    assert records == [] and not (tmp_path / "collections" / "invoices.json").exists()


def test_create_assigns_fresh_id_and_keeps_fields(tmp_path) -> None:
    """Created records should equal their input plus a new id."""
    store = RecordStore(_config(tmp_path))

    created = store.create("contracts", {"soHopDong": "HD-01", "mucNhuanBut": "1,500,000"})

    assert created == {
        "id": created["id"],
        "soHopDong": "HD-01",
        "mucNhuanBut": "1,500,000",
    } and isinstance(created["id"], str)


def test_create_ignores_caller_supplied_id(tmp_path) -> None:
    """Create should never store a caller-chosen identity."""
    store = RecordStore(_config(tmp_path), id_factory=lambda: "generated")

    created = store.create("contracts", {"id": "mine", "soHopDong": "HD-02"})

    assert created["id"] == "generated" and isinstance(
        store.get_by_id("contracts", "mine"), NotFound
    )


def test_create_ids_are_unique_within_collection(tmp_path) -> None:
    """Sequential creates should never repeat an id."""
    store = RecordStore(_config(tmp_path))

    ids = [store.create("works", {"index": index})["id"] for index in range(50)]

    assert len(set(ids)) == 50


def test_create_returns_duplicate_identity_when_ids_collide(tmp_path) -> None:
    """Exhausted id attempts should return DuplicateIdentity without writing."""
    store = RecordStore(_config(tmp_path), id_factory=lambda: "same")
    store.create("partners", {"tenDonVi": "A"})

    result = store.create("partners", {"tenDonVi": "B"})

    assert result == DuplicateIdentity(collection="partners", record_id="same") and len(
        store.get_all("partners")
    ) == 1


def test_create_ids_do_not_collide_across_restarts(tmp_path) -> None:
    """A restarted store should check new ids against persisted records."""
    RecordStore(_config(tmp_path), id_factory=lambda: "fixed").create("users", {"username": "a"})
    restarted = RecordStore(_config(tmp_path), id_factory=lambda: "fixed")

    result = restarted.create("users", {"username": "b"})

    assert result == DuplicateIdentity(collection="users", record_id="fixed") and RecordStore(
        _config(tmp_path)
    ).get_all("users") == [{"id": "fixed", "username": "a"}]


def test_get_all_preserves_insertion_order(tmp_path) -> None:
    """Reads should list records in creation order."""
    store = RecordStore(_config(tmp_path))
    for name in ("first", "second", "third"):
        store.create("channels", {"tenKenh": name})

    names = [record["tenKenh"] for record in store.get_all("channels")]

    assert names == ["first", "second", "third"]


def test_get_all_returns_copies(tmp_path) -> None:
    """Mutating a returned record should not change the store."""
    store = RecordStore(_config(tmp_path))
    created = store.create("contracts", {"tinhTrang": "Khảo sát"})
    records = store.get_all("contracts")
    records[0]["tinhTrang"] = "Đã ký"

    stored = store.get_by_id("contracts", created["id"])

    assert stored["tinhTrang"] == "Khảo sát"


def test_get_by_id_returns_not_found(tmp_path) -> None:
    """Missing ids should be reported as NotFound values."""
    store = RecordStore(_config(tmp_path))

    result = store.get_by_id("contracts", "missing")

    assert result == NotFound(collection="contracts", record_id="missing")


def test_find_matches_every_criteria_value(tmp_path) -> None:
    """Find should require equality on each criteria field."""
    store = RecordStore(_config(tmp_path))
    store.create("users", {"role": "admin", "status": "active"})
    expected = store.create("users", {"role": "user", "status": "active"})
    store.create("users", {"role": "user", "status": "inactive"})

    matches = store.find("users", {"role": "user", "status": "active"})

    assert matches == [expected]


def test_find_does_not_match_missing_field_against_none(tmp_path) -> None:
    """A field absent from a record should not equal an explicit None."""
    store = RecordStore(_config(tmp_path))
    store.create("users", {"role": "user"})

    matches = store.find("users", {"avatar": None})

    assert matches == []


def test_update_merges_patch_and_keeps_identity(tmp_path) -> None:
    """Update should overwrite patched fields only and ignore a patched id."""
    store = RecordStore(_config(tmp_path))
    created = store.create("contracts", {"soHopDong": "HD-03", "tinhTrang": "Khảo sát"})

    updated = store.update(
        "contracts",
        created["id"],
        {"id": "other", "tinhTrang": "Đã ký"},
    )

    assert updated == {"id": created["id"], "soHopDong": "HD-03", "tinhTrang": "Đã ký"}


def test_update_missing_record_returns_not_found_without_write(tmp_path) -> None:
    """Updating an unknown id should leave the collection unchanged."""
    store = RecordStore(_config(tmp_path))
    store.create("contracts", {"soHopDong": "HD-04"})
    before = (tmp_path / "collections" / "contracts.json").read_text(encoding="utf-8")

    result = store.update("contracts", "missing", {"tinhTrang": "Đã ký"})

    after = (tmp_path / "collections" / "contracts.json").read_text(encoding="utf-8")
    assert isinstance(result, NotFound) and before == after


def test_update_keeps_record_position(tmp_path) -> None:
    """Updated records should stay at their original index."""
    store = RecordStore(_config(tmp_path))
    first = store.create("works", {"code": "A"})
    store.create("works", {"code": "B"})

    store.update("works", first["id"], {"code": "A2"})

    assert [record["code"] for record in store.get_all("works")] == ["A2", "B"]


def test_delete_removes_record_and_reports_absence(tmp_path) -> None:
    """Delete should return True once and False for a missing id."""
    store = RecordStore(_config(tmp_path))
    created = store.create("partners", {"tenDonVi": "A"})

    removed = store.delete("partners", created["id"])
    removed_again = store.delete("partners", created["id"])

    assert removed is True and removed_again is False and store.get_all("partners") == []


def test_mutations_persist_across_store_instances(tmp_path) -> None:
    """A new store over the same data root should see committed writes."""
    store = RecordStore(_config(tmp_path))
    created = store.create("contracts", {"tenTacPham": "Bài ca", "nhatKy": [{"id": "l1"}]})
    store.update("contracts", created["id"], {"tinhTrang": "Tái ký"})

    reopened = RecordStore(_config(tmp_path))

    assert reopened.get_by_id("contracts", created["id"]) == {
        "id": created["id"],
        "tenTacPham": "Bài ca",
        "nhatKy": [{"id": "l1"}],
        "tinhTrang": "Tái ký",
    }


def test_collection_file_is_pretty_printed_unicode(tmp_path) -> None:
    """Collection files should keep non-ASCII text unescaped."""
    store = RecordStore(_config(tmp_path))
    store.create("channels", {"trangThai": "Hoạt động"})

    body = (tmp_path / "collections" / "channels.json").read_text(encoding="utf-8")

    assert "Hoạt động" in body and body.startswith("[\n  {")


def test_track_timestamps_stamps_create_and_update(tmp_path) -> None:
    """Timestamp tracking should set createdAt and refresh updatedAt."""
    store = RecordStore(_config(tmp_path, track_timestamps=True), clock=_fixed_clock)
    created = store.create("contracts", {"soHopDong": "HD-05"})

    updated = store.update("contracts", created["id"], {"tinhTrang": "Đã ký"})

    assert (
        created["createdAt"] == "2024-03-01T08:30:00+00:00"
        and updated["updatedAt"] == "2024-03-01T08:30:00+00:00"
        and updated["createdAt"] == created["createdAt"]
    )


def test_invalid_collection_name_raises(tmp_path) -> None:
    """Collection names outside the allowed pattern should be rejected."""
    store = RecordStore(_config(tmp_path))

    with pytest.raises(LedgerCollectionError):
        store.get_all("../escape")


def test_collection_name_with_trailing_newline_raises(tmp_path) -> None:
    """A trailing newline should not pass collection name validation."""
    store = RecordStore(_config(tmp_path))

    with pytest.raises(LedgerCollectionError):
        store.create("users\n", {"username": "a"})

    assert sorted(path.name for path in (tmp_path / "collections").iterdir()) == sorted(
        f"{name}.json" for name in store.collection_names()
    )


def test_create_rejects_non_mapping_record(tmp_path) -> None:
    """Create should reject records that are not mappings."""
    store = RecordStore(_config(tmp_path))

    with pytest.raises(LedgerCollectionError):
        store.create("contracts", ["not", "a", "record"])


def test_insert_with_id_keeps_identity_and_rejects_duplicates(tmp_path) -> None:
    """Insert should preserve the given id and refuse a reused one."""
    store = RecordStore(_config(tmp_path))
    inserted = store.insert_with_id("users", {"id": "1", "username": "admin"})

    duplicate = store.insert_with_id("users", {"id": "1", "username": "other"})

    assert inserted == {"id": "1", "username": "admin"} and duplicate == DuplicateIdentity(
        collection="users", record_id="1"
    )


def test_insert_with_id_requires_string_id(tmp_path) -> None:
    """Insert should fail for records without a string id."""
    store = RecordStore(_config(tmp_path))

    with pytest.raises(LedgerCollectionError):
        store.insert_with_id("users", {"username": "admin"})


def test_bulk_create_writes_all_records(tmp_path) -> None:
    """Bulk create should store every record with distinct ids."""
    store = RecordStore(_config(tmp_path))

    created = store.bulk_create("works", [{"code": "A"}, {"code": "B"}])

    assert [record["code"] for record in store.get_all("works")] == ["A", "B"] and len(
        {record["id"] for record in created}
    ) == 2


def test_bulk_update_skips_unknown_ids(tmp_path) -> None:
    """Bulk update should merge known ids and skip the rest."""
    store = RecordStore(_config(tmp_path))
    first = store.create("works", {"code": "A"})

    merged = store.bulk_update(
        "works",
        [{"id": first["id"], "code": "A2"}, {"id": "missing", "code": "Z"}],
    )

    assert merged == [{"id": first["id"], "code": "A2"}]


def test_clear_all_empties_known_collections(tmp_path) -> None:
    """Clear should leave every known collection empty."""
    store = RecordStore(_config(tmp_path))
    store.create("contracts", {"code": "A"})
    store.create("invoices", {"total": 1})

    store.clear_all()

    assert all(count == 0 for count in store.get_stats().values()) and "invoices" in (
        store.collection_names()
    )


def test_get_stats_counts_configured_and_extra_collections(tmp_path) -> None:
    """Stats should list configured collections first, then persisted extras."""
    store = RecordStore(_config(tmp_path, collections=("contracts", "users")))
    store.create("users", {"username": "admin"})
    store.create("invoices", {"total": 1})

    stats = RecordStore(_config(tmp_path, collections=("contracts", "users"))).get_stats()

    assert stats == {"contracts": 0, "users": 1, "invoices": 1}


def test_subscribe_notifies_until_unsubscribed(tmp_path) -> None:
    """Listeners should fire per mutation and stop after unsubscribe."""
    store = RecordStore(_config(tmp_path))
    calls: list[str] = []
    unsubscribe = store.subscribe("contracts", lambda: calls.append("changed"))
    created = store.create("contracts", {"code": "A"})
    store.update("contracts", created["id"], {"code": "B"})
    store.create("works", {"code": "W"})

    unsubscribe()
    store.delete("contracts", created["id"])

    assert calls == ["changed", "changed"]


def test_failing_listener_does_not_break_mutation(tmp_path) -> None:
    """A raising listener should not undo or fail the write."""
    store = RecordStore(_config(tmp_path))

    def _explode() -> None:
        raise RuntimeError("listener bug")

    store.subscribe("contracts", _explode)

    created = store.create("contracts", {"code": "A"})

    assert store.get_by_id("contracts", created["id"]) == created


def test_export_and_import_restore_collections(tmp_path) -> None:
    """Importing an export should restore records into another data root."""
    source = RecordStore(_config(tmp_path / "source"))
    created = source.create("contracts", {"code": "A"})
    backup = source.export_all()
    target = RecordStore(_config(tmp_path / "target"))

    target.import_all(backup)

    assert (
        target.get_all("contracts") == [created]
        and target.metadata.device_id == source.metadata.device_id
    )


def test_import_rejects_duplicate_ids_without_writing(tmp_path) -> None:
    """Invalid backups should fail before any collection changes."""
    store = RecordStore(_config(tmp_path))
    store.create("users", {"username": "admin"})
    backup = json.dumps(
        {
            "data": {
                "contracts": [{"id": "a"}],
                "users": [{"id": "x"}, {"id": "x"}],
            }
        }
    )

    with pytest.raises(LedgerBackupError):
        store.import_all(backup)

    assert store.get_all("contracts") == [] and len(store.get_all("users")) == 1


def test_import_rejects_unparsable_backup(tmp_path) -> None:
    """Non-JSON backups should raise LedgerBackupError."""
    store = RecordStore(_config(tmp_path))

    with pytest.raises(LedgerBackupError):
        store.import_all("{not json")


def test_import_write_failure_in_raise_mode_keeps_metadata(tmp_path, monkeypatch) -> None:
    """A failed collection write should leave persisted metadata untouched."""
    source = RecordStore(_config(tmp_path / "source"))
    source.create("contracts", {"code": "A"})
    backup = source.export_all()
    target = RecordStore(_config(tmp_path / "target", storage_failure_mode="raise"))
    monkeypatch.setattr(record_store_module, "write_collection_file", _failing_write)

    with pytest.raises(LedgerStorageError):
        target.import_all(backup)

    persisted = json.loads((tmp_path / "target" / "metadata.json").read_text(encoding="utf-8"))
    assert (
        persisted["deviceId"] == target.metadata.device_id
        and target.metadata.device_id != source.metadata.device_id
    )


def test_reload_picks_up_external_changes(tmp_path) -> None:
    """Reload should drop cached collections."""
    store = RecordStore(_config(tmp_path))
    store.get_all("contracts")
    other = RecordStore(_config(tmp_path))
    created = other.create("contracts", {"code": "A"})

    store.reload()

    assert store.get_all("contracts") == [created]


def test_unwritable_data_root_degrades_to_memory(tmp_path) -> None:
    """A data root that cannot be created should degrade once and keep working."""
    blocked_root = tmp_path / "blocked"
    blocked_root.write_text("not a directory", encoding="utf-8")
    store = RecordStore(_config(blocked_root))

    created = store.create("contracts", {"code": "A"})
    warning = store.pop_storage_warning()

    assert (
        store.degraded
        and not store.is_healthy()
        and store.get_all("contracts") == [created]
        and isinstance(warning, StorageFailure)
        and warning.operation == "initialize"
        and store.pop_storage_warning() is None
    )


def test_unwritable_data_root_raises_in_raise_mode(tmp_path) -> None:
    """Raise mode should surface initialization faults."""
    blocked_root = tmp_path / "blocked"
    blocked_root.write_text("not a directory", encoding="utf-8")

    with pytest.raises(LedgerStorageError):
        RecordStore(_config(blocked_root, storage_failure_mode="raise"))


def test_write_failure_in_raise_mode_leaves_memory_unchanged(tmp_path, monkeypatch) -> None:
    """A failed write in raise mode should not reach the cache."""
    store = RecordStore(_config(tmp_path, storage_failure_mode="raise"))
    monkeypatch.setattr(record_store_module, "write_collection_file", _failing_write)

    with pytest.raises(LedgerStorageError):
        store.create("contracts", {"code": "A"})

    assert store.get_all("contracts") == []


def test_write_failure_in_degrade_mode_keeps_record_in_memory(tmp_path, monkeypatch) -> None:
    """A failed write in degrade mode should keep the change in memory only."""
    store = RecordStore(_config(tmp_path))
    monkeypatch.setattr(record_store_module, "write_collection_file", _failing_write)

    created = store.create("contracts", {"code": "A"})

    persisted = json.loads(
        (tmp_path / "collections" / "contracts.json").read_text(encoding="utf-8")
    )
    assert store.get_all("contracts") == [created] and persisted == [] and store.degraded


def test_corrupted_collection_reads_empty_and_is_left_untouched(tmp_path) -> None:
    """Corrupted files should read as empty in degrade mode without being overwritten."""
    RecordStore(_config(tmp_path))
    collection_path = tmp_path / "collections" / "contracts.json"
    collection_path.write_text("{broken", encoding="utf-8")
    store = RecordStore(_config(tmp_path))

    records = store.get_all("contracts")
    store.create("contracts", {"code": "A"})

    assert records == [] and collection_path.read_text(encoding="utf-8") == "{broken"
