import json

import pytest

from artlink.core.errors import ConstraintError, StoreError
from artlink.core.record_store import Filter, InMemoryRecordStore, JsonRecordStore, RecordStore


@pytest.mark.asyncio
async def test_insert_assigns_id_and_timestamps(store):
    row = await store.insert("nfc_tags", {"nfc_uid": "04A1"})
    assert row["id"]
    assert row["created_at"] and row["updated_at"]
    assert await store.count("nfc_tags") == 1


@pytest.mark.asyncio
async def test_unique_uid_is_enforced(store):
    await store.insert("nfc_tags", {"nfc_uid": "04A1"})
    with pytest.raises(ConstraintError) as exc:
        await store.insert("nfc_tags", {"nfc_uid": "04A1"})
    assert exc.value.column == "nfc_uid"


@pytest.mark.asyncio
async def test_username_uniqueness_ignores_case(store):
    await store.insert("user_profiles", {"id": "p1", "email": "a@x", "username": "jane"})
    with pytest.raises(ConstraintError):
        await store.insert("user_profiles", {"id": "p2", "email": "b@x", "username": "JANE"})


@pytest.mark.asyncio
async def test_none_never_collides(store):
    await store.insert("user_profiles", {"id": "p1", "email": "a@x", "slug": None})
    await store.insert("user_profiles", {"id": "p2", "email": "b@x", "slug": None})
    assert await store.count("user_profiles") == 2


@pytest.mark.asyncio
async def test_update_checks_uniqueness_against_other_rows(store):
    await store.insert("user_profiles", {"id": "p1", "email": "a@x", "slug": "jane"})
    await store.insert("user_profiles", {"id": "p2", "email": "b@x"})
    with pytest.raises(ConstraintError):
        await store.update("user_profiles", Filter().eq("id", "p2"), {"slug": "Jane"})
    # Re-saving a row's own value is fine
    rows = await store.update("user_profiles", Filter().eq("id", "p1"), {"slug": "jane"})
    assert rows[0]["slug"] == "jane"


@pytest.mark.asyncio
async def test_update_without_match_returns_empty(store):
    assert await store.update("nfc_tags", Filter().eq("id", "nope"), {"is_bound": False}) == []


@pytest.mark.asyncio
async def test_filters_and_ordering():
    store = InMemoryRecordStore(
        {
            "artworks": [
                {"id": "a1", "user_id": "u1", "created_at": "2024-01-01"},
                {"id": "a2", "user_id": "u1", "created_at": "2024-03-01"},
                {"id": "a3", "user_id": "u2", "created_at": "2024-02-01"},
            ]
        }
    )
    rows = await store.find("artworks", Filter().eq("user_id", "u1").order("created_at", descending=True))
    assert [r["id"] for r in rows] == ["a2", "a1"]
    rows = await store.find("artworks", Filter().neq("user_id", "u1"))
    assert [r["id"] for r in rows] == ["a3"]
    rows = await store.find("artworks", Filter().in_("id", ["a1", "a3"]).order("created_at").limit(1))
    assert [r["id"] for r in rows] == ["a1"]


@pytest.mark.asyncio
async def test_find_returns_copies(store):
    await store.insert("nfc_tags", {"id": "t1", "nfc_uid": "04A1"})
    row = await store.find_one("nfc_tags", Filter().eq("id", "t1"))
    row["nfc_uid"] = "changed"
    assert (await store.find_one("nfc_tags", Filter().eq("id", "t1")))["nfc_uid"] == "04A1"


@pytest.mark.asyncio
async def test_unknown_table(store):
    with pytest.raises(StoreError):
        await store.find("collections")


@pytest.mark.asyncio
async def test_delete_returns_count(store):
    await store.insert("certificates", {"certificate_id": "C1", "artwork_id": "a1"})
    await store.insert("certificates", {"certificate_id": "C2", "artwork_id": "a1"})
    assert await store.delete("certificates", Filter().eq("artwork_id", "a1")) == 2
    assert await store.delete("certificates", Filter().eq("artwork_id", "a1")) == 0


@pytest.mark.asyncio
async def test_json_store_persists_across_instances(tmp_path):
    path = tmp_path / "records.json"
    first = JsonRecordStore(path)
    await first.insert("nfc_tags", {"id": "t1", "nfc_uid": "04A1", "is_bound": False})

    assert "t1" in path.read_text()
    second = JsonRecordStore(path)
    row = await second.find_one("nfc_tags", Filter().eq("nfc_uid", "04A1"))
    assert row["id"] == "t1"
    with pytest.raises(ConstraintError):
        await second.insert("nfc_tags", {"nfc_uid": "04A1"})


@pytest.mark.asyncio
async def test_json_store_unreadable_file_loads_empty(tmp_path):
    path = tmp_path / "records.json"
    path.write_text("{not json")
    store = JsonRecordStore(path)
    assert await store.count("nfc_tags") == 0
    await store.insert("nfc_tags", {"nfc_uid": "04A1"})
    assert len(json.loads(path.read_text())["nfc_tags"]) == 1
    assert path.with_name("records.json.corrupt").read_text() == "{not json"


def test_record_store_contract_is_abstract():
    with pytest.raises(TypeError):
        RecordStore()


@pytest.mark.asyncio
async def test_json_store_write_leaves_no_temp_files(tmp_path):
    path = tmp_path / "records.json"
    store = JsonRecordStore(path)
    await store.insert("nfc_tags", {"nfc_uid": "04A1"})
    await store.update("nfc_tags", Filter().eq("nfc_uid", "04A1"), {"is_bound": True})
    assert [p.name for p in tmp_path.iterdir()] == ["records.json"]


@pytest.mark.asyncio
async def test_json_store_failed_insert_is_rolled_back(tmp_path):
    path = tmp_path / "records.json"
    store = JsonRecordStore(path)
    path.mkdir()
    with pytest.raises(StoreError):
        await store.insert("nfc_tags", {"nfc_uid": "04A1"})
    assert await store.count("nfc_tags") == 0
    assert list(tmp_path.glob(".records.json.*.tmp")) == []


@pytest.mark.asyncio
async def test_json_store_failed_update_and_delete_are_rolled_back(tmp_path):
    path = tmp_path / "records.json"
    store = JsonRecordStore(path)
    await store.insert("nfc_tags", {"id": "t1", "nfc_uid": "04A1", "is_bound": False})
    path.unlink()
    path.mkdir()

    with pytest.raises(StoreError):
        await store.update("nfc_tags", Filter().eq("id", "t1"), {"is_bound": True})
    assert (await store.find_one("nfc_tags", Filter().eq("id", "t1")))["is_bound"] is False

    with pytest.raises(StoreError):
        await store.delete("nfc_tags", Filter().eq("id", "t1"))
    assert await store.count("nfc_tags") == 1


@pytest.mark.asyncio
async def test_json_store_directory_path_starts_empty(tmp_path):
    path = tmp_path / "records.json"
    path.mkdir()
    store = JsonRecordStore(path)
    assert await store.count("nfc_tags") == 0
