import sqlite3

import pytest

from vg_backend.adapters.db.kv_store import KVStore
from vg_shared import ErrorCode


@pytest.mark.asyncio
async def test_get_set_delete_roundtrip(tmp_path):
    store = KVStore(tmp_path / "kv.sqlite", max_connections=2)
    assert (await store.open()).ok
    try:
        missing = await store.get("done", "abc")
        assert missing.ok and missing.data is None and missing.meta["found"] is False

        assert (await store.set("done", "abc", True)).ok
        hit = await store.get("done", "abc")
        assert hit.data is True and hit.meta["found"] is True

        assert (await store.set("done", "abc", False)).ok
        assert (await store.get("done", "abc")).data is False

        deleted = await store.delete("done", "abc")
        assert deleted.ok and deleted.data is True
        assert (await store.delete("done", "abc")).data is False
    finally:
        await store.aclose()


@pytest.mark.asyncio
async def test_delete_prefix_only_touches_one_namespace(tmp_path):
    store = KVStore(tmp_path / "kv.sqlite")
    await store.open()
    try:
        for key in ("a", "b", "c"):
            await store.set("videoInfo", key, {"codecName": "h264"})
        await store.set("done", "a", True)

        removed = await store.delete_prefix("videoInfo")
        assert removed.ok and removed.data == 3
        assert (await store.keys("videoInfo")).data == []
        assert (await store.keys("done")).data == ["a"]
    finally:
        await store.aclose()


@pytest.mark.asyncio
async def test_undecodable_value_reports_parse_error(tmp_path):
    db_path = tmp_path / "kv.sqlite"
    store = KVStore(db_path)
    await store.open()
    try:
        with sqlite3.connect(db_path) as conn:
            conn.execute(
                "INSERT INTO kv(namespace, key, value, updated_at) VALUES (?, ?, ?, ?)",
                ("dirConfig", "/videos", "{not json", 0.0),
            )
        res = await store.get("dirConfig", "/videos")
        assert res.ok is False
        assert res.code == ErrorCode.PARSE_ERROR

        items = await store.items("dirConfig")
        assert items.ok and items.data == []
    finally:
        await store.aclose()


@pytest.mark.asyncio
async def test_operations_require_open(tmp_path):
    store = KVStore(tmp_path / "kv.sqlite")
    res = await store.get("done", "x")
    assert res.ok is False
    assert res.code == ErrorCode.SERVICE_UNAVAILABLE

    await store.open()
    await store.aclose()
    assert (await store.set("done", "x", True)).code == ErrorCode.SERVICE_UNAVAILABLE


@pytest.mark.asyncio
async def test_set_rejects_unserializable_values(tmp_path):
    store = KVStore(tmp_path / "kv.sqlite")
    await store.open()
    try:
        res = await store.set("done", "x", object())
        assert res.ok is False
        assert res.code == ErrorCode.INVALID_INPUT
    finally:
        await store.aclose()
