import pytest
import pytest_asyncio

from vg_backend.adapters.db.kv_store import KVStore
from vg_backend.features.annotations import AnnotationStore, DirConfig, VideoInfo
from vg_backend.features.annotations.store import NS_DIR_CONFIG, NS_LAST_POSITION, NS_VIDEO_INFO
from vg_shared import ErrorCode


@pytest_asyncio.fixture
async def store(tmp_path):
    kv = KVStore(tmp_path / "kv.sqlite", max_connections=2)
    assert (await kv.open()).ok
    try:
        yield AnnotationStore(kv)
    finally:
        await kv.aclose()


@pytest.mark.asyncio
async def test_done_defaults_to_false(store):
    assert await store.get_done("abc_1") is False
    assert (await store.set_done("abc_1", True)).ok
    assert await store.get_done("abc_1") is True
    await store.set_done("abc_1", False)
    assert await store.get_done("abc_1") is False


@pytest.mark.asyncio
async def test_last_position_roundtrip_and_delete(store):
    assert await store.get_last_position("abc_1") is None
    await store.set_last_position("abc_1", 42)
    assert await store.get_last_position("abc_1") == 42.0
    await store.delete_last_position("abc_1")
    assert await store.get_last_position("abc_1") is None


@pytest.mark.asyncio
async def test_non_numeric_position_is_dropped(store):
    await store.kv.set(NS_LAST_POSITION, "abc_1", "forty-two")
    assert await store.get_last_position("abc_1") is None
    res = await store.kv.get(NS_LAST_POSITION, "abc_1")
    assert res.ok and res.meta["found"] is False


@pytest.mark.asyncio
async def test_video_info_stored_by_alias(store):
    info = VideoInfo(codecName="hevc", width=3840, height=2160, duration=60.0)
    await store.set_video_info("abc_1", info)
    raw = await store.kv.get(NS_VIDEO_INFO, "abc_1")
    assert raw.data == {"codecName": "hevc", "width": 3840, "height": 2160, "duration": 60.0}
    assert await store.get_video_info("abc_1") == info


@pytest.mark.asyncio
async def test_corrupt_video_info_is_deleted(store):
    await store.kv.set(NS_VIDEO_INFO, "abc_1", {"codecName": "h264", "width": -5, "height": 1, "duration": 1})
    assert await store.get_video_info("abc_1") is None
    assert (await store.kv.get(NS_VIDEO_INFO, "abc_1")).meta["found"] is False


@pytest.mark.asyncio
async def test_dir_config_defaults_and_roundtrip(store):
    assert await store.get_dir_config("/videos") == DirConfig()
    cfg = DirConfig(sort="size", order="desc", view="grid", itemSize="large")
    await store.set_dir_config("/videos", cfg)
    assert await store.get_dir_config("/videos") == cfg


@pytest.mark.asyncio
async def test_invalid_dir_config_falls_back_to_default(store):
    await store.kv.set(NS_DIR_CONFIG, "/videos", {"sort": "rating"})
    assert await store.get_dir_config("/videos") == DirConfig()
    assert (await store.kv.get(NS_DIR_CONFIG, "/videos")).meta["found"] is False


@pytest.mark.asyncio
async def test_clear_namespace(store):
    await store.set_last_position("a_1", 1)
    await store.set_last_position("b_1", 2)
    await store.set_done("a_1", True)

    res = await store.clear_namespace(NS_LAST_POSITION)
    assert res.ok and res.data == 2
    assert await store.get_last_position("a_1") is None
    assert await store.get_done("a_1") is True


@pytest.mark.asyncio
async def test_clear_unknown_namespace(store):
    res = await store.clear_namespace("thumbnails")
    assert not res.ok
    assert res.code == ErrorCode.INVALID_INPUT.value
