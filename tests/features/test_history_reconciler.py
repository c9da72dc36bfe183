import os

import pytest

from vg_backend.adapters.tools.media_history import rfe_hash
from vg_backend.features.catalog import Entry


async def _video_entry(env, name="ep1.mkv"):
    video = env.root / name
    video.write_bytes(b"\0" * 2048)
    return Entry(env.catalog, name, False, True, str(video))


@pytest.mark.asyncio
async def test_external_history_wins_and_is_written_through(catalog_env):
    entry = await _video_entry(catalog_env)
    identity = await entry.get_identity()
    await catalog_env.store.set_last_position(identity, 10.0)

    snapshot = {rfe_hash(entry.absolute_path): 42.0}
    assert await entry.get_last_position(snapshot) == 42.0
    assert await catalog_env.store.get_last_position(identity) == 42.0


@pytest.mark.asyncio
async def test_cached_value_used_when_history_lacks_path(catalog_env):
    entry = await _video_entry(catalog_env)
    await catalog_env.store.set_last_position(await entry.get_identity(), 7.0)
    assert await entry.get_last_position({"someOtherHash": 3.0}) == 7.0
    assert await entry.get_last_position(None) == 7.0


@pytest.mark.asyncio
async def test_unknown_everywhere_is_minus_one(catalog_env):
    entry = await _video_entry(catalog_env)
    assert await entry.get_last_position({}) == -1


@pytest.mark.asyncio
async def test_clear_last_position_cache(catalog_env):
    entry = await _video_entry(catalog_env)
    await catalog_env.store.set_last_position(await entry.get_identity(), 7.0)
    await entry.clear_last_position_cache()
    assert await entry.get_last_position({}) == -1


@pytest.mark.asyncio
async def test_listing_with_extra_info_uses_one_snapshot(catalog_env):
    entry = await _video_entry(catalog_env)
    catalog_env.history.data = {rfe_hash(entry.absolute_path): 42.0}

    records = await catalog_env.catalog.list_display_records(str(catalog_env.root), include_extra=True)
    assert catalog_env.history.calls == 1
    assert records[0]["extraInfo"]["lastPosition"] == 42.0
    assert records[0]["extraInfo"]["videoInfo"]["codecName"] == "h264"
    assert os.path.basename(records[0]["absolutePath"]) == "ep1.mkv"
