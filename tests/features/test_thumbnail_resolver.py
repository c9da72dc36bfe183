import asyncio
import os

import pytest

from vg_backend.errors import ExternalToolFailure, PathNotAllowed


async def _entry(env, path):
    return await env.catalog.get_entry(str(path))


@pytest.mark.asyncio
async def test_file_thumbnail_is_generated_once(catalog_env):
    video = catalog_env.root / "ep1.mkv"
    video.write_bytes(b"\0" * 2048)

    first = await (await _entry(catalog_env, video)).generate_thumbnail()
    second = await (await _entry(catalog_env, video)).generate_thumbnail()
    assert first == second
    assert os.path.dirname(first) == str(catalog_env.thumbnail_dir)
    assert first.endswith(".jpg") and os.path.isfile(first)
    assert catalog_env.ffmpeg.calls == [str(video)]


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_generation(catalog_env):
    video = catalog_env.root / "ep1.mkv"
    video.write_bytes(b"\0" * 2048)
    catalog_env.ffmpeg.delay = 0.05
    resolver = catalog_env.catalog.thumbnails

    entries = [await _entry(catalog_env, video) for _ in range(8)]
    results = await asyncio.gather(*(e.generate_thumbnail() for e in entries))
    assert len(set(results)) == 1
    assert len(catalog_env.ffmpeg.calls) == 1
    assert resolver.inflight_count == 0


@pytest.mark.asyncio
async def test_generation_failure(catalog_env):
    video = catalog_env.root / "broken.mkv"
    video.write_bytes(b"\0" * 2048)
    catalog_env.ffmpeg.fail = True
    entry = await _entry(catalog_env, video)

    with pytest.raises(ExternalToolFailure) as excinfo:
        await entry.generate_thumbnail()
    assert "moov atom" in excinfo.value.diagnostic
    assert catalog_env.catalog.thumbnails.inflight_count == 0

    assert await catalog_env.catalog.thumbnails.resolve_or_placeholder(entry) == catalog_env.placeholder


@pytest.mark.asyncio
async def test_concurrent_waiters_see_the_failure(catalog_env):
    video = catalog_env.root / "broken.mkv"
    video.write_bytes(b"\0" * 2048)
    catalog_env.ffmpeg.fail = True
    catalog_env.ffmpeg.delay = 0.05

    entries = [await _entry(catalog_env, video) for _ in range(4)]
    results = await asyncio.gather(*(e.generate_thumbnail() for e in entries), return_exceptions=True)
    assert all(isinstance(r, ExternalToolFailure) for r in results)
    assert len(catalog_env.ffmpeg.calls) == 1


@pytest.mark.asyncio
async def test_empty_directory_gets_placeholder(catalog_env):
    empty = catalog_env.root / "Empty"
    empty.mkdir()
    assert await (await _entry(catalog_env, empty)).generate_thumbnail() == catalog_env.placeholder


@pytest.mark.asyncio
async def test_cover_jpg_preferred_over_png_and_children(catalog_env):
    show = catalog_env.root / "Show"
    show.mkdir()
    (show / "ep1.mkv").write_bytes(b"\0" * 2048)
    (show / "cover.png").write_bytes(b"png")
    entry = await _entry(catalog_env, show)
    assert await entry.generate_thumbnail() == str(show / "cover.png")

    (show / "cover.jpg").write_bytes(b"jpg")
    assert await (await _entry(catalog_env, show)).generate_thumbnail() == str(show / "cover.jpg")
    assert catalog_env.ffmpeg.calls == []


@pytest.mark.asyncio
async def test_directory_uses_first_file_in_natural_order(catalog_env):
    show = catalog_env.root / "Show"
    show.mkdir()
    (show / "Extras").mkdir()
    (show / "Extras" / "bonus.mkv").write_bytes(b"\0" * 2048)
    (show / "ep10.mkv").write_bytes(b"\0" * 2048)
    (show / "ep2.mkv").write_bytes(b"\0" * 2048)

    thumb = await (await _entry(catalog_env, show)).generate_thumbnail()
    assert thumb != catalog_env.placeholder
    assert catalog_env.ffmpeg.calls == [str(show / "ep2.mkv")]


@pytest.mark.asyncio
async def test_directory_recurses_into_subdirectories(catalog_env):
    show = catalog_env.root / "Show"
    (show / "Season 1").mkdir(parents=True)
    (show / "Season 1" / "ep1.mkv").write_bytes(b"\0" * 2048)

    thumb = await (await _entry(catalog_env, show)).generate_thumbnail()
    assert thumb != catalog_env.placeholder
    assert catalog_env.ffmpeg.calls == [str(show / "Season 1" / "ep1.mkv")]


@pytest.mark.asyncio
async def test_directory_falls_back_to_placeholder_when_children_fail(catalog_env):
    show = catalog_env.root / "Show"
    show.mkdir()
    (show / "ep1.mkv").write_bytes(b"\0" * 2048)
    catalog_env.ffmpeg.fail = True
    assert await (await _entry(catalog_env, show)).generate_thumbnail() == catalog_env.placeholder


@pytest.mark.asyncio
@pytest.mark.skipif(not hasattr(os, "symlink") or os.name == "nt", reason="symlinks")
async def test_symlink_cycle_ends_at_placeholder(catalog_env):
    loop_dir = catalog_env.root / "Loop"
    loop_dir.mkdir()
    (loop_dir / "again").symlink_to(loop_dir, target_is_directory=True)
    assert await (await _entry(catalog_env, loop_dir)).generate_thumbnail() == catalog_env.placeholder


@pytest.mark.asyncio
async def test_thumbnail_for_missing_path_is_placeholder(catalog_env):
    assert await catalog_env.catalog.thumbnail_for(str(catalog_env.root / "gone.mkv")) == catalog_env.placeholder


@pytest.mark.asyncio
async def test_thumbnail_for_outside_roots_raises(catalog_env, tmp_path):
    outside = tmp_path / "x.mkv"
    outside.write_bytes(b"\0")
    with pytest.raises(PathNotAllowed):
        await catalog_env.catalog.thumbnail_for(str(outside))


@pytest.mark.asyncio
async def test_waiter_takes_over_when_generating_caller_is_cancelled(catalog_env):
    video = catalog_env.root / "ep1.mkv"
    video.write_bytes(b"\0" * 2048)
    catalog_env.ffmpeg.delay = 0.2
    resolver = catalog_env.catalog.thumbnails

    owner = asyncio.ensure_future((await _entry(catalog_env, video)).generate_thumbnail())
    for _ in range(50):
        if resolver.inflight_count:
            break
        await asyncio.sleep(0.01)
    assert resolver.inflight_count == 1
    waiter = asyncio.ensure_future((await _entry(catalog_env, video)).generate_thumbnail())
    await asyncio.sleep(0.02)

    owner.cancel()
    with pytest.raises(asyncio.CancelledError):
        await owner
    thumb = await waiter

    assert thumb.endswith(".jpg") and os.path.isfile(thumb)
    assert resolver.inflight_count == 0
    assert len(catalog_env.ffmpeg.calls) == 2
    assert sorted(os.listdir(catalog_env.thumbnail_dir)) == [os.path.basename(thumb)]
