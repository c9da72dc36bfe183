import os

import pytest

from vg_backend.adapters.fs.stat_cache import FileInfo, StatCache


class _Clock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def _counting_stat():
    calls = {"n": 0}

    def _stat(path):
        calls["n"] += 1
        return os.stat(path)

    return _stat, calls


def test_stat_is_memoized_until_ttl(tmp_path):
    target = tmp_path / "a.mkv"
    target.write_bytes(b"x" * 2048)
    clock = _Clock()
    stat_fn, calls = _counting_stat()
    cache = StatCache(60.0, 4, clock=clock, stat_fn=stat_fn)

    first = cache.stat(str(target))
    assert isinstance(first, FileInfo)
    assert first.size == 2048 and first.is_file and not first.is_dir

    clock.now += 59.0
    assert cache.stat(str(target)) is first
    assert calls["n"] == 1

    clock.now += 1.0
    cache.stat(str(target))
    assert calls["n"] == 2


def test_invalidate_forces_refetch(tmp_path):
    target = tmp_path / "a.mkv"
    target.write_bytes(b"x")
    stat_fn, calls = _counting_stat()
    cache = StatCache(60.0, 4, clock=_Clock(), stat_fn=stat_fn)

    cache.stat(str(target))
    target.write_bytes(b"x" * 5000)
    assert cache.stat(str(target)).size == 1

    cache.invalidate(str(target))
    assert cache.stat(str(target)).size == 5000
    assert calls["n"] == 2

    cache.invalidate_all()
    assert len(cache) == 0


def test_errors_are_not_cached(tmp_path):
    missing = tmp_path / "later.mkv"
    cache = StatCache(60.0, 4, clock=_Clock())
    with pytest.raises(FileNotFoundError):
        cache.stat(str(missing))
    missing.write_bytes(b"ok")
    assert cache.stat(str(missing)).size == 2


@pytest.mark.asyncio
async def test_astat_shares_cache_with_stat(tmp_path):
    target = tmp_path / "dir"
    target.mkdir()
    stat_fn, calls = _counting_stat()
    cache = StatCache(60.0, 2, clock=_Clock(), stat_fn=stat_fn)

    info = await cache.astat(str(target))
    assert info.is_dir and not info.is_file
    assert cache.stat(str(target)) is info
    assert calls["n"] == 1
