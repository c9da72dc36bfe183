import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest_asyncio

# Tests live at <repo>/tests/, so the repo root is one level up.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from vg_backend.adapters.db.kv_store import KVStore  # noqa: E402
from vg_backend.adapters.fs.stat_cache import StatCache  # noqa: E402
from vg_backend.features.annotations import AnnotationStore  # noqa: E402
from vg_backend.features.catalog import Catalog  # noqa: E402
from vg_backend.features.config import AppConfig  # noqa: E402
from vg_backend.features.thumbnails import ensure_placeholder  # noqa: E402
from vg_backend.shared import ErrorCode, Result  # noqa: E402


class ConfigHolder:
    """Mutable stand-in for `ConfigLifecycle.current`."""

    def __init__(self, **kwargs):
        self.value = AppConfig(**kwargs)

    def set(self, **kwargs) -> None:
        self.value = AppConfig(**kwargs)

    def __call__(self) -> AppConfig:
        return self.value


class FakeFFmpeg:
    def __init__(self, *, fail: bool = False, delay: float = 0.0):
        self.fail = fail
        self.delay = delay
        self.calls: list[str] = []

    async def generate_thumbnail(self, video_path: str, thumbnail_path: str) -> Result[str]:
        self.calls.append(video_path)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            return Result.Err(ErrorCode.FFMPEG_ERROR, "Error executing ffmpeg: 1", stderr="moov atom not found")
        Path(thumbnail_path).write_bytes(b"\xff\xd8\xff\xe0fake-jpeg")
        return Result.Ok(thumbnail_path)


class FakeFFProbe:
    def __init__(self, info: dict | None = None, *, fail: bool = False):
        self.info = info or {"codecName": "h264", "width": 1920, "height": 1080, "duration": 1425.5}
        self.fail = fail
        self.calls: list[str] = []

    async def get_video_info(self, path: str) -> Result[dict]:
        self.calls.append(path)
        if self.fail:
            return Result.Err(ErrorCode.FFPROBE_ERROR, "Error executing ffprobe", stderr="Invalid data")
        return Result.Ok(dict(self.info))


class FakeHistory:
    def __init__(self, snapshot: dict | None = None):
        self.data = dict(snapshot or {})
        self.calls = 0

    async def snapshot(self) -> Result[dict]:
        self.calls += 1
        return Result.Ok(dict(self.data))


@pytest_asyncio.fixture
async def catalog_env(tmp_path):
    """A catalog over `<tmp>/videos` with faked external tools."""
    root = tmp_path / "videos"
    root.mkdir()
    data_dir = tmp_path / "appdata"
    thumbnail_dir = data_dir / "thumbnails"
    thumbnail_dir.mkdir(parents=True)

    kv = KVStore(data_dir / "kv.sqlite", max_connections=2)
    opened = await kv.open()
    assert opened.ok, opened.error
    placeholder = ensure_placeholder(data_dir / "placeholder.png")

    config = ConfigHolder(folders=[str(root)])
    ffmpeg = FakeFFmpeg()
    ffprobe = FakeFFProbe()
    history = FakeHistory()
    opened_paths: list[str] = []

    def _opener(path: str) -> Result[dict]:
        opened_paths.append(path)
        return Result.Ok({"opened": True, "method": "test"})

    store = AnnotationStore(kv)
    catalog = Catalog(
        config,
        store=store,
        stat_cache=StatCache(60.0, 4),
        ffprobe=ffprobe,
        ffmpeg=ffmpeg,
        history_source=history,
        thumbnail_dir=str(thumbnail_dir),
        placeholder_path=placeholder,
        opener=_opener,
    )
    env = SimpleNamespace(
        root=root,
        catalog=catalog,
        config=config,
        kv=kv,
        store=store,
        ffmpeg=ffmpeg,
        ffprobe=ffprobe,
        history=history,
        placeholder=placeholder,
        thumbnail_dir=thumbnail_dir,
        opened=opened_paths,
    )
    try:
        yield env
    finally:
        await kv.aclose()
