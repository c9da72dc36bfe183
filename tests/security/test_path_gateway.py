import itertools
import os

import pytest

from vg_backend.errors import PathNotAllowed
from vg_backend.features.catalog.gateway import PathGateway
from vg_backend.features.config import AppConfig
from vg_shared import ErrorCode

pytestmark = pytest.mark.skipif(os.name == "nt", reason="POSIX path literals")


class _Holder:
    def __init__(self, folders):
        self.value = AppConfig(folders=folders)

    def __call__(self):
        return self.value


def _gateway(*folders):
    holder = _Holder(list(folders))
    return PathGateway(holder), holder


@pytest.mark.parametrize(
    "path",
    ["/videos", "/videos/", "/videos/Anime", "/videos/Anime/ep1.mkv", "/media/tv/show", "/videos/..hidden"],
)
def test_allows_roots_and_descendants(path):
    gateway, _ = _gateway("/videos", "/media/tv")
    assert gateway.is_allowed(path)


@pytest.mark.parametrize(
    "path",
    [
        "",
        "videos/Anime",
        "/videos/../etc/passwd",
        "/videos/Anime/../../etc",
        "/videos/./Anime",
        "/videos2/clip.mkv",
        "/etc/passwd",
        "/",
        "/media",
        "/videos/a\x00b",
    ],
)
def test_rejects_outside_relative_and_traversal(path):
    gateway, _ = _gateway("/videos", "/media/tv")
    assert not gateway.is_allowed(path)


def test_rejects_non_strings():
    gateway, _ = _gateway("/videos")
    assert not gateway.is_allowed(None)  # type: ignore[arg-type]


def test_assert_allowed_raises_forbidden():
    gateway, _ = _gateway("/videos")
    with pytest.raises(PathNotAllowed) as excinfo:
        gateway.assert_allowed("/etc/passwd")
    assert excinfo.value.code == ErrorCode.FORBIDDEN
    assert "is not in the config" in str(excinfo.value)


def test_answers_follow_config_replacement():
    gateway, holder = _gateway("/videos")
    assert gateway.is_allowed("/videos/a.mkv")
    holder.value = AppConfig(folders=["/movies"])
    assert not gateway.is_allowed("/videos/a.mkv")
    assert gateway.is_allowed("/movies/a.mkv")


def test_no_roots_allows_nothing():
    gateway, _ = _gateway()
    assert not gateway.is_allowed("/videos")


def test_every_allowed_path_normalizes_inside_a_root():
    roots = ["/videos", "/media/tv"]
    gateway, _ = _gateway(*roots)
    segments = ["", "videos", "media", "tv", "..", ".", "Anime", "ep1.mkv", "videos2"]
    checked = 0
    for combo in itertools.product(segments, repeat=4):
        candidate = "/" + "/".join(combo)
        if not gateway.is_allowed(candidate):
            continue
        checked += 1
        # POSIX normpath keeps a leading "//"; the kernel treats it as "/".
        normalized = "/" + os.path.normpath(candidate).lstrip("/")
        assert any(normalized == r or normalized.startswith(r + "/") for r in roots), candidate
    assert checked > 0


def test_is_top_level_and_previous_dir():
    gateway, _ = _gateway("/videos")
    assert gateway.is_top_level("/videos")
    assert gateway.is_top_level("/videos/")
    assert not gateway.is_top_level("/videos/Anime")
    assert gateway.previous_dir("/videos") == ""
    assert gateway.previous_dir("/videos/Anime") == "/videos"
    assert gateway.previous_dir("/videos/Anime/") == "/videos"
    with pytest.raises(PathNotAllowed):
        gateway.previous_dir("/etc")
