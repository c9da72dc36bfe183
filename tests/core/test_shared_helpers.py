import logging
import os

import pytest

from vg_shared import ErrorCode, Result, format_timestamp, is_video_file, resolve_log_level, sanitize_error_message


def test_format_timestamp_is_iso_utc_with_millis():
    assert format_timestamp(0) == "1970-01-01T00:00:00.000Z"
    assert format_timestamp(1.5) == "1970-01-01T00:00:01.500Z"


def test_is_video_file_is_case_insensitive():
    assert is_video_file("ep1.MKV")
    assert is_video_file("/videos/Anime/clip.mp4")
    assert not is_video_file("notes.txt")
    assert not is_video_file("archive.rar")
    assert not is_video_file("noext")


def test_resolve_log_level(monkeypatch):
    monkeypatch.delenv("VG_LOG_LEVEL", raising=False)
    monkeypatch.delenv("VG_DEV", raising=False)
    assert resolve_log_level() == logging.INFO

    monkeypatch.setenv("VG_DEV", "1")
    assert resolve_log_level() == logging.DEBUG

    monkeypatch.setenv("VG_LOG_LEVEL", "warning")
    assert resolve_log_level() == logging.WARNING

    monkeypatch.setenv("VG_LOG_LEVEL", "chatty")
    with pytest.raises(ValueError):
        resolve_log_level()


def test_result_err_normalizes_enum_codes():
    res = Result.Err(ErrorCode.FORBIDDEN, "nope", path="x")
    assert res.ok is False
    assert res.code == "FORBIDDEN"
    assert res.meta == {"path": "x"}


def test_sanitize_error_message_masks_paths():
    msg = sanitize_error_message(Exception("Path /home/me/videos/secret.mkv does not exist."), "Failed")
    assert "/home/me" not in msg
    assert msg.startswith("Failed")


def test_sanitize_error_message_keeps_paths_under_visible_roots(monkeypatch):
    monkeypatch.delenv("VG_DEBUG", raising=False)
    root = os.path.join(os.sep, "srv", "videos")
    inside = os.path.join(root, "Show", "ep1.mkv")
    msg = sanitize_error_message(
        Exception(f"Cannot open {inside} (log in /var/lib/videogrid/kv.sqlite)"),
        "Failed to open file",
        visible_roots=[root],
    )
    assert inside in msg
    assert "/var/lib" not in msg
    assert "[path]" in msg


def test_sanitize_error_message_debug_mode_is_unmasked(monkeypatch):
    monkeypatch.setenv("VG_DEBUG", "1")
    assert sanitize_error_message(Exception("bad /etc/thing"), "Failed") == "Failed: bad /etc/thing"
