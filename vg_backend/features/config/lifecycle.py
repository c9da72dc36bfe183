"""
Config file lifecycle: initial load, hot reload and root directory checks.

The current configuration is a frozen `AppConfig` held in a single slot.
Readers take the reference once per operation and keep using it; only the
reload task (running on the event loop) replaces it.

Usage:
    lifecycle = ConfigLifecycle(config_path)
    lifecycle.load()
    await lifecycle.start()
    ...
    await lifecycle.stop()
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path
from threading import Lock
from typing import Any, Optional

from watchdog.events import FileSystemEventHandler
from watchdog.observers import Observer

from ...config import CONFIG_DEBOUNCE_MS
from ...errors import ConfigInvalid
from ...shared import get_logger, log_success
from .schema import AppConfig, default_config_text, parse_config_text

logger = get_logger(__name__)


class _ConfigFileHandler(FileSystemEventHandler):
    """Forwards create/modify/move events that touch the config file to the loop."""

    def __init__(self, config_path: Path, on_change, loop: asyncio.AbstractEventLoop):
        super().__init__()
        self._key = os.path.normcase(str(config_path))
        self._on_change = on_change
        self._loop = loop

    def _matches(self, path: Any) -> bool:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        return bool(path) and os.path.normcase(os.path.abspath(str(path))) == self._key

    def _notify(self) -> None:
        try:
            self._loop.call_soon_threadsafe(self._on_change)
        except RuntimeError:
            # Loop already closed during shutdown.
            return

    def on_created(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._notify()

    def on_modified(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self._notify()

    def on_moved(self, event):
        if not event.is_directory and self._matches(getattr(event, "dest_path", "")):
            self._notify()


class ConfigLifecycle:
    """Owns the user configuration snapshot and keeps it in sync with the file."""

    def __init__(self, config_path: str | Path, *, debounce_ms: int = CONFIG_DEBOUNCE_MS):
        self.config_path = Path(config_path).absolute()
        self._debounce_s = max(0, int(debounce_ms)) / 1000.0
        self._current: Optional[AppConfig] = None
        self._observer: Any | None = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reload_timer: Optional[asyncio.TimerHandle] = None
        self._reload_task: Optional[asyncio.Task] = None
        self._lock = Lock()
        self.reload_count = 0

    def current(self) -> AppConfig:
        """Return the current snapshot. `load()` must have succeeded first."""
        snapshot = self._current
        if snapshot is None:
            raise RuntimeError("Configuration has not been loaded")
        return snapshot

    @property
    def is_loaded(self) -> bool:
        return self._current is not None

    def _read_text(self) -> str:
        return self.config_path.read_text(encoding="utf-8")

    def _write_template(self) -> None:
        self.config_path.parent.mkdir(parents=True, exist_ok=True)
        self.config_path.write_text(default_config_text(), encoding="utf-8")
        logger.info("Wrote default config template to %s", self.config_path)

    def load(self) -> AppConfig:
        """
        Load the config file at startup, writing a default template if missing.

        Raises:
            ConfigInvalid: the file exists but cannot be read or validated.
        """
        if not self.config_path.exists():
            self._write_template()
        try:
            text = self._read_text()
        except (OSError, UnicodeDecodeError) as exc:
            raise ConfigInvalid(f"Failed to read config file: {exc}") from exc
        config = parse_config_text(text)
        self._current = config
        logger.info("Loaded config with %d folder(s)", len(config.folders))
        self.check_dirs(config)
        return config

    async def reload(self) -> bool:
        """
        Re-read the config file and swap the snapshot on success.

        An unreadable or invalid file is logged and the previous snapshot stays
        in effect. Returns True when the snapshot was replaced.
        """
        try:
            text = await asyncio.to_thread(self._read_text)
            config = parse_config_text(text)
        except (OSError, UnicodeDecodeError, ConfigInvalid) as exc:
            logger.error("Config reload failed, keeping previous config: %s", exc)
            return False
        self._current = config
        self.reload_count += 1
        log_success(logger, f"Config reloaded ({len(config.folders)} folder(s))")
        await asyncio.to_thread(self.check_dirs, config)
        return True

    def check_dirs(self, config: Optional[AppConfig] = None) -> list[str]:
        """Log and return roots that are missing or not directories."""
        config = config or self.current()
        problems: list[str] = []
        for folder in config.folders:
            if not os.path.exists(folder):
                logger.warning("Configured folder does not exist: %s", folder)
                problems.append(folder)
            elif not os.path.isdir(folder):
                logger.warning("Configured folder is not a directory: %s", folder)
                problems.append(folder)
        return problems

    def _on_file_changed(self) -> None:
        """Runs on the loop thread; restarts the debounce timer."""
        if self._loop is None:
            return
        if self._reload_timer is not None:
            self._reload_timer.cancel()
        self._reload_timer = self._loop.call_later(self._debounce_s, self._spawn_reload)

    def _spawn_reload(self) -> None:
        self._reload_timer = None
        if self._reload_task is not None and not self._reload_task.done():
            # A reload is running; schedule another pass after it.
            self._reload_task.add_done_callback(lambda _t: self._on_file_changed())
            return
        self._reload_task = asyncio.ensure_future(self.reload())

    async def start(self, loop: asyncio.AbstractEventLoop | None = None) -> bool:
        """Start watching the config file's directory. Returns False if already running."""
        with self._lock:
            if self._observer is not None:
                return False
            self._loop = loop or asyncio.get_running_loop()
            handler = _ConfigFileHandler(self.config_path, self._on_file_changed, self._loop)
            observer = Observer()
            observer.daemon = True
            try:
                observer.schedule(handler, str(self.config_path.parent), recursive=False)
                observer.start()
            except OSError as exc:
                logger.warning("Config watcher unavailable for %s: %s", self.config_path.parent, exc)
                return False
            self._observer = observer
        logger.info("Watching config file %s", self.config_path)
        return True

    async def stop(self) -> None:
        """Stop the watcher and wait for an in-progress reload. Safe to call twice."""
        with self._lock:
            observer = self._observer
            self._observer = None
        if self._reload_timer is not None:
            self._reload_timer.cancel()
            self._reload_timer = None
        if observer is not None:
            observer.stop()
            await asyncio.to_thread(observer.join, 2.0)
            logger.info("Config watcher stopped")
        task = self._reload_task
        self._reload_task = None
        if task is not None and not task.done():
            await task
