"""File-change signal: watchdog events -> debounced sync pass.

The watchdog observer runs in its own thread. Events are handed over to the
asyncio loop with ``call_soon_threadsafe``; a burst of events inside the
debounce window collapses into one pass, which then runs in a worker thread
so the loop stays responsive.
"""
from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Optional

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from sshed.core.runtime import RuntimeConfig
from sshed.services.sync import SyncService, is_glob

logger = logging.getLogger(__name__)


class SyncTrigger:
    def __init__(self, sync: SyncService, debounce_seconds: float = 0.5) -> None:
        self.sync = sync
        self.debounce_seconds = debounce_seconds
        self.loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Optional[asyncio.Task] = None
        self._running: set[asyncio.Task] = set()

    def bind(self, loop: asyncio.AbstractEventLoop) -> None:
        self.loop = loop

    def signal(self, reason: str = "watch") -> None:
        """Requests a pass. Safe to call from any thread."""
        loop = self.loop
        if loop is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._schedule, reason)

    def _schedule(self, reason: str) -> None:
        if self._pending and not self._pending.done():
            self._pending.cancel()
        self._pending = asyncio.create_task(self._debounced(reason))

    async def _debounced(self, reason: str) -> None:
        await asyncio.sleep(self.debounce_seconds)
        # Past the debounce window: this pass is committed, later signals
        # queue a new one behind it instead of cancelling it.
        task = asyncio.current_task()
        if task is self._pending:
            self._pending = None
        if task is not None:
            self._running.add(task)
        try:
            await asyncio.to_thread(self.sync.run, reason)
        except Exception:
            logger.exception("Sync pass failed")
        finally:
            self._running.discard(task)

    async def drain(self) -> None:
        """Cancels a pending pass and waits for running ones."""
        if self._pending and not self._pending.done():
            self._pending.cancel()
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)


class ConfigEventHandler(FileSystemEventHandler):
    def __init__(self, watcher: ConfigWatcher) -> None:
        self.watcher = watcher

    def _handle(self, event: FileSystemEvent) -> None:
        if event.is_directory:
            return
        paths = [Path(str(event.src_path))]
        dest = getattr(event, "dest_path", None)
        if dest:
            paths.append(Path(str(dest)))
        for path in paths:
            if self.watcher.handle_path(path):
                return

    def on_modified(self, event: FileSystemEvent) -> None:
        self._handle(event)

    def on_created(self, event: FileSystemEvent) -> None:
        self._handle(event)

    def on_moved(self, event: FileSystemEvent) -> None:
        self._handle(event)

    def on_deleted(self, event: FileSystemEvent) -> None:
        self._handle(event)


class ConfigWatcher:
    """Watches the ssh config source(s) and the app config file.

    A change to a source signals a pass. A change to the app config reloads
    the runtime snapshot, moves the watches if the ssh config path changed,
    and signals a pass.
    """

    def __init__(self, runtime: RuntimeConfig, trigger: SyncTrigger) -> None:
        self.runtime = runtime
        self.trigger = trigger
        self.observer = None
        self.handler = ConfigEventHandler(self)
        self._ssh_path: Optional[Path] = None

    def start(self) -> None:
        self.observer = Observer()
        self._schedule_watches()
        self.observer.start()
        logger.info(f"Watching {self._ssh_path} for changes")

    def stop(self) -> None:
        if self.observer is not None:
            self.observer.stop()
            self.observer.join(timeout=5)
            self.observer = None

    def _schedule_watches(self) -> None:
        self._ssh_path = self.runtime.ssh_config_path()
        dirs: dict[Path, bool] = {}
        if is_glob(self._ssh_path):
            dirs[self._ssh_path.parent.resolve()] = True
        else:
            # Editors often replace the file, so watch its directory
            dirs[self._ssh_path.parent.resolve()] = False
            # and the directory of a symlink target too
            dirs.setdefault(self._ssh_path.resolve().parent, False)
        if self.runtime.config_file is not None:
            parent = self.runtime.config_file.resolve().parent
            dirs[parent] = dirs.get(parent, False)
        for directory, recursive in dirs.items():
            if directory.is_dir():
                self.observer.schedule(self.handler, str(directory), recursive=recursive)
            else:
                logger.warning(f"Cannot watch missing directory {directory}")

    def is_source(self, path: Path) -> bool:
        ssh_path = self._ssh_path or self.runtime.ssh_config_path()
        path = path.resolve()
        if is_glob(ssh_path):
            return path.is_relative_to(ssh_path.parent.resolve())
        return path == ssh_path.resolve()

    def handle_path(self, path: Path) -> bool:
        config_file = self.runtime.config_file
        if config_file is not None and path.resolve() == config_file.resolve():
            if self.runtime.reload():
                if self.runtime.ssh_config_path() != self._ssh_path and self.observer is not None:
                    self.observer.unschedule_all()
                    self._schedule_watches()
                self.trigger.signal("config-reload")
            return True
        if self.is_source(path):
            self.trigger.signal("watch")
            return True
        return False
