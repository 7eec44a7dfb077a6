"""Ignore-file watching that keeps the rule cache coherent."""

import logging
import os
import threading
from pathlib import Path
from typing import Callable, Dict, Optional, Union

from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer

from .ignore import IgnoreRuleStore
from .models import IgnoreKind
from .paths import normalize

logger = logging.getLogger(__name__)

WATCHED_EVENTS = ('created', 'modified', 'deleted', 'moved')


class IgnoreFileWatcher(FileSystemEventHandler):
    """Invalidates cached ignore rules when an ignore file changes.

    One non-recursive watch is scheduled per workspace root; only events on
    ``<root>/.gitignore`` and ``<root>/.vscodeignore`` have any effect.
    """

    def __init__(
        self,
        store: IgnoreRuleStore,
        on_invalidate: Optional[Callable[[Path, IgnoreKind], None]] = None,
    ):
        super().__init__()
        self.store = store
        self.on_invalidate = on_invalidate
        self.observer: Optional[Observer] = None
        self._roots: Dict[str, Path] = {}
        self._lock = threading.Lock()

    @property
    def roots(self):
        return list(self._roots.values())

    def watch(self, root: Union[str, Path]) -> bool:
        """Register a root; returns False if it was already watched."""
        root = Path(os.path.abspath(str(root)))
        key = normalize(root)
        with self._lock:
            if key in self._roots:
                return False
            self._roots[key] = root
            observer = self.observer
        if observer is not None:
            self._schedule(observer, root)
        return True

    def _schedule(self, observer: Observer, root: Path):
        if not root.is_dir():
            logger.warning(f"Workspace root {root} does not exist, not watching it")
            return
        try:
            observer.schedule(self, str(root), recursive=False)
            logger.debug(f"Watching ignore files in {root}")
        except OSError as e:
            logger.warning(f"Could not watch {root}: {e}")

    def _classify(self, path: Union[str, bytes]) -> Optional[tuple]:
        if isinstance(path, bytes):
            path = os.fsdecode(path)
        name = os.path.basename(path)
        kind = next((k for k in IgnoreKind if k.file_name == name), None)
        if kind is None:
            return None
        root = self._roots.get(normalize(os.path.dirname(os.path.abspath(path))))
        if root is None:
            return None
        return root, kind

    def handle_path(self, path: Union[str, bytes]) -> bool:
        """Invalidate the rules for ``path`` if it is a watched ignore file."""
        target = self._classify(path)
        if target is None:
            return False
        root, kind = target
        self.store.invalidate(root, kind)
        logger.info(f"{kind.file_name} changed in {root}, rules will be reloaded")
        if self.on_invalidate is not None:
            self.on_invalidate(root, kind)
        return True

    def on_any_event(self, event: FileSystemEvent):
        if event.is_directory or event.event_type not in WATCHED_EVENTS:
            return
        logger.debug(f"Event received: {event.event_type} for {event.src_path}")
        self.handle_path(event.src_path)
        dest_path = getattr(event, 'dest_path', None)
        if dest_path:
            self.handle_path(dest_path)

    def start(self):
        """Start the observer for every registered root."""
        if self.observer is not None:
            return
        observer = Observer()
        for root in self.roots:
            self._schedule(observer, root)
        observer.start()
        self.observer = observer
        logger.debug(f"Ignore file watcher started for {len(self._roots)} root(s)")

    def stop(self):
        if self.observer:
            try:
                self.observer.stop()
                self.observer.join(timeout=5)
            except RuntimeError as e:
                logger.warning(f"Error stopping observer: {e}")
            finally:
                self.observer = None

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.stop()
