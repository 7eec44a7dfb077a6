"""Per-root cache of ``.gitignore`` and ``.vscodeignore`` rules."""

import asyncio
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from .models import IgnoreKind, IgnoreRuleSet
from .paths import normalize

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, IgnoreKind]


def parse_ignore_lines(lines: Iterable[str]) -> IgnoreRuleSet:
    """Split ignore-file lines into primary and negated patterns.

    Blank lines and ``#`` comments are dropped; a leading ``!`` marks a
    negation and is stripped.
    """
    patterns: List[str] = []
    negated: List[str] = []
    for line in lines:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        if line.startswith('!'):
            pattern = line[1:].strip()
            if pattern:
                negated.append(pattern)
        else:
            patterns.append(line)
    return IgnoreRuleSet(patterns=patterns, negated_patterns=negated, loaded=True)


class IgnoreRuleStore:
    """Lazily loaded ignore rules keyed by ``(workspace root, kind)``.

    Entries are replaced whole, never edited in place, so a reader holding a
    rule set never sees it half cleared. The lock guards the map because
    invalidations arrive from the file watcher thread.
    """

    def __init__(self):
        self._entries: Dict[CacheKey, IgnoreRuleSet] = {}
        self._generations: Dict[CacheKey, int] = {}
        # bumped by every invalidation that spans all roots
        self._epoch = 0
        self._lock = threading.Lock()

    def _key(self, root: Union[str, Path], kind: IgnoreKind) -> CacheKey:
        return normalize(root), kind

    def get(self, root: Union[str, Path], kind: IgnoreKind) -> IgnoreRuleSet:
        """Current rule set, or an unloaded empty one."""
        with self._lock:
            return self._entries.get(self._key(root, kind)) or IgnoreRuleSet()

    def is_loaded(self, root: Union[str, Path], kind: IgnoreKind) -> bool:
        return self.get(root, kind).loaded

    def rules_for(self, root: Union[str, Path]) -> Dict[IgnoreKind, IgnoreRuleSet]:
        return {kind: self.get(root, kind) for kind in IgnoreKind}

    @staticmethod
    def _read(path: Path) -> IgnoreRuleSet:
        try:
            with open(path, 'r', encoding='utf-8', errors='replace') as f:
                return parse_ignore_lines(f)
        except FileNotFoundError:
            return IgnoreRuleSet(loaded=True)
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}", exc_info=True)
            return IgnoreRuleSet(loaded=True)

    async def ensure_loaded(self, root: Union[str, Path], kind: IgnoreKind) -> IgnoreRuleSet:
        """Load the ignore file at ``root`` unless already cached.

        A missing or unreadable file yields empty, loaded rules.
        """
        existing = self.get(root, kind)
        if existing.loaded:
            return existing

        key = self._key(root, kind)
        with self._lock:
            generation = (self._epoch, self._generations.get(key, 0))

        path = Path(root) / kind.file_name
        rule_set = await asyncio.to_thread(self._read, path)

        with self._lock:
            # an invalidation during the read makes this result stale
            if (self._epoch, self._generations.get(key, 0)) == generation:
                self._entries[key] = rule_set

        logger.debug(
            f"Loaded {kind.file_name} for {root}: {len(rule_set.patterns)} patterns, "
            f"{len(rule_set.negated_patterns)} negations"
        )
        return rule_set

    def invalidate(self, root: Optional[Union[str, Path]] = None, kind: Optional[IgnoreKind] = None):
        """Drop cached rules for one root (all roots if ``root`` is None).

        The next scan needing the rules reads them from disk again.
        """
        with self._lock:
            if root is None:
                self._epoch += 1
                keys = [k for k in self._entries if kind is None or k[1] == kind]
            else:
                root_key = normalize(root)
                kinds = [kind] if kind is not None else list(IgnoreKind)
                keys = [(root_key, k) for k in kinds]
            for key in keys:
                self._entries.pop(key, None)
                self._generations[key] = self._generations.get(key, 0) + 1
        logger.debug(f"Invalidated ignore rules for root={root} kind={kind}")

    def invalidate_path(self, path: Union[str, Path]) -> Optional[CacheKey]:
        """Invalidate the rules backed by the ignore file at ``path``.

        Returns the affected key, or None if ``path`` is not an ignore file.
        """
        name = os.path.basename(str(path))
        kind = next((k for k in IgnoreKind if k.file_name == name), None)
        if kind is None:
            return None
        root = os.path.dirname(os.path.abspath(str(path)))
        self.invalidate(root, kind)
        return normalize(root), kind
