"""Workspace root resolution for multi-root workspaces."""

import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

PathLike = Union[str, Path]


def normalize(path: PathLike) -> str:
    """Return ``path`` in the internal form used for root comparison.

    Separators become ``/``, trailing separators are dropped and case is folded
    where the host file system is case-insensitive (``os.path.normcase``).
    """
    text = os.path.normcase(os.path.normpath(str(path)))
    text = text.replace("\\", "/")
    if len(text) > 1:
        text = text.rstrip("/")
    return text


def relative_posix(path: PathLike, root: PathLike) -> str:
    """Path of ``path`` relative to ``root`` with ``/`` separators.

    Returns ``"."`` when both point at the same directory.
    """
    rel = os.path.relpath(os.path.abspath(str(path)), os.path.abspath(str(root)))
    rel = rel.replace("\\", "/")
    return rel.lstrip("/") or "."


class PathResolver:
    """Maps paths to the workspace root that owns them."""

    def __init__(self, roots: Iterable[PathLike] = (), default_root: Optional[PathLike] = None):
        self.roots: List[Path] = [Path(os.path.abspath(str(r))) for r in roots]
        if default_root is not None:
            self.default_root = Path(os.path.abspath(str(default_root)))
        elif self.roots:
            self.default_root = self.roots[0]
        else:
            self.default_root = Path.cwd()

    def add_root(self, root: PathLike) -> Path:
        root = Path(os.path.abspath(str(root)))
        if root not in self.roots:
            self.roots.append(root)
        return root

    def absolute(self, path: PathLike) -> Path:
        """Resolve a relative path against the default root."""
        path = Path(path)
        if not path.is_absolute():
            path = self.default_root / path
        return Path(os.path.abspath(str(path)))

    def resolve_root_for(self, path: PathLike) -> Path:
        """Return the most specific known root containing ``path``.

        Matching happens on whole path segments so ``/ws/project`` never
        claims ``/ws/project-extended/...``. Falls back to the default root.
        """
        query = normalize(self.absolute(path))
        best: Optional[Path] = None
        best_len = -1

        for root in self.roots:
            candidate = normalize(root)
            prefix = candidate if candidate.endswith("/") else candidate + "/"
            if query == candidate or query.startswith(prefix):
                if len(candidate) > best_len:
                    best = root
                    best_len = len(candidate)

        return best if best is not None else self.default_root

    def group_by_root(self, paths: Iterable[PathLike]) -> Dict[Path, List[Path]]:
        """Group paths by owning root, keeping input order inside each group."""
        groups: Dict[Path, List[Path]] = {}
        for path in paths:
            absolute = self.absolute(path)
            groups.setdefault(self.resolve_root_for(absolute), []).append(absolute)
        return groups
