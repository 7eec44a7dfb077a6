"""Async wrappers around the blocking file system calls used by the scanner."""

import asyncio
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class DirEntry:
    name: str
    path: Path
    is_dir: bool
    is_file: bool


def _list_dir(path: Path) -> List[DirEntry]:
    entries = []
    with os.scandir(path) as it:
        for entry in it:
            try:
                is_dir = entry.is_dir()
                is_file = not is_dir and entry.is_file()
            except OSError:
                # Broken entries are reported as neither and skipped by callers
                is_dir = is_file = False
            entries.append(DirEntry(entry.name, Path(entry.path), is_dir, is_file))
    return entries


async def stat(path: Path) -> os.stat_result:
    return await asyncio.to_thread(os.stat, path)


async def list_dir(path: Path) -> List[DirEntry]:
    """List a directory in the order the OS returns entries."""
    return await asyncio.to_thread(_list_dir, path)


async def read_bytes(path: Path) -> bytes:
    return await asyncio.to_thread(Path(path).read_bytes)
