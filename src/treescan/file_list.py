"""Builds shallow trees from an explicit list of files."""

import logging
import posixpath
import stat as stat_module
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from . import fs
from .errors import FileSizeLimitError
from .models import DirectoryInfo, ScanOptions, SkippedEntry, SkipReason
from .paths import PathLike, relative_posix
from .patterns import Verdict
from .scanner import EntryFilter, Scanner, build_file_info, record_skip

logger = logging.getLogger(__name__)


class FileListProcessor:
    """Turns a multi-selection of files into one DirectoryInfo per parent.

    Directories in the input are not expanded. A file that cannot be used is
    logged and left out; the call as a whole does not fail because of it.
    """

    def __init__(self, scanner: Optional[Scanner] = None):
        self.scanner = scanner or Scanner()

    async def process(self, file_list: Iterable[PathLike], options: ScanOptions) -> List[DirectoryInfo]:
        directories, _ = await self.process_with_report(file_list, options)
        return directories

    async def process_with_report(
        self,
        file_list: Iterable[PathLike],
        options: ScanOptions,
    ) -> Tuple[List[DirectoryInfo], List[SkippedEntry]]:
        groups = self.scanner.resolver.group_by_root(file_list)
        by_parent: Dict[Tuple[Path, str], DirectoryInfo] = {}
        skipped: List[SkippedEntry] = []

        for root, paths in groups.items():
            rules = await self.scanner.load_rules(root, options)
            entry_filter = EntryFilter(options, rules)
            seen = set()

            for path in paths:
                if path in seen:
                    continue
                seen.add(path)
                relative_path = relative_posix(path, root)
                result = await self._process_file(path, relative_path, entry_filter, options)
                if isinstance(result, SkippedEntry):
                    skipped.append(result)
                    continue

                parent_rel = posixpath.dirname(relative_path) or "."
                key = (root, parent_rel)
                if key not in by_parent:
                    by_parent[key] = DirectoryInfo(locator=path.parent, relative_path=parent_rel)
                by_parent[key].files.append(result)

        logger.info(f"Processed {sum(len(g) for g in groups.values())} selected files into {len(by_parent)} directories")
        return list(by_parent.values()), skipped

    async def _process_file(self, path: Path, relative_path: str, entry_filter: EntryFilter, options: ScanOptions):
        if entry_filter.path_verdict(relative_path) is not Verdict.KEEP:
            return record_skip(relative_path, SkipReason.EXCLUDED)

        try:
            st = await fs.stat(path)
            if not stat_module.S_ISREG(st.st_mode):
                return record_skip(relative_path, SkipReason.FAILED, "not a regular file")
            if entry_filter.exceeds_size(st.st_size):
                error = FileSizeLimitError(relative_path, st.st_size, options.max_file_size_bytes)
                return record_skip(relative_path, SkipReason.TOO_LARGE, str(error))
            data = await fs.read_bytes(path)
        except OSError as e:
            return record_skip(relative_path, SkipReason.UNREADABLE, str(e))

        if entry_filter.is_binary(relative_path, data):
            return record_skip(relative_path, SkipReason.BINARY)

        try:
            return await build_file_info(path, relative_path, data, st.st_size, options, self.scanner.dependency_scanner)
        except Exception as e:
            return record_skip(relative_path, SkipReason.FAILED, str(e))

