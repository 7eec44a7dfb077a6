"""Recursive scanner building DirectoryInfo trees and size estimates."""

import inspect
import logging
import os
import posixpath
import stat as stat_module
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Set, Union

from . import fs
from .analyzer import scan_imports
from .binary import has_binary_extension, is_binary_content
from .errors import DirectoryNotFoundError, FileReadError, FileSizeLimitError, ScanError
from .ignore import IgnoreRuleStore
from .languages import detect_language
from .models import (
    DirectoryInfo,
    FileInfo,
    IgnoreKind,
    IgnoreRuleSet,
    ScanOptions,
    ScanReport,
    SizeEstimate,
    SkippedEntry,
    SkipReason,
)
from .paths import PathLike, PathResolver, relative_posix
from .patterns import Verdict, decide_below, decide_path, negation_may_reach

logger = logging.getLogger(__name__)

DependencyScanner = Callable[[Path, str, str], Union[List[str], Awaitable[List[str]]]]


def join_relative(parent: str, name: str) -> str:
    return name if parent in ("", ".") else f"{parent}/{name}"


class EntryFilter:
    """The include/skip decisions shared by every traversal.

    ``scan``, ``estimate_size`` and the file list processor all go through
    this one object so they cannot disagree about which files survive.
    """

    def __init__(
        self,
        options: ScanOptions,
        rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
        selected_path: Optional[str] = None,
    ):
        self.options = options
        self.rules = dict(rules or {})
        self.selected_path = selected_path

    def verdict(self, relative_path: str, parent: Verdict = Verdict.KEEP) -> Verdict:
        """Verdict for an entry whose directory was classified ``parent``."""
        return decide_below(relative_path, parent, self.options, self.rules, self.selected_path)

    def path_verdict(self, relative_path: str) -> Verdict:
        """Verdict for a path reached without a traversal, ancestors included."""
        return decide_path(relative_path, self.options, self.rules)

    def excludes(self, relative_path: str, parent: Verdict = Verdict.KEEP) -> bool:
        return self.verdict(relative_path, parent) is not Verdict.KEEP

    def should_descend(self, relative_path: str, verdict: Verdict) -> bool:
        """Whether to enter a directory classified ``verdict``.

        A directory hidden only by an ignore file is still entered when a
        negated pattern could match something inside it.
        """
        if verdict is Verdict.KEEP:
            return True
        return verdict is Verdict.IGNORED and negation_may_reach(relative_path, self.options, self.rules)

    def exceeds_size(self, size: int) -> bool:
        return size > self.options.max_file_size_bytes

    def is_binary(self, relative_path: str, data: Optional[bytes] = None) -> bool:
        """Content sniffing when ``data`` is given, the extension otherwise."""
        if data is None:
            return has_binary_extension(relative_path)
        return is_binary_content(data)

    def check_file(
        self,
        relative_path: str,
        size: int,
        data: Optional[bytes] = None,
        parent: Verdict = Verdict.KEEP,
    ) -> Optional[SkipReason]:
        """Return why a file would be skipped, or None if it is kept."""
        if self.excludes(relative_path, parent):
            return SkipReason.EXCLUDED
        if self.exceeds_size(size):
            return SkipReason.TOO_LARGE
        if self.is_binary(relative_path, data):
            return SkipReason.BINARY
        return None


@dataclass
class _Traversal:
    root: Path
    options: ScanOptions
    filter: EntryFilter
    # real paths of the directories on the current branch
    ancestors: Set[str] = field(default_factory=set)

    def is_loop(self, path: Path) -> bool:
        return os.path.realpath(path) in self.ancestors


def record_skip(relative_path: str, reason: SkipReason, detail: str = "") -> SkippedEntry:
    if reason is SkipReason.EXCLUDED:
        logger.info(f"Excluded: {relative_path}")
    elif reason is SkipReason.BINARY:
        logger.debug(f"Skipping binary file: {relative_path}")
    else:
        logger.warning(f"Skipping {relative_path} ({reason.value}): {detail}")
    return SkippedEntry(relative_path, reason, detail)


def decode_content(data: bytes) -> str:
    return data.decode('utf-8', errors='replace')


async def resolve_imports(
    dependency_scanner: Optional[DependencyScanner],
    path: Path,
    content: str,
    language: str,
) -> List[str]:
    """Run the dependency scanner, turning any failure into no imports."""
    if dependency_scanner is None:
        return []
    try:
        result = dependency_scanner(path, content, language)
        if inspect.isawaitable(result):
            result = await result
        return list(result or [])
    except Exception as e:
        logger.warning(f"Dependency scan failed for {path}: {e}")
        return []


async def build_file_info(
    path: Path,
    relative_path: str,
    data: bytes,
    size: int,
    options: ScanOptions,
    dependency_scanner: Optional[DependencyScanner] = None,
) -> FileInfo:
    content = decode_content(data)
    language = detect_language(path.name)
    imports = None
    if options.include_dependencies:
        imports = await resolve_imports(dependency_scanner, path, content, language)
    return FileInfo(
        locator=path,
        relative_path=relative_path,
        content=content,
        language=language,
        size=size,
        imports=imports,
    )


class Scanner:
    """Walks a path and produces a filtered DirectoryInfo tree."""

    def __init__(
        self,
        resolver: Optional[PathResolver] = None,
        store: Optional[IgnoreRuleStore] = None,
        dependency_scanner: Optional[DependencyScanner] = scan_imports,
    ):
        self.resolver = resolver or PathResolver()
        self.store = store or IgnoreRuleStore()
        self.dependency_scanner = dependency_scanner

    async def load_rules(self, root: Path, options: ScanOptions) -> Dict[IgnoreKind, IgnoreRuleSet]:
        """Ensure the ignore files requested by ``options`` are cached for ``root``."""
        rules = {}
        if options.use_primary_ignore_file:
            rules[IgnoreKind.GIT] = await self.store.ensure_loaded(root, IgnoreKind.GIT)
        if options.use_secondary_ignore_file:
            rules[IgnoreKind.PACKAGING] = await self.store.ensure_loaded(root, IgnoreKind.PACKAGING)
        return rules

    async def _prepare(self, target_path: PathLike, options: ScanOptions, root: Optional[PathLike]):
        target = self.resolver.absolute(target_path)
        root = Path(os.path.abspath(str(root))) if root is not None else self.resolver.resolve_root_for(target)
        rules = await self.load_rules(root, options)
        selected = relative_posix(target, root)
        traversal = _Traversal(root, options, EntryFilter(options, rules, selected))

        try:
            st = await fs.stat(target)
        except FileNotFoundError as e:
            raise DirectoryNotFoundError(target) from e
        except OSError as e:
            raise ScanError(str(e)) from e

        if not (stat_module.S_ISREG(st.st_mode) or stat_module.S_ISDIR(st.st_mode)):
            raise DirectoryNotFoundError(target)

        logger.info(f"Scanning {target} ({'file' if stat_module.S_ISREG(st.st_mode) else 'directory'}) under root {root}")
        return target, selected, st, traversal

    async def scan(self, target_path: PathLike, options: ScanOptions, root: Optional[PathLike] = None) -> DirectoryInfo:
        report = await self.scan_with_report(target_path, options, root)
        return report.tree

    async def scan_with_report(
        self,
        target_path: PathLike,
        options: ScanOptions,
        root: Optional[PathLike] = None,
    ) -> ScanReport:
        """Scan a file or directory.

        Raises DirectoryNotFoundError if the target is missing,
        FileSizeLimitError if the target is a file over the size limit and
        ScanError for any other failure to stat or list the target. Problems
        with entries below the target are recorded in ``skipped`` instead.
        """
        target, selected, st, traversal = await self._prepare(target_path, options, root)

        if stat_module.S_ISREG(st.st_mode):
            return await self._scan_single_file(target, selected, st.st_size, traversal)

        try:
            entries = await fs.list_dir(target)
        except FileNotFoundError as e:
            raise DirectoryNotFoundError(target) from e
        except OSError as e:
            raise ScanError(str(e)) from e

        traversal.ancestors.add(os.path.realpath(target))
        report = await self._scan_entries(target, selected, entries, traversal, traversal.filter.path_verdict(selected))
        logger.info(f"Scan of {target} finished: {sum(1 for _ in report.tree.iter_files())} files, {len(report.skipped)} skipped")
        return report

    async def _scan_single_file(self, target: Path, selected: str, size: int, traversal: _Traversal) -> ScanReport:
        if traversal.filter.exceeds_size(size):
            raise FileSizeLimitError(selected, size, traversal.options.max_file_size_bytes)

        try:
            data = await fs.read_bytes(target)
        except OSError as e:
            raise ScanError(str(FileReadError(selected, e))) from e

        parent = DirectoryInfo(
            locator=target.parent,
            relative_path=posixpath.dirname(selected) or ".",
        )
        if traversal.filter.is_binary(selected, data):
            return ScanReport(parent, [record_skip(selected, SkipReason.BINARY)])

        info = await build_file_info(target, selected, data, size, traversal.options, self.dependency_scanner)
        parent.files.append(info)
        return ScanReport(parent)

    async def _scan_directory(self, path: Path, relative_path: str, traversal: _Traversal, verdict: Verdict) -> ScanReport:
        real = os.path.realpath(path)
        entries = await fs.list_dir(path)
        traversal.ancestors.add(real)
        try:
            return await self._scan_entries(path, relative_path, entries, traversal, verdict)
        finally:
            traversal.ancestors.discard(real)

    async def _scan_entries(
        self,
        path: Path,
        relative_path: str,
        entries,
        traversal: _Traversal,
        parent: Verdict = Verdict.KEEP,
    ) -> ScanReport:
        """Scan the entries of a directory that was classified ``parent``."""
        directory = DirectoryInfo(locator=path, relative_path=relative_path)
        skipped: List[SkippedEntry] = []
        entry_filter = traversal.filter

        for entry in entries:
            entry_rel = join_relative(relative_path, entry.name)

            if entry.is_dir:
                verdict = entry_filter.verdict(entry_rel, parent)
                if not entry_filter.should_descend(entry_rel, verdict):
                    skipped.append(record_skip(entry_rel, SkipReason.EXCLUDED))
                    continue
                if traversal.is_loop(entry.path):
                    skipped.append(record_skip(entry_rel, SkipReason.FAILED, "symlink loop"))
                    continue
                try:
                    child = await self._scan_directory(entry.path, entry_rel, traversal, verdict)
                except Exception as e:
                    skipped.append(record_skip(entry_rel, SkipReason.FAILED, str(e)))
                    continue
                skipped.extend(child.skipped)
                # Entered only to look for negated entries, keep it only if some were found
                if verdict is not Verdict.KEEP and not (child.tree.files or child.tree.directories):
                    skipped.append(record_skip(entry_rel, SkipReason.EXCLUDED))
                    continue
                directory.directories[entry.name] = child.tree

            elif entry.is_file:
                if entry_filter.excludes(entry_rel, parent):
                    skipped.append(record_skip(entry_rel, SkipReason.EXCLUDED))
                    continue
                result = await self._scan_file_entry(entry.path, entry_rel, traversal)
                if isinstance(result, SkippedEntry):
                    skipped.append(result)
                else:
                    directory.files.append(result)

        return ScanReport(directory, skipped)

    async def _scan_file_entry(self, path: Path, relative_path: str, traversal: _Traversal) -> Union[FileInfo, SkippedEntry]:
        entry_filter = traversal.filter
        try:
            st = await fs.stat(path)
            if entry_filter.exceeds_size(st.st_size):
                error = FileSizeLimitError(relative_path, st.st_size, traversal.options.max_file_size_bytes)
                return record_skip(relative_path, SkipReason.TOO_LARGE, str(error))

            data = await fs.read_bytes(path)
        except OSError as e:
            return record_skip(relative_path, SkipReason.UNREADABLE, str(FileReadError(relative_path, e)))

        if entry_filter.is_binary(relative_path, data):
            return record_skip(relative_path, SkipReason.BINARY)

        try:
            return await build_file_info(path, relative_path, data, st.st_size, traversal.options, self.dependency_scanner)
        except Exception as e:
            return record_skip(relative_path, SkipReason.FAILED, str(e))

    async def estimate_size(
        self,
        target_path: PathLike,
        options: ScanOptions,
        root: Optional[PathLike] = None,
    ) -> SizeEstimate:
        """Count the files ``scan`` would return, and their total size.

        Nothing is read: binary files are recognised by extension only.
        """
        target, selected, st, traversal = await self._prepare(target_path, options, root)

        if stat_module.S_ISREG(st.st_mode):
            if traversal.filter.exceeds_size(st.st_size):
                raise FileSizeLimitError(selected, st.st_size, options.max_file_size_bytes)
            if traversal.filter.is_binary(selected):
                return SizeEstimate(skipped=[record_skip(selected, SkipReason.BINARY)])
            return SizeEstimate(total_files=1, total_size=st.st_size)

        try:
            entries = await fs.list_dir(target)
        except FileNotFoundError as e:
            raise DirectoryNotFoundError(target) from e
        except OSError as e:
            raise ScanError(str(e)) from e

        traversal.ancestors.add(os.path.realpath(target))
        estimate = await self._estimate_entries(selected, entries, traversal, traversal.filter.path_verdict(selected))
        logger.info(f"Estimated {target}: {estimate.total_files} files, {estimate.total_size} bytes")
        return estimate

    async def _estimate_directory(self, path: Path, relative_path: str, traversal: _Traversal, verdict: Verdict) -> SizeEstimate:
        real = os.path.realpath(path)
        entries = await fs.list_dir(path)
        traversal.ancestors.add(real)
        try:
            return await self._estimate_entries(relative_path, entries, traversal, verdict)
        finally:
            traversal.ancestors.discard(real)

    async def _estimate_entries(
        self,
        relative_path: str,
        entries,
        traversal: _Traversal,
        parent: Verdict = Verdict.KEEP,
    ) -> SizeEstimate:
        estimate = SizeEstimate()
        entry_filter = traversal.filter

        for entry in entries:
            entry_rel = join_relative(relative_path, entry.name)

            if entry.is_dir:
                verdict = entry_filter.verdict(entry_rel, parent)
                if not entry_filter.should_descend(entry_rel, verdict):
                    estimate.skipped.append(record_skip(entry_rel, SkipReason.EXCLUDED))
                    continue
                if traversal.is_loop(entry.path):
                    estimate.skipped.append(record_skip(entry_rel, SkipReason.FAILED, "symlink loop"))
                    continue
                try:
                    child = await self._estimate_directory(entry.path, entry_rel, traversal, verdict)
                except Exception as e:
                    estimate.skipped.append(record_skip(entry_rel, SkipReason.FAILED, str(e)))
                    continue
                estimate.skipped.extend(child.skipped)
                if verdict is not Verdict.KEEP and not child.total_files:
                    estimate.skipped.append(record_skip(entry_rel, SkipReason.EXCLUDED))
                    continue
                estimate.total_files += child.total_files
                estimate.total_size += child.total_size

            elif entry.is_file:
                if entry_filter.excludes(entry_rel, parent):
                    estimate.skipped.append(record_skip(entry_rel, SkipReason.EXCLUDED))
                    continue
                try:
                    st = await fs.stat(entry.path)
                except OSError as e:
                    estimate.skipped.append(record_skip(entry_rel, SkipReason.UNREADABLE, str(e)))
                    continue
                reason = entry_filter.check_file(entry_rel, st.st_size, parent=parent)
                if reason is not None:
                    estimate.skipped.append(record_skip(entry_rel, reason, f"{st.st_size} bytes"))
                    continue
                estimate.total_files += 1
                estimate.total_size += st.st_size

        return estimate
