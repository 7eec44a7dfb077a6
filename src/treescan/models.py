"""Data models for treescan."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class FileInfo:
    """A single scanned file with its content snapshot."""
    
    locator: Path
    relative_path: str
    content: str
    language: str
    size: int
    imports: Optional[List[str]] = None


@dataclass
class DirectoryInfo:
    """A scanned directory owning its files and child directories."""
    
    locator: Path
    relative_path: str
    files: List[FileInfo] = field(default_factory=list)
    directories: Dict[str, "DirectoryInfo"] = field(default_factory=dict)
    
    def iter_files(self):
        """Yield every file in this subtree, depth first."""
        yield from self.files
        for child in self.directories.values():
            yield from child.iter_files()


@dataclass(frozen=True)
class ScanOptions:
    """Caller configuration for a scan; never mutated by the scanner."""
    
    max_file_size_bytes: int = 1048576  # 1MB
    exclude_patterns: Tuple[str, ...] = ()
    use_primary_ignore_file: bool = False
    use_secondary_ignore_file: bool = False
    include_dependencies: bool = False


@dataclass
class IgnoreRuleSet:
    """Patterns loaded from one ignore file at one workspace root."""
    
    patterns: List[str] = field(default_factory=list)
    negated_patterns: List[str] = field(default_factory=list)
    loaded: bool = False


class IgnoreKind(str, Enum):
    """The two ignore-file grammars, valued by their file name."""

    GIT = ".gitignore"
    PACKAGING = ".vscodeignore"

    @property
    def file_name(self) -> str:
        return self.value


class SkipReason(str, Enum):
    EXCLUDED = "excluded"
    TOO_LARGE = "too_large"
    BINARY = "binary"
    UNREADABLE = "unreadable"
    FAILED = "failed"


@dataclass(frozen=True)
class SkippedEntry:
    """An entry left out of a result, and why."""
    
    relative_path: str
    reason: SkipReason
    detail: str = ""


@dataclass
class ScanReport:
    tree: DirectoryInfo
    skipped: List[SkippedEntry] = field(default_factory=list)


@dataclass
class SizeEstimate:
    total_files: int = 0
    total_size: int = 0
    skipped: List[SkippedEntry] = field(default_factory=list)
