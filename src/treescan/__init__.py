"""
Treescan - a layered-filter file system scanner.

Turns a project tree into DirectoryInfo/FileInfo records, honouring
.gitignore, .vscodeignore, size limits and binary detection.
"""

__version__ = "0.1.0"

from .file_list import FileListProcessor
from .ignore import IgnoreRuleStore
from .models import DirectoryInfo, FileInfo, IgnoreKind, ScanOptions
from .paths import PathResolver
from .scanner import Scanner

__all__ = [
    "DirectoryInfo",
    "FileInfo",
    "FileListProcessor",
    "IgnoreKind",
    "IgnoreRuleStore",
    "PathResolver",
    "ScanOptions",
    "Scanner",
    "__version__",
]
