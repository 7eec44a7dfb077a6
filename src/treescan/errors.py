"""Error types raised across the scan boundary."""

from typing import Any, Tuple


class TreeScanError(Exception):
    """Base error carrying a stable code and its message parameters."""
    
    code = "treescan.error"
    
    def __init__(self, message: str, *params: Any):
        super().__init__(message)
        self.params: Tuple[Any, ...] = params
    
    def log_message(self) -> str:
        return f"{type(self).__name__}: {self} ({self.code})"


class FileOperationError(TreeScanError):
    code = "treescan.fileOperation"


class DirectoryNotFoundError(FileOperationError):
    """The requested scan target does not exist or is not a file/directory."""
    
    code = "treescan.directoryNotFound"
    
    def __init__(self, path):
        super().__init__(f"Path not found or not scannable: {path}", str(path))
        self.path = path


class FileSizeLimitError(FileOperationError):
    code = "treescan.fileSizeLimit"
    
    def __init__(self, path, size: int, limit: int):
        super().__init__(
            f"File {path} is {size} bytes, exceeding the limit of {limit} bytes",
            str(path), size, limit,
        )
        self.path = path
        self.size = size
        self.limit = limit


class ScanError(FileOperationError):
    """Wraps any other failure of the top-level stat or listing."""
    
    code = "treescan.scanError"
    
    def __init__(self, message: str):
        super().__init__(f"Scan failed: {message}", message)


class FileReadError(FileOperationError):
    code = "treescan.fileReadError"
    
    def __init__(self, path, original: BaseException):
        super().__init__(f"Could not read {path}: {original}", str(path), str(original))
        self.path = path
