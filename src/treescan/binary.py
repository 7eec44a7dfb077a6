"""Binary file detection by content and by extension."""

import codecs
import os
from typing import Union

# Best-effort list for when content is not read
BINARY_EXTENSIONS = frozenset({
    # executables and libraries
    '.exe', '.dll', '.so', '.dylib', '.bin',
    # images
    '.jpg', '.jpeg', '.png', '.gif', '.bmp', '.ico', '.webp', '.tiff',
    # audio and video
    '.mp3', '.wav', '.ogg', '.mp4', '.avi', '.mov', '.wmv',
    # archives
    '.zip', '.tar', '.gz', '.7z', '.rar',
    # documents
    '.pdf', '.doc', '.docx', '.xls', '.xlsx', '.ppt', '.pptx',
    # compiled artifacts and databases
    '.db', '.sqlite', '.class', '.pyc', '.o', '.a',
})

SAMPLE_SIZE = 8000
CONTROL_RATIO_THRESHOLD = 0.3

_ALLOWED_CONTROL = {0x08, 0x09, 0x0a, 0x0c, 0x0d, 0x1b}


def _decodes_as_utf8(sample: bytes) -> bool:
    decoder = codecs.getincrementaldecoder('utf-8')()
    try:
        # final=False tolerates a multi-byte sequence cut by the sample boundary
        decoder.decode(sample, final=False)
        return True
    except UnicodeDecodeError:
        return False


def is_binary_content(data: Union[bytes, str]) -> bool:
    """Sniff a buffer for binary content.

    Never raises: anything unexpected is reported as text.
    """
    try:
        if isinstance(data, str):
            data = data.encode('utf-8', errors='surrogatepass')
        sample = bytes(data[:SAMPLE_SIZE])
        if not sample:
            return False
        if b'\x00' in sample:
            return True
        if _decodes_as_utf8(sample):
            return False
        control = sum(1 for b in sample if b < 0x20 and b not in _ALLOWED_CONTROL)
        return control / len(sample) > CONTROL_RATIO_THRESHOLD
    except Exception:
        return False


def has_binary_extension(file_name: str) -> bool:
    """Guess from the extension alone whether a file is binary."""
    return os.path.splitext(file_name)[1].lower() in BINARY_EXTENSIONS
