"""Tests for binary detection and language tags."""

import pytest

from treescan.binary import has_binary_extension, is_binary_content
from treescan.languages import detect_language


@pytest.mark.parametrize("data", [
    b"",
    b"plain ascii text\n",
    "café ☃ unicode".encode("utf-8"),
    b"tabs\tand\r\nnewlines\x0c",
    b"a" + "é".encode("utf-8") * 4000,
])
def test_text_content(data):
    assert is_binary_content(data) is False


@pytest.mark.parametrize("data", [
    b"abc\x00def",
    bytes(range(1, 32)) * 10 + b"\xff",
])
def test_binary_content(data):
    assert is_binary_content(data) is True


def test_latin1_text_with_few_control_chars_is_text():
    assert is_binary_content("naïve résumé".encode("latin-1")) is False


def test_str_input_and_bad_input_never_raise():
    assert is_binary_content("just text") is False
    assert is_binary_content(None) is False


def test_binary_extensions():
    assert has_binary_extension("photo.JPG")
    assert has_binary_extension("dir/archive.tar")
    assert has_binary_extension("lib.so")
    assert not has_binary_extension("main.py")
    assert not has_binary_extension("Makefile")


@pytest.mark.parametrize("name, language", [
    ("Dockerfile", "dockerfile"),
    ("Dockerfile.prod", "dockerfile"),
    ("Makefile", "makefile"),
    ("package.json", "json"),
    ("CMakeLists.txt", "cmake"),
    ("src/index.ts", "typescript"),
    ("App.TSX", "typescript"),
    ("script.py", "python"),
    ("style.scss", "scss"),
    ("config.yml", "yaml"),
    (".gitignore", "ignore"),
    ("data.unknownext", "plaintext"),
    ("LICENSE", "plaintext"),
])
def test_detect_language(name, language):
    assert detect_language(name) == language
