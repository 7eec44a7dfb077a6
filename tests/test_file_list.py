"""Tests for processing an explicit file selection."""

import asyncio

from treescan.file_list import FileListProcessor
from treescan.models import IgnoreKind, ScanOptions, SkipReason
from treescan.paths import PathResolver
from treescan.scanner import Scanner

from conftest import make_tree


def processor_for(*roots) -> FileListProcessor:
    return FileListProcessor(Scanner(PathResolver(roots)))


def test_groups_files_by_root_and_parent(workspace):
    project_a = workspace / "project-a"
    project_b = workspace / "project-b"
    make_tree(project_a, {"src/main.ts": "main", "src/utils.ts": "utils", "README.md": "# a"})
    make_tree(project_b, {"lib/api.js": "api"})
    processor = processor_for(project_a, project_b)

    directories = asyncio.run(processor.process([
        project_a / "src/main.ts",
        project_b / "lib/api.js",
        project_a / "README.md",
        project_a / "src/utils.ts",
    ], ScanOptions()))

    summary = [(d.locator, d.relative_path, [f.relative_path for f in d.files]) for d in directories]
    assert summary == [
        (project_a / "src", "src", ["src/main.ts", "src/utils.ts"]),
        (project_a, ".", ["README.md"]),
        (project_b / "lib", "lib", ["lib/api.js"]),
    ]
    assert all(d.directories == {} for d in directories)


def test_applies_exclusions_size_and_binary_checks(workspace):
    make_tree(workspace, {
        ".gitignore": "generated/\n",
        "src/app.py": "import sys\n",
        "src/app.log": "log",
        "src/huge.txt": "x" * 200,
        "src/blob.dat": b"\x00\x00\x01",
        "generated/out.py": "x = 1",
    })
    options = ScanOptions(
        max_file_size_bytes=100,
        exclude_patterns=("**/*.log",),
        use_primary_ignore_file=True,
        include_dependencies=True,
    )
    processor = processor_for(workspace)

    directories, skipped = asyncio.run(processor.process_with_report([
        workspace / "src/app.py",
        workspace / "src/app.log",
        workspace / "src/huge.txt",
        workspace / "src/blob.dat",
        workspace / "generated/out.py",
    ], options))

    assert [[f.relative_path for f in d.files] for d in directories] == [["src/app.py"]]
    assert directories[0].files[0].imports == ["sys"]
    assert [(e.relative_path, e.reason) for e in skipped] == [
        ("src/app.log", SkipReason.EXCLUDED),
        ("src/huge.txt", SkipReason.TOO_LARGE),
        ("src/blob.dat", SkipReason.BINARY),
        ("generated/out.py", SkipReason.EXCLUDED),
    ]


def test_bad_entries_do_not_fail_the_call(workspace):
    make_tree(workspace, {"ok.txt": "ok", "folder/inner.txt": "inner"})
    processor = processor_for(workspace)

    directories, skipped = asyncio.run(processor.process_with_report([
        workspace / "missing.txt",
        workspace / "folder",
        workspace / "ok.txt",
    ], ScanOptions()))

    assert [[f.relative_path for f in d.files] for d in directories] == [["ok.txt"]]
    assert [(e.relative_path, e.reason) for e in skipped] == [
        ("missing.txt", SkipReason.UNREADABLE),
        ("folder", SkipReason.FAILED),
    ]


def test_empty_selection(workspace):
    assert asyncio.run(processor_for(workspace).process([], ScanOptions())) == []


def test_rules_loaded_per_root(workspace):
    project_a = workspace / "a"
    project_b = workspace / "b"
    make_tree(project_a, {".gitignore": "*.txt\n", "x.txt": "a"})
    make_tree(project_b, {"x.txt": "b"})
    processor = processor_for(project_a, project_b)

    directories = asyncio.run(processor.process(
        [project_a / "x.txt", project_b / "x.txt"],
        ScanOptions(use_primary_ignore_file=True),
    ))

    assert [d.locator for d in directories] == [project_b]
    assert processor.scanner.store.is_loaded(project_a, IgnoreKind.GIT)
    assert processor.scanner.store.is_loaded(project_b, IgnoreKind.GIT)


def test_file_below_ignored_directory(workspace):
    make_tree(workspace, {
        ".gitignore": "dist\n!dist/keep.txt\n",
        "dist/a.js": "a",
        "dist/keep.txt": "keep me",
    })

    directories, skipped = asyncio.run(processor_for(workspace).process_with_report(
        [workspace / "dist/a.js", workspace / "dist/keep.txt"],
        ScanOptions(use_primary_ignore_file=True),
    ))

    assert [[f.relative_path for f in d.files] for d in directories] == [["dist/keep.txt"]]
    assert [(e.relative_path, e.reason) for e in skipped] == [("dist/a.js", SkipReason.EXCLUDED)]


def test_duplicate_paths_are_processed_once(workspace):
    make_tree(workspace, {"ok.txt": "ok"})

    directories = asyncio.run(processor_for(workspace).process(
        [workspace / "ok.txt", str(workspace / "ok.txt"), workspace / "." / "ok.txt"],
        ScanOptions(),
    ))

    assert [[f.relative_path for f in d.files] for d in directories] == [["ok.txt"]]
