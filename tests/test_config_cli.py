"""Tests for settings, the root registry and the CLI."""

import json
import time
from types import SimpleNamespace

import pytest
from typer.testing import CliRunner

from treescan import __version__, cli
from treescan.config import ConfigManager, ScanSettings
from treescan.ignore import IgnoreRuleStore
from treescan.monitor import IgnoreFileWatcher

from conftest import make_tree

runner = CliRunner()


def test_settings_defaults(monkeypatch):
    monkeypatch.delenv("TREESCAN_MAX_FILE_SIZE", raising=False)
    settings = ScanSettings()

    options = settings.to_scan_options()

    assert options.max_file_size_bytes == 1048576
    assert "node_modules/**" in options.exclude_patterns
    assert options.use_primary_ignore_file is False
    assert options.include_dependencies is False


def test_settings_from_environment(monkeypatch):
    monkeypatch.setenv("TREESCAN_MAX_FILE_SIZE", "10")
    monkeypatch.setenv("TREESCAN_USE_GITIGNORE", "true")
    monkeypatch.setenv("TREESCAN_EXCLUDE_PATTERNS", '["*.tmp"]')

    options = ScanSettings().to_scan_options()

    assert options.max_file_size_bytes == 10
    assert options.use_primary_ignore_file is True
    assert options.exclude_patterns == ("*.tmp",)


def test_config_manager_add_remove_root(workspace):
    """Test registering and unregistering roots."""
    config_dir = workspace / "config"
    project = workspace / "project"
    project.mkdir()

    manager = ConfigManager(config_dir=config_dir)
    assert manager.list_roots() == []

    manager.add_root(project)
    manager.add_root(project)
    assert manager.list_roots() == [project]
    assert json.loads((config_dir / "roots.json").read_text()) == {"roots": [str(project)]}

    # a fresh manager sees the saved registry
    assert ConfigManager(config_dir=config_dir).list_roots() == [project]

    assert manager.remove_root(project) is True
    assert manager.remove_root(project) is False
    assert manager.list_roots() == []


def test_config_manager_corrupt_registry(workspace):
    (workspace / "roots.json").write_text("{not json")
    assert ConfigManager(config_dir=workspace).list_roots() == []


def test_cleanup_stale_roots(workspace):
    project = workspace / "project"
    project.mkdir()
    manager = ConfigManager(config_dir=workspace / "config")
    manager.add_root(project)
    project.rmdir()

    assert manager.cleanup_stale_roots() == 1
    assert manager.list_roots() == []


def test_resolver_uses_registered_roots(workspace):
    manager = ConfigManager(config_dir=workspace / "config")
    (workspace / "a").mkdir()
    manager.add_root(workspace / "a")

    resolver = manager.resolver(default_root=workspace)

    assert resolver.resolve_root_for(workspace / "a" / "x.py") == workspace / "a"
    assert resolver.resolve_root_for(workspace / "b" / "x.py") == workspace


@pytest.fixture
def cli_env(workspace, monkeypatch):
    config_dir = workspace / ".treescan-config"
    monkeypatch.setattr(cli, "ConfigManager", lambda: ConfigManager(config_dir=config_dir))
    monkeypatch.chdir(workspace)
    return workspace


def test_cli_version():
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_cli_scan(cli_env):
    make_tree(cli_env, {"a.ts": "export const a = 1;\n", "debug.log": "trace"})

    result = runner.invoke(cli.app, ["scan", str(cli_env)])

    assert result.exit_code == 0
    assert "a.ts" in result.stdout
    assert "excluded" in result.stdout


def test_cli_scan_missing_path(cli_env):
    result = runner.invoke(cli.app, ["scan", str(cli_env / "missing")])

    assert result.exit_code == 1
    assert "Error" in result.stdout


def test_cli_estimate(cli_env):
    make_tree(cli_env, {"a.txt": "12345", "b.txt": "123"})

    result = runner.invoke(cli.app, ["estimate", str(cli_env), "--exclude", "b.txt"])

    assert result.exit_code == 0
    assert "1 file(s)" in result.stdout
    assert "5 bytes" in result.stdout


def test_cli_add_and_list_roots(cli_env):
    project = cli_env / "project"
    project.mkdir()

    assert runner.invoke(cli.app, ["add", str(project)]).exit_code == 0
    result = runner.invoke(cli.app, ["roots"])

    assert result.exit_code == 0
    assert "project" in result.stdout

    assert runner.invoke(cli.app, ["remove", str(project)]).exit_code == 0
    assert runner.invoke(cli.app, ["remove", str(project)]).exit_code == 1


def test_cli_watch_reports_until_interrupted(cli_env, monkeypatch):
    project = cli_env / "project"
    project.mkdir()
    cli.ConfigManager().add_root(project)
    created = []

    class RecordingWatcher(IgnoreFileWatcher):
        def __init__(self, store, on_invalidate=None):
            super().__init__(store, on_invalidate=on_invalidate)
            created.append(self)

    def interrupt(seconds):
        raise KeyboardInterrupt

    monkeypatch.setattr(cli, "IgnoreFileWatcher", RecordingWatcher)
    monkeypatch.setattr(cli, "time", SimpleNamespace(sleep=interrupt, strftime=time.strftime))

    result = runner.invoke(cli.app, ["watch"])

    assert result.exit_code == 0
    assert "Watching 1 root(s)" in result.stdout
    assert "Stopped" in result.stdout
    watcher = created[0]
    assert isinstance(watcher.store, IgnoreRuleStore)
    assert watcher.roots == [project]
    assert watcher.observer is None


def test_cli_watch_without_roots(cli_env):
    result = runner.invoke(cli.app, ["watch"])
    assert result.exit_code == 1
