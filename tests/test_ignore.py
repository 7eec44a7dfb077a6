"""Tests for the ignore rule cache."""

import asyncio

from treescan.ignore import IgnoreRuleStore, parse_ignore_lines
from treescan.models import IgnoreKind


def test_parse_ignore_lines():
    """Comments and blank lines are dropped, '!' lines become negations."""
    rule_set = parse_ignore_lines([
        "node_modules/\n",
        "# comment\n",
        "\n",
        "   dist/   \n",
        "!dist/keep.txt\n",
        "*.log\n",
        "!\n",
    ])

    assert rule_set.loaded is True
    assert rule_set.patterns == ["node_modules/", "dist/", "*.log"]
    assert rule_set.negated_patterns == ["dist/keep.txt"]


def test_missing_file_loads_empty(workspace):
    store = IgnoreRuleStore()
    assert not store.is_loaded(workspace, IgnoreKind.GIT)

    rule_set = asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT))

    assert rule_set.loaded
    assert rule_set.patterns == []
    assert rule_set.negated_patterns == []
    assert store.is_loaded(workspace, IgnoreKind.GIT)


def test_unreadable_file_loads_empty(workspace):
    """A read failure other than absence is logged and yields empty rules."""
    (workspace / ".gitignore").mkdir()
    store = IgnoreRuleStore()

    rule_set = asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT))

    assert rule_set.loaded
    assert rule_set.patterns == []


def test_kinds_are_independent(workspace):
    (workspace / ".gitignore").write_text("*.log\n")
    (workspace / ".vscodeignore").write_text("**/*.ts\n!**/*.d.ts\n")
    store = IgnoreRuleStore()

    git = asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT))
    packaging = asyncio.run(store.ensure_loaded(workspace, IgnoreKind.PACKAGING))

    assert git.patterns == ["*.log"]
    assert packaging.patterns == ["**/*.ts"]
    assert packaging.negated_patterns == ["**/*.d.ts"]


def test_cached_until_invalidated(workspace):
    ignore_file = workspace / ".gitignore"
    ignore_file.write_text("*.log\n")
    store = IgnoreRuleStore()

    asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT))
    ignore_file.write_text("*.tmp\n")

    assert asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT)).patterns == ["*.log"]

    store.invalidate(workspace, IgnoreKind.GIT)
    assert not store.is_loaded(workspace, IgnoreKind.GIT)
    assert store.get(workspace, IgnoreKind.GIT).patterns == []

    assert asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT)).patterns == ["*.tmp"]


def test_invalidate_one_kind_keeps_the_other(workspace):
    store = IgnoreRuleStore()
    asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT))
    asyncio.run(store.ensure_loaded(workspace, IgnoreKind.PACKAGING))

    store.invalidate(workspace, IgnoreKind.PACKAGING)

    assert store.is_loaded(workspace, IgnoreKind.GIT)
    assert not store.is_loaded(workspace, IgnoreKind.PACKAGING)


def test_invalidate_all_roots(workspace):
    other = workspace / "other"
    other.mkdir()
    store = IgnoreRuleStore()
    for root in (workspace, other):
        for kind in IgnoreKind:
            asyncio.run(store.ensure_loaded(root, kind))

    store.invalidate()

    assert not any(store.is_loaded(root, kind) for root in (workspace, other) for kind in IgnoreKind)


def test_invalidate_path(workspace):
    store = IgnoreRuleStore()
    asyncio.run(store.ensure_loaded(workspace, IgnoreKind.PACKAGING))

    key = store.invalidate_path(workspace / ".vscodeignore")

    assert key is not None
    assert key[1] is IgnoreKind.PACKAGING
    assert not store.is_loaded(workspace, IgnoreKind.PACKAGING)
    assert store.invalidate_path(workspace / "README.md") is None


def test_rules_for_returns_both_kinds(workspace):
    store = IgnoreRuleStore()
    rules = store.rules_for(workspace)
    assert set(rules) == {IgnoreKind.GIT, IgnoreKind.PACKAGING}
    assert not any(r.loaded for r in rules.values())


def test_global_invalidation_during_load_discards_result(workspace, monkeypatch):
    """Rules read before an invalidate() of all roots are not cached."""
    store = IgnoreRuleStore()

    def read_then_invalidate(path):
        store.invalidate()
        return parse_ignore_lines(["stale/\n"])

    monkeypatch.setattr(store, "_read", read_then_invalidate)

    rule_set = asyncio.run(store.ensure_loaded(workspace, IgnoreKind.GIT))

    assert rule_set.patterns == ["stale/"]
    assert not store.is_loaded(workspace, IgnoreKind.GIT)
