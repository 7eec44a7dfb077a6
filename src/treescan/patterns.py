"""Glob matching and the layered include/exclude decision."""

import logging
import re
from enum import Enum
from functools import lru_cache
from typing import List, Mapping, Optional, Pattern

from .models import IgnoreKind, IgnoreRuleSet, ScanOptions

logger = logging.getLogger(__name__)


def glob_to_regex(pattern: str) -> str:
    """Translate a shell glob into an anchored regular expression.

    ``*`` and ``?`` stay inside one path segment, a ``**`` segment spans any
    number of segments, ``[...]`` and ``{a,b}`` work as in a shell. Raises
    ``ValueError`` for an unterminated class or brace group.
    """
    i, n = 0, len(pattern)
    out = []
    brace_depth = 0

    while i < n:
        c = pattern[i]
        if c == "*":
            j = i
            while j < n and pattern[j] == "*":
                j += 1
            whole_segment = (i == 0 or pattern[i - 1] == "/") and (j == n or pattern[j] == "/")
            if j - i > 1 and whole_segment:
                if j < n:
                    # "**/" also matches zero directories
                    out.append("(?:.*/)?")
                    i = j + 1
                else:
                    out.append(".*")
                    i = j
                continue
            out.append("[^/]*")
            i = j
            continue
        if c == "?":
            out.append("[^/]")
        elif c == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise ValueError(f"unterminated character class in {pattern!r}")
            body = pattern[i + 1:j]
            if body.startswith(("!", "^")):
                body = "^" + body[1:]
            body = body.replace("\\", "\\\\")
            out.append(f"[{body}]")
            i = j + 1
            continue
        elif c == "{":
            brace_depth += 1
            out.append("(?:")
        elif c == "}" and brace_depth:
            brace_depth -= 1
            out.append(")")
        elif c == "," and brace_depth:
            out.append("|")
        elif c == "\\" and i + 1 < n:
            out.append(re.escape(pattern[i + 1]))
            i += 2
            continue
        else:
            out.append(re.escape(c))
        i += 1

    if brace_depth:
        raise ValueError(f"unterminated brace group in {pattern!r}")
    return "(?s:" + "".join(out) + r")\Z"


@lru_cache(maxsize=1024)
def _compile(pattern: str) -> Optional[Pattern[str]]:
    """Compiled form of ``pattern``, or None if it is malformed.

    The failure is cached with the pattern, so it is logged once.
    """
    try:
        return re.compile(glob_to_regex(pattern), re.IGNORECASE)
    except (ValueError, re.error) as e:
        logger.warning(f"Ignoring malformed pattern {pattern!r}: {e}")
        return None


def _glob_match(path: str, pattern: str) -> bool:
    compiled = _compile(pattern)
    return compiled is not None and compiled.match(path) is not None


def _matches_self_or_ancestor(path: str, base: str) -> bool:
    """True if ``path`` or one of its leading segment prefixes matches ``base``."""
    if not base:
        return True
    parts = path.split("/")
    for end in range(1, len(parts) + 1):
        if _glob_match("/".join(parts[:end]), base):
            return True
    return False


def matches(relative_path: str, pattern: str) -> bool:
    """Check one relative POSIX path against one pattern.

    ``dir/`` and ``dir/**`` match the directory itself and everything below
    it. Anything else is a case-insensitive glob over the whole relative path,
    not just the file name. Malformed patterns never match.
    """
    path = relative_path.replace("\\", "/").strip("/")
    pattern = pattern.lstrip("/")

    if pattern.endswith("/**"):
        return _matches_self_or_ancestor(path, pattern[:-3])
    if pattern.endswith("/"):
        return _matches_self_or_ancestor(path, pattern[:-1])
    return _glob_match(path, pattern)


class Verdict(str, Enum):
    KEEP = "keep"
    IGNORED = "ignored"  # by an ignore-file pattern
    EXCLUDED = "excluded"  # by a configured exclude pattern


def _any_match(relative_path: str, patterns) -> bool:
    return any(matches(relative_path, p) for p in patterns)


def active_rule_sets(
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]],
) -> List[IgnoreRuleSet]:
    """Rule sets enabled by ``options``, ``.gitignore`` first."""
    rules = rules or {}
    active = []
    if options.use_primary_ignore_file and IgnoreKind.GIT in rules:
        active.append(rules[IgnoreKind.GIT])
    if options.use_secondary_ignore_file and IgnoreKind.PACKAGING in rules:
        active.append(rules[IgnoreKind.PACKAGING])
    return active


def is_negated(
    relative_path: str,
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
) -> bool:
    """True if a negation from an enabled ignore file matches ``relative_path``."""
    return any(_any_match(relative_path, r.negated_patterns) for r in active_rule_sets(options, rules))


def decide(
    relative_path: str,
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
    selected_path: Optional[str] = None,
) -> Verdict:
    """Classify ``relative_path`` as kept, ignored or excluded.

    Checks run in a fixed order:

    1. the caller-selected path is always kept
    2. negations from ``.gitignore``, then from ``.vscodeignore``, switch off
       every ignore-file pattern for this path
    3. patterns from ``.gitignore``, then ``.vscodeignore``, ignore it
    4. the configured exclude patterns exclude it

    A negation never reaches past the ignore files, so a configured exclude
    pattern wins over it.
    """
    if selected_path is not None and relative_path == selected_path:
        return Verdict.KEEP

    if not is_negated(relative_path, options, rules):
        for rule_set in active_rule_sets(options, rules):
            if _any_match(relative_path, rule_set.patterns):
                return Verdict.IGNORED

    if _any_match(relative_path, options.exclude_patterns):
        return Verdict.EXCLUDED
    return Verdict.KEEP


def decide_below(
    relative_path: str,
    parent: Verdict,
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
    selected_path: Optional[str] = None,
) -> Verdict:
    """Classify an entry of a directory that was itself classified ``parent``.

    Everything below an excluded directory is excluded. Below an ignored
    directory only entries matched by a negation are kept, whatever form the
    pattern that ignored the directory took.
    """
    if parent is Verdict.EXCLUDED:
        return Verdict.EXCLUDED
    verdict = decide(relative_path, options, rules, selected_path)
    if verdict is Verdict.KEEP and parent is Verdict.IGNORED and not is_negated(relative_path, options, rules):
        return Verdict.IGNORED
    return verdict


def decide_path(
    relative_path: str,
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
) -> Verdict:
    """Classify ``relative_path`` together with every directory above it."""
    verdict = Verdict.KEEP
    parts = [p for p in relative_path.split("/") if p and p != "."]
    for end in range(1, len(parts) + 1):
        verdict = decide_below("/".join(parts[:end]), verdict, options, rules)
    return verdict


def should_exclude(
    relative_path: str,
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
    selected_path: Optional[str] = None,
) -> bool:
    return decide(relative_path, options, rules, selected_path) is not Verdict.KEEP


def may_match_below(directory: str, pattern: str) -> bool:
    """True if ``pattern`` could match some path strictly inside ``directory``."""
    dir_parts = [p for p in directory.split("/") if p]
    pat_parts = [p for p in pattern.lstrip("/").rstrip("/").split("/") if p]

    for i, part in enumerate(pat_parts):
        if part == "**":
            return True
        if i >= len(dir_parts):
            return True
        if not _glob_match(dir_parts[i], part):
            return False
    return False


def negation_may_reach(
    directory: str,
    options: ScanOptions,
    rules: Optional[Mapping[IgnoreKind, IgnoreRuleSet]] = None,
) -> bool:
    """Whether an ignored directory may still hold force-included entries."""
    return any(
        may_match_below(directory, p)
        for rule_set in active_rule_sets(options, rules)
        for p in rule_set.negated_patterns
    )
