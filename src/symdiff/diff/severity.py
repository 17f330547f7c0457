"""Severity classification for structural changes.

Cosmetic (low):
- whitespace, indentation, formatting
- comments added, changed or deleted

Substantial (medium):
- changed code inside an existing member
- new or deleted private members

Structural (high):
- signature changes
- new or deleted exported members
- new or deleted dependencies
- changed inheritance or implemented interfaces

All functions here are pure and deterministic.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from symdiff.diff.models import (
    ChangeStatus,
    DependencyChanges,
    InheritanceChanges,
    MemberDiff,
    MemberInfo,
    NodeDiffSummary,
    Severity,
)

_WHITESPACE = re.compile(r"\s+")
_PUNCT_SPACING = re.compile(r"\s*([{}();,:])\s*")

_COMMENT_PATTERNS = (
    re.compile(r"//.*$", re.MULTILINE),
    re.compile(r"/\*[\s\S]*?\*/"),
    re.compile(r"#.*$", re.MULTILINE),
    re.compile(r'"""[\s\S]*?"""'),
    re.compile(r"'''[\s\S]*?'''"),
)


def aggregate_severity(severities: Iterable[Severity]) -> Severity:
    """Maximum severity, or NONE for an empty input."""
    return max(severities, default=Severity.NONE)


def calculate_node_severity(
    member_diffs: Sequence[MemberDiff],
    dependency_changes: DependencyChanges,
    inheritance_changes: InheritanceChanges | None = None,
) -> Severity:
    """Node severity. Inheritance and dependency changes override members."""
    if inheritance_changes is not None and inheritance_changed(inheritance_changes):
        return Severity.HIGH
    if dependency_changes.has_changes:
        return Severity.HIGH
    return aggregate_severity(d.severity for d in member_diffs)


def inheritance_changed(changes: InheritanceChanges) -> bool:
    if changes.before_extends != changes.after_extends:
        return True
    return sorted(changes.before_implements) != sorted(changes.after_implements)


def classify_added_member(member: MemberInfo) -> Severity:
    return Severity.HIGH if member.exported else Severity.MEDIUM


def classify_removed_member(member: MemberInfo) -> Severity:
    return Severity.HIGH if member.exported else Severity.MEDIUM


def classify_modified_member(before: MemberInfo, after: MemberInfo) -> Severity:
    """Grade a member present on both sides.

    Signature change is HIGH. A body change is LOW when it disappears after
    normalizing formatting, or after stripping comments; otherwise MEDIUM.
    """
    if before.signature != after.signature:
        return Severity.HIGH

    if before.body_hash == after.body_hash:
        return Severity.NONE

    if normalize_for_comparison(before.text) == normalize_for_comparison(after.text):
        return Severity.LOW

    if normalize_for_comparison(remove_comments(before.text)) == normalize_for_comparison(
        remove_comments(after.text)
    ):
        return Severity.LOW

    return Severity.MEDIUM


def normalize_for_comparison(code: str) -> str:
    """Collapse whitespace and drop spaces around ``{}();,:``."""
    code = _WHITESPACE.sub(" ", code)
    code = _PUNCT_SPACING.sub(r"\1", code)
    return code.strip()


def remove_comments(code: str) -> str:
    """Strip C-style, hash and triple-quoted comments.

    Purely lexical: a ``#`` or ``//`` inside a string literal is treated as
    a comment too.
    """
    for pattern in _COMMENT_PATTERNS:
        code = pattern.sub("", code)
    return code


def is_import_reordering_only(before: Sequence[str], after: Sequence[str]) -> bool:
    return sorted(before) == sorted(after)


def calculate_line_diff(before: str, after: str) -> tuple[int, int]:
    """Approximate (added, removed) line counts.

    Set difference over trimmed non-empty lines, not a real diff: moved
    lines count as unchanged and duplicates collapse.
    """
    before_set = {line.strip() for line in before.split("\n") if line.strip()}
    after_set = {line.strip() for line in after.split("\n") if line.strip()}
    return len(after_set - before_set), len(before_set - after_set)


def summarize_node_changes(member_diffs: Iterable[MemberDiff]) -> NodeDiffSummary:
    added = removed = modified = lines_added = lines_removed = signature_changes = 0
    for diff in member_diffs:
        if diff.status is ChangeStatus.ADDED:
            added += 1
        elif diff.status is ChangeStatus.REMOVED:
            removed += 1
        elif diff.status is ChangeStatus.MODIFIED:
            modified += 1
            if diff.changes is not None:
                lines_added += diff.changes.lines_added
                lines_removed += diff.changes.lines_removed
                if diff.changes.signature_changed:
                    signature_changes += 1
    return NodeDiffSummary(
        members_added=added,
        members_removed=removed,
        members_modified=modified,
        lines_added=lines_added,
        lines_removed=lines_removed,
        signature_changes=signature_changes,
    )
