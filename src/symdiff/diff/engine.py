"""Structural diff engine: symbol and member matching for one file.

Compares the extracted symbols of two versions of a file. No I/O, no
caching: inputs are symbol lists and source text, output is NodeDiffs.

Matching:
- top-level symbols (``parent is None``) are matched by name
- members are matched by name within their owning symbol
- a function is its own single ``method`` member
- class / interface members are the nested symbols whose ``parent``
  equals the owner's name

Result order per file is added, removed, modified. Unchanged symbols are
not reported.
"""

from __future__ import annotations

import re
from collections.abc import Sequence

from symdiff.diff.cache import body_hash
from symdiff.diff.models import (
    CONTAINER_KINDS,
    FUNCTION_KINDS,
    MEMBER_KINDS,
    ChangeStatus,
    DependencyChanges,
    ExtractedImport,
    ExtractedSymbol,
    InheritanceChanges,
    MemberChanges,
    MemberDiff,
    MemberInfo,
    NodeDiff,
    NodeDiffSummary,
    Severity,
)
from symdiff.diff.severity import (
    calculate_line_diff,
    calculate_node_severity,
    classify_added_member,
    classify_modified_member,
    classify_removed_member,
    inheritance_changed,
    summarize_node_changes,
)

_EXTENDS = re.compile(r"\bextends\s+([A-Za-z_$][\w$<>,.\s]*?)\s*(?=\bimplements\b|\{|$)")
_IMPLEMENTS = re.compile(r"\bimplements\s+([A-Za-z_$][\w$<>,.\s]*?)\s*(?=\{|$)")


class StructuralDiffEngine:
    """Produces per-symbol NodeDiffs for one file.

    ``file_path`` on the returned diffs is empty; the caller stamps it.
    """

    def diff_nodes(
        self,
        before_symbols: Sequence[ExtractedSymbol],
        after_symbols: Sequence[ExtractedSymbol],
        before_source: str,
        after_source: str,
        before_imports: Sequence[ExtractedImport] = (),
        after_imports: Sequence[ExtractedImport] = (),
    ) -> list[NodeDiff]:
        before_map = _top_level(before_symbols)
        after_map = _top_level(after_symbols)
        diffs: list[NodeDiff] = []

        for name, symbol in after_map.items():
            if name not in before_map:
                members = members_for(symbol, after_symbols, after_source)
                diffs.append(_whole_node_diff(symbol, members, ChangeStatus.ADDED))

        for name, symbol in before_map.items():
            if name not in after_map:
                members = members_for(symbol, before_symbols, before_source)
                diffs.append(_whole_node_diff(symbol, members, ChangeStatus.REMOVED))

        dependency_changes = diff_dependencies(before_imports, after_imports)
        for name, after in after_map.items():
            before = before_map.get(name)
            if before is None:
                continue
            diff = self._compare_symbols(
                before,
                after,
                before_symbols,
                after_symbols,
                before_source,
                after_source,
                dependency_changes,
            )
            if diff.status is not ChangeStatus.UNCHANGED:
                diffs.append(diff)

        return diffs

    def diff_members(
        self, before: Sequence[MemberInfo], after: Sequence[MemberInfo]
    ) -> list[MemberDiff]:
        """Removed, then added, then modified members. Later duplicates win."""
        before_map = {m.name: m for m in before}
        after_map = {m.name: m for m in after}
        diffs: list[MemberDiff] = []

        for name, member in before_map.items():
            if name not in after_map:
                diffs.append(
                    MemberDiff(
                        member_name=name,
                        member_kind=member.kind,
                        status=ChangeStatus.REMOVED,
                        severity=classify_removed_member(member),
                    )
                )

        for name, member in after_map.items():
            if name not in before_map:
                diffs.append(
                    MemberDiff(
                        member_name=name,
                        member_kind=member.kind,
                        status=ChangeStatus.ADDED,
                        severity=classify_added_member(member),
                    )
                )

        for name, after_member in after_map.items():
            before_member = before_map.get(name)
            if before_member is None:
                continue
            modified = _compare_member(before_member, after_member)
            if modified is not None:
                diffs.append(modified)

        return diffs

    def _compare_symbols(
        self,
        before: ExtractedSymbol,
        after: ExtractedSymbol,
        before_symbols: Sequence[ExtractedSymbol],
        after_symbols: Sequence[ExtractedSymbol],
        before_source: str,
        after_source: str,
        dependency_changes: DependencyChanges,
    ) -> NodeDiff:
        member_diffs = self.diff_members(
            members_for(before, before_symbols, before_source),
            members_for(after, after_symbols, after_source),
        )
        inheritance = diff_inheritance(before, after)

        changed = bool(member_diffs) or dependency_changes.has_changes or inheritance is not None
        status = ChangeStatus.MODIFIED if changed else ChangeStatus.UNCHANGED
        severity = (
            calculate_node_severity(member_diffs, dependency_changes, inheritance)
            if changed
            else Severity.NONE
        )

        return NodeDiff(
            node_id=node_id(after),
            file_path="",
            node_kind=after.kind,
            node_name=after.name,
            status=status,
            severity=severity,
            summary=summarize_node_changes(member_diffs),
            member_diffs=tuple(member_diffs),
            dependency_changes=dependency_changes,
            inheritance_changes=inheritance,
        )


def node_id(symbol: ExtractedSymbol) -> str:
    return f"{symbol.kind}:{symbol.name}"


def _top_level(symbols: Sequence[ExtractedSymbol]) -> dict[str, ExtractedSymbol]:
    return {s.name: s for s in symbols if s.parent is None}


def _whole_node_diff(
    symbol: ExtractedSymbol, members: list[MemberInfo], status: ChangeStatus
) -> NodeDiff:
    """Diff for a symbol that exists on one side only."""
    lines = symbol.line_end - symbol.line_start + 1
    if status is ChangeStatus.ADDED:
        classify = classify_added_member
        summary = NodeDiffSummary(members_added=len(members), lines_added=lines)
    else:
        classify = classify_removed_member
        summary = NodeDiffSummary(members_removed=len(members), lines_removed=lines)

    return NodeDiff(
        node_id=node_id(symbol),
        file_path="",
        node_kind=symbol.kind,
        node_name=symbol.name,
        status=status,
        severity=Severity.HIGH if symbol.exported else Severity.MEDIUM,
        summary=summary,
        member_diffs=tuple(
            MemberDiff(
                member_name=m.name,
                member_kind=m.kind,
                status=status,
                severity=classify(m),
            )
            for m in members
        ),
    )


def _compare_member(before: MemberInfo, after: MemberInfo) -> MemberDiff | None:
    signature_changed = before.signature != after.signature
    body_changed = before.body_hash != after.body_hash
    if not signature_changed and not body_changed:
        return None

    added, removed = calculate_line_diff(before.text, after.text)
    return MemberDiff(
        member_name=before.name,
        member_kind=before.kind,
        status=ChangeStatus.MODIFIED,
        severity=classify_modified_member(before, after),
        changes=MemberChanges(
            signature_changed=signature_changed,
            body_changed=body_changed,
            lines_added=added,
            lines_removed=removed,
            before_signature=before.signature if signature_changed else None,
            after_signature=after.signature if signature_changed else None,
        ),
    )


# =============================================================================
# Members
# =============================================================================


def members_for(
    symbol: ExtractedSymbol, all_symbols: Sequence[ExtractedSymbol], source: str
) -> list[MemberInfo]:
    """Members of a top-level symbol, in extractor order."""
    if symbol.kind in FUNCTION_KINDS:
        signature = symbol.signature or f"function {symbol.name}()"
        return [_member_info(symbol, "method", source, signature)]

    if symbol.kind not in CONTAINER_KINDS:
        return []

    members: list[MemberInfo] = []
    for child in all_symbols:
        if child.parent != symbol.name:
            continue
        if child.kind in MEMBER_KINDS:
            kind = child.kind
        elif child.kind in FUNCTION_KINDS:
            kind = "method"
        else:
            continue
        members.append(_member_info(child, kind, source, child.signature or child.name))
    return members


def _member_info(symbol: ExtractedSymbol, kind: str, source: str, signature: str) -> MemberInfo:
    text = source_lines(source, symbol.line_start, symbol.line_end)
    return MemberInfo(
        name=symbol.name,
        kind=kind,
        signature=signature,
        body_hash=body_hash(text),
        text=text,
        line_start=symbol.line_start,
        line_end=symbol.line_end,
        exported=symbol.exported,
    )


def source_lines(source: str, line_start: int, line_end: int) -> str:
    """Lines ``line_start..line_end`` (1-based, inclusive) joined by newlines."""
    lines = source.split("\n")
    return "\n".join(lines[max(line_start - 1, 0) : max(line_end, 0)])


# =============================================================================
# Dependencies and inheritance
# =============================================================================


def diff_dependencies(
    before: Sequence[ExtractedImport], after: Sequence[ExtractedImport]
) -> DependencyChanges:
    """File-level import path changes, in first-seen order."""
    before_paths = dict.fromkeys(i.import_path for i in before)
    after_paths = dict.fromkeys(i.import_path for i in after)
    return DependencyChanges(
        added=tuple(p for p in after_paths if p not in before_paths),
        removed=tuple(p for p in before_paths if p not in after_paths),
    )


def diff_inheritance(before: ExtractedSymbol, after: ExtractedSymbol) -> InheritanceChanges | None:
    """Inheritance change for class / interface symbols, or None if unchanged."""
    if before.kind not in CONTAINER_KINDS and after.kind not in CONTAINER_KINDS:
        return None

    changes = InheritanceChanges(
        before_extends=extends_of(before),
        after_extends=extends_of(after),
        before_implements=implements_of(before),
        after_implements=implements_of(after),
    )
    return changes if inheritance_changed(changes) else None


def extends_of(symbol: ExtractedSymbol) -> str | None:
    if symbol.extends is not None:
        return symbol.extends or None
    match = _EXTENDS.search(symbol.signature)
    return match.group(1).strip() if match else None


def implements_of(symbol: ExtractedSymbol) -> tuple[str, ...]:
    if symbol.implements is not None:
        return tuple(symbol.implements)
    match = _IMPLEMENTS.search(symbol.signature)
    if not match:
        return ()
    return tuple(name for name in _split_top_level(match.group(1)) if name)


def _split_top_level(text: str) -> list[str]:
    """Split on commas outside ``<...>`` generic brackets."""
    parts: list[str] = []
    depth = 0
    current: list[str] = []
    for ch in text:
        if ch == "<":
            depth += 1
        elif ch == ">":
            depth = max(depth - 1, 0)
        elif ch == "," and depth == 0:
            parts.append("".join(current).strip())
            current = []
            continue
        current.append(ch)
    parts.append("".join(current).strip())
    return parts
