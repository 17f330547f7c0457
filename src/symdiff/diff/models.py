"""Data models for structural diff.

All models are frozen dataclasses with tuple fields; a result, once
built, is never mutated. ``to_dict()`` produces the JSON-ready shape sent
to UI event sinks.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any

from symdiff.baseline.models import Baseline

# Symbol kinds that own members
CONTAINER_KINDS = frozenset({"class", "interface"})
FUNCTION_KINDS = frozenset({"function"})
MEMBER_KINDS = frozenset({"method", "property", "constructor", "getter", "setter"})


class Severity(str, Enum):
    """Ordinal risk level of a change: none < low < medium < high."""

    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, Severity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANK = {
    Severity.NONE: 0,
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
}


class ChangeStatus(str, Enum):
    UNCHANGED = "unchanged"
    ADDED = "added"
    REMOVED = "removed"
    MODIFIED = "modified"


# ============================================================================
# Extractor output
# ============================================================================


@dataclass(frozen=True, slots=True)
class ExtractedSymbol:
    """A named construct produced by a language extractor.

    ``parent`` is the name of the enclosing class or interface for members,
    None for top-level symbols. Lines are 1-based and inclusive.
    """

    name: str
    kind: str
    line_start: int
    line_end: int
    exported: bool = False
    signature: str = ""
    parent: str | None = None
    extends: str | None = None
    implements: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class ExtractedImport:
    import_path: str
    imported_names: tuple[str, ...] = ()
    is_default: bool = False
    is_namespace: bool = False
    line: int = 0


@dataclass(frozen=True, slots=True)
class MemberInfo:
    """One member of a symbol, with its source text and body hash."""

    name: str
    kind: str
    signature: str
    body_hash: str
    text: str
    line_start: int
    line_end: int
    exported: bool = False


# ============================================================================
# Diff results
# ============================================================================


@dataclass(frozen=True, slots=True)
class MemberChanges:
    signature_changed: bool
    body_changed: bool
    lines_added: int = 0
    lines_removed: int = 0
    before_signature: str | None = None
    after_signature: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "signature_changed": self.signature_changed,
            "before_signature": self.before_signature,
            "after_signature": self.after_signature,
            "body_changed": self.body_changed,
            "lines_added": self.lines_added,
            "lines_removed": self.lines_removed,
        }


@dataclass(frozen=True, slots=True)
class MemberDiff:
    member_name: str
    member_kind: str
    status: ChangeStatus
    severity: Severity
    changes: MemberChanges | None = None  # only for modified members

    def to_dict(self) -> dict[str, Any]:
        return {
            "member_name": self.member_name,
            "member_kind": self.member_kind,
            "status": self.status.value,
            "severity": self.severity.value,
            "changes": self.changes.to_dict() if self.changes else None,
        }


@dataclass(frozen=True, slots=True)
class NodeDiffSummary:
    members_added: int = 0
    members_removed: int = 0
    members_modified: int = 0
    lines_added: int = 0
    lines_removed: int = 0
    signature_changes: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "members_added": self.members_added,
            "members_removed": self.members_removed,
            "members_modified": self.members_modified,
            "lines_added": self.lines_added,
            "lines_removed": self.lines_removed,
            "signature_changes": self.signature_changes,
        }


@dataclass(frozen=True, slots=True)
class DependencyChanges:
    added: tuple[str, ...] = ()
    removed: tuple[str, ...] = ()

    @property
    def has_changes(self) -> bool:
        return bool(self.added or self.removed)

    def to_dict(self) -> dict[str, Any]:
        return {"added": list(self.added), "removed": list(self.removed)}


@dataclass(frozen=True, slots=True)
class InheritanceChanges:
    before_extends: str | None = None
    after_extends: str | None = None
    before_implements: tuple[str, ...] = ()
    after_implements: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "before_extends": self.before_extends,
            "after_extends": self.after_extends,
            "before_implements": list(self.before_implements),
            "after_implements": list(self.after_implements),
        }


@dataclass(frozen=True, slots=True)
class NodeDiff:
    """Change record for one top-level symbol of one file.

    ``status`` is UNCHANGED exactly when no member, dependency or
    inheritance change is recorded.
    """

    node_id: str
    file_path: str
    node_kind: str
    node_name: str
    status: ChangeStatus
    severity: Severity
    summary: NodeDiffSummary = field(default_factory=NodeDiffSummary)
    member_diffs: tuple[MemberDiff, ...] = ()
    dependency_changes: DependencyChanges = field(default_factory=DependencyChanges)
    inheritance_changes: InheritanceChanges | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_id": self.node_id,
            "file_path": self.file_path,
            "node_kind": self.node_kind,
            "node_name": self.node_name,
            "status": self.status.value,
            "severity": self.severity.value,
            "summary": self.summary.to_dict(),
            "member_diffs": [m.to_dict() for m in self.member_diffs],
            "dependency_changes": self.dependency_changes.to_dict(),
            "inheritance_changes": (
                self.inheritance_changes.to_dict() if self.inheritance_changes else None
            ),
        }


@dataclass(frozen=True, slots=True)
class EdgeDiff:
    edge_id: str
    source: str
    target: str
    status: ChangeStatus

    def to_dict(self) -> dict[str, Any]:
        return {
            "edge_id": self.edge_id,
            "source": self.source,
            "target": self.target,
            "status": self.status.value,
        }


@dataclass(frozen=True, slots=True)
class GraphDiffStats:
    total_nodes_changed: int = 0
    total_edges_changed: int = 0
    low: int = 0
    medium: int = 0
    high: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_nodes_changed": self.total_nodes_changed,
            "total_edges_changed": self.total_edges_changed,
            "by_severity": {"low": self.low, "medium": self.medium, "high": self.high},
        }


@dataclass(frozen=True, slots=True)
class GraphDiff:
    """One immutable snapshot of a whole-graph comparison.

    Build with :meth:`create`, which freezes the mappings.
    """

    baseline: Baseline
    calculated_at: datetime
    node_diffs: Mapping[str, NodeDiff]
    edge_diffs: Mapping[str, EdgeDiff]
    added_nodes: tuple[str, ...]
    removed_nodes: tuple[str, ...]
    stats: GraphDiffStats

    @classmethod
    def create(
        cls,
        baseline: Baseline,
        node_diffs: Mapping[str, NodeDiff],
        edge_diffs: Mapping[str, EdgeDiff],
    ) -> GraphDiff:
        nodes = MappingProxyType(dict(node_diffs))
        edges = MappingProxyType(dict(edge_diffs))
        return cls(
            baseline=baseline,
            calculated_at=datetime.now(timezone.utc),
            node_diffs=nodes,
            edge_diffs=edges,
            added_nodes=tuple(k for k, v in nodes.items() if v.status is ChangeStatus.ADDED),
            removed_nodes=tuple(k for k, v in nodes.items() if v.status is ChangeStatus.REMOVED),
            stats=_compute_stats(nodes.values(), edges.values()),
        )

    @classmethod
    def empty(cls, baseline: Baseline) -> GraphDiff:
        return cls.create(baseline, {}, {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "baseline": self.baseline.to_dict(),
            "calculated_at": self.calculated_at.isoformat(),
            "node_diffs": {k: v.to_dict() for k, v in self.node_diffs.items()},
            "edge_diffs": {k: v.to_dict() for k, v in self.edge_diffs.items()},
            "added_nodes": list(self.added_nodes),
            "removed_nodes": list(self.removed_nodes),
            "stats": self.stats.to_dict(),
        }


def _compute_stats(nodes: Iterable[NodeDiff], edges: Iterable[EdgeDiff]) -> GraphDiffStats:
    changed = [n for n in nodes if n.status is not ChangeStatus.UNCHANGED]
    return GraphDiffStats(
        total_nodes_changed=len(changed),
        total_edges_changed=sum(1 for e in edges if e.status is not ChangeStatus.UNCHANGED),
        low=sum(1 for n in changed if n.severity is Severity.LOW),
        medium=sum(1 for n in changed if n.severity is Severity.MEDIUM),
        high=sum(1 for n in changed if n.severity is Severity.HIGH),
    )


@dataclass(frozen=True, slots=True)
class DiffChangedEvent:
    node_ids: tuple[str, ...]
    graph_diff: GraphDiff | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "node_ids": list(self.node_ids),
            "graph_diff": self.graph_diff.to_dict() if self.graph_diff else None,
        }


# ============================================================================
# Graph input (read contract of the graph builder)
# ============================================================================


@dataclass(frozen=True, slots=True)
class GraphNode:
    id: str
    file_path: str
    kind: str
    name: str


@dataclass(frozen=True, slots=True)
class GraphEdge:
    id: str
    source: str
    target: str
    kind: str = "import"


@dataclass(frozen=True, slots=True)
class CodeGraph:
    nodes: tuple[GraphNode, ...] = ()
    edges: tuple[GraphEdge, ...] = ()
