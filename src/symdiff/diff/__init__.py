"""Structural diff: symbol-level comparison of a baseline and the current code.

Layers:
- extraction: parser / extractor protocols and the language registry
- engine: per-file symbol and member matching
- severity: pure change grading
- cache: baseline content LRU and per-file result cache
- orchestrator: whole-graph runs, edge derivation, subscribers
- refresh: debounced per-path re-analysis
"""

from symdiff.diff.cache import DiffCache, LRUCache
from symdiff.diff.engine import StructuralDiffEngine
from symdiff.diff.extraction import LanguageAdapter, LanguageRegistry, Parser, SymbolExtractor
from symdiff.diff.models import (
    ChangeStatus,
    CodeGraph,
    DependencyChanges,
    DiffChangedEvent,
    EdgeDiff,
    ExtractedImport,
    ExtractedSymbol,
    GraphDiff,
    GraphDiffStats,
    GraphEdge,
    GraphNode,
    InheritanceChanges,
    MemberChanges,
    MemberDiff,
    MemberInfo,
    NodeDiff,
    NodeDiffSummary,
    Severity,
)
from symdiff.diff.orchestrator import ContentReader, DiffOrchestrator, WorkspaceReader
from symdiff.diff.refresh import DiffRefresher

__all__ = [
    # Orchestration
    "DiffOrchestrator",
    "DiffRefresher",
    "ContentReader",
    "WorkspaceReader",
    "StructuralDiffEngine",
    # Collaborator contracts
    "Parser",
    "SymbolExtractor",
    "LanguageAdapter",
    "LanguageRegistry",
    # Caches
    "DiffCache",
    "LRUCache",
    # Models
    "Severity",
    "ChangeStatus",
    "ExtractedSymbol",
    "ExtractedImport",
    "MemberInfo",
    "MemberChanges",
    "MemberDiff",
    "NodeDiffSummary",
    "DependencyChanges",
    "InheritanceChanges",
    "NodeDiff",
    "EdgeDiff",
    "GraphDiff",
    "GraphDiffStats",
    "DiffChangedEvent",
    "GraphNode",
    "GraphEdge",
    "CodeGraph",
]
