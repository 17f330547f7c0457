"""Whole-graph diff orchestration.

DiffOrchestrator owns the active baseline and the caches bound to it. Per
file it reads both versions, runs the language collaborators, and hands
the extracted symbols to StructuralDiffEngine. Per graph it merges file
results, finds files deleted since the baseline, derives edge statuses,
and publishes one immutable GraphDiff.

Scheduling is cooperative: all state is mutated between awaits, and the
only race guard is the baseline-hash check made before any result is
cached or published.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable

import structlog

from symdiff.baseline.models import Baseline
from symdiff.baseline.sources import BaselineResolver, BaselineSource
from symdiff.config.models import DiffConfig
from symdiff.core.errors import DiffError
from symdiff.core.logging import clear_run_id, set_run_id
from symdiff.diff.cache import DiffCache, content_hash
from symdiff.diff.engine import StructuralDiffEngine
from symdiff.diff.extraction import LanguageAdapter, LanguageRegistry
from symdiff.diff.models import (
    ChangeStatus,
    CodeGraph,
    DiffChangedEvent,
    EdgeDiff,
    ExtractedImport,
    ExtractedSymbol,
    GraphDiff,
    GraphEdge,
    NodeDiff,
)

log = structlog.get_logger(__name__)

DiffListener = Callable[[DiffChangedEvent], Any]


@runtime_checkable
class ContentReader(Protocol):
    """Reads the current version of a file; None when absent."""

    async def read(self, path: str) -> str | None: ...


class WorkspaceReader:
    """Reads current file content from disk under the workspace root."""

    def __init__(self, workspace_root: Path | str) -> None:
        self._root = Path(workspace_root)

    async def read(self, path: str) -> str | None:
        p = Path(path)
        if not p.is_absolute():
            p = self._root / p
        try:
            return p.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError):
            return None


class DiffOrchestrator:
    """Drives file and graph analysis against one active baseline.

    Lifecycle: no baseline until ``set_baseline``; afterwards any number of
    ``analyze_file`` / ``analyze_graph`` calls. Switching baselines drops
    every cached diff. Callers should await an in-flight ``analyze_graph``
    before switching.
    """

    def __init__(
        self,
        workspace_root: Path | str,
        registry: LanguageRegistry,
        *,
        source: BaselineSource | None = None,
        reader: ContentReader | None = None,
        config: DiffConfig | None = None,
        engine: StructuralDiffEngine | None = None,
    ) -> None:
        self._root = Path(workspace_root)
        self._config = config or DiffConfig()
        self._registry = registry
        self._source: BaselineSource = source or BaselineResolver.for_workspace(
            self._root, self._config.snapshot_dir
        )
        self._reader: ContentReader = reader or WorkspaceReader(self._root)
        self._engine = engine or StructuralDiffEngine()
        self._cache = DiffCache(self._config.baseline_cache_size)
        self._extensions = tuple(self._config.analyzable_extensions)
        self._excluded_dirs = frozenset(self._config.excluded_dirs)

        self._baseline: Baseline | None = None
        self._latest: GraphDiff | None = None
        self._listeners: list[DiffListener] = []

    @property
    def baseline(self) -> Baseline | None:
        return self._baseline

    @property
    def latest(self) -> GraphDiff | None:
        """Most recent GraphDiff published for the active baseline."""
        return self._latest

    @property
    def cache(self) -> DiffCache:
        return self._cache

    @property
    def config(self) -> DiffConfig:
        return self._config

    @property
    def source(self) -> BaselineSource:
        return self._source

    def set_baseline(self, baseline: Baseline) -> None:
        self._baseline = baseline
        self._cache.set_baseline(baseline)
        self._latest = None
        log.info(
            "baseline_set",
            kind=baseline.kind.value,
            reference=baseline.reference,
            label=baseline.label,
        )

    def _require_baseline(self, operation: str) -> Baseline:
        if self._baseline is None:
            raise DiffError.baseline_not_set(operation)
        return self._baseline

    def _is_current(self, baseline_hash: str | None) -> bool:
        """True while the baseline captured at the start of a run is still active."""
        return self._cache.baseline_hash == baseline_hash

    # =========================================================================
    # File analysis
    # =========================================================================

    async def analyze_file(self, path: str, current_content: str | None = None) -> list[NodeDiff]:
        """Structural diff of one file against the active baseline.

        ``current_content`` lets callers diff an unsaved buffer instead of
        the file on disk.
        """
        baseline = self._require_baseline("analyze_file")
        if not baseline.is_comparable:
            return []
        baseline_hash = self._cache.baseline_hash or ""

        current = current_content
        if current is None:
            current = await self._reader.read(path)

        if current is None:
            return await self._analyze_deleted(path, baseline, baseline_hash)

        current_hash = content_hash(current)
        cached = self._cache.get_file_diffs(path, current_hash)
        if cached is not None:
            log.debug("file_diff_cache_hit", path=path)
            return list(cached)

        adapter = self._registry.for_path(path)
        if adapter is None:
            return []

        before_text = await self._baseline_content(path, baseline, baseline_hash)
        before_symbols, before_imports = await self._extract(adapter, before_text, path, "baseline")
        after_symbols, after_imports = await self._extract(adapter, current, path, "current")

        diffs = self._engine.diff_nodes(
            before_symbols,
            after_symbols,
            before_text or "",
            current,
            before_imports,
            after_imports,
        )
        stamped = tuple(dataclasses.replace(d, file_path=path) for d in diffs)
        self._cache.set_file_diffs(path, current_hash, stamped, baseline_hash)
        log.debug("file_diff_computed", path=path, changed=len(stamped))
        return list(stamped)

    async def _analyze_deleted(
        self, path: str, baseline: Baseline, baseline_hash: str
    ) -> list[NodeDiff]:
        """Every baseline symbol of a file that no longer exists, as removed."""
        before_text = await self._baseline_content(path, baseline, baseline_hash)
        if before_text is None:
            return []
        adapter = self._registry.for_path(path)
        if adapter is None:
            return []
        before_symbols, _ = await self._extract(adapter, before_text, path, "baseline")
        diffs = self._engine.diff_nodes(before_symbols, [], before_text, "")
        return [dataclasses.replace(d, file_path=path) for d in diffs]

    async def _baseline_content(
        self, path: str, baseline: Baseline, baseline_hash: str
    ) -> str | None:
        if self._cache.has_baseline_content(path):
            return self._cache.get_baseline_content(path)
        try:
            content = await self._source.get_file_content(path, baseline)
        except Exception as e:
            log.warning("baseline_read_failed", path=path, error=str(e))
            return None
        if self._cache.baseline_hash == baseline_hash:
            self._cache.set_baseline_content(path, content)
        return content

    async def _extract(
        self, adapter: LanguageAdapter, text: str | None, path: str, side: str
    ) -> tuple[Sequence[ExtractedSymbol], Sequence[ExtractedImport]]:
        """Symbols and imports of one side. Any failure yields nothing."""
        if text is None:
            return [], []
        try:
            ast = await adapter.parser.parse(text, adapter.language_id)
            if ast is None:
                log.warning("parse_failed", path=path, side=side, language=adapter.language_id)
                return [], []
            symbols = list(adapter.extractor.extract_symbols(ast, text))
            imports = list(adapter.extractor.extract_imports(ast, text))
        except Exception as e:
            log.warning("symbol_extraction_failed", path=path, side=side, error=str(e))
            return [], []
        return symbols, imports

    # =========================================================================
    # Graph analysis
    # =========================================================================

    async def analyze_graph(self, graph: CodeGraph) -> GraphDiff:
        """Diff every file of the graph and publish the result as ``latest``."""
        baseline = self._require_baseline("analyze_graph")
        if not baseline.is_comparable:
            self._latest = GraphDiff.empty(baseline)
            return self._latest

        baseline_hash = self._cache.baseline_hash
        run_id = set_run_id()
        try:
            node_diffs: dict[str, NodeDiff] = {}
            graph_files = _group_by_file(graph)

            for path in graph_files:
                try:
                    for diff in await self.analyze_file(path):
                        node_diffs[diff.node_id] = diff
                except Exception as e:
                    log.warning("file_diff_failed", path=path, error=str(e))

            for diff in await self._deleted_file_diffs(baseline, graph_files):
                node_diffs[diff.node_id] = diff

            edge_diffs = derive_edge_diffs(graph.edges, node_diffs)
            result = GraphDiff.create(baseline, node_diffs, edge_diffs)
            if not self._is_current(baseline_hash):
                log.info(
                    "stale_graph_diff_discarded",
                    run_id=run_id,
                    reference=baseline.reference,
                )
                return result
            self._latest = result
            log.info(
                "graph_diff_computed",
                run_id=run_id,
                files=len(graph_files),
                nodes_changed=result.stats.total_nodes_changed,
                edges_changed=result.stats.total_edges_changed,
            )
            return result
        finally:
            clear_run_id()

    async def _deleted_file_diffs(
        self, baseline: Baseline, graph_files: Iterable[str]
    ) -> list[NodeDiff]:
        seen = set(graph_files)
        try:
            baseline_files = await self._source.list_files(baseline)
        except Exception as e:
            log.warning("baseline_list_failed", error=str(e))
            return []

        diffs: list[NodeDiff] = []
        for path in baseline_files:
            if path in seen or not self._should_scan(path):
                continue
            try:
                if await self._reader.read(path) is not None:
                    continue
                diffs.extend(await self.analyze_file(path))
            except Exception as e:
                log.warning("file_diff_failed", path=path, error=str(e))
        return diffs

    def _should_scan(self, path: str) -> bool:
        if any(part in self._excluded_dirs for part in PurePosixPath(path).parts[:-1]):
            return False
        return path.lower().endswith(self._extensions) and self._registry.is_supported(path)

    # =========================================================================
    # Change propagation
    # =========================================================================

    def subscribe(self, listener: DiffListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def notify(self, node_ids: Sequence[str], graph_diff: GraphDiff | None) -> None:
        event = DiffChangedEvent(node_ids=tuple(node_ids), graph_diff=graph_diff)
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception as e:
                log.error("listener_failed", listener=repr(listener), error=str(e))

    async def refresh(self, path: str, graph: CodeGraph | None = None) -> list[NodeDiff]:
        """Re-diff one changed file, then the graph if given, then notify.

        Subscribers are not notified if the baseline changed while the
        refresh was running.
        """
        baseline_hash = self._cache.baseline_hash
        self.invalidate(path)
        diffs = await self.analyze_file(path)
        graph_diff = await self.analyze_graph(graph) if graph is not None else self._latest
        if not self._is_current(baseline_hash):
            log.info("stale_refresh_discarded", path=path)
            return diffs
        self.notify([d.node_id for d in diffs], graph_diff)
        return diffs

    async def refresh_all(self, graph: CodeGraph) -> GraphDiff:
        """Drop every cache, re-diff the whole graph, notify with all node ids."""
        baseline_hash = self._cache.baseline_hash
        self.clear_cache()
        graph_diff = await self.analyze_graph(graph)
        if not self._is_current(baseline_hash):
            log.info("stale_refresh_discarded", nodes=len(graph_diff.node_diffs))
            return graph_diff
        self.notify(list(graph_diff.node_diffs), graph_diff)
        return graph_diff

    def invalidate(self, path: str) -> None:
        self._cache.invalidate_file(path)

    def clear_cache(self) -> None:
        self._cache.clear()


def _group_by_file(graph: CodeGraph) -> dict[str, list[str]]:
    """file_path -> graph node ids, in first-seen order."""
    files: dict[str, list[str]] = {}
    for node in graph.nodes:
        files.setdefault(node.file_path, []).append(node.id)
    return files


def derive_edge_diffs(
    edges: Iterable[GraphEdge], node_diffs: dict[str, NodeDiff]
) -> dict[str, EdgeDiff]:
    """Changed edges only, keyed by edge id."""
    result: dict[str, EdgeDiff] = {}
    for edge in edges:
        status = edge_status(node_diffs.get(edge.source), node_diffs.get(edge.target))
        if status is not ChangeStatus.UNCHANGED:
            result[edge.id] = EdgeDiff(
                edge_id=edge.id, source=edge.source, target=edge.target, status=status
            )
    return result


def edge_status(source: NodeDiff | None, target: NodeDiff | None) -> ChangeStatus:
    """Added beats removed beats modified; no changed endpoint means unchanged."""
    statuses = {d.status for d in (source, target) if d is not None}
    for status in (ChangeStatus.ADDED, ChangeStatus.REMOVED, ChangeStatus.MODIFIED):
        if status in statuses:
            return status
    return ChangeStatus.UNCHANGED
