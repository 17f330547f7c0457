"""Debounced per-path refresh of structural diffs.

Callers (an editor integration, a file watcher) report changed paths.
Each path gets its own timer; a new report for the same path restarts it.
When a timer fires the orchestrator runs its invalidate / re-analyze /
notify cycle for that path.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

import structlog

from symdiff.diff.models import CodeGraph
from symdiff.diff.orchestrator import DiffOrchestrator

log = structlog.get_logger(__name__)

@dataclass
class DiffRefresher:
    """Coalesces change events per path over a sliding debounce window.

    The window defaults to the orchestrator's ``DiffConfig.debounce_sec``.
    """

    orchestrator: DiffOrchestrator
    graph: CodeGraph | None = None
    debounce_sec: float | None = None

    _enabled: bool = field(default=True, init=False)
    _timers: dict[str, asyncio.Task[None]] = field(default_factory=dict, init=False)
    _running: set[asyncio.Task[None]] = field(default_factory=set, init=False)

    def __post_init__(self) -> None:
        if self.debounce_sec is None:
            self.debounce_sec = self.orchestrator.config.debounce_sec

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def pending(self) -> list[str]:
        """Paths whose timer has not fired yet."""
        return list(self._timers)

    def set_graph(self, graph: CodeGraph | None) -> None:
        self.graph = graph

    def set_enabled(self, enabled: bool) -> None:
        self._enabled = enabled
        if not enabled:
            self._cancel_timers()

    def notify_changed(self, path: str) -> None:
        """Schedule a refresh of ``path``, restarting any pending timer for it.

        Must be called from inside a running event loop.
        """
        if not self._enabled:
            return
        existing = self._timers.pop(path, None)
        if existing is not None:
            existing.cancel()
        self._timers[path] = asyncio.create_task(self._debounced(path))

    async def _debounced(self, path: str) -> None:
        await asyncio.sleep(self.debounce_sec)
        # Past this point a new event for the path starts a fresh timer
        if self._timers.get(path) is asyncio.current_task():
            del self._timers[path]
        task = asyncio.create_task(self._refresh(path))
        self._running.add(task)
        task.add_done_callback(self._running.discard)
        await task

    async def _refresh(self, path: str) -> None:
        try:
            diffs = await self.orchestrator.refresh(path, self.graph)
        except Exception as e:
            log.warning("diff_refresh_failed", path=path, error=str(e))
            return
        log.debug("diff_refreshed", path=path, changed=len(diffs))

    async def flush(self) -> None:
        """Wait for every pending timer and in-flight refresh to finish."""
        while self._timers or self._running:
            tasks = [*self._timers.values(), *self._running]
            await asyncio.gather(*tasks, return_exceptions=True)

    async def close(self) -> None:
        """Cancel pending timers and wait out in-flight refreshes."""
        self._enabled = False
        self._cancel_timers()
        if self._running:
            await asyncio.gather(*self._running, return_exceptions=True)

    def _cancel_timers(self) -> None:
        for task in self._timers.values():
            task.cancel()
        self._timers.clear()

