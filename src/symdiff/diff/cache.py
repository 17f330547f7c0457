"""Baseline content and per-file diff caches.

Two independent structures:

- a bounded LRU of baseline file contents keyed ``{baseline_hash}:{path}``;
  entries for an old baseline are never looked up again and age out
- an unbounded ``path -> FileDiffCacheEntry`` map, cleared whenever the
  active baseline hash changes

A cached diff is returned only when both its baseline hash and the hash
of the current content match. Writes carry the baseline hash captured when
the computation began; a write whose hash is no longer active is dropped.
"""

from __future__ import annotations

import hashlib
import re
import time
from collections import OrderedDict
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

from symdiff.baseline.models import Baseline
from symdiff.diff.models import NodeDiff

log = structlog.get_logger(__name__)

DEFAULT_BASELINE_CACHE_SIZE = 100

K = TypeVar("K")
V = TypeVar("V")

_WHITESPACE = re.compile(r"\s+")
_ABSENT = object()


def _digest(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()[:16]


def compute_baseline_hash(baseline: Baseline) -> str:
    return _digest(f"{baseline.kind.value}:{baseline.reference}:{baseline.timestamp.isoformat()}")


def content_hash(text: str) -> str:
    return _digest(text)


def body_hash(text: str) -> str:
    """Hash of member text with whitespace runs collapsed and ends trimmed."""
    return _digest(_WHITESPACE.sub(" ", text).strip())


class LRUCache(Generic[K, V]):
    """Bounded mapping that evicts the least recently used key."""

    def __init__(self, max_size: int = DEFAULT_BASELINE_CACHE_SIZE) -> None:
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._entries: OrderedDict[K, V] = OrderedDict()
        self._max = max_size

    @property
    def max_size(self) -> int:
        return self._max

    def get(self, key: K) -> V | None:
        if key not in self._entries:
            return None
        self._entries.move_to_end(key)
        return self._entries[key]

    def set(self, key: K, value: V) -> None:
        self._entries[key] = value
        self._entries.move_to_end(key)
        while len(self._entries) > self._max:
            self._entries.popitem(last=False)

    def delete(self, key: K) -> bool:
        return self._entries.pop(key, _ABSENT) is not _ABSENT

    def delete_matching(self, predicate: Callable[[K], bool]) -> int:
        doomed = [k for k in self._entries if predicate(k)]
        for k in doomed:
            del self._entries[k]
        return len(doomed)

    def clear(self) -> None:
        self._entries.clear()

    def keys(self) -> Iterator[K]:
        """Keys from least to most recently used."""
        return iter(list(self._entries))

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)


@dataclass(frozen=True, slots=True)
class FileDiffCacheEntry:
    baseline_hash: str
    current_hash: str
    diffs: tuple[NodeDiff, ...]
    timestamp: float


@dataclass(frozen=True, slots=True)
class CacheStats:
    hits: int
    misses: int
    baseline_entries: int
    file_entries: int


class DiffCache:
    """Caches bound to one active baseline."""

    def __init__(self, max_baseline_entries: int = DEFAULT_BASELINE_CACHE_SIZE) -> None:
        # Values are None when the file is absent at baseline
        self._baseline_content: LRUCache[str, str | None] = LRUCache(max_baseline_entries)
        self._file_diffs: dict[str, FileDiffCacheEntry] = {}
        self._baseline_hash: str | None = None
        self._hits = 0
        self._misses = 0

    @property
    def baseline_hash(self) -> str | None:
        return self._baseline_hash

    def set_baseline(self, baseline: Baseline) -> str:
        """Activate a baseline. A different hash drops every cached diff."""
        new_hash = compute_baseline_hash(baseline)
        if new_hash != self._baseline_hash:
            dropped = len(self._file_diffs)
            self._file_diffs.clear()
            self._baseline_hash = new_hash
            log.debug("diff_cache_rebased", baseline_hash=new_hash, dropped=dropped)
        return new_hash

    # ------------------------------------------------------------------
    # Baseline content
    # ------------------------------------------------------------------

    def _content_key(self, path: str) -> str:
        return f"{self._baseline_hash}:{path}"

    def has_baseline_content(self, path: str) -> bool:
        return self._content_key(path) in self._baseline_content

    def get_baseline_content(self, path: str) -> str | None:
        return self._baseline_content.get(self._content_key(path))

    def set_baseline_content(self, path: str, content: str | None) -> None:
        self._baseline_content.set(self._content_key(path), content)

    # ------------------------------------------------------------------
    # Diff results
    # ------------------------------------------------------------------

    def get_file_diffs(self, path: str, current_hash: str) -> tuple[NodeDiff, ...] | None:
        entry = self._file_diffs.get(path)
        if entry is None:
            self._misses += 1
            return None
        if entry.baseline_hash != self._baseline_hash or entry.current_hash != current_hash:
            del self._file_diffs[path]
            self._misses += 1
            return None
        self._hits += 1
        return entry.diffs

    def set_file_diffs(
        self,
        path: str,
        current_hash: str,
        diffs: tuple[NodeDiff, ...],
        baseline_hash: str,
    ) -> bool:
        """Store diffs computed against ``baseline_hash``.

        Returns False, storing nothing, if that baseline is no longer active.
        """
        if baseline_hash != self._baseline_hash:
            log.info(
                "stale_diff_discarded",
                path=path,
                computed_for=baseline_hash,
                active=self._baseline_hash,
            )
            return False
        self._file_diffs[path] = FileDiffCacheEntry(
            baseline_hash=baseline_hash,
            current_hash=current_hash,
            diffs=diffs,
            timestamp=time.time(),
        )
        return True

    def invalidate_file(self, path: str) -> None:
        self._file_diffs.pop(path, None)

    def clear(self) -> None:
        self._baseline_content.clear()
        self._file_diffs.clear()

    def stats(self) -> CacheStats:
        return CacheStats(
            hits=self._hits,
            misses=self._misses,
            baseline_entries=len(self._baseline_content),
            file_entries=len(self._file_diffs),
        )
