"""Parser / extractor protocols and the language registry.

Parsing source code is not done here. Language support is supplied by
collaborators (typically tree-sitter adapters) registered as
``LanguageAdapter`` entries. The registry is an explicit object built by
the caller and handed to the orchestrator; there is no global instance.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Any, Protocol, runtime_checkable

from symdiff.diff.models import ExtractedImport, ExtractedSymbol


@runtime_checkable
class Parser(Protocol):
    """Turns source text into an opaque AST.

    Returning None means the text could not be parsed; callers treat that
    as zero symbols, not as an error.
    """

    async def parse(self, text: str, language_id: str) -> Any | None: ...


@runtime_checkable
class SymbolExtractor(Protocol):
    """Reads symbols and imports out of a parsed AST.

    Names must be stable across versions of the same file and the exported
    flag must be computed consistently, or matching breaks.
    """

    def extract_symbols(self, ast: Any, text: str) -> Sequence[ExtractedSymbol]: ...

    def extract_imports(self, ast: Any, text: str) -> Sequence[ExtractedImport]: ...


@dataclass(frozen=True, slots=True)
class LanguageAdapter:
    language_id: str
    extensions: tuple[str, ...]
    parser: Parser
    extractor: SymbolExtractor


class LanguageRegistry:
    """Maps file extensions to language adapters."""

    def __init__(self, adapters: Iterable[LanguageAdapter] = ()) -> None:
        self._by_language: dict[str, LanguageAdapter] = {}
        self._by_extension: dict[str, LanguageAdapter] = {}
        for adapter in adapters:
            self.register(adapter)

    def register(self, adapter: LanguageAdapter) -> None:
        """Register an adapter. Later registrations win for shared extensions."""
        self._by_language[adapter.language_id] = adapter
        for ext in adapter.extensions:
            self._by_extension[_normalize_ext(ext)] = adapter

    def get(self, language_id: str) -> LanguageAdapter | None:
        return self._by_language.get(language_id)

    def for_path(self, path: str) -> LanguageAdapter | None:
        """Adapter for a file path by extension, or None if unsupported."""
        return self._by_extension.get(PurePosixPath(path).suffix.lower())

    def is_supported(self, path: str) -> bool:
        return self.for_path(path) is not None

    def supported_languages(self) -> list[str]:
        return list(self._by_language.keys())

    def supported_extensions(self) -> list[str]:
        return sorted(self._by_extension.keys())


def _normalize_ext(ext: str) -> str:
    ext = ext.lower()
    return ext if ext.startswith(".") else f".{ext}"
