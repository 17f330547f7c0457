"""Fixtures for structural diff tests.

Language collaborators are replaced by a line-based toy language:

    import <path>
    [export] class|interface|function <Name> [extends X] [implements A, B] {
      [public] method|property|constructor|getter|setter <name>(...) {
      }
    }

Top-level blocks close on a bare ``}`` line, members on ``  }``. Text
containing ``<<syntax error>>`` parses to None; ``<<crash>>`` raises.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from symdiff.baseline.models import Baseline
from symdiff.config.models import DiffConfig
from symdiff.diff.extraction import LanguageAdapter, LanguageRegistry
from symdiff.diff.models import ExtractedImport, ExtractedSymbol
from symdiff.diff.orchestrator import DiffOrchestrator

_IMPORT = re.compile(r"^import\s+(\S+)\s*$")
_TOP_LEVEL = re.compile(r"^(export\s+)?(class|interface|function)\s+(\w+)")
_MEMBER = re.compile(r"^  (public\s+)?(method|property|constructor|getter|setter)\s+(\w+)")


def _header(line: str) -> str:
    return line.strip().removesuffix("{").strip()


def _block_end(lines: list[str], start: int, closer: str) -> int:
    if not lines[start].rstrip().endswith("{"):
        return start
    for j in range(start + 1, len(lines)):
        if lines[j].rstrip() == closer:
            return j
    return len(lines) - 1


class ToyParser:
    """Parser whose AST is the text itself."""

    def __init__(self) -> None:
        self.calls = 0

    async def parse(self, text: str, language_id: str) -> Any | None:  # noqa: ARG002
        self.calls += 1
        if "<<syntax error>>" in text:
            return None
        if "<<crash>>" in text:
            raise RuntimeError("parser crashed")
        return text


class ToyExtractor:
    def extract_symbols(self, ast: Any, text: str) -> list[ExtractedSymbol]:  # noqa: ARG002
        lines = text.split("\n")
        symbols: list[ExtractedSymbol] = []
        i = 0
        while i < len(lines):
            match = _TOP_LEVEL.match(lines[i])
            if match is None:
                i += 1
                continue
            end = _block_end(lines, i, "}")
            name = match.group(3)
            symbols.append(
                ExtractedSymbol(
                    name=name,
                    kind=match.group(2),
                    line_start=i + 1,
                    line_end=end + 1,
                    exported=bool(match.group(1)),
                    signature=_header(lines[i]),
                )
            )
            if match.group(2) in ("class", "interface"):
                k = i + 1
                while k < end:
                    member = _MEMBER.match(lines[k])
                    if member is None:
                        k += 1
                        continue
                    member_end = _block_end(lines, k, "  }")
                    symbols.append(
                        ExtractedSymbol(
                            name=member.group(3),
                            kind=member.group(2),
                            line_start=k + 1,
                            line_end=member_end + 1,
                            exported=bool(member.group(1)),
                            signature=_header(lines[k]),
                            parent=name,
                        )
                    )
                    k = member_end + 1
            i = end + 1
        return symbols

    def extract_imports(self, ast: Any, text: str) -> list[ExtractedImport]:  # noqa: ARG002
        imports: list[ExtractedImport] = []
        for n, line in enumerate(text.split("\n"), start=1):
            match = _IMPORT.match(line)
            if match:
                imports.append(ExtractedImport(import_path=match.group(1), line=n))
        return imports


class InMemorySource:
    """Baseline source backed by ``{reference: {path: content}}``."""

    def __init__(self, files: dict[str, dict[str, str]] | None = None) -> None:
        self.files = files or {}
        self.reads = 0
        self.fail = False

    async def get_file_content(self, path: str, baseline: Baseline) -> str | None:
        self.reads += 1
        if self.fail:
            raise OSError("baseline store unavailable")
        return self.files.get(baseline.reference, {}).get(path)

    async def file_exists(self, path: str, baseline: Baseline) -> bool:
        return path in self.files.get(baseline.reference, {})

    async def list_files(self, baseline: Baseline) -> list[str]:
        return sorted(self.files.get(baseline.reference, {}))


class InMemoryReader:
    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files = files or {}

    async def read(self, path: str) -> str | None:
        return self.files.get(path)


@pytest.fixture
def toy_parser() -> ToyParser:
    return ToyParser()


@pytest.fixture
def registry(toy_parser: ToyParser) -> LanguageRegistry:
    return LanguageRegistry(
        [
            LanguageAdapter(
                language_id="toy",
                extensions=(".ts", ".py"),
                parser=toy_parser,
                extractor=ToyExtractor(),
            )
        ]
    )


@pytest.fixture
def source() -> InMemorySource:
    return InMemorySource()


@pytest.fixture
def reader() -> InMemoryReader:
    return InMemoryReader()


@pytest.fixture
def make_orchestrator(
    tmp_path: Path,
    registry: LanguageRegistry,
    source: InMemorySource,
    reader: InMemoryReader,
) -> Callable[..., DiffOrchestrator]:
    def _make(config: DiffConfig | None = None) -> DiffOrchestrator:
        return DiffOrchestrator(
            tmp_path,
            registry,
            source=source,
            reader=reader,
            config=config,
        )

    return _make


@pytest.fixture
def orchestrator(make_orchestrator: Callable[..., DiffOrchestrator]) -> DiffOrchestrator:
    return make_orchestrator()


@pytest.fixture
def toy_extractor() -> ToyExtractor:
    return ToyExtractor()
