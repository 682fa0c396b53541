"""Analysis pipeline: discover units, extract per unit, build the graph.

Each unit is parsed once and both extractors walk the resulting read-only
tree independently. Per-unit work runs on a thread pool; results are merged
by a single :class:`GraphBuilder` in input order, which keeps the
first-seen-wins policy deterministic.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from .ast_provider import RubyAstProvider, SyntaxFailure
from .config_manager import AnalysisSettings
from .discovery import default_scan_paths, discover_ruby_files
from .graph_builder import GraphBuilder
from .models import CallEdge, ClassDescriptor, Graph
from .parser import SignatureRenderer, StructuralExtractor
from .static_analyzer import CallExtractor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SourceUnit:
    """One file (or in-memory snippet) submitted for analysis."""

    unit_id: str
    path: Optional[Path] = None
    text: Optional[str] = None

    @classmethod
    def from_path(cls, path: Path) -> "SourceUnit":
        return cls(unit_id=str(path), path=path)

    def read_text(self) -> str:
        if self.text is not None:
            return self.text
        if self.path is None:
            raise ValueError(f"Source unit {self.unit_id} has neither text nor path")
        return self.path.read_text(encoding="utf-8", errors="ignore")


@dataclass(frozen=True)
class UnitResult:
    unit_id: str
    descriptor: Optional[ClassDescriptor] = None
    calls: Tuple[CallEdge, ...] = ()
    error: Optional[str] = None


@dataclass(frozen=True)
class AnalysisResult:
    graph: Graph
    units: Tuple[UnitResult, ...]

    @property
    def failures(self) -> List[UnitResult]:
        return [u for u in self.units if u.error is not None]


class Analyzer:
    """Runs the extraction pipeline over a set of source units."""

    def __init__(
        self,
        settings: Optional[AnalysisSettings] = None,
        provider: Optional[RubyAstProvider] = None,
    ) -> None:
        self.settings = settings or AnalysisSettings()
        self.provider = provider or RubyAstProvider()
        self.renderer = SignatureRenderer(self.settings.default_rendering)

    def analyze_unit(self, unit: SourceUnit) -> UnitResult:
        try:
            source = unit.read_text()
        except OSError as exc:
            logger.warning("Could not read %s: %s", unit.unit_id, exc)
            return UnitResult(unit.unit_id, error=str(exc))

        root = self.provider.parse(source)
        if isinstance(root, SyntaxFailure):
            logger.warning("Syntax error in %s: %s", unit.unit_id, root)
            return UnitResult(unit.unit_id, error=str(root))

        try:
            descriptor = StructuralExtractor(self.renderer).extract(root, unit.unit_id)
            calls = CallExtractor().extract_calls(root)
        except RecursionError:
            logger.warning("Syntax tree of %s is too deeply nested", unit.unit_id)
            return UnitResult(unit.unit_id, error="syntax tree too deeply nested")
        logger.debug(
            "%s: class=%s calls=%d",
            unit.unit_id, descriptor.qualified_name if descriptor else None, len(calls),
        )
        return UnitResult(unit.unit_id, descriptor, tuple(calls))

    def analyze_units(self, units: Sequence[SourceUnit]) -> AnalysisResult:
        with ThreadPoolExecutor(max_workers=self.settings.workers) as pool:
            results = tuple(pool.map(self.analyze_unit, units))

        builder = GraphBuilder(max_call_details=self.settings.max_call_details)
        builder.add_descriptors(r.descriptor for r in results if r.descriptor is not None)
        for result in results:
            builder.add_call_edges(result.unit_id, result.calls)
        graph = builder.build()

        logger.info(
            "Analyzed %d units: %d classes, %d relationships, %d specializations, %d failures",
            len(results), len(graph.entities), len(graph.relationships),
            len(graph.specializations), sum(1 for r in results if r.error),
        )
        return AnalysisResult(graph=graph, units=results)

    def analyze_project(self, root: Path, paths: Optional[Sequence[str]] = None) -> AnalysisResult:
        scan = default_scan_paths(root, paths or self.settings.scan_paths)
        files = discover_ruby_files(scan)
        logger.info("Discovered %d Ruby files under %s", len(files), root)
        return self.analyze_units([SourceUnit.from_path(f) for f in files])


def analyze_sources(
    sources: Iterable[Tuple[str, str]],
    settings: Optional[AnalysisSettings] = None,
) -> AnalysisResult:
    """Analyze in-memory ``(unit_id, text)`` pairs."""
    units = [SourceUnit(unit_id=unit_id, text=text) for unit_id, text in sources]
    return Analyzer(settings).analyze_units(units)
