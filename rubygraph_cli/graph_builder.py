"""Assemble the class graph from per-unit extraction results.

The builder is the single owner of the graph while it is being assembled.
Entities are created first-seen-wins per qualified name; specializations and
relationships are only added when both endpoints are known entities, and a
relationship exists at most once per ordered entity pair.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .config import DEFAULT_MAX_CALL_DETAILS
from .models import (
    SCOPE_SEPARATOR,
    CallDetail,
    CallEdge,
    ClassDescriptor,
    Entity,
    Graph,
    Relationship,
    Specialization,
)

logger = logging.getLogger(__name__)


class GraphBuilder:
    """Accumulates descriptors and call edges, then freezes a :class:`Graph`.

    Folding the same facts in twice leaves the graph unchanged, so callers
    may feed results incrementally.
    """

    def __init__(self, max_call_details: int = DEFAULT_MAX_CALL_DETAILS) -> None:
        self.max_call_details = max_call_details
        self._entities: List[Entity] = []
        self._index: Dict[str, int] = {}
        self._descriptors: Dict[str, ClassDescriptor] = {}
        self._specializations: Dict[Tuple[int, int], Specialization] = {}
        self._relationships: Dict[Tuple[int, int], List[CallDetail]] = {}

    # ------------------------------------------------------------------
    # Entities and specializations
    # ------------------------------------------------------------------

    def add_descriptors(self, descriptors: Iterable[ClassDescriptor]) -> None:
        pending = list(descriptors)
        for descriptor in pending:
            self._add_entity(descriptor)
        for descriptor in pending:
            self._add_specialization(descriptor)

    def _add_entity(self, descriptor: ClassDescriptor) -> None:
        self._descriptors.setdefault(descriptor.source_unit_id, descriptor)
        if descriptor.qualified_name in self._index:
            existing = self._entities[self._index[descriptor.qualified_name]]
            if existing.source_unit_id != descriptor.source_unit_id:
                logger.debug(
                    "Class %s declared again in %s; keeping %s",
                    descriptor.qualified_name, descriptor.source_unit_id, existing.source_unit_id,
                )
            return
        entity_id = len(self._entities)
        self._entities.append(Entity(
            entity_id=entity_id,
            name=descriptor.qualified_name,
            source_unit_id=descriptor.source_unit_id,
            methods=descriptor.methods,
            superclass_name=descriptor.superclass_name,
        ))
        self._index[descriptor.qualified_name] = entity_id

    def _add_specialization(self, descriptor: ClassDescriptor) -> None:
        if not descriptor.superclass_name:
            return
        child = self._index.get(descriptor.qualified_name)
        parent = self.lookup(descriptor.superclass_name, descriptor.namespace)
        if child is None or parent is None:
            logger.debug(
                "Dropping superclass %s of %s: not a known class",
                descriptor.superclass_name, descriptor.qualified_name,
            )
            return
        self._specializations.setdefault((child, parent), Specialization(child, parent))

    # ------------------------------------------------------------------
    # Relationships
    # ------------------------------------------------------------------

    def add_call_edges(self, source_unit_id: str, edges: Iterable[CallEdge]) -> None:
        """Fold the call edges of one unit into the relationship set."""
        descriptor = self._descriptors.get(source_unit_id)
        if descriptor is None:
            return
        source = self._index.get(descriptor.qualified_name)
        if source is None:
            return
        for edge in edges:
            target = self.lookup(edge.target_class_name, descriptor.namespace)
            if target is None:
                continue
            details = self._relationships.setdefault((source, target), [])
            detail = CallDetail(edge.source_method, edge.target_method)
            if detail not in details and len(details) < self.max_call_details:
                details.append(detail)

    # ------------------------------------------------------------------
    # Resolution and output
    # ------------------------------------------------------------------

    def lookup(self, name: str, namespace: Sequence[str] = ()) -> Optional[int]:
        """Resolve *name* the way Ruby resolves a constant lexically.

        ``Base`` referenced inside ``module Admin`` is tried as
        ``Admin::Base`` first, then ``Base``.
        """
        for depth in range(len(namespace), -1, -1):
            candidate = SCOPE_SEPARATOR.join(tuple(namespace[:depth]) + (name,))
            if candidate in self._index:
                return self._index[candidate]
        return None

    def build(self) -> Graph:
        return Graph(
            entities=tuple(self._entities),
            specializations=tuple(self._specializations.values()),
            relationships=tuple(
                Relationship(source, destination, tuple(details))
                for (source, destination), details in self._relationships.items()
            ),
        )


def build_graph(
    descriptors: Iterable[ClassDescriptor],
    call_edges_by_unit: Mapping[str, Iterable[CallEdge]],
    max_call_details: int = DEFAULT_MAX_CALL_DETAILS,
) -> Graph:
    builder = GraphBuilder(max_call_details=max_call_details)
    builder.add_descriptors(descriptors)
    for unit_id, edges in call_edges_by_unit.items():
        builder.add_call_edges(unit_id, edges)
    return builder.build()
