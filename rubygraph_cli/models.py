"""Core data models shared by the extractors, graph builder and exporters."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

SCOPE_SEPARATOR = "::"


@dataclass(frozen=True)
class MethodSignature:
    name: str
    rendered_signature: str
    is_class_level: bool = False


@dataclass(frozen=True)
class ClassDescriptor:
    qualified_name: str
    source_unit_id: str
    superclass_name: Optional[str] = None
    methods: Tuple[MethodSignature, ...] = ()
    namespace: Tuple[str, ...] = ()


@dataclass(frozen=True)
class CallEdge:
    target_class_name: str
    target_method: str
    source_method: Optional[str] = None


@dataclass(frozen=True)
class CallDetail:
    source_method: Optional[str]
    target_method: str


@dataclass(frozen=True)
class Entity:
    entity_id: int
    name: str
    source_unit_id: str
    methods: Tuple[MethodSignature, ...] = ()
    superclass_name: Optional[str] = None

    @property
    def namespace(self) -> Optional[str]:
        """Everything before the last ``::``, or None for top-level classes."""
        head, sep, _ = self.name.rpartition(SCOPE_SEPARATOR)
        return head if sep else None

    @property
    def simple_name(self) -> str:
        return self.name.rpartition(SCOPE_SEPARATOR)[2]


@dataclass(frozen=True)
class Specialization:
    child_id: int
    parent_id: int


@dataclass(frozen=True)
class Relationship:
    source_id: int
    destination_id: int
    calls: Tuple[CallDetail, ...] = ()


@dataclass(frozen=True)
class Graph:
    """Assembled class graph.

    Entities live in a flat arena indexed by ``entity_id``; specializations
    and relationships refer to entities by id only, so cyclic call or
    inheritance structures need no back-references.
    """

    entities: Tuple[Entity, ...] = ()
    specializations: Tuple[Specialization, ...] = ()
    relationships: Tuple[Relationship, ...] = ()
    _index: Dict[str, int] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self._index:
            self._index.update({e.name: e.entity_id for e in self.entities})

    def is_empty(self) -> bool:
        return not self.entities

    def entity(self, entity_id: int) -> Entity:
        return self.entities[entity_id]

    def entity_by_name(self, name: str) -> Optional[Entity]:
        entity_id = self._index.get(name)
        return None if entity_id is None else self.entities[entity_id]

    def relationships_for(self, name: str) -> List[Relationship]:
        """Relationships in which *name* is either the source or destination."""
        entity_id = self._index.get(name)
        if entity_id is None:
            return []
        return [
            r for r in self.relationships
            if entity_id in (r.source_id, r.destination_id)
        ]

    def specializations_for(self, name: str) -> List[Specialization]:
        entity_id = self._index.get(name)
        if entity_id is None:
            return []
        return [
            s for s in self.specializations
            if entity_id in (s.child_id, s.parent_id)
        ]

    def children_of(self, name: str) -> List[Entity]:
        entity_id = self._index.get(name)
        return [
            self.entities[s.child_id] for s in self.specializations
            if s.parent_id == entity_id
        ]

    def is_connected(self, name: str) -> bool:
        return bool(self.relationships_for(name))
