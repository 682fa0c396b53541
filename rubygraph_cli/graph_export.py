"""Graph export helpers for DOT, Mermaid and JSON outputs."""

from __future__ import annotations

import json
import re
from collections import defaultdict
from pathlib import Path
from typing import Any, Dict, List, Optional, Set

from .config import DEFAULT_LABEL_LIMIT
from .models import Entity, Graph, Relationship, Specialization


def export_dot(
    graph: Graph,
    output_file: Optional[Path] = None,
    focus: str = "",
    label_limit: int = DEFAULT_LABEL_LIMIT,
) -> str:
    """Render *graph* as a Graphviz digraph, clustering entities by namespace."""
    selected = focused_subgraph(graph, focus)

    lines = ["digraph ClassGraph {"]
    lines.append("  rankdir=LR;")
    lines.append('  node [shape=record, fontname="Helvetica", fontsize=10];')
    lines.append('  edge [fontname="Helvetica", fontsize=8];')

    clusters: Dict[Optional[str], List[Entity]] = defaultdict(list)
    for entity_id in sorted(selected):
        entity = graph.entity(entity_id)
        clusters[entity.namespace].append(entity)

    for entity in clusters.pop(None, []):
        lines.append(f"  {_node_decl(entity)}")
    for index, (namespace, members) in enumerate(sorted(clusters.items())):
        lines.append(f"  subgraph cluster_{index} {{")
        lines.append(f'    label="{_esc(namespace or "")}";')
        for entity in members:
            lines.append(f"    {_node_decl(entity)}")
        lines.append("  }")

    for spec in _specializations_within(graph, selected):
        child, parent = graph.entity(spec.child_id), graph.entity(spec.parent_id)
        lines.append(f'  "{_esc(child.name)}" -> "{_esc(parent.name)}" [arrowhead=empty, style=solid];')

    for rel in _relationships_within(graph, selected):
        source, dest = graph.entity(rel.source_id), graph.entity(rel.destination_id)
        label = _esc("\\n".join(call_labels(rel, label_limit)))
        lines.append(f'  "{_esc(source.name)}" -> "{_esc(dest.name)}" [style=dashed, label="{label}"];')

    lines.append("}")
    return _emit("\n".join(lines) + "\n", output_file)


def export_mermaid(
    graph: Graph,
    output_file: Optional[Path] = None,
    focus: str = "",
    label_limit: int = DEFAULT_LABEL_LIMIT,
) -> str:
    """Render *graph* as a Mermaid ``classDiagram``."""
    selected = focused_subgraph(graph, focus)
    lines = ["classDiagram"]

    for entity_id in sorted(selected):
        entity = graph.entity(entity_id)
        lines.append(f'    class {_mermaid_id(entity)}["{entity.name}"] {{')
        for method in entity.methods:
            suffix = "$" if method.is_class_level else ""
            lines.append(f"        +{_esc_mermaid(method.rendered_signature)}{suffix}")
        lines.append("    }")

    for spec in _specializations_within(graph, selected):
        lines.append(
            f"    {_mermaid_id(graph.entity(spec.parent_id))} <|-- {_mermaid_id(graph.entity(spec.child_id))}"
        )

    for rel in _relationships_within(graph, selected):
        source, dest = graph.entity(rel.source_id), graph.entity(rel.destination_id)
        labels = call_labels(rel, label_limit)
        suffix = f" : {', '.join(labels)}" if labels else ""
        lines.append(f"    {_mermaid_id(source)} ..> {_mermaid_id(dest)}{suffix}")

    return _emit("\n".join(lines) + "\n", output_file)


def export_json(graph: Graph, output_file: Optional[Path] = None, focus: str = "") -> str:
    payload = graph_to_dict(graph, focus)
    return _emit(json.dumps(payload, indent=2) + "\n", output_file)


def graph_to_dict(graph: Graph, focus: str = "") -> Dict[str, Any]:
    selected = focused_subgraph(graph, focus)
    return {
        "entities": [
            {
                "id": e.entity_id,
                "name": e.name,
                "superclass": e.superclass_name,
                "source": e.source_unit_id,
                "methods": [
                    {
                        "name": m.name,
                        "signature": m.rendered_signature,
                        "class_method": m.is_class_level,
                    }
                    for m in e.methods
                ],
            }
            for e in graph.entities
            if e.entity_id in selected
        ],
        "specializations": [
            {"child": graph.entity(s.child_id).name, "parent": graph.entity(s.parent_id).name}
            for s in _specializations_within(graph, selected)
        ],
        "relationships": [
            {
                "source": graph.entity(r.source_id).name,
                "destination": graph.entity(r.destination_id).name,
                "calls": [
                    {"source_method": c.source_method, "target_method": c.target_method}
                    for c in r.calls
                ],
            }
            for r in _relationships_within(graph, selected)
        ],
    }


def call_labels(relationship: Relationship, limit: int = DEFAULT_LABEL_LIMIT) -> List[str]:
    """``caller → callee`` lines for an edge label, truncated with ``...``."""
    labels = [
        f"{call.source_method or '?'} → {call.target_method}"
        for call in relationship.calls[:limit]
    ]
    if len(relationship.calls) > limit:
        labels.append("...")
    return labels


def focused_subgraph(graph: Graph, focus: str) -> Set[int]:
    """Entity ids matching *focus* plus their direct neighbours.

    An empty or unmatched focus selects the whole graph.
    """
    everything = {e.entity_id for e in graph.entities}
    if not focus:
        return everything

    focus_ids = {e.entity_id for e in graph.entities if focus in e.name}
    if not focus_ids:
        return everything

    selected = set(focus_ids)
    for rel in graph.relationships:
        if rel.source_id in focus_ids or rel.destination_id in focus_ids:
            selected.update((rel.source_id, rel.destination_id))
    for spec in graph.specializations:
        if spec.child_id in focus_ids or spec.parent_id in focus_ids:
            selected.update((spec.child_id, spec.parent_id))
    return selected


def _specializations_within(graph: Graph, selected: Set[int]) -> List[Specialization]:
    return [s for s in graph.specializations if s.child_id in selected and s.parent_id in selected]


def _relationships_within(graph: Graph, selected: Set[int]) -> List[Relationship]:
    return [
        r for r in graph.relationships
        if r.source_id in selected and r.destination_id in selected
    ]


def _node_decl(entity: Entity) -> str:
    rows = [
        f"{'+ ' if m.is_class_level else '- '}{m.rendered_signature}"
        for m in entity.methods
    ]
    body = "\\l".join(_esc_record(r) for r in rows)
    label = _esc_record(entity.name) + (f"|{body}\\l" if rows else "")
    return f'"{_esc(entity.name)}" [label="{{{label}}}"];'


def _mermaid_id(entity: Entity) -> str:
    return re.sub(r"[^A-Za-z0-9_]", "_", entity.name)


def _emit(text: str, output_file: Optional[Path]) -> str:
    if output_file is not None:
        output_file.write_text(text, encoding="utf-8")
    return text


def _esc(text: str) -> str:
    return text.replace('"', '\\"')


def _esc_record(text: str) -> str:
    return re.sub(r"([{}|<>])", r"\\\1", _esc(text))


def _esc_mermaid(text: str) -> str:
    return text.replace("{", "#123;").replace("}", "#125;")
