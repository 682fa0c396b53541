"""Structural extraction of Ruby classes from Tree-sitter syntax trees.

One traversal per source unit produces a :class:`ClassDescriptor`: the
qualified class name (module nesting joined with ``::``), the superclass
when it is a static constant, and the signatures of every method that is
public at the point of definition.

Traversal state is passed down by value:

- *visibility* starts public, is changed by bare ``private`` / ``protected``
  / ``public`` statements for the following siblings only, and is reset to
  public on entering a class body;
- *namespace* accumulates ``module`` names;
- *singleton* marks a ``class << self`` body, whose ``def``s are class level.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence, Tuple

from .ast_provider import RubyAstProvider, SyntaxFailure, default_provider, node_text
from .config import DEFAULT_RENDERING_POLICIES
from .models import SCOPE_SEPARATOR, ClassDescriptor, MethodSignature
from .resolution import has_arguments, resolve_constant

logger = logging.getLogger(__name__)

PUBLIC = "public"
VISIBILITY_KEYWORDS: Tuple[str, ...] = ("public", "private", "protected")
CLASS_VISIBILITY_KEYWORDS: Tuple[str, ...] = ("private_class_method", "public_class_method")

SEQUENCE_KINDS = frozenset({"program", "body_statement", "begin", "parenthesized_statements"})
METHOD_KINDS = frozenset({"method", "singleton_method"})

DEFAULT_PLACEHOLDER = "..."


# ===================================================================
# Signature rendering
# ===================================================================

class SignatureRenderer:
    """Render ``name(params)`` strings for method definition nodes.

    *default_rendering* decides how parameter defaults appear: ``placeholder``
    writes ``...`` in place of the expression, ``literal`` copies its source.
    """

    def __init__(self, default_rendering: str = "placeholder") -> None:
        if default_rendering not in DEFAULT_RENDERING_POLICIES:
            raise ValueError(f"Unknown default rendering policy: {default_rendering!r}")
        self.default_rendering = default_rendering

    def render(self, method_node: Any) -> str:
        name = node_text(method_node.child_by_field_name("name"))
        params = method_node.child_by_field_name("parameters")
        if params is None:
            return name
        rendered = [
            self.render_parameter(p) for p in params.named_children if p.type != "comment"
        ]
        return f"{name}({', '.join(rendered)})"

    def render_parameter(self, param: Any) -> str:
        kind = param.type
        if kind == "identifier":
            return node_text(param)
        if kind == "optional_parameter":
            return f"{_field_text(param, 'name')} = {self._default(param)}"
        if kind == "keyword_parameter":
            if param.child_by_field_name("value") is None:
                return f"{_field_text(param, 'name')}:"
            return f"{_field_text(param, 'name')}: {self._default(param)}"
        if kind == "splat_parameter":
            return "*" + _field_text(param, "name")
        if kind == "hash_splat_parameter":
            return "**" + _field_text(param, "name")
        if kind == "block_parameter":
            return "&" + _field_text(param, "name")
        if kind == "forward_parameter":
            return "..."
        # **nil, destructured (a, b) and anything newer in the grammar
        return node_text(param)

    def _default(self, param: Any) -> str:
        if self.default_rendering == "literal":
            return _field_text(param, "value")
        return DEFAULT_PLACEHOLDER


# ===================================================================
# Structural extractor
# ===================================================================

class _Accumulator:
    """Mutable per-unit result filled in while walking the tree."""

    def __init__(self) -> None:
        self.qualified_name: Optional[str] = None
        self.superclass_name: Optional[str] = None
        self.namespace: Tuple[str, ...] = ()
        self.methods: List[MethodSignature] = []


class StructuralExtractor:
    """Walks one syntax tree and builds its :class:`ClassDescriptor`.

    Only one descriptor is produced per unit. When a unit declares several
    classes, each later declaration overwrites the identity fields while
    methods keep accumulating.
    """

    def __init__(self, renderer: Optional[SignatureRenderer] = None) -> None:
        self.renderer = renderer or SignatureRenderer()
        self._acc = _Accumulator()

    def extract(self, root: Any, source_unit_id: str) -> Optional[ClassDescriptor]:
        self._acc = _Accumulator()
        self._visit(root, PUBLIC, (), False)

        acc = self._acc
        if acc.qualified_name is None:
            return None
        return ClassDescriptor(
            qualified_name=acc.qualified_name,
            source_unit_id=source_unit_id,
            superclass_name=acc.superclass_name,
            methods=tuple(acc.methods),
            namespace=acc.namespace,
        )

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _visit(self, node: Any, visibility: str, namespace: Tuple[str, ...], singleton: bool) -> None:
        kind = node.type

        if kind == "module":
            name = resolve_constant(node.child_by_field_name("name"))
            if name is None:
                self._visit_children(node, visibility, namespace, singleton)
                return
            self._visit_body(node, visibility, namespace + (name,), singleton, ("name",))

        elif kind == "class":
            self._visit_class(node, namespace)

        elif kind == "singleton_class":
            self._visit_body(node, PUBLIC, namespace, True, ("value",))

        elif kind in SEQUENCE_KINDS:
            self._visit_sequence(node.named_children, visibility, namespace, singleton)

        elif kind in METHOD_KINDS:
            if visibility == PUBLIC:
                self._record_method(node, singleton or kind == "singleton_method")

        else:
            self._visit_children(node, visibility, namespace, singleton)

    def _visit_children(self, node: Any, visibility: str, namespace: Tuple[str, ...], singleton: bool) -> None:
        for child in node.named_children:
            self._visit(child, visibility, namespace, singleton)

    def _visit_class(self, node: Any, namespace: Tuple[str, ...]) -> None:
        name = resolve_constant(node.child_by_field_name("name"))
        if name is None:
            self._visit_children(node, PUBLIC, namespace, False)
            return

        acc = self._acc
        acc.qualified_name = SCOPE_SEPARATOR.join(namespace + (name,))
        acc.namespace = namespace
        acc.superclass_name = None
        superclass = node.child_by_field_name("superclass")
        if superclass is not None:
            acc.superclass_name = resolve_constant(_superclass_expression(superclass))
            if acc.superclass_name is None:
                logger.debug("Superclass of %s is not a static constant", acc.qualified_name)

        self._visit_body(node, PUBLIC, namespace, False, ("name", "superclass"))

    def _visit_body(
        self,
        node: Any,
        visibility: str,
        namespace: Tuple[str, ...],
        singleton: bool,
        header_fields: Sequence[str],
    ) -> None:
        """Scan a class/module body as one statement sequence."""
        body = node.child_by_field_name("body")
        if body is not None:
            self._visit_sequence(body.named_children, visibility, namespace, singleton)
            return
        header_ids = {
            child.id
            for child in (node.child_by_field_name(f) for f in header_fields)
            if child is not None
        }
        statements = [c for c in node.named_children if c.id not in header_ids]
        self._visit_sequence(statements, visibility, namespace, singleton)

    def _visit_sequence(
        self,
        statements: Sequence[Any],
        visibility: str,
        namespace: Tuple[str, ...],
        singleton: bool,
    ) -> None:
        for statement in statements:
            keyword = _bare_visibility_keyword(statement)
            if keyword is not None:
                visibility = keyword
                continue
            if self._apply_visibility_call(statement, visibility, namespace, singleton):
                continue
            self._visit(statement, visibility, namespace, singleton)

    # ------------------------------------------------------------------
    # Visibility calls with arguments
    # ------------------------------------------------------------------

    def _apply_visibility_call(
        self,
        node: Any,
        visibility: str,
        namespace: Tuple[str, ...],
        singleton: bool,
    ) -> bool:
        """Handle ``private def x``, ``private :x`` and ``private_class_method :x``.

        These forms change visibility for their arguments only. Returns False
        when *node* is not such a call.
        """
        if node.type != "call" or node.child_by_field_name("receiver") is not None:
            return False
        method = node.child_by_field_name("method")
        keyword = node_text(method) if method is not None else ""
        if keyword not in VISIBILITY_KEYWORDS + CLASS_VISIBILITY_KEYWORDS or not has_arguments(node):
            return False

        class_level_call = keyword in CLASS_VISIBILITY_KEYWORDS
        effective = PUBLIC if keyword.startswith("public") else "private"
        for arg in node.child_by_field_name("arguments").named_children:
            if arg.type in METHOD_KINDS:
                if effective == PUBLIC:
                    self._record_method(arg, singleton or class_level_call or arg.type == "singleton_method")
            elif arg.type == "simple_symbol":
                if effective != PUBLIC:
                    self._hide_method(node_text(arg).lstrip(":"), singleton or class_level_call)
            else:
                self._visit(arg, visibility, namespace, singleton)
        return True

    # ------------------------------------------------------------------
    # Method bookkeeping
    # ------------------------------------------------------------------

    def _record_method(self, node: Any, class_level: bool) -> None:
        self._acc.methods.append(MethodSignature(
            name=node_text(node.child_by_field_name("name")),
            rendered_signature=self.renderer.render(node),
            is_class_level=class_level,
        ))

    def _hide_method(self, name: str, class_level: bool) -> None:
        self._acc.methods = [
            m for m in self._acc.methods
            if not (m.name == name and m.is_class_level == class_level)
        ]


# ===================================================================
# Convenience entry points
# ===================================================================

def parse_source(
    source: str,
    source_unit_id: str = "(string)",
    provider: Optional[RubyAstProvider] = None,
    renderer: Optional[SignatureRenderer] = None,
) -> Optional[ClassDescriptor]:
    """Parse *source* and extract its descriptor; None on syntax errors."""
    root = (provider or default_provider()).parse(source)
    if isinstance(root, SyntaxFailure):
        logger.warning("Syntax error in %s: %s", source_unit_id, root)
        return None
    return StructuralExtractor(renderer).extract(root, source_unit_id)


def parse_file(file_path: Path, **kwargs: Any) -> Optional[ClassDescriptor]:
    source = file_path.read_text(encoding="utf-8", errors="ignore")
    return parse_source(source, str(file_path), **kwargs)


# ===================================================================
# Helpers
# ===================================================================

def _bare_visibility_keyword(node: Any) -> Optional[str]:
    """Return the keyword if *node* is a bare ``private``-style statement."""
    if node.type == "identifier":
        text = node_text(node)
        return text if text in VISIBILITY_KEYWORDS else None
    if node.type == "call":
        if node.child_by_field_name("receiver") is not None:
            return None
        if has_arguments(node) or node.child_by_field_name("block") is not None:
            return None
        method = node.child_by_field_name("method")
        text = node_text(method) if method is not None else ""
        return text if text in VISIBILITY_KEYWORDS else None
    return None


def _superclass_expression(node: Any) -> Optional[Any]:
    if node.type != "superclass":
        return node
    for child in node.named_children:
        if child.type != "comment":
            return child
    return None


def _field_text(node: Any, field_name: str) -> str:
    child = node.child_by_field_name(field_name)
    return node_text(child) if child is not None else ""
