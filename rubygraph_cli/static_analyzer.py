"""Second-pass static analysis: calls whose receiver is a class constant.

Only ``Const.method`` / ``A::B.method`` / ``A::method`` calls are recorded.
Receivers that are variables, ``self`` or computed expressions are ignored,
so the resulting call graph is an under-approximation.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Tuple

from .ast_provider import RubyAstProvider, SyntaxFailure, default_provider, node_text
from .models import CallEdge
from .parser import METHOD_KINDS
from .resolution import is_scoped_constant_call, resolve_constant

logger = logging.getLogger(__name__)


class CallExtractor:
    """Collects :class:`CallEdge` facts from one syntax tree."""

    def extract_calls(self, root: Any) -> List[CallEdge]:
        """Pre-order walk with an explicit stack of (node, enclosing method)."""
        calls: List[CallEdge] = []
        stack: List[Tuple[Any, Optional[str]]] = [(root, None)]
        while stack:
            node, enclosing = stack.pop()
            if node.type in METHOD_KINDS:
                name = node.child_by_field_name("name")
                if name is not None:
                    enclosing = node_text(name)
            elif node.type == "call" and not is_scoped_constant_call(node):
                edge = self._edge_for(node, enclosing)
                if edge is not None:
                    calls.append(edge)
            stack.extend((child, enclosing) for child in reversed(node.children))
        return calls

    @staticmethod
    def _edge_for(node: Any, enclosing: Optional[str]) -> Optional[CallEdge]:
        target = resolve_constant(node.child_by_field_name("receiver"))
        method = node.child_by_field_name("method")
        if target is None or method is None:
            return None
        return CallEdge(
            target_class_name=target,
            target_method=node_text(method),
            source_method=enclosing,
        )


def find_method_calls(source: str, provider: Optional[RubyAstProvider] = None) -> List[CallEdge]:
    """Parse *source* and return its constant-receiver calls ([] on syntax errors)."""
    root = (provider or default_provider()).parse(source)
    if isinstance(root, SyntaxFailure):
        return []
    return CallExtractor().extract_calls(root)
