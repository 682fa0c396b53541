"""Constant name resolution shared by the structural and call extractors.

Both passes must build the same qualified name for the same reference, so
every conversion from a syntax node to a ``A::B::C`` string goes through
:func:`resolve_constant`.
"""

from __future__ import annotations

from typing import Any, List, Optional

from .ast_provider import node_text
from .models import SCOPE_SEPARATOR


def resolve_constant(node: Optional[Any]) -> Optional[str]:
    """Return the qualified name *node* statically refers to, or None.

    Handles bare constants (``User``), scoped constants (``Admin::User``,
    ``::User``) and ``A::B`` chains spelt as member-access calls. Anything
    else (variables, ``self``, method calls, literals) is unresolvable.
    """
    if node is None:
        return None

    if node.type == "constant":
        return node_text(node)

    if node.type == "scope_resolution":
        name = node.child_by_field_name("name")
        if name is None or name.type != "constant":
            return None
        scope = node.child_by_field_name("scope")
        if scope is None:
            return node_text(name)
        outer = resolve_constant(scope)
        if outer is None:
            return None
        return f"{outer}{SCOPE_SEPARATOR}{node_text(name)}"

    if is_scoped_constant_call(node):
        segments: List[str] = []
        current = node
        while is_scoped_constant_call(current):
            segments.append(node_text(current.child_by_field_name("method")))
            current = current.child_by_field_name("receiver")
        head = resolve_constant(current)
        if head is None:
            return None
        segments.append(head)
        return SCOPE_SEPARATOR.join(reversed(segments))

    return None


def is_scoped_constant_call(node: Any) -> bool:
    """True for a ``call`` node that is really an ``A::B`` constant lookup."""
    if node is None or node.type != "call":
        return False
    method = node.child_by_field_name("method")
    receiver = node.child_by_field_name("receiver")
    if method is None or receiver is None or method.type != "constant":
        return False
    if has_arguments(node) or node.child_by_field_name("block") is not None:
        return False
    return call_operator(node) == "::"


def call_operator(node: Any) -> Optional[str]:
    """Return the ``.``, ``&.`` or ``::`` token of a call node, if any."""
    operator = node.child_by_field_name("operator")
    if operator is not None:
        return operator.type
    for child in node.children:
        if not child.is_named and child.type in (".", "&.", "::"):
            return child.type
    return None


def has_arguments(node: Any) -> bool:
    """True when a call carries at least one argument (``foo()`` has none)."""
    arguments = node.child_by_field_name("arguments")
    return arguments is not None and arguments.named_child_count > 0
