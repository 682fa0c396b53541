"""Tree-sitter backed Ruby AST provider.

Parsing is a pure function of the source text: :meth:`RubyAstProvider.parse`
returns the root node of a Tree-sitter concrete syntax tree, or a
:class:`SyntaxFailure` value when the grammar reports an error or a missing
token anywhere in the tree. Partially recovered trees are never handed to
the extractors.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class RubyGraphError(Exception):
    """Base class for errors raised by rubygraph."""


class GrammarUnavailableError(RubyGraphError):
    """The Tree-sitter Ruby grammar could not be loaded."""


@dataclass(frozen=True)
class SyntaxFailure:
    message: str
    line: int = 0
    column: int = 0

    def __str__(self) -> str:
        if self.line:
            return f"{self.message} at line {self.line}, column {self.column}"
        return self.message


ParseResult = Union[Any, SyntaxFailure]


class RubyAstProvider:
    """Parses Ruby source into Tree-sitter trees.

    The grammar is loaded once per provider. Tree-sitter parsers are not
    shareable across threads, so every :meth:`parse` call builds its own.
    """

    def __init__(self) -> None:
        self._language = _load_ruby_language()

    def parse(self, source: str) -> ParseResult:
        from tree_sitter import Parser as TSParser  # type: ignore[import-untyped]

        parser = TSParser(self._language)
        tree = parser.parse(source.encode("utf-8"))
        root = tree.root_node
        if root.has_error:
            return _describe_error(root)
        return root


def node_text(node: Any) -> str:
    """Decode the source text spanned by a Tree-sitter node."""
    return node.text.decode("utf-8")


def _load_ruby_language() -> Any:
    try:
        import tree_sitter_ruby  # type: ignore[import-untyped]
        from tree_sitter import Language  # type: ignore[import-untyped]
    except ImportError as exc:
        raise GrammarUnavailableError(
            "tree-sitter and tree-sitter-ruby are required. "
            "Install with: pip install tree-sitter tree-sitter-ruby"
        ) from exc
    language = Language(tree_sitter_ruby.language())
    logger.debug("Loaded tree-sitter grammar for ruby")
    return language


def _describe_error(root: Any) -> SyntaxFailure:
    """Locate the first ERROR or MISSING node under *root*."""
    culprit = _first_error_node(root)
    if culprit is None:
        return SyntaxFailure("syntax error")
    row, column = culprit.start_point[0], culprit.start_point[1]
    if culprit.is_missing:
        message = f"missing '{culprit.type}'"
    else:
        message = "unexpected input"
    return SyntaxFailure(message, line=row + 1, column=column + 1)


def _first_error_node(node: Any) -> Optional[Any]:
    stack = [node]
    while stack:
        current = stack.pop()
        if current.type == "ERROR" or current.is_missing:
            return current
        if current.has_error:
            stack.extend(reversed(current.children))
    return None


@lru_cache(maxsize=1)
def default_provider() -> RubyAstProvider:
    """Process-wide provider used by the convenience entry points."""
    return RubyAstProvider()
