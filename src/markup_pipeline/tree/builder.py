"""Tree building from HTML token streams.

This module assembles the flat token stream into the nested node structure
that plugins operate on. Building is lenient: mismatched markup is repaired
by closing elements implicitly, and every repair is counted.
"""

import time
from dataclasses import dataclass, field
from typing import List, Optional

from markup_pipeline.shared.config import ProcessOptions
from markup_pipeline.shared.logging import get_logger
from markup_pipeline.tokenization import Token, TokenizationResult, TokenType
from markup_pipeline.tree.node import VOID_ELEMENTS, Node, Tree


@dataclass
class BuildStatistics:
    """Counters collected while building a tree."""

    total_elements: int = 0
    max_depth: int = 0
    implicitly_closed: int = 0
    dropped_end_tags: int = 0
    processing_time_ms: float = 0.0

    @property
    def repair_count(self) -> int:
        """Number of structural repairs applied."""
        return self.implicitly_closed + self.dropped_end_tags


@dataclass
class _OpenElement:
    node: Node
    name: str


@dataclass
class _BuildState:
    root: Tree
    stack: List[_OpenElement] = field(default_factory=list)

    def append(self, item: object) -> None:
        if self.stack:
            self.stack[-1].node.append(item)
        else:
            self.root.append(item)


class HTMLTreeBuilder:
    """Builds a :class:`Tree` from a tokenization result.

    - void elements never take content
    - ``<x/>`` closes immediately when ``recognize_self_closing`` is set
    - an end tag closes the nearest open element with the same name; end tags
      with no open counterpart are dropped
    - elements still open at the end of input are closed
    """

    def __init__(self, correlation_id: Optional[str] = None) -> None:
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "tree_builder")
        self.statistics = BuildStatistics()

    def build(
        self,
        tokenization_result: TokenizationResult,
        options: Optional[ProcessOptions] = None
    ) -> Tree:
        """Build a tree from tokens.

        Args:
            tokenization_result: Token stream in document order
            options: Run options; ``recognize_self_closing`` is honoured

        Returns:
            Tree of nodes and strings with ``options`` attached
        """
        start_time = time.time()
        options = options or ProcessOptions()
        self.statistics = BuildStatistics()
        state = _BuildState(root=Tree())

        for token in tokenization_result.tokens:
            if token.type is TokenType.START_TAG:
                self._handle_start_tag(token, state, options)
            elif token.type is TokenType.END_TAG:
                self._handle_end_tag(token, state)
            else:
                state.append(token.value)

        self.statistics.implicitly_closed += len(state.stack)
        self.statistics.processing_time_ms = (time.time() - start_time) * 1000

        state.root.options = options

        self.logger.debug(
            "Tree building completed",
            extra={
                "total_elements": self.statistics.total_elements,
                "max_depth": self.statistics.max_depth,
                "repairs": self.statistics.repair_count,
            }
        )
        return state.root

    def _handle_start_tag(
        self, token: Token, state: _BuildState, options: ProcessOptions
    ) -> None:
        attrs = {}
        for name, value in token.attributes:
            # First occurrence of a duplicated attribute wins
            attrs.setdefault(name, value)

        node = Node.element(token.value, attrs)
        state.append(node)
        self.statistics.total_elements += 1

        name = token.value.lower()
        if name in VOID_ELEMENTS:
            return
        if token.self_closing and options.recognize_self_closing:
            return

        state.stack.append(_OpenElement(node, name))
        self.statistics.max_depth = max(self.statistics.max_depth, len(state.stack))

    def _handle_end_tag(self, token: Token, state: _BuildState) -> None:
        name = token.value.lower()
        for index in range(len(state.stack) - 1, -1, -1):
            if state.stack[index].name == name:
                self.statistics.implicitly_closed += len(state.stack) - index - 1
                del state.stack[index:]
                return

        self.statistics.dropped_end_tags += 1
