"""Tree layer for HTML pipeline processing.

This module provides the document model with its ``walk``/``match`` API,
the tree builder behind the default parser, and the default renderer.
"""

from .builder import BuildStatistics, HTMLTreeBuilder
from .node import (
    VOID_ELEMENTS,
    CapableTree,
    Node,
    RootNode,
    Tree,
    TreeApi,
    attach_capabilities,
    is_tree_shaped,
    match,
    matches,
    walk,
)
from .render import HTMLRenderer, render

__all__ = [
    "BuildStatistics",
    "HTMLTreeBuilder",
    "VOID_ELEMENTS",
    "CapableTree",
    "Node",
    "RootNode",
    "Tree",
    "TreeApi",
    "attach_capabilities",
    "is_tree_shaped",
    "match",
    "matches",
    "walk",
    "HTMLRenderer",
    "render",
]
