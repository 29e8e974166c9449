"""Document tree model and the tree API attached to it.

A tree is a list of nodes and strings. A node is a mapping with a ``tag``,
an optional ``attrs`` mapping and an optional ``content`` list; strings are
text, comments and directives kept verbatim. Plain ``dict`` nodes are as
valid as :class:`Node` instances everywhere in this package.

Trees handed to plugins are *capable*: they expose ``walk``, ``match`` and
the run's shared ``options``. :func:`attach_capabilities` turns any
tree-shaped value into a capable tree.
"""

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Any, Callable, Iterator, List, Optional, Sequence, Union

from markup_pipeline.shared.config import ProcessOptions

NodeCallback = Callable[[Any], Any]

# Elements that never have content; rendered without an end tag
VOID_ELEMENTS = frozenset({
    "area", "base", "br", "col", "command", "embed", "hr", "img", "input",
    "keygen", "link", "menuitem", "meta", "param", "source", "track", "wbr",
})


class Node(dict):
    """Element node with ``tag``, ``attrs`` and ``content`` keys.

    Empty ``attrs`` and ``content`` are omitted, matching the shape the
    parser produces. The properties are read-only views; use the mutators
    or plain item access to change a node.
    """

    @classmethod
    def element(
        cls,
        tag: Any,
        attrs: Optional[Mapping] = None,
        content: Optional[Sequence[Any]] = None
    ) -> "Node":
        """Build a node, leaving out empty ``attrs`` and ``content``."""
        node = cls(tag=tag)
        if attrs:
            node["attrs"] = dict(attrs)
        if content:
            node["content"] = list(content)
        return node

    @property
    def tag(self) -> Any:
        return self.get("tag")

    @property
    def attrs(self) -> Mapping:
        return MappingProxyType(self.get("attrs") or {})

    @property
    def content(self) -> tuple:
        return tuple(self.get("content") or ())

    def get_attribute(self, name: str, default: Any = None) -> Any:
        """Get attribute value with optional default."""
        return (self.get("attrs") or {}).get(name, default)

    def set_attribute(self, name: str, value: Any) -> None:
        """Set attribute value, creating ``attrs`` if needed."""
        if not isinstance(name, str):
            raise TypeError("Attribute name must be a string")
        self.setdefault("attrs", {})[name] = value

    def remove_attribute(self, name: str) -> bool:
        """Remove an attribute; drops ``attrs`` once it is empty."""
        attrs = self.get("attrs")
        if not attrs or name not in attrs:
            return False
        del attrs[name]
        if not attrs:
            del self["attrs"]
        return True

    def append(self, child: Any) -> None:
        """Append a child node or string, creating ``content`` if needed."""
        self.setdefault("content", []).append(child)


class TreeApi:
    """Capability set shared by :class:`Tree` and :class:`RootNode`."""

    options: Optional[ProcessOptions] = None

    def walk(self, callback: NodeCallback) -> "TreeApi":
        """Call ``callback`` on every node and string; see :func:`walk`."""
        return walk(self, callback)

    def match(self, expression: Any, callback: NodeCallback) -> "TreeApi":
        """Call ``callback`` on matching nodes; see :func:`match`."""
        return match(self, expression, callback)

    def iter_nodes(self) -> Iterator[Mapping]:
        """Iterate over element nodes in document order, excluding a root node."""
        return _iter_nodes(self)

    def find_all(self, tag: str) -> List[Mapping]:
        """Find all element nodes with matching tag name."""
        return [node for node in self.iter_nodes() if node.get("tag") == tag]


class Tree(TreeApi, list):
    """Root sequence of nodes and strings."""


class RootNode(TreeApi, Node):
    """Single node used as the root after a plugin returned a mapping."""


CapableTree = Union[Tree, RootNode]


def attach_capabilities(
    value: Any, options: Optional[ProcessOptions] = None
) -> CapableTree:
    """Return ``value`` as a capable tree bound to ``options``.

    Already capable trees are returned as-is (only their options handle is
    updated). Other mappings and sequences are wrapped in a shallow copy, so
    the value a plugin returned is never modified.

    Args:
        value: Tree-shaped value: a list/tuple of nodes or a single mapping
        options: Shared options handle of the run; when omitted, an existing
            handle is kept or a default one is created

    Returns:
        Tree or RootNode carrying ``walk``, ``match`` and ``options``

    Raises:
        TypeError: If ``value`` is not tree-shaped
    """
    if isinstance(value, TreeApi):
        capable = value
    elif isinstance(value, Mapping):
        capable = RootNode(value)
    elif isinstance(value, (list, tuple)):
        capable = Tree(value)
    else:
        raise TypeError(
            f"Cannot attach tree capabilities to {type(value).__name__}"
        )

    if options is not None:
        capable.options = options
    elif capable.options is None:
        capable.options = ProcessOptions()
    return capable


def is_tree_shaped(value: Any) -> bool:
    """Check whether ``value`` can become a capable tree."""
    return isinstance(value, (TreeApi, Mapping, list, tuple))


def walk(tree: Any, callback: NodeCallback) -> Any:
    """Depth-first traversal replacing items with the callback's result.

    ``callback`` receives every item of every content list, in document
    order. A non-None return value replaces the item in its parent list and
    traversal continues into the replacement. The root mapping itself, if
    the tree is a single node, is not passed to ``callback``.
    """
    _traverse(tree, callback)
    return tree


def match(tree: Any, expression: Any, callback: NodeCallback) -> Any:
    """Walk ``tree`` calling ``callback`` only for items matching ``expression``.

    A list or tuple expression matches when any of its members does.
    """
    if isinstance(expression, (list, tuple)):
        expressions = list(expression)
    else:
        expressions = [expression]

    def visit(item: Any) -> Any:
        if any(matches(candidate, item) for candidate in expressions):
            return callback(item)
        return None

    return walk(tree, visit)


def matches(expected: Any, actual: Any) -> bool:
    """Check whether ``actual`` matches the ``expected`` expression.

    - compiled regex: ``actual`` is a string and the pattern is found in it
    - mapping: ``actual`` is a mapping and every expected key matches
    - list/tuple: every expected member matches some member of ``actual``
    - anything else: equality
    """
    if isinstance(expected, re.Pattern):
        return isinstance(actual, str) and expected.search(actual) is not None
    if isinstance(expected, Mapping):
        if not isinstance(actual, Mapping):
            return False
        return all(
            _matches_value(value, actual.get(key)) for key, value in expected.items()
        )
    if isinstance(expected, (list, tuple)):
        if not isinstance(actual, (list, tuple)):
            return False
        return all(
            any(matches(member, candidate) for candidate in actual)
            for member in expected
        )
    return type(expected) is type(actual) and expected == actual


def _matches_value(expected: Any, actual: Any) -> bool:
    # True: key must be present and not None; False: absent or None
    if isinstance(expected, bool):
        return expected == (actual is not None)
    if isinstance(expected, str) and isinstance(actual, str):
        return expected == actual
    return matches(expected, actual)


def _traverse(items: Any, callback: NodeCallback) -> None:
    if isinstance(items, (list, tuple)):
        for index, item in enumerate(items):
            replacement = callback(item)
            if replacement is not None and replacement is not item:
                if not isinstance(items, list):
                    raise TypeError("Cannot replace items of an immutable content sequence")
                items[index] = replacement
                item = replacement
            _traverse(item, callback)
    elif isinstance(items, Mapping):
        content = items.get("content")
        if content is not None:
            _traverse(content, callback)


def _iter_nodes(items: Any) -> Iterator[Mapping]:
    if isinstance(items, Mapping):
        if not isinstance(items, TreeApi):
            yield items
        items = items.get("content")
    if isinstance(items, (list, tuple)):
        for item in items:
            yield from _iter_nodes(item)
