"""HTML serialization of document trees.

The renderer reads its settings from the run's options handle at render
time, so changes plugins made to ``tree.options`` are reflected in the
output.
"""

import time
from collections.abc import Mapping
from typing import Any, List, Optional

from markup_pipeline.shared.config import ConfigError, ProcessOptions
from markup_pipeline.shared.errors import RenderError
from markup_pipeline.shared.logging import get_logger
from markup_pipeline.tree.node import VOID_ELEMENTS

DEFAULT_TAG = "div"

# Characters that force quoting when quote_all_attributes is disabled
_QUOTE_TRIGGERS = frozenset(" \t\n\r\f\"'=<>`")


class HTMLRenderer:
    """Serializes trees of nodes and strings to markup.

    - strings are emitted verbatim, numbers via ``str``; ``None`` and
      booleans are skipped; nested lists are flattened
    - a node without a tag renders as ``div``; ``tag=False`` renders only
      its content
    - self-closing tags are the void elements plus ``options.single_tags``,
      closed according to ``options.closing_single_tag``
    """

    def __init__(
        self,
        options: Optional[ProcessOptions] = None,
        correlation_id: Optional[str] = None
    ) -> None:
        self.options = options or ProcessOptions()
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "html_renderer")

    def render(self, tree: Any) -> str:
        """Render a tree, node, or content list to markup.

        Raises:
            RenderError: If the tree holds an unsupported value or the
                options are invalid
        """
        start_time = time.time()
        try:
            self.options.validate()
        except ConfigError as e:
            raise RenderError(f"Invalid render options: {e}") from e

        self._single_tags = VOID_ELEMENTS | {
            tag.lower() for tag in self.options.single_tags
        }
        parts: List[str] = []
        self._render_value(tree, parts)
        html = "".join(parts)

        self.logger.debug(
            "Rendering completed",
            extra={
                "output_length": len(html),
                "processing_time_ms": (time.time() - start_time) * 1000,
            }
        )
        return html

    def _render_value(self, value: Any, parts: List[str]) -> None:
        if value is None or isinstance(value, bool):
            return
        if isinstance(value, str):
            parts.append(value)
        elif isinstance(value, (int, float)):
            parts.append(str(value))
        elif isinstance(value, Mapping):
            self._render_node(value, parts)
        elif isinstance(value, (list, tuple)):
            for item in value:
                self._render_value(item, parts)
        else:
            raise RenderError(f"Cannot render value of type {type(value).__name__}")

    def _render_node(self, node: Mapping, parts: List[str]) -> None:
        tag = node.get("tag")
        if tag is False:
            self._render_value(node.get("content"), parts)
            return

        tag = str(tag) if tag else DEFAULT_TAG
        parts.append("<" + tag)
        self._render_attributes(node.get("attrs"), parts)

        if tag.lower() in self._single_tags:
            closing = self.options.closing_single_tag
            if closing == "slash":
                parts.append(" />")
            elif closing == "tag":
                parts.append(f"></{tag}>")
            else:
                parts.append(">")
            return

        parts.append(">")
        self._render_value(node.get("content"), parts)
        parts.append(f"</{tag}>")

    def _render_attributes(self, attrs: Any, parts: List[str]) -> None:
        if not attrs:
            return
        if not isinstance(attrs, Mapping):
            raise RenderError(f"Node attrs must be a mapping, got {type(attrs).__name__}")

        for name, value in attrs.items():
            if value is True:
                parts.append(f" {name}")
                continue
            if value is None or value is False:
                continue

            text = str(value)
            if self.options.quote_all_attributes or _needs_quotes(text):
                escaped = text.replace('"', "&quot;")
                parts.append(f' {name}="{escaped}"')
            else:
                parts.append(f" {name}={text}")


def _needs_quotes(value: str) -> bool:
    return not value or any(char in _QUOTE_TRIGGERS for char in value)


def render(
    tree: Any,
    options: Optional[ProcessOptions] = None,
    correlation_id: Optional[str] = None
) -> str:
    """Render ``tree`` using ``options`` (defaults to ``tree.options``).

    Examples:
        >>> render([{"tag": "br"}], ProcessOptions(closing_single_tag="slash"))
        '<br />'
    """
    if options is None:
        options = getattr(tree, "options", None)
    return HTMLRenderer(options, correlation_id).render(tree)
