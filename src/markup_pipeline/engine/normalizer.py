"""Normalization of plugin results into the next tree.

Whatever a plugin produced, the next plugin (and the renderer) receives a
capable tree bound to the run's options handle.
"""

from typing import Any, Optional

from markup_pipeline.shared.config import ProcessOptions
from markup_pipeline.shared.logging import CorrelationLogger
from markup_pipeline.tree.node import CapableTree, attach_capabilities, is_tree_shaped


def normalize_result(
    candidate: Any,
    previous: CapableTree,
    options: ProcessOptions,
    logger: Optional[CorrelationLogger] = None
) -> CapableTree:
    """Turn a plugin's result into the tree for the next step.

    - ``None``: the plugin worked in place; ``previous`` is kept
    - list, tuple or mapping: becomes the new root, with capabilities
      attached (already capable trees are returned unchanged)
    - anything else (strings, numbers, ...): not a tree, ``previous`` is kept

    Args:
        candidate: Value the plugin returned or passed to ``done``
        previous: Tree the plugin was called with
        options: Shared options handle of the run
        logger: Optional logger for ignored return values

    Returns:
        Capable tree for the next plugin
    """
    if candidate is None or candidate is previous:
        return previous

    if is_tree_shaped(candidate):
        return attach_capabilities(candidate, options)

    if logger is not None:
        logger.debug(
            "Ignoring non-tree plugin result",
            extra={"result_type": type(candidate).__name__}
        )
    return previous
