"""Execution engine for HTML pipelines.

This module detects plugin calling conventions, normalizes plugin results
and drives the plugin chain in blocking or non-blocking mode.
"""

from .conventions import (
    ANONYMOUS_PLUGIN,
    Plugin,
    PluginKind,
    classify_result,
    declared_kind,
    discard_thenable,
    expects_callback,
    is_coroutine_plugin,
    is_thenable,
    plugin_arity,
    plugin_name,
    settle_thenable,
)
from .executor import ChainExecutor, RunContext
from .normalizer import normalize_result

__all__ = [
    "ANONYMOUS_PLUGIN",
    "Plugin",
    "PluginKind",
    "classify_result",
    "declared_kind",
    "discard_thenable",
    "expects_callback",
    "is_coroutine_plugin",
    "is_thenable",
    "plugin_arity",
    "plugin_name",
    "settle_thenable",
    "ChainExecutor",
    "RunContext",
    "normalize_result",
]
