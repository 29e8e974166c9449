"""Plugin calling convention detection.

Plugins do not declare how they complete. A plugin taking two required
positional parameters is called as ``plugin(tree, done)`` and must call
``done(error, result)``; any other plugin is called as ``plugin(tree)`` and
the returned value decides: an awaitable (or a ``concurrent.futures.Future``)
completes later, anything else completes immediately.
"""

import asyncio
import concurrent.futures
import functools
import inspect
from enum import Enum, auto
from typing import Any, Callable

Plugin = Callable[..., Any]

ANONYMOUS_PLUGIN = "<anonymous>"
LAMBDA_NAME = "<lambda>"

_POSITIONAL = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)


class PluginKind(Enum):
    """Calling conventions a plugin can follow."""

    SYNC = auto()       # plugin(tree) returns the next tree or None
    CALLBACK = auto()   # plugin(tree, done); done(error, result) completes it
    THENABLE = auto()   # plugin(tree) returns an awaitable next tree

    @property
    def label(self) -> str:
        return self.name.lower()


def plugin_name(plugin: Plugin) -> str:
    """Name used for a plugin in logs and error messages."""
    target = plugin
    while isinstance(target, functools.partial):
        target = target.func

    name = getattr(target, "__name__", None)
    if name is None and callable(target):
        name = type(target).__name__
    if name == LAMBDA_NAME:
        return ANONYMOUS_PLUGIN
    return name or ANONYMOUS_PLUGIN


def plugin_arity(plugin: Plugin) -> int:
    """Count leading positional parameters without defaults.

    Callables without an introspectable signature count as taking one
    parameter.
    """
    try:
        signature = inspect.signature(plugin)
    except (TypeError, ValueError):
        return 1

    arity = 0
    for parameter in signature.parameters.values():
        if parameter.kind not in _POSITIONAL or parameter.default is not parameter.empty:
            break
        arity += 1
    return arity


def expects_callback(plugin: Plugin) -> bool:
    """Check whether a plugin is called as ``plugin(tree, done)``."""
    return plugin_arity(plugin) >= 2


def is_coroutine_plugin(plugin: Plugin) -> bool:
    """Check whether calling the plugin always produces a coroutine."""
    if inspect.iscoroutinefunction(plugin):
        return True
    call = getattr(plugin, "__call__", None)
    return inspect.iscoroutinefunction(call)


def declared_kind(plugin: Plugin) -> PluginKind:
    """Convention known before calling the plugin.

    ``SYNC`` is provisional: a plain function may still return an
    awaitable, which :func:`classify_result` detects after the call.
    """
    if expects_callback(plugin):
        return PluginKind.CALLBACK
    if is_coroutine_plugin(plugin):
        return PluginKind.THENABLE
    return PluginKind.SYNC


def is_thenable(value: Any) -> bool:
    """Check whether a plugin's return value completes asynchronously."""
    return inspect.isawaitable(value) or isinstance(value, concurrent.futures.Future)


def classify_result(value: Any) -> PluginKind:
    """Convention of a ``plugin(tree)`` call, judged by its return value."""
    return PluginKind.THENABLE if is_thenable(value) else PluginKind.SYNC


async def settle_thenable(value: Any) -> Any:
    """Await a plugin's asynchronous result."""
    if isinstance(value, concurrent.futures.Future):
        return await asyncio.wrap_future(value)
    return await value


def discard_thenable(value: Any) -> None:
    """Release an asynchronous result that will never be awaited."""
    if inspect.iscoroutine(value):
        value.close()
    elif isinstance(value, (asyncio.Future, concurrent.futures.Future)):
        value.cancel()
