"""Exception types raised by the pipeline and its default collaborators.

Faults raised by plugin code itself are never wrapped: they reach the caller
as the original exception object, in both execution modes.
"""

from typing import Any, Optional


class PipelineError(Exception):
    """Base exception for errors raised by the pipeline engine."""


class ModeViolationError(PipelineError):
    """An asynchronous plugin was used while processing synchronously."""

    def __init__(self, plugin_name: str) -> None:
        super().__init__(
            f"Can't process synchronously because of async plugin: {plugin_name}"
        )
        self.plugin_name = plugin_name


class PluginReportedError(PipelineError):
    """A callback-style plugin reported a failure that is not an exception."""

    def __init__(self, plugin_name: str, reason: Any) -> None:
        super().__init__(f"Plugin {plugin_name} reported an error: {reason}")
        self.plugin_name = plugin_name
        self.reason = reason


class ParseError(PipelineError):
    """The default parser could not read its input."""

    def __init__(self, message: str, position: Optional[int] = None) -> None:
        super().__init__(message)
        self.position = position


class RenderError(PipelineError):
    """The default renderer met a tree or option it cannot serialize."""
