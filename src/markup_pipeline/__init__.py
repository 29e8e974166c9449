"""Markup Pipeline.

Runs HTML documents through an ordered chain of plugins. Plugins may
complete synchronously, through a ``done`` callback, or by returning an
awaitable; the pipeline sequences them in order, keeps the ``walk``/``match``
tree API attached across root replacements, and renders the final tree.

Progressive API Disclosure:
- Level 1: ``pipeline(*plugins).process(html, sync=True)``
- Level 2: ``HTMLPipeline`` with default ``ProcessOptions`` and statistics
- Level 3: engine building blocks - ``ChainExecutor``, ``normalize_result``
"""

__version__ = "0.1.0"
__author__ = "Markup Pipeline Team"

# Level 1 and 2: pipeline façade and collaborators
from .api import HTMLPipeline, parse, parse_file, pipeline

# Level 3: execution engine
from .engine import ChainExecutor, PluginKind, RunContext, normalize_result

# Configuration, results and errors
from .shared import (
    ConfigError,
    ConfigValidationError,
    ModeViolationError,
    ParseError,
    PipelineError,
    PluginReportedError,
    ProcessOptions,
    ProcessResult,
    RenderError,
)

# Document model
from .tree import Node, RootNode, Tree, attach_capabilities, render

__all__ = [
    # Version and metadata
    "__author__",
    "__version__",

    # Pipeline façade and collaborators
    "HTMLPipeline",
    "pipeline",
    "parse",
    "parse_file",
    "render",

    # Execution engine
    "ChainExecutor",
    "PluginKind",
    "RunContext",
    "normalize_result",

    # Document model
    "Node",
    "RootNode",
    "Tree",
    "attach_capabilities",

    # Options and results
    "ProcessOptions",
    "ProcessResult",

    # Errors
    "ConfigError",
    "ConfigValidationError",
    "ModeViolationError",
    "ParseError",
    "PipelineError",
    "PluginReportedError",
    "RenderError",
]
