"""Shared utilities for HTML pipeline processing.

This module provides configuration objects, result types, the exception
taxonomy and logging helpers used across all layers.
"""

from .config import (
    CLOSING_STYLES,
    ConfigError,
    ConfigValidationError,
    ProcessOptions,
)
from .errors import (
    ModeViolationError,
    ParseError,
    PipelineError,
    PluginReportedError,
    RenderError,
)
from .logging import (
    CorrelationLogger,
    get_logger,
)
from .result import (
    PipelineMetrics,
    PluginTiming,
    ProcessResult,
)

__all__ = [
    "CLOSING_STYLES",
    "ConfigError",
    "ConfigValidationError",
    "ProcessOptions",
    "ModeViolationError",
    "ParseError",
    "PipelineError",
    "PluginReportedError",
    "RenderError",
    "CorrelationLogger",
    "get_logger",
    "PipelineMetrics",
    "PluginTiming",
    "ProcessResult",
]
