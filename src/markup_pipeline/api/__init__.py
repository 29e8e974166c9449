"""Public API for HTML pipeline processing.

This module exposes the pipeline façade and the default parser entry points.
"""

from .parser import parse, parse_file, parse_string
from .pipeline import HTMLPipeline, pipeline

__all__ = [
    "HTMLPipeline",
    "pipeline",
    "parse",
    "parse_file",
    "parse_string",
]
