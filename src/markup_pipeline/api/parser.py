"""Default parser collaborator for HTML pipelines.

This module turns markup from various input sources into a :class:`Tree`.
Unlike plugin failures, problems reading the input are reported as
:class:`ParseError`.
"""

import time
from pathlib import Path
from typing import BinaryIO, Optional, TextIO, Union

from markup_pipeline.shared.config import ProcessOptions
from markup_pipeline.shared.errors import ParseError
from markup_pipeline.shared.logging import get_logger
from markup_pipeline.tokenization import HTMLTokenizer
from markup_pipeline.tree import HTMLTreeBuilder, Tree

# Type definitions for input data
InputType = Union[str, bytes, BinaryIO, TextIO, Path]

PREVIEW_LENGTH = 100  # Max length for content preview in logs
MS_PER_SECOND = 1000


def parse(
    source: InputType,
    options: Optional[ProcessOptions] = None,
    correlation_id: Optional[str] = None
) -> Tree:
    """Parse markup from a string, bytes, file-like object, or Path.

    Args:
        source: Markup content or where to read it from
        options: Run options; the lower-casing and self-closing settings
            are honoured and the options object is attached to the tree
        correlation_id: Optional correlation ID of the pipeline run

    Returns:
        Tree with ``walk``, ``match`` and ``options``

    Raises:
        ParseError: If the input cannot be read or decoded

    Examples:
        >>> tree = parse('<div class="cls"><br></div>')
        >>> tree[0]["attrs"]
        {'class': 'cls'}
    """
    options = options or ProcessOptions()
    return parse_string(_read_source(source), options, correlation_id)


def parse_string(
    markup: str,
    options: Optional[ProcessOptions] = None,
    correlation_id: Optional[str] = None
) -> Tree:
    """Parse markup held in a string."""
    start_time = time.time()
    options = options or ProcessOptions()
    logger = get_logger(__name__, correlation_id, "parse_string")

    logger.debug(
        "Starting string parse operation",
        extra={
            "content_length": len(markup),
            "preview": (
                markup[:PREVIEW_LENGTH] + "..."
                if len(markup) > PREVIEW_LENGTH else markup
            )
        }
    )

    tokenizer = HTMLTokenizer(
        lower_case_tags=options.lower_case_tags,
        lower_case_attribute_names=options.lower_case_attribute_names,
        correlation_id=correlation_id,
    )
    builder = HTMLTreeBuilder(correlation_id=correlation_id)
    tree = builder.build(tokenizer.tokenize(markup), options)

    logger.debug(
        "String parse completed",
        extra={
            "total_elements": builder.statistics.total_elements,
            "repairs": builder.statistics.repair_count,
            "processing_time_ms": (time.time() - start_time) * MS_PER_SECOND,
        }
    )
    return tree


def parse_file(
    file_path: Union[str, Path],
    options: Optional[ProcessOptions] = None,
    encoding: str = "utf-8",
    correlation_id: Optional[str] = None
) -> Tree:
    """Parse markup from a file.

    Raises:
        ParseError: If the file cannot be read or decoded
    """
    path = Path(file_path)
    try:
        markup = path.read_text(encoding=encoding)
    except FileNotFoundError as e:
        raise ParseError(f"File not found: {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ParseError(f"Unable to read {path}: {e}") from e
    return parse_string(markup, options, correlation_id)


def _read_source(source: InputType) -> str:
    if isinstance(source, str):
        return source
    if isinstance(source, bytes):
        return _decode(source)
    if isinstance(source, Path):
        try:
            return _decode(source.read_bytes())
        except OSError as e:
            raise ParseError(f"Unable to read {source}: {e}") from e
    if hasattr(source, "read"):
        content = source.read()
        return _decode(content) if isinstance(content, bytes) else str(content)

    raise ParseError(
        f"Cannot parse input of type {type(source).__name__}; "
        "pass skip_parse=True to process an existing tree"
    )


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ParseError(f"Input is not valid UTF-8: {e}", position=e.start) from e
