"""Tokenization layer for HTML pipeline processing.

This module turns markup text into the token stream the tree builder
consumes.
"""

from .tokenizer import (
    RAW_TEXT_ELEMENTS,
    HTMLTokenizer,
    Token,
    TokenizationResult,
    TokenizerState,
    TokenPosition,
    TokenType,
)

__all__ = [
    "RAW_TEXT_ELEMENTS",
    "HTMLTokenizer",
    "Token",
    "TokenizationResult",
    "TokenizerState",
    "TokenPosition",
    "TokenType",
]
