"""HTML tokenization with a small lenient state machine.

This module converts markup text into a flat token stream consumed by the
tree builder. It never rejects input: stray ``<`` characters and unterminated
constructs are kept as text so that the document content survives.
"""

import bisect
import re
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import List, Optional, Tuple

from markup_pipeline.shared.logging import get_logger

# Elements whose content is raw text up to the matching end tag
RAW_TEXT_ELEMENTS = frozenset({"script", "style"})

COMMENT_OPEN = "<!--"
COMMENT_CLOSE = "-->"

_END_TAG_PATTERN = re.compile(r"</\s*([^\s/>]+)[^>]*>")
_ATTR_NAME_STOP = frozenset(" \t\n\r\f/>=")
_UNQUOTED_VALUE_STOP = frozenset(" \t\n\r\f>")
_WHITESPACE = frozenset(" \t\n\r\f")


class TokenType(Enum):
    """HTML token types produced by the tokenizer."""

    TEXT = auto()          # Character content between tags
    START_TAG = auto()     # Opening tag, possibly self-closing: <div a="1">
    END_TAG = auto()       # Closing tag: </div>
    COMMENT = auto()       # Comment, kept verbatim: <!-- ... -->
    DIRECTIVE = auto()     # Doctype and processing instructions, kept verbatim


class TokenizerState(Enum):
    """State machine states for HTML tokenization."""

    DATA = auto()          # Processing text content
    TAG_OPEN = auto()      # Positioned at a '<'
    RAW_TEXT = auto()      # Inside script/style content


@dataclass
class TokenPosition:
    """Position information for HTML tokens."""

    line: int
    column: int
    offset: int

    def __post_init__(self) -> None:
        """Validate position values."""
        if self.line < 1:
            raise ValueError("Line number must be >= 1")
        if self.column < 1:
            raise ValueError("Column number must be >= 1")
        if self.offset < 0:
            raise ValueError("Offset must be >= 0")


@dataclass
class Token:
    """Single HTML token.

    ``value`` is the tag name for tag tokens and the verbatim text for all
    other token types.
    """

    type: TokenType
    value: str
    position: TokenPosition
    attributes: List[Tuple[str, str]] = field(default_factory=list)
    self_closing: bool = False


@dataclass
class TokenizationResult:
    """Result of tokenization with basic statistics."""

    tokens: List[Token] = field(default_factory=list)
    characters_processed: int = 0
    correlation_id: Optional[str] = None

    @property
    def token_count(self) -> int:
        """Get total number of tokens."""
        return len(self.tokens)

    def count(self, token_type: TokenType) -> int:
        """Count tokens of a given type."""
        return sum(1 for token in self.tokens if token.type is token_type)


class HTMLTokenizer:
    """Lenient HTML tokenizer.

    Tag and attribute names keep their case unless the corresponding
    lower-casing option is enabled. Attribute values are kept verbatim
    (entities are not decoded); attributes without a value get ``""``.
    """

    def __init__(
        self,
        lower_case_tags: bool = False,
        lower_case_attribute_names: bool = False,
        correlation_id: Optional[str] = None
    ) -> None:
        self.lower_case_tags = lower_case_tags
        self.lower_case_attribute_names = lower_case_attribute_names
        self.correlation_id = correlation_id
        self.logger = get_logger(__name__, correlation_id, "html_tokenizer")

        self._handlers = {
            TokenizerState.DATA: self._process_data,
            TokenizerState.TAG_OPEN: self._process_tag_open,
            TokenizerState.RAW_TEXT: self._process_raw_text,
        }
        self._reset_state("")

    def _reset_state(self, text: str) -> None:
        self._text = text
        self._length = len(text)
        self._pos = 0
        self._state = TokenizerState.DATA
        self._raw_tag: Optional[str] = None
        self._tokens: List[Token] = []
        self._text_start: Optional[int] = None
        self._line_starts = [0] + [
            match.end() for match in re.finditer("\n", text)
        ]

    def tokenize(self, text: str) -> TokenizationResult:
        """Convert markup text into a token stream.

        Args:
            text: Markup to tokenize

        Returns:
            TokenizationResult with tokens in document order
        """
        self._reset_state(text)

        while self._pos < self._length:
            self._handlers[self._state]()

        self._flush_text(self._length)

        result = TokenizationResult(
            tokens=self._tokens,
            characters_processed=self._length,
            correlation_id=self.correlation_id,
        )
        self.logger.debug(
            "Tokenization completed",
            extra={
                "characters": self._length,
                "tokens": result.token_count,
            }
        )
        return result

    def _process_data(self) -> None:
        next_tag = self._text.find("<", self._pos)
        if next_tag == -1:
            self._mark_text(self._pos)
            self._pos = self._length
            return

        if next_tag > self._pos:
            self._mark_text(self._pos)
        self._pos = next_tag
        self._state = TokenizerState.TAG_OPEN

    def _process_tag_open(self) -> None:
        text = self._text
        start = self._pos
        self._state = TokenizerState.DATA

        if text.startswith(COMMENT_OPEN, start):
            close = text.find(COMMENT_CLOSE, start + len(COMMENT_OPEN))
            end = self._length if close == -1 else close + len(COMMENT_CLOSE)
            self._emit(TokenType.COMMENT, text[start:end], start)
            self._pos = end
            return

        if text.startswith("<!", start) or text.startswith("<?", start):
            close = text.find(">", start)
            if close == -1:
                self._literal_less_than(start)
                return
            self._emit(TokenType.DIRECTIVE, text[start:close + 1], start)
            self._pos = close + 1
            return

        if text.startswith("</", start):
            match = _END_TAG_PATTERN.match(text, start)
            if match is None:
                self._literal_less_than(start)
                return
            self._emit(TokenType.END_TAG, self._tag_name(match.group(1)), start)
            self._pos = match.end()
            return

        if start + 1 < self._length and text[start + 1].isalpha():
            self._process_start_tag(start)
            return

        self._literal_less_than(start)

    def _process_start_tag(self, start: int) -> None:
        text = self._text
        pos = start + 1
        while pos < self._length and text[pos] not in _ATTR_NAME_STOP:
            pos += 1
        name = self._tag_name(text[start + 1:pos])

        attributes: List[Tuple[str, str]] = []
        self_closing = False

        while True:
            while pos < self._length and text[pos] in _WHITESPACE:
                pos += 1
            if pos >= self._length:
                # Unterminated tag: keep it as text
                self._literal_less_than(start)
                return

            char = text[pos]
            if char == ">":
                pos += 1
                break
            if char == "/":
                if text.startswith("/>", pos):
                    self_closing = True
                    pos += 2
                    break
                pos += 1
                continue

            name_start = pos
            pos += 1
            while pos < self._length and text[pos] not in _ATTR_NAME_STOP:
                pos += 1
            attr_name = text[name_start:pos]
            if self.lower_case_attribute_names:
                attr_name = attr_name.lower()

            value_pos = pos
            while value_pos < self._length and text[value_pos] in _WHITESPACE:
                value_pos += 1
            if value_pos < self._length and text[value_pos] == "=":
                pos, attr_value = self._read_attribute_value(value_pos + 1)
                if pos is None:
                    self._literal_less_than(start)
                    return
            else:
                attr_value = ""
            attributes.append((attr_name, attr_value))

        token = self._emit(TokenType.START_TAG, name, start)
        token.attributes = attributes
        token.self_closing = self_closing
        self._pos = pos

        if not self_closing and name.lower() in RAW_TEXT_ELEMENTS:
            self._raw_tag = name.lower()
            self._state = TokenizerState.RAW_TEXT

    def _read_attribute_value(self, pos: int) -> Tuple[Optional[int], str]:
        text = self._text
        while pos < self._length and text[pos] in _WHITESPACE:
            pos += 1
        if pos >= self._length:
            return None, ""

        quote = text[pos]
        if quote in "\"'":
            close = text.find(quote, pos + 1)
            if close == -1:
                return None, ""
            return close + 1, text[pos + 1:close]

        value_start = pos
        while pos < self._length and text[pos] not in _UNQUOTED_VALUE_STOP:
            pos += 1
        return pos, text[value_start:pos]

    def _process_raw_text(self) -> None:
        pattern = re.compile(r"</\s*" + re.escape(self._raw_tag or "") + r"[\s/>]",
                             re.IGNORECASE)
        match = pattern.search(self._text, self._pos)
        end = self._length if match is None else match.start()
        if end > self._pos:
            self._mark_text(self._pos)
        self._pos = end
        self._raw_tag = None
        self._state = TokenizerState.DATA if match is None else TokenizerState.TAG_OPEN

    def _literal_less_than(self, start: int) -> None:
        self._mark_text(start)
        self._pos = start + 1
        self._state = TokenizerState.DATA

    def _mark_text(self, start: int) -> None:
        if self._text_start is None:
            self._text_start = start

    def _flush_text(self, end: int) -> None:
        if self._text_start is None:
            return
        start = self._text_start
        self._text_start = None
        if end > start:
            self._tokens.append(
                Token(TokenType.TEXT, self._text[start:end], self._position(start))
            )

    def _emit(self, token_type: TokenType, value: str, start: int) -> Token:
        self._flush_text(start)
        token = Token(token_type, value, self._position(start))
        self._tokens.append(token)
        return token

    def _tag_name(self, name: str) -> str:
        return name.lower() if self.lower_case_tags else name

    def _position(self, offset: int) -> TokenPosition:
        line_index = bisect.bisect_right(self._line_starts, offset) - 1
        return TokenPosition(
            line=line_index + 1,
            column=offset - self._line_starts[line_index] + 1,
            offset=offset,
        )
