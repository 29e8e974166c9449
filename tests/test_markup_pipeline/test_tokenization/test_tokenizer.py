"""Tests for the HTML tokenizer."""

import pytest

from markup_pipeline.tokenization import (
    HTMLTokenizer,
    TokenPosition,
    TokenType,
)


def tokens(markup, **kwargs):
    return HTMLTokenizer(**kwargs).tokenize(markup).tokens


def summary(markup, **kwargs):
    return [(token.type, token.value) for token in tokens(markup, **kwargs)]


class TestTokenPosition:
    """Test position validation."""

    def test_valid_position(self):
        position = TokenPosition(line=1, column=1, offset=0)
        assert position.offset == 0

    @pytest.mark.parametrize("line,column,offset", [(0, 1, 0), (1, 0, 0), (1, 1, -1)])
    def test_invalid_position(self, line, column, offset):
        with pytest.raises(ValueError):
            TokenPosition(line=line, column=column, offset=offset)


class TestHTMLTokenizer:
    """Test token stream produced for markup."""

    def test_basic_markup(self):
        """Test start tags, text and end tags."""
        assert summary("<p>Hello</p>") == [
            (TokenType.START_TAG, "p"),
            (TokenType.TEXT, "Hello"),
            (TokenType.END_TAG, "p"),
        ]

    def test_attributes(self):
        """Test quoted, unquoted and valueless attributes."""
        token = tokens("<input type='text' value=\"a b\" size=3 disabled>")[0]

        assert token.attributes == [
            ("type", "text"), ("value", "a b"), ("size", "3"), ("disabled", ""),
        ]
        assert token.self_closing is False

    def test_attribute_spacing_around_equals(self):
        """Test whitespace around '=' is allowed."""
        token = tokens('<a href = "/x">')[0]
        assert token.attributes == [("href", "/x")]

    def test_self_closing(self):
        """Test '/>' marks the token as self-closing."""
        token = tokens('<rect width="1"/>')[0]
        assert token.value == "rect"
        assert token.self_closing is True

    def test_case_preserved(self):
        """Test names keep their case by default."""
        token = tokens('<linearGradient gradientUnits="x">')[0]
        assert token.value == "linearGradient"
        assert token.attributes == [("gradientUnits", "x")]

    def test_lower_casing(self):
        """Test optional lower-casing of tag and attribute names."""
        token = tokens('<DIV ID="Main"></DIV>', lower_case_tags=True,
                       lower_case_attribute_names=True)[0]
        assert token.value == "div"
        assert token.attributes == [("id", "Main")]
        assert tokens("</DIV>", lower_case_tags=True)[0].value == "div"

    def test_comments_and_directives_verbatim(self):
        """Test comments, doctypes and processing instructions."""
        assert summary("<!DOCTYPE html><!-- a <b> --><?xml version='1.0'?>") == [
            (TokenType.DIRECTIVE, "<!DOCTYPE html>"),
            (TokenType.COMMENT, "<!-- a <b> -->"),
            (TokenType.DIRECTIVE, "<?xml version='1.0'?>"),
        ]

    def test_unterminated_comment_runs_to_end(self):
        """Test an unclosed comment takes the rest of the input."""
        assert summary("a<!-- open") == [
            (TokenType.TEXT, "a"),
            (TokenType.COMMENT, "<!-- open"),
        ]

    def test_stray_less_than_is_text(self):
        """Test '<' not starting a tag stays in the text."""
        assert summary("1 < 2 <3") == [(TokenType.TEXT, "1 < 2 <3")]

    def test_unterminated_tag_is_text(self):
        """Test a tag cut off by end of input is kept as text."""
        assert summary('x<a href="y') == [(TokenType.TEXT, 'x<a href="y')]

    def test_malformed_end_tag_is_text(self):
        """Test '</' without a name is text."""
        assert summary("a</ b") == [(TokenType.TEXT, "a</ b")]

    def test_raw_text_elements(self):
        """Test script content is not tokenized."""
        assert summary("<script>if (a < b) { x = '</p>'; }</script>") == [
            (TokenType.START_TAG, "script"),
            (TokenType.TEXT, "if (a < b) { x = '</p>'; }"),
            (TokenType.END_TAG, "script"),
        ]

    def test_unterminated_raw_text(self):
        """Test raw text runs to end of input without an end tag."""
        assert summary("<style>a{}") == [
            (TokenType.START_TAG, "style"),
            (TokenType.TEXT, "a{}"),
        ]

    def test_positions(self):
        """Test line and column tracking."""
        result = tokens("<p>\n  <b>x</b></p>")
        bold = result[2]

        assert bold.value == "b"
        assert (bold.position.line, bold.position.column, bold.position.offset) == (2, 3, 6)

    def test_result_statistics(self):
        """Test counts on the tokenization result."""
        result = HTMLTokenizer(correlation_id="tok").tokenize("<p>a</p><!--c-->")

        assert result.token_count == 4
        assert result.count(TokenType.COMMENT) == 1
        assert result.characters_processed == 16
        assert result.correlation_id == "tok"

    def test_tokenizer_reusable(self):
        """Test a tokenizer instance can be reused."""
        tokenizer = HTMLTokenizer()
        tokenizer.tokenize("<a>")
        assert [t.value for t in tokenizer.tokenize("<b>").tokens] == ["b"]
