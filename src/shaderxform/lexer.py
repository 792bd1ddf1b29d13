"""
Tokenizer for shader source text.

Converts source text into a lossless stream of tokens: every token keeps
its character offsets, so the text between two tokens (whitespace) can
always be recovered from the source. The rewrite passes rely on this to
splice replacements without disturbing anything they did not match.

Supports:
- Identifiers and the keywords used by the matchers
- Decimal integer literals (the only legal loop bounds)
- Other numeric literals (floats, hex, suffixed) as opaque NUMBER tokens
- Line comments (//) and nested block comments (/* */)
- String literals, so braces inside them are not counted as blocks

The tokenizer never fails: characters outside the surface language
become UNKNOWN tokens and an unterminated comment runs to end of input.
A text transform has to pass through whatever it does not understand.
"""

from typing import Iterator, List, Optional
from .tokens import (
    Token, TokenType, SourceLocation, SourceSpan,
    KEYWORDS, OPERATORS, SINGLE_CHAR_TOKENS, OPERATOR_CHARS,
)


class Lexer:
    """
    Tokenizer for the restricted shader surface language.

    Usage:
        lexer = Lexer(source_code)
        tokens = lexer.tokenize()

    Or for streaming:
        lexer = Lexer(source_code)
        for token in lexer:
            process(token)
    """

    def __init__(self, source: str, filename: Optional[str] = None):
        self.source = source
        self.filename = filename
        self.pos = 0            # Current position in source
        self.line = 1           # Current line (1-indexed)
        self.column = 1         # Current column (1-indexed)

    def _location(self) -> SourceLocation:
        return SourceLocation(self.line, self.column, self.pos, self.filename)

    def _span(self, start: SourceLocation) -> SourceSpan:
        return SourceSpan(start, self._location())

    def _peek(self, offset: int = 0) -> str:
        """Look at character at current position + offset without consuming."""
        idx = self.pos + offset
        if idx >= len(self.source):
            return '\0'
        return self.source[idx]

    def _advance(self) -> str:
        """Consume and return current character."""
        if self.pos >= len(self.source):
            return '\0'
        ch = self.source[self.pos]
        self.pos += 1
        if ch == '\n':
            self.line += 1
            self.column = 1
        else:
            self.column += 1
        return ch

    def _is_at_end(self) -> bool:
        return self.pos >= len(self.source)

    def _make_token(self, token_type: TokenType, value, start: SourceLocation) -> Token:
        lexeme = self.source[start.offset:self.pos]
        return Token(token_type, value, lexeme, self._span(start))

    def _skip_whitespace(self) -> None:
        while not self._is_at_end() and self._peek().isspace():
            self._advance()

    def _scan_line_comment(self, start: SourceLocation) -> Token:
        """Scan // ... up to (not including) the newline."""
        while not self._is_at_end() and self._peek() != '\n':
            self._advance()
        return self._make_token(TokenType.COMMENT, None, start)

    def _scan_block_comment(self, start: SourceLocation) -> Token:
        """Scan /* ... */ with nesting, as WGSL allows."""
        self._advance()  # consume '/'
        self._advance()  # consume '*'
        depth = 1

        while not self._is_at_end() and depth > 0:
            if self._peek() == '/' and self._peek(1) == '*':
                self._advance()
                self._advance()
                depth += 1
            elif self._peek() == '*' and self._peek(1) == '/':
                self._advance()
                self._advance()
                depth -= 1
            else:
                self._advance()

        return self._make_token(TokenType.COMMENT, None, start)

    def _scan_string(self, start: SourceLocation) -> Token:
        """Scan a quoted literal; unterminated strings stop at end of line."""
        quote = self._advance()
        while not self._is_at_end() and self._peek() not in (quote, '\n'):
            if self._peek() == '\\':
                self._advance()
            self._advance()
        if self._peek() == quote:
            self._advance()
        return self._make_token(TokenType.STRING_LITERAL, None, start)

    def _scan_number(self, start: SourceLocation) -> Token:
        """
        Scan a numeric literal.

        A run of digits is an INT_LITERAL. Anything that continues it
        (a fraction, an exponent, a hex prefix, a type suffix) makes the
        whole lexeme an opaque NUMBER, which never matches a loop bound.
        """
        while self._peek().isdigit():
            self._advance()

        if not (self._peek().isalnum() or self._peek() in '_.'):
            lexeme = self.source[start.offset:self.pos]
            try:
                value = int(lexeme)
            except ValueError:
                # str.isdigit() admits characters like superscripts that
                # int() rejects; the matcher reports these as bad bounds.
                value = None
            return self._make_token(TokenType.INT_LITERAL, value, start)

        is_hex = self.source[start.offset:self.pos] == '0' and self._peek() in 'xX'
        while self._peek().isalnum() or self._peek() in '_.':
            ch = self._advance()
            if ch in 'eE' and not is_hex and self._peek() in '+-':
                self._advance()
        return self._make_token(TokenType.NUMBER, None, start)

    def _scan_identifier_or_keyword(self, start: SourceLocation) -> Token:
        while self._peek().isalnum() or self._peek() == '_':
            self._advance()

        lexeme = self.source[start.offset:self.pos]
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        if token_type == TokenType.BOOL_LITERAL:
            return self._make_token(token_type, lexeme == "true", start)
        return self._make_token(token_type, lexeme, start)

    def _scan_operator(self, start: SourceLocation) -> Token:
        for op in OPERATORS:
            if self.source.startswith(op, self.pos):
                for _ in op:
                    self._advance()
                if op == "++":
                    return self._make_token(TokenType.INCREMENT, op, start)
                return self._make_token(TokenType.OPERATOR, op, start)

        ch = self._advance()
        if ch in SINGLE_CHAR_TOKENS:
            return self._make_token(SINGLE_CHAR_TOKENS[ch], ch, start)
        if ch in OPERATOR_CHARS:
            return self._make_token(TokenType.OPERATOR, ch, start)
        return self._make_token(TokenType.UNKNOWN, ch, start)

    def _scan_token(self) -> Token:
        """Scan the next token."""
        self._skip_whitespace()
        start = self._location()

        if self._is_at_end():
            return self._make_token(TokenType.EOF, None, start)

        ch = self._peek()

        if ch == '/' and self._peek(1) == '/':
            return self._scan_line_comment(start)
        if ch == '/' and self._peek(1) == '*':
            return self._scan_block_comment(start)

        if ch in '"\'':
            return self._scan_string(start)

        if ch.isdigit():
            return self._scan_number(start)

        if ch.isalpha() or ch == '_':
            return self._scan_identifier_or_keyword(start)

        return self._scan_operator(start)

    def tokenize(self) -> List[Token]:
        """Tokenize the entire source, returning a list of tokens."""
        tokens = []
        while True:
            token = self._scan_token()
            tokens.append(token)
            if token.type == TokenType.EOF:
                break
        return tokens

    def __iter__(self) -> Iterator[Token]:
        while True:
            token = self._scan_token()
            yield token
            if token.type == TokenType.EOF:
                break


def tokenize(source: str, filename: Optional[str] = None) -> List[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The source code to tokenize
        filename: Optional filename for diagnostics

    Returns:
        List of tokens, always terminated by an EOF token
    """
    lexer = Lexer(source, filename)
    return lexer.tokenize()
