"""
Recursive descent block matcher for shader source.

The matcher does not build a syntax tree for the language. It only
groups tokens into brace-delimited blocks, which is all the rewrite
passes need to decide whether a loop or conditional body is flat, and
then recognizes the two constructs the passes rewrite:

    for (var <id>: u32 = <int>; <id> < <int>; <id>++) { <body> }
    if (<true|false>) { <body> } [else { <body> }]

Items in a block are tokens, nested blocks, or fragments. A fragment is
replacement text produced by a pass that still remembers which span of
the original source it covers, so unchanged text around it is copied
through byte for byte.
"""

from dataclasses import dataclass, field, replace
from typing import List, Optional, Union

from .tokens import Token, TokenType, SourceSpan
from .errors import error_invalid_bounds


@dataclass(frozen=True)
class Fragment:
    """Rewritten text standing in for the source span [start, end)."""
    text: str
    start: int
    end: int
    flat: bool = True   # False when the text still contains braces


@dataclass(frozen=True)
class Block:
    """A brace-delimited group of items."""
    open: Token
    items: List["Item"] = field(default_factory=list)
    close: Optional[Token] = None   # None when the block runs to end of input

    @property
    def start(self) -> int:
        return self.open.start

    @property
    def end(self) -> int:
        if self.close is not None:
            return self.close.end
        if self.items:
            return self.items[-1].end
        return self.open.end

    @property
    def inner_end(self) -> int:
        return self.close.start if self.close is not None else self.end

    @property
    def is_closed(self) -> bool:
        return self.close is not None

    @property
    def is_flat(self) -> bool:
        """True when the block is closed and holds no braces of its own."""
        if not self.is_closed:
            return False
        for item in self.items:
            if isinstance(item, Block):
                return False
            if isinstance(item, Fragment) and not item.flat:
                return False
        return True

    def with_items(self, items: List["Item"]) -> "Block":
        return replace(self, items=items)


Item = Union[Token, Block, Fragment]


class BlockParser:
    """
    Groups a token stream into nested blocks.

    Usage:
        parser = BlockParser(tokens)
        items = parser.parse()

    A '}' with no matching '{' is kept as an ordinary token, and a '{'
    with no matching '}' produces an unclosed block. Neither is an
    error: unbalanced input is passed through untouched.
    """

    def __init__(self, tokens: List[Token]):
        self.tokens = tokens
        self.pos = 0

    def _current(self) -> Token:
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # EOF
        return self.tokens[self.pos]

    def _is_at_end(self) -> bool:
        return self._current().type == TokenType.EOF

    def _check(self, token_type: TokenType) -> bool:
        return self._current().type == token_type

    def _advance(self) -> Token:
        token = self._current()
        if not self._is_at_end():
            self.pos += 1
        return token

    def parse(self) -> List[Item]:
        """Parse the whole token stream into top-level items."""
        items: List[Item] = []
        while not self._is_at_end():
            if self._check(TokenType.LBRACE):
                items.append(self._parse_block())
            else:
                items.append(self._advance())
        return items

    def _parse_block(self) -> Block:
        open_token = self._advance()
        items: List[Item] = []
        while not self._is_at_end():
            if self._check(TokenType.RBRACE):
                return Block(open_token, items, self._advance())
            if self._check(TokenType.LBRACE):
                items.append(self._parse_block())
            else:
                items.append(self._advance())
        return Block(open_token, items, None)


def parse_blocks(tokens: List[Token]) -> List[Item]:
    """Convenience function to group tokens into blocks."""
    return BlockParser(tokens).parse()


# =============================================================================
# Rendering
# =============================================================================

def render_item(item: Item, source: str) -> str:
    """Render one item back to text."""
    if isinstance(item, Fragment):
        return item.text
    if isinstance(item, Block):
        text = item.open.lexeme + render_items(item.items, source, item.open.end, item.inner_end)
        if item.close is not None:
            text += item.close.lexeme
        return text
    return item.lexeme


def render_items(items: List[Item], source: str, start: int, end: int) -> str:
    """
    Render items covering source[start:end], keeping the original text
    between items.
    """
    parts = []
    cursor = start
    for item in items:
        parts.append(source[cursor:item.start])
        parts.append(render_item(item, source))
        cursor = item.end
    parts.append(source[cursor:end])
    return "".join(parts)


def block_body(block: Block, source: str) -> str:
    """The exact text between a block's braces."""
    return render_items(block.items, source, block.open.end, block.inner_end)


def source_line(source: str, line: int) -> Optional[str]:
    lines = source.splitlines()
    if 1 <= line <= len(lines):
        return lines[line - 1]
    return None


# =============================================================================
# Counting loops
# =============================================================================

# for ( var ID : u32 = INT ; ID < INT ; ID ++ )
LOOP_HEADER = (
    TokenType.FOR, TokenType.LPAREN, TokenType.VAR, TokenType.IDENTIFIER,
    TokenType.COLON, TokenType.TYPE_U32, TokenType.ASSIGN, TokenType.INT_LITERAL,
    TokenType.SEMICOLON, TokenType.IDENTIFIER, TokenType.LT, TokenType.INT_LITERAL,
    TokenType.SEMICOLON, TokenType.IDENTIFIER, TokenType.INCREMENT, TokenType.RPAREN,
)

# Positions within LOOP_HEADER
_VAR_POSITIONS = (3, 9, 13)
_START_POSITION = 7
_END_POSITION = 11


@dataclass(frozen=True)
class LoopHeader:
    """A counting-loop header followed by its block, bounds not yet parsed."""
    tokens: List[Token]
    block: Block
    index: int          # index of the 'for' item
    next_index: int     # index of the first item after the block

    @property
    def variable(self) -> str:
        return self.tokens[_VAR_POSITIONS[0]].value

    @property
    def start(self) -> int:
        return self.tokens[0].start

    @property
    def end(self) -> int:
        return self.block.end

    @property
    def span(self) -> SourceSpan:
        return SourceSpan(self.tokens[0].span.start, self.block.close.span.end)

    def bind(self, source: str) -> "LoopMatch":
        """
        Parse the bounds and extract the body.

        Raises:
            InvalidBoundsError: If a bound token is not a parseable integer
        """
        bounds = []
        for position in (_START_POSITION, _END_POSITION):
            token = self.tokens[position]
            if not isinstance(token.value, int):
                raise error_invalid_bounds(
                    token.lexeme,
                    source[self.start:self.end],
                    token.span,
                    source_line(source, token.span.start.line),
                )
            bounds.append(token.value)

        return LoopMatch(
            variable=self.variable,
            start=bounds[0],
            end=bounds[1],
            body=block_body(self.block, source).lstrip(),
            header=self,
        )


@dataclass(frozen=True)
class LoopMatch:
    """A counting loop with literal bounds and a flat body."""
    variable: str
    start: int
    end: int
    body: str                   # body text, leading whitespace stripped
    header: LoopHeader

    @property
    def count(self) -> int:
        return self.end - self.start


def match_loop_header(items: List[Item], index: int) -> Optional[LoopHeader]:
    """
    Match a counting-loop header and its block at items[index].

    The block may or may not be flat; callers decide what to do with a
    loop whose body contains braces.
    """
    stop = index + len(LOOP_HEADER)
    if stop >= len(items):
        return None

    tokens = items[index:stop]
    for item, expected in zip(tokens, LOOP_HEADER):
        if not isinstance(item, Token) or item.type != expected:
            return None

    variable = tokens[_VAR_POSITIONS[0]].value
    if any(tokens[p].value != variable for p in _VAR_POSITIONS[1:]):
        return None

    block = items[stop]
    if not isinstance(block, Block) or not block.is_closed:
        return None

    return LoopHeader(tokens=tokens, block=block, index=index, next_index=stop + 1)


# =============================================================================
# Literal conditionals
# =============================================================================

@dataclass(frozen=True)
class ConditionalMatch:
    """An if statement guarded by a literal boolean with flat bodies."""
    condition: bool
    then_body: str
    else_body: Optional[str]
    start: int
    end: int
    span: SourceSpan
    next_index: int

    @property
    def has_else(self) -> bool:
        return self.else_body is not None

    @property
    def taken(self) -> str:
        """The text that replaces the whole statement."""
        if self.condition:
            return self.then_body
        return self.else_body or ""


def _token_at(items: List[Item], index: int, token_type: TokenType) -> Optional[Token]:
    if 0 <= index < len(items):
        item = items[index]
        if isinstance(item, Token) and item.type == token_type:
            return item
    return None


def _skip_comments(items: List[Item], index: int, step: int) -> int:
    """Index of the nearest non-comment item from index, walking by step."""
    while 0 <= index < len(items):
        item = items[index]
        if not (isinstance(item, Token) and item.type == TokenType.COMMENT):
            break
        index += step
    return index


def _flat_block_at(items: List[Item], index: int) -> Optional[Block]:
    if 0 <= index < len(items):
        item = items[index]
        if isinstance(item, Block) and item.is_flat:
            return item
    return None


def match_literal_conditional(items: List[Item], index: int,
                              source: str) -> Optional[ConditionalMatch]:
    """
    Match `if (true|false) {A}` with an optional `else {B}` at items[index].

    Returns None when the guard is not a literal, when a body is not
    flat, when the `if` is the arm of an `else if` chain, or when the
    `else` that follows is not a plain block. Reducing any of those
    would leave a dangling `else` behind. Comments between an `else` and
    its neighbours do not separate them.
    """
    if_token = _token_at(items, index, TokenType.IF)
    if if_token is None:
        return None
    if _token_at(items, _skip_comments(items, index - 1, -1), TokenType.ELSE) is not None:
        return None

    if (_token_at(items, index + 1, TokenType.LPAREN) is None
            or _token_at(items, index + 3, TokenType.RPAREN) is None):
        return None
    guard = _token_at(items, index + 2, TokenType.BOOL_LITERAL)
    if guard is None:
        return None

    then_block = _flat_block_at(items, index + 4)
    if then_block is None:
        return None

    else_body = None
    last = then_block
    next_index = index + 5
    else_index = _skip_comments(items, next_index, 1)
    if _token_at(items, else_index, TokenType.ELSE) is not None:
        block_index = _skip_comments(items, else_index + 1, 1)
        else_block = _flat_block_at(items, block_index)
        if else_block is None:
            return None
        else_body = block_body(else_block, source)
        last = else_block
        next_index = block_index + 1

    return ConditionalMatch(
        condition=guard.value,
        then_body=block_body(then_block, source),
        else_body=else_body,
        start=if_token.start,
        end=last.end,
        span=SourceSpan(if_token.span.start, last.close.span.end),
        next_index=next_index,
    )
