"""
Loop unrolling for statically bounded counting loops.

    for (var i: u32 = 0; i < 3; i++) { x[i] = i; }

becomes

    x[0] = 0; x[1] = 1; x[2] = 2;

Loops with more iterations than the threshold are left rolled and marked
with a comment between the header and the body, which also keeps them
from matching on later passes.
"""

import logging
from typing import List, Optional

from ..errors import DiagnosticCollector, info_loop_unrolled, warning_loop_skipped
from ..lexer import tokenize
from ..parser import Block, Fragment, Item, LoopHeader, LoopMatch, match_loop_header, render_item
from ..tokens import Token, TokenType
from .base import DEFAULT_MAX_PASSES, StructuralTransform, Traversal

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 32
SKIP_MARKER = "/* Skipped */"


def substitute(match: LoopMatch, value: int) -> str:
    """
    Render the loop body with the induction variable replaced by value.

    Only whole identifier tokens are replaced, and not when they name a
    member (`v.i`). Comments, longer identifiers such as `idx`, and the
    whitespace between tokens are copied unchanged.
    """
    body = match.body
    literal = str(value)
    parts = []
    cursor = 0
    previous: Optional[Token] = None
    for token in tokenize(body):
        if token.type == TokenType.EOF:
            break
        if (token.type == TokenType.IDENTIFIER and token.value == match.variable
                and not (previous is not None and previous.type == TokenType.DOT)):
            parts.append(body[cursor:token.start])
            parts.append(literal)
            cursor = token.end
        previous = token
    parts.append(body[cursor:])
    return "".join(parts)


class LoopUnroller(StructuralTransform):
    """
    Unrolls `for (var <id>: u32 = <int>; <id> < <int>; <id>++) { ... }`.

    A loop is unrolled when its body holds no braces and its trip count
    is at most the threshold. A counting loop whose body does hold braces
    is left untouched as a whole, nested loops included.
    """

    def __init__(self, threshold: int = DEFAULT_THRESHOLD,
                 max_passes: int = DEFAULT_MAX_PASSES,
                 skip_marker: str = SKIP_MARKER,
                 diagnostics: Optional[DiagnosticCollector] = None):
        super().__init__(max_passes=max_passes, diagnostics=diagnostics)
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise ValueError(f"threshold must be a non-negative integer, got {threshold!r}")
        if not (skip_marker.startswith("/*") and skip_marker.endswith("*/") and len(skip_marker) >= 4):
            raise ValueError(f"skip_marker must be a block comment, got {skip_marker!r}")
        self.threshold = threshold
        self.skip_marker = skip_marker

    @property
    def name(self) -> str:
        return "unroll"

    def rewrite_items(self, items: List[Item], traversal: Traversal) -> List[Item]:
        result: List[Item] = []
        index = 0
        while index < len(items):
            header = match_loop_header(items, index)
            if header is not None:
                if header.block.is_flat:
                    result.append(self._rewrite_loop(header, traversal))
                else:
                    logger.debug("loop over '%s' has a nested block; left as is", header.variable)
                    result.extend(items[index:header.next_index])
                index = header.next_index
                continue

            item = items[index]
            if isinstance(item, Block):
                item = self.descend(item, traversal)
            result.append(item)
            index += 1
        return result

    def _rewrite_loop(self, header: LoopHeader, traversal: Traversal) -> Fragment:
        match = header.bind(traversal.source)
        traversal.count_rewrite()

        if match.count > self.threshold:
            logger.info("loop over '%s' in [%d, %d) exceeds threshold %d; left rolled",
                        match.variable, match.start, match.end, self.threshold)
            self.report(warning_loop_skipped(match.variable, match.start, match.end,
                                             self.threshold, header.span,
                                             traversal.line_of(header.span)))
            return self._skipped(header, traversal.source)

        logger.debug("unrolling loop over '%s' in [%d, %d)", match.variable, match.start, match.end)
        self.report(info_loop_unrolled(match.variable, match.start, match.end,
                                       header.span, traversal.line_of(header.span)))
        text = "".join(substitute(match, value)
                       for value in range(match.start, match.end))
        return Fragment(text, header.start, header.end)

    def _skipped(self, header: LoopHeader, source: str) -> Fragment:
        """The loop with the skip marker between its header and body."""
        head = source[header.start:header.tokens[-1].end]
        body = render_item(header.block, source)
        return Fragment(f"{head} {self.skip_marker} {body}", header.start, header.end, flat=False)


def unroll_loops(code: str, threshold: int = DEFAULT_THRESHOLD, *,
                 max_passes: int = DEFAULT_MAX_PASSES,
                 diagnostics: Optional[DiagnosticCollector] = None) -> str:
    """
    Unroll statically bounded counting loops in code.

    Args:
        code: Shader source text
        threshold: Largest trip count that is unrolled; longer loops are
            left rolled and marked
        max_passes: Cap on rewriting traversals
        diagnostics: Optional collector receiving one report per loop

    Returns:
        The rewritten source

    Raises:
        InvalidBoundsError: If a loop bound is not a parseable integer
        TransformDivergenceError: If rewriting does not converge
    """
    unroller = LoopUnroller(threshold=threshold, max_passes=max_passes,
                            diagnostics=diagnostics)
    return unroller.transform(code)
