"""
Constant-conditional elimination.

Reduces conditionals whose guard is the literal `true` or `false`:

    if (true) {A} else {B}   ->  A
    if (false) {A} else {B}  ->  B
    if (true) {A}            ->  A
    if (false) {A}           ->  (removed)

Bodies are replaced by the exact text between their braces. Nested
blocks are rewritten first, so an outer conditional is reduced in the
same traversal once its inner conditionals have been.
"""

import logging
from typing import List, Optional

from ..errors import DiagnosticCollector, info_conditional_simplified
from ..parser import Block, Fragment, Item, match_literal_conditional
from .base import DEFAULT_MAX_PASSES, StructuralTransform, Traversal

logger = logging.getLogger(__name__)


class ConditionalSimplifier(StructuralTransform):
    """Eliminates `if` statements guarded by a literal boolean."""

    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES,
                 diagnostics: Optional[DiagnosticCollector] = None):
        super().__init__(max_passes=max_passes, diagnostics=diagnostics)

    @property
    def name(self) -> str:
        return "conditionals"

    def rewrite_items(self, items: List[Item], traversal: Traversal) -> List[Item]:
        # Bottom-up: bodies must be final before their flatness is judged.
        items = [self.descend(item, traversal) if isinstance(item, Block) else item for item in items]

        result: List[Item] = []
        index = 0
        while index < len(items):
            match = match_literal_conditional(items, index, traversal.source)
            if match is None:
                result.append(items[index])
                index += 1
                continue

            traversal.count_rewrite()
            logger.debug("simplifying if (%s) at %s", "true" if match.condition else "false",
                         match.span.start)
            self.report(info_conditional_simplified(match.condition, match.has_else,
                                                    match.span, traversal.line_of(match.span)))
            result.append(Fragment(match.taken, match.start, match.end))
            index = match.next_index
        return result


def simplify_conditionals(code: str, *,
                          max_passes: int = DEFAULT_MAX_PASSES,
                          diagnostics: Optional[DiagnosticCollector] = None) -> str:
    """
    Remove conditionals guarded by a literal `true` or `false`.

    Args:
        code: Shader source text
        max_passes: Cap on rewriting traversals
        diagnostics: Optional collector receiving one report per reduction

    Returns:
        The rewritten source

    Raises:
        TransformDivergenceError: If rewriting does not converge
    """
    simplifier = ConditionalSimplifier(max_passes=max_passes, diagnostics=diagnostics)
    return simplifier.transform(code)
