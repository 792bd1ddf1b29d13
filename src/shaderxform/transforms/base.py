"""
Transformation framework for shader source rewriting.

A transform maps source text to source text. Structural transforms
tokenize the input, group the tokens into blocks, and make a single
traversal that replaces every construct they match. The driver repeats
the traversal on the result until a traversal rewrites nothing, which is
the fixpoint the passes promise. Each traversal only ever removes braces
or marks a construct so it cannot match again, so in practice the second
traversal finds nothing; the pass cap turns a pathological input that
keeps rebuilding a matching construct into an error instead of a hang.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..errors import DiagnosticCollector, error_divergence
from ..lexer import tokenize
from ..parser import Block, Item, parse_blocks, render_items, source_line
from ..tokens import SourceSpan

logger = logging.getLogger(__name__)

DEFAULT_MAX_PASSES = 64


class ShaderTransform(ABC):
    """
    Base class for source transformations.

    Transforms take shader source text and return rewritten text. They
    can be composed in a pipeline.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this transform for debugging/logging."""
        pass

    @abstractmethod
    def transform(self, code: str) -> str:
        """
        Apply this transform to source text.

        Args:
            code: The input source

        Returns:
            The rewritten source (equal to the input when nothing matched)
        """
        pass

    def __call__(self, code: str) -> str:
        return self.transform(code)


class Traversal:
    """State of one traversal: the text being rewritten and a rewrite count."""

    def __init__(self, source: str):
        self.source = source
        self.rewrites = 0

    def count_rewrite(self) -> None:
        self.rewrites += 1

    def line_of(self, span: SourceSpan) -> Optional[str]:
        return source_line(self.source, span.start.line)


class StructuralTransform(ShaderTransform):
    """
    A transform that rewrites matched constructs in the block tree.

    Subclasses implement rewrite_items(), which receives one sequence of
    sibling items and returns the rewritten sequence. Replacements are
    Fragment items; descent into nested blocks is up to the subclass.
    The instance holds settings only; per-traversal state lives on the
    Traversal passed along.
    """

    def __init__(self, max_passes: int = DEFAULT_MAX_PASSES,
                 diagnostics: Optional[DiagnosticCollector] = None):
        if isinstance(max_passes, bool) or not isinstance(max_passes, int) or max_passes < 1:
            raise ValueError(f"max_passes must be a positive integer, got {max_passes!r}")
        self.max_passes = max_passes
        self.diagnostics = diagnostics

    @abstractmethod
    def rewrite_items(self, items: List[Item], traversal: Traversal) -> List[Item]:
        """Rewrite a sequence of sibling items."""
        pass

    def transform(self, code: str) -> str:
        passes = 0
        while True:
            result, rewrites = self.rewrite_once(code)
            if rewrites == 0:
                return code
            passes += 1
            logger.debug("%s: pass %d made %d rewrite(s)", self.name, passes, rewrites)
            if passes > self.max_passes:
                raise error_divergence(self.name, self.max_passes)
            code = result

    def rewrite_once(self, code: str) -> Tuple[str, int]:
        """Make one traversal over code; return the new text and rewrite count."""
        traversal = Traversal(code)
        items = parse_blocks(tokenize(code))
        rewritten = self.rewrite_items(items, traversal)
        return render_items(rewritten, code, 0, len(code)), traversal.rewrites

    # -- helpers for subclasses ---------------------------------------------

    def descend(self, block: Block, traversal: Traversal) -> Block:
        """Rewrite the contents of a nested block."""
        return block.with_items(self.rewrite_items(block.items, traversal))

    def report(self, diagnostic) -> None:
        if self.diagnostics is not None:
            self.diagnostics.add(diagnostic)


class TransformPipeline:
    """
    A pipeline of transforms to apply in sequence.
    """

    def __init__(self, transforms: List[ShaderTransform] = None):
        self.transforms = transforms or []

    def add(self, transform: ShaderTransform) -> "TransformPipeline":
        """Add a transform to the pipeline."""
        self.transforms.append(transform)
        return self

    @property
    def names(self) -> List[str]:
        return [t.name for t in self.transforms]

    def apply(self, code: str) -> str:
        """Apply all transforms in sequence."""
        result = code
        for transform in self.transforms:
            logger.debug("applying %s", transform.name)
            result = transform.transform(result)
        return result


class IdentityTransform(ShaderTransform):
    """Identity transform - returns source unchanged."""

    @property
    def name(self) -> str:
        return "identity"

    def transform(self, code: str) -> str:
        return code
