"""
Shader source transformation passes.

Usage:
    from shaderxform.transforms import TransformPipeline, LoopUnroller, ConditionalSimplifier

    pipeline = TransformPipeline()
    pipeline.add(LoopUnroller(threshold=16))
    pipeline.add(ConditionalSimplifier())

    optimized = pipeline.apply(source)
"""

from .base import (
    DEFAULT_MAX_PASSES,
    ShaderTransform,
    StructuralTransform,
    Traversal,
    TransformPipeline,
    IdentityTransform,
)
from .unroll import (
    DEFAULT_THRESHOLD,
    SKIP_MARKER,
    LoopUnroller,
    unroll_loops,
)
from .conditionals import (
    ConditionalSimplifier,
    simplify_conditionals,
)

__all__ = [
    'DEFAULT_MAX_PASSES',
    'DEFAULT_THRESHOLD',
    'SKIP_MARKER',
    'ShaderTransform',
    'StructuralTransform',
    'Traversal',
    'TransformPipeline',
    'IdentityTransform',
    'LoopUnroller',
    'ConditionalSimplifier',
    'unroll_loops',
    'simplify_conditionals',
]
