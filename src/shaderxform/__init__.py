"""
Source-to-source simplification of generated shader code.

This package provides:
- Tokenizer: Lossless token stream over shader source
- Block matcher: Groups tokens into brace blocks and recognizes counting
  loops and literal-guarded conditionals
- Transforms: Loop unrolling and constant-conditional elimination
- Configuration: YAML-backed settings for the passes

Usage:
    from shaderxform import unroll_loops, simplify_conditionals

    code = unroll_loops("for (var i: u32 = 0; i < 3; i++) { x[i] = i; }")
    # 'x[0] = 0; x[1] = 1; x[2] = 2; '

    code = simplify_conditionals("if (true) { a(); } else { b(); }")
    # ' a(); '

    # Or run the configured pipeline and collect reports
    from shaderxform import TransformConfig, DiagnosticCollector, optimize

    diagnostics = DiagnosticCollector()
    code = optimize(source, TransformConfig(threshold=8), diagnostics=diagnostics)
    for diag in diagnostics.diagnostics:
        print(diag.format())
"""

from typing import Optional

from .tokens import (
    Token,
    TokenType,
    SourceLocation,
    SourceSpan,
    KEYWORDS,
)

from .lexer import (
    Lexer,
    tokenize,
)

from .parser import (
    Block,
    BlockParser,
    ConditionalMatch,
    Fragment,
    LoopHeader,
    LoopMatch,
    match_literal_conditional,
    match_loop_header,
    parse_blocks,
    render_items,
)

from .errors import (
    TransformError,
    InvalidBoundsError,
    TransformDivergenceError,
    ConfigError,
    Diagnostic,
    DiagnosticCollector,
    ErrorSeverity,
)

from .transforms import (
    DEFAULT_MAX_PASSES,
    DEFAULT_THRESHOLD,
    SKIP_MARKER,
    ShaderTransform,
    StructuralTransform,
    TransformPipeline,
    IdentityTransform,
    LoopUnroller,
    ConditionalSimplifier,
    unroll_loops,
    simplify_conditionals,
)

from .config import (
    TransformConfig,
    load_config,
    resolve_config,
)

__version__ = "0.1.0"


def build_pipeline(config: Optional[TransformConfig] = None,
                   diagnostics: Optional[DiagnosticCollector] = None) -> TransformPipeline:
    """Build the pipeline of passes named by config, in config order."""
    config = config or TransformConfig()
    pipeline = TransformPipeline()
    for name in config.passes:
        if name == "unroll":
            pipeline.add(LoopUnroller(threshold=config.threshold,
                                      max_passes=config.max_passes,
                                      skip_marker=config.skip_marker,
                                      diagnostics=diagnostics))
        elif name == "conditionals":
            pipeline.add(ConditionalSimplifier(max_passes=config.max_passes,
                                               diagnostics=diagnostics))
    return pipeline


def optimize(code: str, config: Optional[TransformConfig] = None,
             diagnostics: Optional[DiagnosticCollector] = None) -> str:
    """Run the configured passes (unroll, then conditionals, by default) over code."""
    return build_pipeline(config, diagnostics).apply(code)


__all__ = [
    # Tokens
    'Token', 'TokenType', 'SourceLocation', 'SourceSpan', 'KEYWORDS',
    'Lexer', 'tokenize',
    # Matching
    'Block', 'BlockParser', 'Fragment', 'LoopHeader', 'LoopMatch', 'ConditionalMatch',
    'parse_blocks', 'render_items', 'match_loop_header', 'match_literal_conditional',
    # Errors
    'TransformError', 'InvalidBoundsError', 'TransformDivergenceError', 'ConfigError',
    'Diagnostic', 'DiagnosticCollector', 'ErrorSeverity',
    # Transforms
    'DEFAULT_MAX_PASSES', 'DEFAULT_THRESHOLD', 'SKIP_MARKER',
    'ShaderTransform', 'StructuralTransform', 'TransformPipeline', 'IdentityTransform',
    'LoopUnroller', 'ConditionalSimplifier', 'unroll_loops', 'simplify_conditionals',
    # Configuration
    'TransformConfig', 'load_config', 'resolve_config',
    'build_pipeline', 'optimize',
]
