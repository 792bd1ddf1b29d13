#!/usr/bin/env python3
"""
CLI for the shader source transforms.

Usage:
    python -m shaderxform [FILE] [-o OUT] [--threshold N] [--max-passes N]
                          [--pass NAME ...] [--config FILE.yaml] [-v]

Reads FILE (or stdin when FILE is omitted or '-'), runs the configured
passes and writes the result to OUT (or stdout).

Examples:
    # Unroll and simplify with the defaults
    python -m shaderxform shaders/blur.wgsl -o build/blur.wgsl

    # Only unroll, allowing longer loops
    python -m shaderxform shaders/blur.wgsl --pass unroll --threshold 64

    # Show what was rewritten
    python -m shaderxform shaders/blur.wgsl -v > /dev/null
"""

import argparse
import logging
import sys
from pathlib import Path

logger = logging.getLogger("shaderxform")


def build_parser() -> argparse.ArgumentParser:
    from . import __version__
    from .config import PASS_NAMES

    parser = argparse.ArgumentParser(
        prog='python -m shaderxform',
        description='Unroll counting loops and remove literal conditionals in shader source',
    )
    parser.add_argument('file', nargs='?', default='-',
                        help="Shader source file ('-' for stdin)")
    parser.add_argument('-o', '--output', metavar='FILE',
                        help='Output file (default: stdout)')
    parser.add_argument('-t', '--threshold', type=int, metavar='N',
                        help='Largest trip count to unroll')
    parser.add_argument('--max-passes', type=int, metavar='N',
                        help='Cap on rewriting passes per transform')
    parser.add_argument('-p', '--pass', dest='passes', action='append',
                        choices=PASS_NAMES, metavar='NAME',
                        help=f"Pass to run, in order (repeatable; one of: {', '.join(PASS_NAMES)})")
    parser.add_argument('-c', '--config', metavar='FILE',
                        help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='count', default=0,
                        help='Report rewrites on stderr (-vv for debug logging)')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def configure_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity > 1:
        level = logging.DEBUG
    logging.basicConfig(level=level, format='%(levelname)s %(name)s: %(message)s',
                        stream=sys.stderr)


def main(argv=None) -> int:
    from . import DiagnosticCollector, TransformError, optimize, resolve_config

    args = build_parser().parse_args(argv)
    configure_logging(args.verbose)

    try:
        config = resolve_config(args.config, threshold=args.threshold,
                                max_passes=args.max_passes, passes=args.passes)
    except TransformError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.file == '-':
        source = sys.stdin.read()
        filename = '<stdin>'
    else:
        source_path = Path(args.file)
        if not source_path.exists():
            print(f"Error: File not found: {source_path}", file=sys.stderr)
            return 1
        source = source_path.read_text(encoding='utf-8')
        filename = str(source_path)

    diagnostics = DiagnosticCollector()
    try:
        result = optimize(source, config, diagnostics=diagnostics)
    except TransformError as e:
        print(f"{filename}: {e}", file=sys.stderr)
        return 1

    if args.verbose:
        for diag in diagnostics.diagnostics:
            print(f"{filename}:{diag.format()}", file=sys.stderr)
        logger.info("%s: %d rewrite(s), passes: %s", filename, len(diagnostics),
                    ", ".join(config.passes))

    if args.output:
        Path(args.output).write_text(result, encoding='utf-8')
    else:
        sys.stdout.write(result)
    return 0


if __name__ == '__main__':
    sys.exit(main())
