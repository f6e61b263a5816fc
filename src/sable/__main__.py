#!/usr/bin/env python3
"""
CLI for the Sable interpreter.

Usage:
    sable [--config PATH] [-v] tokenize FILE
    sable [--config PATH] [-v] parse FILE [--tree] [--json]
    sable [--config PATH] [-v] eval FILE
    sable [--config PATH] [-v] repl

Examples:
    # Show the token stream with positions
    sable tokenize examples/closures.sbl

    # Print the program back with explicit grouping, or as a tree
    sable parse examples/closures.sbl
    sable parse examples/closures.sbl --tree

    # Run a file and print its final value
    sable eval examples/closures.sbl

    # Interactive session; bindings persist between lines
    sable repl
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import IO, Optional

from .config import SableConfig, load_config
from .errors import ConfigError, DiagnosticCollector
from .lexer import tokenize
from .parser import parse
from .ast import format_node, print_ast
from .runtime import Environment, Interpreter, render

logger = logging.getLogger(__name__)

# Host frames used per Sable call, with headroom
_FRAMES_PER_CALL = 40


def read_source(path: str) -> Optional[str]:
    """Read a source file, reporting failure on stderr."""
    try:
        return Path(path).read_text(encoding='utf-8')
    except (OSError, UnicodeDecodeError) as e:
        print(f"Error: cannot read {path}: {e}", file=sys.stderr)
        return None


def _collect(errors, max_errors: int) -> DiagnosticCollector:
    collector = DiagnosticCollector(max_errors)
    for error in errors:
        collector.add_error(error)
    return collector


def cmd_tokenize(args, config: SableConfig) -> int:
    """Print one token per line as LINE:COL<TAB>TOKEN."""
    source = read_source(args.file)
    if source is None:
        return 1

    for token in tokenize(source, args.file):
        start = token.span.start
        print(f"{start.line}:{start.column}\t{token}")
    return 0


def cmd_parse(args, config: SableConfig) -> int:
    """Parse a file and print it back, reporting syntax errors."""
    source = read_source(args.file)
    if source is None:
        return 1

    program, errors = parse(source, args.file, max_errors=config.max_errors)
    diagnostics = _collect(errors, config.max_errors)

    if args.json:
        report = diagnostics.to_json()
        report["program"] = format_node(program)
        print(json.dumps(report, indent=2))
    else:
        if args.tree:
            print_ast(program)
        elif program.statements:
            print(format_node(program))
        if diagnostics.has_errors:
            print(diagnostics.format_all(), file=sys.stderr)

    return 1 if diagnostics.has_errors else 0


def cmd_eval(args, config: SableConfig) -> int:
    """Evaluate a file and print the final value."""
    source = read_source(args.file)
    if source is None:
        return 1

    program, errors = parse(source, args.file, max_errors=config.max_errors)
    if errors:
        print(_collect(errors, config.max_errors).format_all(), file=sys.stderr)
        return 1

    result = Interpreter(config=config).evaluate(program, Environment())
    if result.is_error:
        print(render(result), file=sys.stderr)
        return 1

    print(render(result))
    return 0


def run_repl(config: SableConfig, stdin: Optional[IO[str]] = None,
             stdout: Optional[IO[str]] = None) -> int:
    """Read-eval-print loop over one persistent root Environment.

    Syntax and runtime errors are printed and the loop carries on; the
    session ends at end of input.
    """
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout

    env = Environment(name="repl")
    interpreter = Interpreter(config=config, output=stdout)
    logger.debug("repl session started")

    print(config.banner, file=stdout)
    while True:
        stdout.write(config.prompt)
        stdout.flush()
        line = stdin.readline()
        if not line:
            break
        line = line.strip()
        if not line:
            continue

        program, errors = parse(line, "<repl>", max_errors=config.max_errors)
        if errors:
            for error in errors:
                print(error.diagnostic.format(), file=stdout)
            continue

        print(render(interpreter.evaluate(program, env)), file=stdout)

    stdout.write("\n")
    logger.debug("repl session ended")
    return 0


def cmd_repl(args, config: SableConfig) -> int:
    """Start an interactive session."""
    return run_repl(config)


def _raise_recursion_limit(config: SableConfig) -> None:
    needed = config.max_call_depth * _FRAMES_PER_CALL + 1000
    if sys.getrecursionlimit() < needed:
        logger.debug("raising recursion limit to %d", needed)
        sys.setrecursionlimit(needed)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog='sable',
        description='Sable language tokenizer, parser and interpreter',
    )
    parser.add_argument('--config', metavar='PATH',
                        help='YAML configuration file')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable debug logging')

    subparsers = parser.add_subparsers(dest='action', required=True)

    # tokenize command
    tokenize_parser = subparsers.add_parser('tokenize', help='Print the token stream')
    tokenize_parser.add_argument('file', help='Sable source file')

    # parse command
    parse_parser = subparsers.add_parser('parse', help='Parse and print the program')
    parse_parser.add_argument('file', help='Sable source file')
    parse_parser.add_argument('--tree', action='store_true',
                              help='Print the syntax tree instead of source')
    parse_parser.add_argument('--json', action='store_true',
                              help='Print the program and diagnostics as JSON')

    # eval command
    eval_parser = subparsers.add_parser('eval', help='Evaluate a file')
    eval_parser.add_argument('file', help='Sable source file')

    # repl command
    subparsers.add_parser('repl', help='Start an interactive session')

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else config.log_level.upper(),
        format='%(levelname)s %(name)s: %(message)s',
    )
    _raise_recursion_limit(config)

    if args.action == 'tokenize':
        return cmd_tokenize(args, config)
    elif args.action == 'parse':
        return cmd_parse(args, config)
    elif args.action == 'eval':
        return cmd_eval(args, config)
    elif args.action == 'repl':
        return cmd_repl(args, config)
    else:
        parser.print_help()
        return 1


if __name__ == '__main__':
    sys.exit(main())
