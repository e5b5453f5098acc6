"""Compiler driver and command line entry point."""

from __future__ import annotations

import argparse
import sys
from typing import TextIO

from .asm import AsmParseError, emit
from .ast import ParseError, Parser
from .lexer import Lexer

_VERSION = "0.1.0"


class Compiler:
    """Reads Bonobo source from one stream and writes assembly to another."""

    def __init__(self, verbose: bool, input_stream: TextIO, output_stream: TextIO) -> None:
        self.verbose = verbose
        self.input_stream = input_stream
        self.output_stream = output_stream

    def compile(self) -> None:
        """Compile the whole input; raises on lexing, parsing or generation errors."""
        src = self.input_stream.read()
        if self.verbose:
            for token in Lexer(src):
                print(token)
        tree = Parser(Lexer(src)).parse()
        if self.verbose:
            print(repr(tree))
        emit(tree, self.output_stream)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="bonobo", description="Compile a Bonobo program.")
    parser.add_argument("input", metavar="FILE", help="Sets the input file")
    parser.add_argument(
        "-v", "--verbosity", action="count", default=0, help="Turn debugging information on"
    )
    parser.add_argument(
        "-o", "--output", metavar="FILE", default="a.asm", help="Sets the output file"
    )
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {_VERSION}")
    return parser


def main(argv: list[str] | None = None) -> int:
    """Run the compiler from the command line; returns the exit status."""
    args = _build_parser().parse_args(argv)
    try:
        with open(args.input, encoding="utf-8") as source, open(
            args.output, "w", encoding="utf-8", newline=""
        ) as target:
            Compiler(args.verbosity > 0, source, target).compile()
    except (OSError, UnicodeDecodeError, ParseError, AsmParseError) as error:
        print(f"Error: {error}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())