# bonoboc

A compiler for Bonobo, a small C-like language. It reads a Bonobo source
file and writes x86-64 assembly in NASM syntax for Linux.

## Installation

```
pip install .
```

## Usage

```
bonoboc program.bnb
bonoboc program.bnb -o program.asm
bonoboc -v program.bnb
bonoboc --version
```

Options:

- `FILE`: the Bonobo source file to compile (required).
- `-o FILE`, `--output FILE`: where to write the assembly; `a.asm` by default.
- `-v`, `--verbosity`: print each token and then the parsed syntax tree to
  standard output before the assembly is written.
- `-V`, `--version`: print the version and exit.

The output file is opened before compiling starts, so it is created (and
emptied) even if compiling then fails. On a file error, a syntax error or a
code generation error the command prints `Error: ...` to standard error and
exits with status 1; on success it exits with status 0.

## The language

A program is one function definition; anything after its closing brace is
ignored. A function named `main` becomes the `_start` entry point, and
`_start` is always declared global:

```
fn main(): int {
    if 1 + 2 == 3 {
        assert 4 * 5 == 20;
        return 0;
    } elif 10 % 3 == 1 {
        return 1;
    } else {
        return 2;
    }
}
```

Supported:

- non-negative integer constants that fit in a signed 64-bit integer
- the binary operators `+ - * / % ==`: `==` binds loosest, then `+ -`, then
  `* / %`; all are left-associative. `==` yields 1 or 0
- `return expr;`, which puts the value in `rdi` and makes the `exit` system
  call (number 60)
- `assert expr;`, which declares `extern assert` and calls `assert` with the
  value in `rdi`
- `if` / `elif` / `else` blocks; a condition is taken as true only when it
  equals 1
- a parameter list `name: type`, separated by commas (a trailing comma is
  allowed), and a return type after `:`. The types are `int` and `char`,
  optionally followed by one `*` for a pointer type

Expressions are evaluated on the machine stack: each constant is pushed and
each operator pops its operands and pushes its result.

## What it does not do

- It writes assembly only; it does not assemble or link it, and it does not
  supply the external `assert` function that `assert` statements call.
- Parameters are parsed but not used in the generated code, and there are no
  variables, no function calls, no parentheses in expressions and no unary
  minus.
- Only the first function in a file is compiled.
- The `.data` section is always empty.

## Library use

```python
import io

from bonoboc.lexer import tokenize
from bonoboc.ast import parse
from bonoboc.asm import generate, emit

tree = parse(tokenize("fn main(): int { return 1 + 2; }"))
print(generate(tree).render())

out = io.StringIO()
emit(tree, out)
```

The modules:

- `bonoboc.lexer`: `Lexer` iterates over the `Token`s of a string (each with a
  `TokenKind`, a `Span` of line and column, and text for identifiers, numbers
  and unknown input); `tokenize` returns them as a list.
- `bonoboc.ast`: the syntax tree dataclasses, `Parser` and `parse`. Syntax
  errors raise subclasses of `ParseError`: `UnexpectedToken`,
  `UnexpectedEof`, `UnknownConstant`, `UnknownType` and `UnknownOperator`.
- `bonoboc.asm`: `generate` builds an `AsmProgram` of `Instruction`s, whose
  `render` returns the assembly text; `emit` writes it to a text stream. A
  node the generator cannot handle raises `UnknownAstNode`, a subclass of
  `AsmParseError`.
- `bonoboc.compiler`: `Compiler(verbose, input_stream, output_stream).compile()`
  runs the whole pipeline from one text stream to another; `main` is the
  command line entry point.

## Running the tests

```
pip install .[test]
pytest
```