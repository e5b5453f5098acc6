"""x86-64 assembly generation for Bonobo syntax trees."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TextIO, Union

from .ast import (
    BinaryExpression,
    BinaryOperation,
    Constant,
    FunctionDefinition,
    IfStatement,
    Node,
    UnaryExpression,
    UnaryOperation,
)

_HEADER = ";Auto-generated by Bonobo ASM generator\n;  _____\n;o( . . )o\n; __(-)__\n\n"

_EXIT_SYSCALL = 60


class Register(enum.Enum):
    """General purpose registers and the byte registers in use."""

    RAX = "rax"
    RBX = "rbx"
    RCX = "rcx"
    RDX = "rdx"
    RDI = "rdi"
    RSI = "rsi"
    RBP = "rbp"
    RSP = "rsp"
    R8 = "r8"
    R9 = "r9"
    R10 = "r10"
    R11 = "r11"
    R12 = "r12"
    R13 = "r13"
    R14 = "r14"
    R15 = "r15"
    DIL = "dil"
    AL = "al"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Immediate:
    value: int

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class Label:
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Memory:
    address: str

    def __str__(self) -> str:
        return self.address


Operand = Union[Register, Immediate, Label, Memory]

_FALSE = Immediate(0)
_TRUE = Immediate(1)


class Opcode(enum.Enum):
    """Instructions the generator emits; the value is the mnemonic."""

    LABEL = "label"
    MOVE = "mov"
    SWAP = "xchg"
    MOVE_EQUAL = "cmove"
    MOVE_NOT_EQUAL = "cmovne"
    PUSH = "push"
    POP = "pop"
    SET_EQUAL = "sete"
    COMPARE = "cmp"
    JUMP = "jmp"
    JUMP_EQUAL = "je"
    ADD = "add"
    SUBTRACT = "sub"
    SIGNED_MULTIPLY = "imul"
    SIGNED_DIVIDE = "idiv"
    XOR = "xor"
    CQO = "cqo"
    SYSCALL = "syscall"
    CALL = "call"


_ARITY = {
    Opcode.LABEL: 1,
    Opcode.MOVE: 2,
    Opcode.SWAP: 2,
    Opcode.MOVE_EQUAL: 2,
    Opcode.MOVE_NOT_EQUAL: 2,
    Opcode.PUSH: 1,
    Opcode.POP: 1,
    Opcode.SET_EQUAL: 1,
    Opcode.COMPARE: 2,
    Opcode.JUMP: 1,
    Opcode.JUMP_EQUAL: 1,
    Opcode.ADD: 2,
    Opcode.SUBTRACT: 2,
    Opcode.SIGNED_MULTIPLY: 2,
    Opcode.SIGNED_DIVIDE: 1,
    Opcode.XOR: 2,
    Opcode.CQO: 0,
    Opcode.SYSCALL: 0,
    Opcode.CALL: 1,
}


@dataclass(frozen=True)
class Instruction:
    """One assembly instruction; two operands are given as (source, destination)."""

    opcode: Opcode
    operands: tuple[Operand, ...] = ()

    def __post_init__(self) -> None:
        expected = _ARITY[self.opcode]
        if len(self.operands) != expected:
            raise ValueError(
                f"{self.opcode.name} takes {expected} operand(s), got {len(self.operands)}"
            )

    def render(self) -> str:
        """Return the instruction as one line of assembly, without a newline."""
        if self.opcode is Opcode.LABEL:
            return f"{self.operands[0]}:"
        mnemonic = self.opcode.value
        if not self.operands:
            return f"\t\t{mnemonic}"
        separator = "\t" if len(mnemonic) >= 4 else "\t\t"
        if len(self.operands) == 1:
            return f"\t\t{mnemonic}{separator}{self.operands[0]}"
        src, dst = self.operands
        return f"\t\t{mnemonic}{separator}{dst}, {src}"


@dataclass
class _Section:
    name: str
    instructions: list[Instruction] = field(default_factory=list)

    def render(self) -> str:
        lines = [f"\t\tsection {self.name}"]
        lines.extend(instruction.render() for instruction in self.instructions)
        return "".join(line + "\n" for line in lines)


class AsmProgram:
    """An assembly program under construction."""

    def __init__(self) -> None:
        self.globals: list[str] = ["_start"]
        self._externs: dict[str, None] = {}
        self.text = _Section(".text")
        self.data = _Section(".data")
        self._label_counters: dict[str, int] = {}

    @property
    def externs(self) -> list[str]:
        """External symbols, in the order they were first added."""
        return list(self._externs)

    def add_instruction(self, instruction: Instruction) -> None:
        self.text.instructions.append(instruction)

    def add_extern(self, name: str) -> None:
        self._externs[name] = None

    def gen_label(self, prefix: str) -> Label:
        """Return a fresh label: the prefix followed by a per-prefix counter from 0."""
        number = self._label_counters.get(prefix, -1) + 1
        self._label_counters[prefix] = number
        return Label(f"{prefix}{number}")

    def render(self) -> str:
        """Return the complete assembly source."""
        parts = [_HEADER]
        parts.extend(f"\t\tglobal {name}\n" for name in self.globals)
        parts.append("\n")
        parts.extend(f"\t\textern {name}\n" for name in self._externs)
        parts.append("\n")
        parts.append(self.text.render())
        parts.append("\n")
        parts.append(self.data.render())
        return "".join(parts)


class AsmParseError(Exception):
    """Raised when a syntax tree cannot be turned into assembly."""


class UnknownAstNode(AsmParseError):
    def __init__(self, node: object) -> None:
        super().__init__(f"unknown AST node: {type(node).__name__}")
        self.node = node


_SIMPLE_ARITHMETIC = {
    BinaryOperation.ADD: Opcode.ADD,
    BinaryOperation.SUBTRACT: Opcode.SUBTRACT,
    BinaryOperation.MULTIPLY: Opcode.SIGNED_MULTIPLY,
}


class _Generator:
    """Walks a syntax tree and appends stack-machine style code to a program."""

    def __init__(self) -> None:
        self.program = AsmProgram()

    def _emit(self, opcode: Opcode, *operands: Operand) -> None:
        self.program.add_instruction(Instruction(opcode, operands))

    def node(self, node: Node) -> None:
        match node:
            case FunctionDefinition():
                self._function(node)
            case UnaryExpression(operation=UnaryOperation.RETURN, operand=inner):
                self._return(inner)
            case UnaryExpression(operation=UnaryOperation.ASSERT, operand=inner):
                self._assert(inner)
            case Constant(value=value):
                self._constant(value)
            case BinaryExpression():
                self._binary(node)
            case IfStatement():
                self._if_statement(node)
            case _:
                raise UnknownAstNode(node)

    def _function(self, func: FunctionDefinition) -> None:
        name = "_start" if func.identifier == "main" else func.identifier
        self._emit(Opcode.LABEL, Label(name))
        # Parameters are not passed yet.
        for statement in func.body:
            self.node(statement)

    def _if_statement(self, stmt: IfStatement) -> None:
        self.node(stmt.expression)
        true_label = self.program.gen_label("if_t_")
        end_label = self.program.gen_label("if_e_")
        self._emit(Opcode.POP, Register.RAX)
        self._emit(Opcode.COMPARE, _TRUE, Register.RAX)
        self._emit(Opcode.JUMP_EQUAL, true_label)
        for statement in stmt.false_branch:
            self.node(statement)
        self._emit(Opcode.JUMP, end_label)
        self._emit(Opcode.LABEL, true_label)
        for statement in stmt.true_branch:
            self.node(statement)
        self._emit(Opcode.LABEL, end_label)

    def _return(self, inner: Node) -> None:
        self.node(inner)
        self._emit(Opcode.POP, Register.RDI)
        self._emit(Opcode.MOVE, Immediate(_EXIT_SYSCALL), Register.RAX)
        self._emit(Opcode.SYSCALL)

    def _assert(self, inner: Node) -> None:
        self.node(inner)
        self.program.add_extern("assert")
        self._emit(Opcode.POP, Register.RDI)
        self._emit(Opcode.CALL, Label("assert"))

    def _constant(self, value: int) -> None:
        self._emit(Opcode.MOVE, Immediate(value), Register.RAX)
        self._emit(Opcode.PUSH, Register.RAX)

    def _binary(self, expr: BinaryExpression) -> None:
        # Left operand ends up second on the stack, right operand on top.
        self.node(expr.left)
        self.node(expr.right)
        op = expr.operation
        if op in _SIMPLE_ARITHMETIC:
            self._emit(Opcode.POP, Register.RCX)
            self._emit(Opcode.POP, Register.RDI)
            self._emit(_SIMPLE_ARITHMETIC[op], Register.RCX, Register.RDI)
            self._emit(Opcode.PUSH, Register.RDI)
        elif op in (BinaryOperation.MODULO, BinaryOperation.DIVISION):
            # idiv divides rdx:rax; quotient goes to rax, remainder to rdx.
            self._emit(Opcode.POP, Register.RCX)
            self._emit(Opcode.POP, Register.RAX)
            self._emit(Opcode.CQO)
            self._emit(Opcode.SIGNED_DIVIDE, Register.RCX)
            result = Register.RDX if op is BinaryOperation.MODULO else Register.RAX
            self._emit(Opcode.PUSH, result)
        else:
            self._emit(Opcode.POP, Register.RCX)
            self._emit(Opcode.POP, Register.RDI)
            self._emit(Opcode.XOR, Register.RAX, Register.RAX)
            self._emit(Opcode.COMPARE, Register.RCX, Register.RDI)
            self._emit(Opcode.SET_EQUAL, Register.AL)
            self._emit(Opcode.PUSH, Register.RAX)


def generate(root: Node) -> AsmProgram:
    """Build the assembly program for a syntax tree."""
    generator = _Generator()
    generator.node(root)
    return generator.program


def emit(root: Node, writer: TextIO) -> None:
    """Generate assembly for ``root`` and write it to ``writer``."""
    writer.write(generate(root).render())