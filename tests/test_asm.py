import io

import pytest

from bonoboc.asm import (
    AsmParseError,
    AsmProgram,
    Immediate,
    Instruction,
    Label,
    Memory,
    Opcode,
    Register,
    UnknownAstNode,
    emit,
    generate,
)
from bonoboc.ast import Constant, PrimitiveType, Variable, parse
from bonoboc.lexer import tokenize


def _compile(src):
    return generate(parse(tokenize(src)))


def _opcodes(program):
    return [instruction.opcode for instruction in program.text.instructions]


def test_gen_label_counts_per_prefix():
    program = AsmProgram()
    assert program.gen_label("if_t_") == Label("if_t_0")
    assert program.gen_label("if_t_") == Label("if_t_1")
    assert program.gen_label("if_e_") == Label("if_e_0")
    assert program.gen_label("if_t_") == Label("if_t_2")


def test_add_extern_is_deduplicated_and_ordered():
    program = AsmProgram()
    program.add_extern("assert")
    program.add_extern("printf")
    program.add_extern("assert")
    assert program.externs == ["assert", "printf"]


def test_render_two_operands_puts_destination_first():
    line = Instruction(Opcode.MOVE, (Immediate(60), Register.RAX)).render()
    assert line.split()[1:] == ["rax,", "60"]


def test_render_label_and_call():
    assert Instruction(Opcode.LABEL, (Label("_start"),)).render() == "_start:"
    assert Instruction(Opcode.CALL, (Label("assert"),)).render().split() == ["call", "assert"]


def test_render_no_operands():
    assert Instruction(Opcode.SYSCALL).render().strip() == "syscall"
    assert Instruction(Opcode.CQO).render().strip() == "cqo"


def test_operand_strings():
    assert str(Register.DIL) == "dil"
    assert str(Memory("[rsp]")) == "[rsp]"
    assert str(Immediate(-4)) == "-4"


def test_instruction_arity_is_checked():
    with pytest.raises(ValueError):
        Instruction(Opcode.MOVE, (Register.RAX,))
    with pytest.raises(ValueError):
        Instruction(Opcode.SYSCALL, (Register.RAX,))


def test_empty_program_render():
    text = AsmProgram().render()
    assert text.startswith(";Auto-generated by Bonobo ASM generator\n")
    assert "\t\tglobal _start\n" in text
    assert text.index("\t\tsection .text\n") < text.index("\t\tsection .data\n")
    assert text.endswith("\t\tsection .data\n")


def test_main_becomes_start_and_return_exits():
    program = _compile("fn main(): int { return 3; }")
    instructions = program.text.instructions
    assert instructions[0] == Instruction(Opcode.LABEL, (Label("_start"),))
    assert instructions[1] == Instruction(Opcode.MOVE, (Immediate(3), Register.RAX))
    assert instructions[-3] == Instruction(Opcode.POP, (Register.RDI,))
    assert instructions[-2] == Instruction(Opcode.MOVE, (Immediate(60), Register.RAX))
    assert instructions[-1].opcode is Opcode.SYSCALL


def test_other_function_keeps_its_name():
    program = _compile("fn helper(a: int): int { return 1; }")
    assert program.text.instructions[0] == Instruction(Opcode.LABEL, (Label("helper"),))


def test_modulo_pushes_remainder():
    program = _compile("fn main(): int { return 7 % 2; }")
    instructions = program.text.instructions
    index = _opcodes(program).index(Opcode.SIGNED_DIVIDE)
    assert instructions[index - 1].opcode is Opcode.CQO
    assert instructions[index + 1] == Instruction(Opcode.PUSH, (Register.RDX,))


def test_division_pushes_quotient():
    program = _compile("fn main(): int { return 8 / 2; }")
    instructions = program.text.instructions
    index = _opcodes(program).index(Opcode.SIGNED_DIVIDE)
    assert instructions[index + 1] == Instruction(Opcode.PUSH, (Register.RAX,))


def test_subtract_from_left_operand():
    program = _compile("fn main(): int { return 5 - 1; }")
    assert Instruction(Opcode.SUBTRACT, (Register.RCX, Register.RDI)) in program.text.instructions


def test_equals_uses_sete():
    program = _compile("fn main(): int { return 1 == 1; }")
    opcodes = _opcodes(program)
    assert opcodes.index(Opcode.XOR) < opcodes.index(Opcode.COMPARE) < opcodes.index(
        Opcode.SET_EQUAL
    )
    assert Instruction(Opcode.SET_EQUAL, (Register.AL,)) in program.text.instructions


def test_assert_adds_extern_once():
    program = _compile("fn main(): int { assert 1; assert 2; return 0; }")
    assert program.externs == ["assert"]
    assert _opcodes(program).count(Opcode.CALL) == 2
    assert "\t\textern assert\n" in program.render()


def test_if_statement_layout():
    program = _compile("fn main(): int { if 1 { return 1; } else { return 2; } }")
    instructions = program.text.instructions
    labels = [i.operands[0] for i in instructions if i.opcode is Opcode.LABEL]
    assert labels == [Label("_start"), Label("if_t_0"), Label("if_e_0")]
    je = next(i for i in instructions if i.opcode is Opcode.JUMP_EQUAL)
    jmp = next(i for i in instructions if i.opcode is Opcode.JUMP)
    assert je.operands == (Label("if_t_0"),)
    assert jmp.operands == (Label("if_e_0"),)
    # The else branch comes before the true label.
    moves = [i.operands[0] for i in instructions if i.opcode is Opcode.MOVE]
    assert moves.index(Immediate(2)) < moves.index(Immediate(1), 1)


def test_elif_generates_distinct_labels():
    program = _compile("fn main(): int { if 1 { return 1; } elif 2 { return 2; } }")
    labels = {i.operands[0] for i in program.text.instructions if i.opcode is Opcode.LABEL}
    assert {Label("if_t_0"), Label("if_e_0"), Label("if_t_1"), Label("if_e_1")} <= labels


def test_unknown_node_raises():
    node = Variable("x", PrimitiveType.INT64, Constant(1))
    with pytest.raises(UnknownAstNode) as info:
        generate(node)
    assert info.value.node is node
    assert isinstance(info.value, AsmParseError)


def test_emit_writes_render():
    root = parse(tokenize("fn main(): int { return 1 + 2 * 3; }"))
    out = io.StringIO()
    emit(root, out)
    assert out.getvalue() == generate(root).render()
    assert "_start:\n" in out.getvalue()