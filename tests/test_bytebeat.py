import math

import numpy as np
import pytest

from bytefield.bytebeat import (I64_MAX, I64_MIN, BadArrayToken, Cmd, CompileError, EmptyProgram,
                                Op, UnderflowedStack, UnknownToken, VarType, as_bool, as_byte,
                                as_float, as_int, compile_beat, eval_beat, format_beat, parse_beat,
                                pop_n, to_value, trace_beat, value_lt, values_equal)


def beat(text):
    return compile_beat(parse_beat(text))


def run(text, t=0, mouse_x=0, mouse_y=0, screen_x=0, screen_y=0, key_x=0, key_y=0):
    return eval_beat([], beat(text), t, mouse_x, mouse_y, screen_x, screen_y, key_x, key_y)


def test_frame_counter_modulo():
    program = beat("t 2 %")
    stack = []
    assert eval_beat(stack, program, 5, 0, 0, 0, 0, 0, 0) == 1
    assert eval_beat(stack, program, 4, 0, 0, 0, 0, 0, 0) == 0
    assert isinstance(eval_beat(stack, program, 5, 0, 0, 0, 0), int)


def test_division_by_zero_never_faults():
    result = run("5 0 /")
    assert result == 0 and isinstance(result, int)
    assert run("5 0 %") == 0
    result = run("5.0 0.0 /.")
    assert result == 0.0 and isinstance(result, float)
    assert run("5.0 0.0 %.") == 0.0


def test_operands_bind_in_push_order():
    assert run("10 3 -") == 7
    assert run("10 3 /") == 3
    assert run("1 2 <") == 1
    assert run("2 1 <") == 0
    assert run("10.0 4.0 -.") == 6.0
    assert run("2.0 10.0 pow") == 1024.0


def test_variables():
    assert run("sx sy -", screen_x=10, screen_y=3) == 7
    assert run("kx ky *", key_x=3, key_y=4) == 12
    assert run("mx my +", mouse_x=1, mouse_y=2) == 3
    assert run("t", t=99) == 99


def test_array_index_wraps_with_positive_modulo():
    expected = {-1: 3, 0: 1, 3: 1, 4: 2}
    for index, value in expected.items():
        assert run(f"1 2 3 {index} [3") == value
    # the values below the group are untouched
    assert run("9 1 2 3 1 [3 +") == 11


def test_array_of_size_zero_pushes_zero():
    assert run("7 [0") == 0


def test_conditional_selects_then_or_else():
    assert run("10 20 1 ?") == 10
    assert run("10 20 0 ?") == 20
    assert run("10 20 0.0 ?") == 20
    assert run("10 20 0.5 ?") == 10


def test_wrapping_integer_arithmetic():
    assert run("0x7FFFFFFFFFFFFFFF 1 +") == I64_MIN
    assert run("-7 2 /") == -3
    assert run("-7 2 %") == -1
    assert run("1 65 <<") == 2
    assert run("1 -1 <<") == I64_MIN
    assert run("-8 1 >>") == -4
    assert run("12 10 &") == 8
    assert run("12 10 |") == 14
    assert run("12 10 ^") == 6


def test_float_ops_follow_ieee():
    assert run("-7.0 2.0 %.") == -1.0
    assert run("0.0 sin") == 0.0
    assert run("0.0 cos") == 1.0
    assert math.isnan(run("-8.0 0.5 pow"))
    assert run("1.5 2.5 +.") == 4.0
    assert run("1.5 2.0 *.") == 3.0


def test_integer_ops_truncate_float_operands():
    result = run("1 2.9 +")
    assert result == 3 and isinstance(result, int)


def test_mixed_comparisons():
    assert run("1 1.0 ==") == 1
    assert run("1 1.5 ==") == 0
    assert run("1 1.5 <") == 1
    assert run("1 1.5 !=") == 1
    assert values_equal(2 ** 53 + 1, float(2 ** 53)) is False
    assert value_lt(2 ** 53 + 1, float(2 ** 53)) is False
    assert values_equal(float("nan"), 0) is False


def test_conversions():
    assert to_value(True) == 1 and isinstance(to_value(True), int)
    assert to_value(np.int32(5)) == 5
    assert isinstance(to_value(np.float32(0.5)), float)
    assert as_bool(0) is False and as_bool(0.0) is False and as_bool(-0.0) is False
    assert as_bool(3) is True and as_bool(float("nan")) is True
    assert as_int(-2.7) == -2
    assert as_int(float("nan")) == 0
    assert as_int(1e300) == I64_MAX
    assert as_int(-1e300) == I64_MIN
    assert as_float(3) == 3.0
    assert as_byte(257) == 1
    assert as_byte(-1) == 255
    with pytest.raises(TypeError):
        to_value("1")


def test_compile_rejects_empty_program():
    with pytest.raises(CompileError) as info:
        compile_beat([Cmd.comment("hi")])
    assert info.value.kind == EmptyProgram()
    with pytest.raises(CompileError):
        compile_beat([])


def test_compile_rejects_underflow():
    with pytest.raises(CompileError) as info:
        compile_beat([Cmd(Op.ADD)])
    assert info.value.kind == UnderflowedStack(index=0, stack_size=0)
    assert info.value.cmds == (Cmd(Op.ADD),)

    with pytest.raises(CompileError) as info:
        beat("1 +")
    assert info.value.kind == UnderflowedStack(index=1, stack_size=1)

    with pytest.raises(CompileError) as info:
        beat("#note sin")
    assert info.value.kind == UnderflowedStack(index=1, stack_size=0)

    with pytest.raises(CompileError) as info:
        beat("1 2 3 [3")
    assert info.value.kind == UnderflowedStack(index=3, stack_size=3)


def test_compile_accepts_valid_programs():
    assert len(beat("1 2 3 ?")) == 4
    assert len(beat("1 2 3 4 [3")) == 5


def test_metadata_is_collected():
    program = beat("!name:foo t !name:bar !size:3")
    assert program.meta("name") == "bar"
    assert program.all_meta("name") == ["foo", "bar"]
    assert program.meta("size") == "3"
    assert program.meta("missing") is None
    assert program.all_meta("missing") == []
    assert run("!name:foo t #comment", t=4) == 4


def test_parse_errors_report_token_and_position():
    with pytest.raises(UnknownToken) as info:
        parse_beat("t foo")
    assert info.value.token == "foo"
    assert info.value.position == 1

    with pytest.raises(BadArrayToken) as info:
        parse_beat("1 [x")
    assert info.value.token == "[x"
    assert info.value.position == 1

    for text in ("[", "[-1", "1_0", "0xZZ", "1.2.3", ".", "!novalue"):
        with pytest.raises(ValueError):
            parse_beat(text)


def test_parse_tokens():
    cmds = parse_beat("t mx my sx sy kx ky 12 -3 1.5 5. 0x1f [2 !k:v #hi ? pow +. <= !=")
    assert cmds[:7] == [Cmd.var(v) for v in VarType]
    assert cmds[7] == Cmd.num_i(12)
    assert cmds[8] == Cmd.num_i(-3)
    assert cmds[9] == Cmd.num_f(1.5)
    assert cmds[10] == Cmd.num_f(5.0)
    assert cmds[11] == Cmd.hex(31)
    assert cmds[12] == Cmd.arr(2)
    assert cmds[13] == Cmd.meta("k", "v")
    assert cmds[14] == Cmd.comment("hi")
    assert [c.op for c in cmds[15:]] == [Op.COND, Op.POW, Op.ADD_F, Op.LEQ, Op.NEQ]


def test_format_round_trip():
    text = "t mx my sx sy kx ky + - * / % << >> & | ^ sin cos tan pow +. -. *. /. %. < > <= >= == != ? [3 !a:b #c 7 -2 0x1F 1.5"
    assert format_beat(parse_beat(text)) == text
    assert format_beat(parse_beat("5. 0x1f 1.5e3")) == "5.0 0x1F 1500.0"
    assert parse_beat(format_beat(parse_beat("0x-1F"))) == [Cmd.hex(-31)]
    assert str(beat("t 2 %")) == "t 2 %"


def test_pop_n_returns_operands_in_push_order():
    stack = [1, 2, 3]
    assert pop_n(stack, 2) == [2, 3]
    assert stack == [1]
    assert pop_n(stack, 0) == []


def test_eval_clears_scratch_stack_and_is_deterministic():
    program = beat("t sx * 3.5 sin +.")
    stack = [99, 98]
    first = eval_beat(stack, program, 7, 0, 0, 3, 0)
    assert stack == []
    second = eval_beat(stack, program, 7, 0, 0, 3, 0)
    assert first == second
    assert math.copysign(1.0, first) == math.copysign(1.0, second)


def test_trace_beat():
    trace = trace_beat(beat("1 2 +"), 0, 0, 0, 0, 0)
    assert [stack for _, stack in trace] == [(1,), (1, 2), (3,)]
    assert trace[2][0] == Cmd(Op.ADD)
