#!/usr/bin/env python3
"""
Bytebeat Stack Machine

Programs are whitespace separated tokens evaluated left to right against a
value stack. Each token pushes a value or pops operands and pushes a result:

    t mx my sx sy kx ky       push frame counter / mouse / screen / keyboard
    12  1.5  0x1F             push integer, float or hex literal
    + - * / % << >> & | ^     wrapping 64-bit integer ops (x/0 and x%0 give 0)
    sin cos tan               float trig on the top value
    pow +. -. *. /. %.        float ops (x/.0 and x%.0 give 0.0)
    < > <= >= == !=           comparisons, push 1 or 0
    ?                         pop cond, else, then; push then if cond else else
    [N                        pop index, then N values; push the selected one
    !key:value                metadata (no runtime effect)
    #text                     comment (no runtime effect)

Operands are bound in the order they were pushed: `a b -` computes `a - b`.
A program is compiled once, which checks that the stack never underflows and
that exactly one value is left, then evaluated once per pixel.
"""

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

Value = Union[int, float]

I64_MIN = -(1 << 63)
I64_MAX = (1 << 63) - 1


# -----------------------------
# Value conversions
# -----------------------------

def wrap_i64(x: int) -> int:
    """Wrap an arbitrary Python int into the signed 64-bit range."""
    return ((x - I64_MIN) & 0xFFFFFFFFFFFFFFFF) + I64_MIN


def to_value(x: Any) -> Value:
    """Convert a bool, int or float (numpy scalars included) into a Value."""
    if isinstance(x, (bool, np.bool_)):
        return 1 if x else 0
    if isinstance(x, (int, np.integer)):
        return wrap_i64(int(x))
    if isinstance(x, (float, np.floating)):
        return float(x)
    raise TypeError(f"Cannot convert {type(x).__name__} to a bytebeat value")


def as_bool(v: Value) -> bool:
    return v != 0


def as_int(v: Value) -> int:
    """Integer view of a value. Floats truncate toward zero and saturate; NaN is 0."""
    if isinstance(v, int):
        return v
    if math.isnan(v):
        return 0
    if v >= 9223372036854775807.0:
        return I64_MAX
    if v <= -9223372036854775808.0:
        return I64_MIN
    return int(v)


def as_float(v: Value) -> float:
    return float(v)


def as_byte(v: Value) -> int:
    """Low 8 bits of the integer view, as an unsigned byte."""
    return as_int(v) & 0xFF


# Mixed int/float comparisons convert the int to a float for ordering, and
# for equality also require the float to truncate back to the same int.

def values_equal(l: Value, r: Value) -> bool:
    l_int = isinstance(l, int)
    r_int = isinstance(r, int)
    if l_int and not r_int:
        return float(l) == r and l == as_int(r)
    if r_int and not l_int:
        return l == float(r) and as_int(l) == r
    return l == r


def _ordering_pair(l: Value, r: Value) -> Tuple[Value, Value]:
    if isinstance(l, int) != isinstance(r, int):
        return float(l), float(r)
    return l, r


def value_lt(l: Value, r: Value) -> bool:
    a, b = _ordering_pair(l, r)
    return a < b


def value_gt(l: Value, r: Value) -> bool:
    a, b = _ordering_pair(l, r)
    return a > b


def value_le(l: Value, r: Value) -> bool:
    a, b = _ordering_pair(l, r)
    return a <= b


def value_ge(l: Value, r: Value) -> bool:
    a, b = _ordering_pair(l, r)
    return a >= b


# -----------------------------
# Commands
# -----------------------------

class VarType(Enum):
    FRAME = 't'
    MOUSE_X = 'mx'
    MOUSE_Y = 'my'
    SCREEN_X = 'sx'
    SCREEN_Y = 'sy'
    KEY_X = 'kx'
    KEY_Y = 'ky'


class Op(Enum):
    # Operand-carrying commands
    VAR = 'var'
    NUM_F = 'numf'
    NUM_I = 'numi'
    HEX = 'hex'
    ARR = 'arr'
    META = 'meta'
    COMMENT = 'comment'
    # Integer ops
    ADD = '+'
    SUB = '-'
    MUL = '*'
    DIV = '/'
    MOD = '%'
    SHL = '<<'
    SHR = '>>'
    AND = '&'
    ORR = '|'
    XOR = '^'
    # Float ops
    SIN = 'sin'
    COS = 'cos'
    TAN = 'tan'
    POW = 'pow'
    ADD_F = '+.'
    SUB_F = '-.'
    MUL_F = '*.'
    DIV_F = '/.'
    MOD_F = '%.'
    # Comparisons
    LT = '<'
    GT = '>'
    LEQ = '<='
    GEQ = '>='
    EQ = '=='
    NEQ = '!='
    COND = '?'


LITERALS = frozenset({Op.NUM_F, Op.NUM_I, Op.HEX})
INT_BINARY = (Op.ADD, Op.SUB, Op.MUL, Op.DIV, Op.MOD, Op.SHL, Op.SHR, Op.AND, Op.ORR, Op.XOR)
TRIG = (Op.SIN, Op.COS, Op.TAN)
FLOAT_BINARY = (Op.POW, Op.ADD_F, Op.SUB_F, Op.MUL_F, Op.DIV_F, Op.MOD_F)
COMPARISONS = (Op.LT, Op.GT, Op.LEQ, Op.GEQ, Op.EQ, Op.NEQ)
NO_OPS = frozenset({Op.META, Op.COMMENT})

# Token text for commands that carry no operand
SYMBOL_OPS = {op.value: op for op in INT_BINARY + TRIG + FLOAT_BINARY + COMPARISONS + (Op.COND,)}
VAR_TOKENS = {var.value: var for var in VarType}


@dataclass(frozen=True)
class Cmd:
    """One bytebeat command; `arg` holds the operand for VAR, literals, ARR, META and COMMENT."""
    op: Op
    arg: Any = None

    @classmethod
    def var(cls, var_type: VarType) -> 'Cmd':
        return cls(Op.VAR, var_type)

    @classmethod
    def num_f(cls, value: float) -> 'Cmd':
        return cls(Op.NUM_F, float(value))

    @classmethod
    def num_i(cls, value: int) -> 'Cmd':
        return cls(Op.NUM_I, int(value))

    @classmethod
    def hex(cls, value: int) -> 'Cmd':
        return cls(Op.HEX, int(value))

    @classmethod
    def arr(cls, size: int) -> 'Cmd':
        if size < 0:
            raise ValueError("Array size must be non-negative")
        return cls(Op.ARR, int(size))

    @classmethod
    def meta(cls, key: str, value: str) -> 'Cmd':
        return cls(Op.META, (key, value))

    @classmethod
    def comment(cls, text: str) -> 'Cmd':
        return cls(Op.COMMENT, text)

    def __str__(self):
        op = self.op
        if op is Op.VAR:
            return self.arg.value
        if op is Op.NUM_F:
            return format_float(self.arg)
        if op is Op.NUM_I:
            return str(self.arg)
        if op is Op.HEX:
            return f"0x-{-self.arg:X}" if self.arg < 0 else f"0x{self.arg:X}"
        if op is Op.ARR:
            return f"[{self.arg}"
        if op is Op.META:
            return f"!{self.arg[0]}:{self.arg[1]}"
        if op is Op.COMMENT:
            return f"#{self.arg}"
        return op.value


def format_float(value: float) -> str:
    """Shortest positional form, always containing a '.' (5.0 -> '5.0')."""
    text = np.format_float_positional(value, trim='-')
    if '.' not in text:
        text += '.0'
    return text


def stack_effect(cmd: Cmd) -> Optional[int]:
    """Net stack depth change of a command, or None for metadata/comments."""
    op = cmd.op
    if op is Op.VAR or op in LITERALS:
        return 1
    if op in NO_OPS:
        return None
    if op in TRIG:
        return 0
    if op is Op.ARR:
        # pops the index and `size` values, pushes one back
        return -cmd.arg
    if op is Op.COND:
        return -2
    return -1


# -----------------------------
# Compilation
# -----------------------------

@dataclass(frozen=True)
class UnderflowedStack:
    index: int
    stack_size: int


@dataclass(frozen=True)
class EmptyProgram:
    pass


ErrorKind = Union[UnderflowedStack, EmptyProgram]


class CompileError(ValueError):
    """Compilation failure; keeps the offending commands so callers can recover them."""

    def __init__(self, cmds: Tuple[Cmd, ...], kind: ErrorKind):
        self.cmds = cmds
        self.kind = kind
        if isinstance(kind, UnderflowedStack):
            message = (f"Attempt to pop beyond stack size. instruction: {cmds[kind.index]} "
                       f"index: {kind.index}, size of stack {kind.stack_size}")
        else:
            message = f"Program is empty: {format_beat(cmds)!r}"
        super().__init__(message)


@dataclass(frozen=True)
class Program:
    cmds: Tuple[Cmd, ...]
    metadata: Dict[str, List[str]] = field(default_factory=dict, compare=False, repr=False)

    def meta(self, key: str) -> Optional[str]:
        """Latest value recorded for `key`."""
        values = self.metadata.get(key)
        return values[-1] if values else None

    def all_meta(self, key: str) -> List[str]:
        return list(self.metadata.get(key, []))

    def __len__(self):
        return len(self.cmds)

    def __str__(self):
        return format_beat(self.cmds)


def compile_beat(cmds) -> Program:
    """Validate stack usage and collect metadata. Raises CompileError."""
    cmds = tuple(cmds)
    metadata: Dict[str, List[str]] = {}
    for cmd in cmds:
        if cmd.op is Op.META:
            key, value = cmd.arg
            metadata.setdefault(key, []).append(value)

    stack_size = 0
    for index, cmd in enumerate(cmds):
        change = stack_effect(cmd)
        if change is None:
            continue
        if stack_size + change <= 0:
            raise CompileError(cmds, UnderflowedStack(index=index, stack_size=stack_size))
        # stack_size is reported before applying the command
        stack_size += change

    if stack_size == 0:
        raise CompileError(cmds, EmptyProgram())

    return Program(cmds, metadata)


# -----------------------------
# Evaluation
# -----------------------------

def pop_n(stack: List[Value], n: int) -> List[Value]:
    """Remove the top n values and return them in push order.

    The first element is the deepest of the n values and the last element is
    the old top of the stack, so `a b -` pops as [a, b] and computes a - b.
    """
    if n == 0:
        return []
    operands = stack[-n:]
    del stack[-n:]
    return operands


def _int_div(a: int, b: int) -> int:
    if b == 0:
        return 0
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    return wrap_i64(q)


def _int_mod(a: int, b: int) -> int:
    if b == 0:
        return 0
    q = abs(a) // abs(b)
    if (a < 0) != (b < 0):
        q = -q
    # remainder takes the sign of the dividend
    return wrap_i64(a - b * q)


def _float_div(a: float, b: float) -> float:
    if b == 0.0:
        return 0.0
    return float(np.divide(a, b))


def _float_mod(a: float, b: float) -> float:
    if b == 0.0:
        return 0.0
    return float(np.fmod(a, b))


_INT_OPS = {
    Op.ADD: lambda a, b: wrap_i64(a + b),
    Op.SUB: lambda a, b: wrap_i64(a - b),
    Op.MUL: lambda a, b: wrap_i64(a * b),
    Op.DIV: _int_div,
    Op.MOD: _int_mod,
    Op.SHL: lambda a, b: wrap_i64(a << (b % 64)),
    Op.SHR: lambda a, b: a >> (b % 64),
    Op.AND: lambda a, b: a & b,
    Op.ORR: lambda a, b: a | b,
    Op.XOR: lambda a, b: a ^ b,
}

_TRIG_OPS = {
    Op.SIN: np.sin,
    Op.COS: np.cos,
    Op.TAN: np.tan,
}

_FLOAT_OPS = {
    Op.POW: lambda a, b: float(np.power(a, b)),
    Op.ADD_F: lambda a, b: float(np.add(a, b)),
    Op.SUB_F: lambda a, b: float(np.subtract(a, b)),
    Op.MUL_F: lambda a, b: float(np.multiply(a, b)),
    Op.DIV_F: _float_div,
    Op.MOD_F: _float_mod,
}

_COMPARE_OPS = {
    Op.LT: value_lt,
    Op.GT: value_gt,
    Op.LEQ: value_le,
    Op.GEQ: value_ge,
    Op.EQ: values_equal,
    Op.NEQ: lambda a, b: not values_equal(a, b),
}


def _execute(stack: List[Value], cmd: Cmd, variables: Dict[VarType, Value]) -> None:
    op = cmd.op
    if op is Op.VAR:
        stack.append(variables[cmd.arg])
    elif op in LITERALS:
        stack.append(cmd.arg)
    elif op in _INT_OPS:
        a, b = pop_n(stack, 2)
        stack.append(_INT_OPS[op](as_int(a), as_int(b)))
    elif op in _TRIG_OPS:
        a = stack.pop()
        stack.append(float(_TRIG_OPS[op](as_float(a))))
    elif op in _FLOAT_OPS:
        a, b = pop_n(stack, 2)
        stack.append(_FLOAT_OPS[op](as_float(a), as_float(b)))
    elif op in _COMPARE_OPS:
        a, b = pop_n(stack, 2)
        stack.append(1 if _COMPARE_OPS[op](a, b) else 0)
    elif op is Op.COND:
        then_value, else_value, cond = pop_n(stack, 3)
        stack.append(then_value if as_bool(cond) else else_value)
    elif op is Op.ARR:
        size = cmd.arg
        if size == 0:
            stack.append(0)
        else:
            index = as_int(stack.pop())
            group = pop_n(stack, size)
            stack.append(group[index % size])
    # META and COMMENT have no runtime effect


def _variables(t, mouse_x, mouse_y, screen_x, screen_y, key_x, key_y) -> Dict[VarType, Value]:
    return {
        VarType.FRAME: to_value(t),
        VarType.MOUSE_X: to_value(mouse_x),
        VarType.MOUSE_Y: to_value(mouse_y),
        VarType.SCREEN_X: to_value(screen_x),
        VarType.SCREEN_Y: to_value(screen_y),
        VarType.KEY_X: to_value(key_x),
        VarType.KEY_Y: to_value(key_y),
    }


def eval_beat(stack: List[Value], program: Program, t, mouse_x, mouse_y,
              screen_x, screen_y, key_x=0, key_y=0) -> Value:
    """Evaluate a compiled program for one sample.

    `stack` is a caller-owned scratch list; it is cleared first and must not be
    shared between concurrent evaluations.
    """
    variables = _variables(t, mouse_x, mouse_y, screen_x, screen_y, key_x, key_y)
    stack.clear()
    with np.errstate(all='ignore'):
        for cmd in program.cmds:
            _execute(stack, cmd, variables)
    return stack.pop()


def trace_beat(program: Program, t, mouse_x, mouse_y, screen_x, screen_y,
               key_x=0, key_y=0) -> List[Tuple[Cmd, Tuple[Value, ...]]]:
    """Stack contents after each command, for inspection and debugging."""
    variables = _variables(t, mouse_x, mouse_y, screen_x, screen_y, key_x, key_y)
    stack: List[Value] = []
    trace = []
    with np.errstate(all='ignore'):
        for cmd in program.cmds:
            _execute(stack, cmd, variables)
            trace.append((cmd, tuple(stack)))
    return trace


# -----------------------------
# Text form
# -----------------------------

class ParseError(ValueError):
    def __init__(self, token: str, position: int, message: str):
        self.token = token
        self.position = position
        super().__init__(f"{message}: {token}, index: {position}")


class BadArrayToken(ParseError):
    def __init__(self, token: str, position: int):
        super().__init__(token, position, "Bad Array op")


class UnknownToken(ParseError):
    def __init__(self, token: str, position: int):
        super().__init__(token, position, "Unknown Token")


_INT_RE = re.compile(r'[+-]?[0-9]+')
_FLOAT_RE = re.compile(r'[+-]?([0-9]+\.?[0-9]*|\.[0-9]+)([eE][+-]?[0-9]+)?')
_HEX_RE = re.compile(r'[+-]?[0-9a-fA-F]+')
_SIZE_RE = re.compile(r'\+?[0-9]+')


def _parse_token(token: str, position: int) -> Cmd:
    if token in VAR_TOKENS:
        return Cmd.var(VAR_TOKENS[token])
    if token in SYMBOL_OPS:
        return Cmd(SYMBOL_OPS[token])
    if token.startswith('['):
        if not _SIZE_RE.fullmatch(token[1:]):
            raise BadArrayToken(token, position)
        return Cmd.arr(int(token[1:]))
    if token.startswith('!') and ':' in token:
        parts = token[1:].split(':')
        return Cmd.meta(parts[0], parts[1])
    if token.startswith('#'):
        return Cmd.comment(token[1:])
    if token.startswith('0x'):
        digits = token[2:]
        if not _HEX_RE.fullmatch(digits):
            raise UnknownToken(token, position)
        value = int(digits, 16)
        if not I64_MIN <= value <= I64_MAX:
            raise UnknownToken(token, position)
        return Cmd.hex(value)
    if '.' in token:
        if not _FLOAT_RE.fullmatch(token):
            raise UnknownToken(token, position)
        return Cmd.num_f(float(token))
    if not _INT_RE.fullmatch(token):
        raise UnknownToken(token, position)
    value = int(token)
    if not I64_MIN <= value <= I64_MAX:
        raise UnknownToken(token, position)
    return Cmd.num_i(value)


def parse_beat(text: str) -> List[Cmd]:
    """Tokenize on whitespace. Raises BadArrayToken or UnknownToken with the token index."""
    return [_parse_token(token, i) for i, token in enumerate(text.split())]


def format_beat(cmds) -> str:
    return ' '.join(str(cmd) for cmd in cmds)
