import random

from bytefield import brainfuck, bytebeat
from bytefield.brainfuck import Instruction
from bytefield.bytebeat import Cmd, Op, VarType

# Instructions random programs are drawn from; I/O is opt-in
TAPE_TOKENS = [
    Instruction.INC, Instruction.DEC, Instruction.MOVE_LEFT, Instruction.MOVE_RIGHT,
    Instruction.LOOP_START, Instruction.LOOP_END,
]
TAPE_TOKENS_WITH_IO = TAPE_TOKENS + [Instruction.READ, Instruction.WRITE]

# Everything except the loop brackets may replace a non-bracket instruction
TAPE_MUTABLE = [
    Instruction.INC, Instruction.DEC, Instruction.MOVE_LEFT, Instruction.MOVE_RIGHT,
    Instruction.READ, Instruction.WRITE,
]

BEAT_VARIABLES = [Cmd.var(v) for v in VarType]
BEAT_INT_OPS = [Cmd(op) for op in bytebeat.INT_BINARY]
BEAT_TRIG_OPS = [Cmd(op) for op in bytebeat.TRIG]
BEAT_FLOAT_OPS = [Cmd(op) for op in bytebeat.FLOAT_BINARY]
BEAT_COMPARISONS = [Cmd(op) for op in bytebeat.COMPARISONS]

_BEAT_FAMILIES = {}
for _family in (BEAT_INT_OPS, BEAT_TRIG_OPS, BEAT_FLOAT_OPS, BEAT_COMPARISONS):
    for _cmd in _family:
        _BEAT_FAMILIES[_cmd.op] = _family

LITERAL_RANGE = 256


def _rng(rng):
    return random if rng is None else rng


def random_bf(length: int, rng=None, include_io: bool = False) -> brainfuck.Program:
    """Generate a random tape program of at least `length` instructions with balanced loops."""
    rng = _rng(rng)
    choices = TAPE_TOKENS_WITH_IO if include_io else TAPE_TOKENS
    instrs = []
    open_braces = 0

    while len(instrs) < length or open_braces != 0:
        instr = rng.choice(choices)

        # Avoid adding an end loop if there is no matching start loop
        if open_braces <= 0 and instr is Instruction.LOOP_END:
            continue

        # Out of length: only close loops from here on
        if len(instrs) >= length:
            instr = Instruction.LOOP_END

        if instr is Instruction.LOOP_START:
            open_braces += 1
        elif instr is Instruction.LOOP_END:
            open_braces -= 1
        instrs.append(instr)

    instrs.extend([Instruction.LOOP_END] * open_braces)
    if not brainfuck.is_valid(instrs):
        raise RuntimeError(f"Generated an invalid program: {brainfuck.to_string(instrs)}")
    return brainfuck.Program(tuple(instrs))


def mutate_bf(program: brainfuck.Program, p: float, rng=None) -> brainfuck.Program:
    """Point-mutate each non-bracket instruction with probability p."""
    rng = _rng(rng)
    instrs = list(program.instrs)
    for i, instr in enumerate(instrs):
        if p > rng.random():
            if instr in (Instruction.LOOP_START, Instruction.LOOP_END):
                continue
            instrs[i] = rng.choice(TAPE_MUTABLE)
    return brainfuck.Program(tuple(instrs))


def random_beat(length: int, rng=None) -> bytebeat.Program:
    """Generate a random bytebeat from variables and integer ops only.

    Draws that would empty the stack are rejected; once `length` commands have
    been emitted only stack-reducing ops are accepted until one value remains.
    """
    rng = _rng(rng)
    choices = BEAT_VARIABLES + BEAT_INT_OPS
    cmds = []
    depth = 0

    while len(cmds) < length or depth != 1:
        cmd = rng.choice(choices)
        change = bytebeat.stack_effect(cmd)
        if depth + change <= 0:
            continue
        # an empty stack still needs its one value, even past `length`
        if len(cmds) >= length and change > 0 and depth > 0:
            continue
        depth += change
        cmds.append(cmd)

    try:
        return bytebeat.compile_beat(cmds)
    except bytebeat.CompileError as e:
        raise RuntimeError(f"Generated an invalid bytebeat: {e}") from e


def _mutate_cmd(cmd: Cmd, rng) -> Cmd:
    if cmd.op is Op.VAR:
        return rng.choice(BEAT_VARIABLES)
    # literals keep their own kind
    if cmd.op is Op.NUM_F:
        return Cmd.num_f(float(rng.randrange(LITERAL_RANGE)))
    if cmd.op is Op.HEX:
        return Cmd.hex(rng.randrange(LITERAL_RANGE))
    if cmd.op in bytebeat.LITERALS:
        return Cmd.num_i(rng.randrange(LITERAL_RANGE))
    family = _BEAT_FAMILIES.get(cmd.op)
    if family is None:
        raise RuntimeError(f"Cannot mutate bytebeat command {cmd}")
    return rng.choice(family)


def mutate_beat(program: bytebeat.Program, p: float, rng=None) -> bytebeat.Program:
    """Replace each command with probability p by a random command of the same family."""
    rng = _rng(rng)
    cmds = list(program.cmds)
    for i, cmd in enumerate(cmds):
        if p > rng.random():
            cmds[i] = _mutate_cmd(cmd, rng)
    try:
        return bytebeat.compile_beat(cmds)
    except bytebeat.CompileError as e:
        raise RuntimeError(f"Mutation produced an invalid bytebeat: {e}") from e
