#!/usr/bin/env python3
"""
Brainfuck Tape Machine

The cellular-tape language has 8 instructions:
    +   Increment the memory cell at the pointer (wrapping signed byte)
    -   Decrement the memory cell at the pointer (wrapping signed byte)
    <   Move the pointer to the left
    >   Move the pointer to the right
    [   Jump past the matching ] if the cell at the pointer is 0
    ]   Jump back to the matching [ if the cell at the pointer is nonzero
    ,   Read one value from the input source into the cell at the pointer
    .   Append the cell at the pointer to the output

All other characters are treated as comments and ignored when parsing.
A Program is validated and its jump table built once; a TapeState is then
advanced one instruction at a time by the caller.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union

INITIAL_MEMORY = 256
EXTEND_MEMORY_AMOUNT = 64


class InvalidProgram(ValueError):
    """Raised when loop brackets are not properly nested."""


class Instruction(Enum):
    INC = '+'
    DEC = '-'
    MOVE_LEFT = '<'
    MOVE_RIGHT = '>'
    LOOP_START = '['
    LOOP_END = ']'
    READ = ','
    WRITE = '.'

    def __str__(self):
        return self.value


@dataclass(frozen=True)
class Wrapping:
    """Pointer wraps around a ring of `modulus` cells."""
    modulus: int = INITIAL_MEMORY


@dataclass(frozen=True)
class GrowRightward:
    """Pointer stops at 0 on the left; the tape grows by `chunk` cells on the right."""
    chunk: int = EXTEND_MEMORY_AMOUNT


MemoryBehavior = Union[Wrapping, GrowRightward]
DEFAULT_MEMORY_BEHAVIOR: MemoryBehavior = Wrapping(INITIAL_MEMORY)


def is_valid(instrs: Iterable[Instruction]) -> bool:
    """Check that loop brackets never close more than they open and balance at the end."""
    open_braces = 0
    for instr in instrs:
        if instr is Instruction.LOOP_START:
            open_braces += 1
        elif instr is Instruction.LOOP_END:
            open_braces -= 1
            if open_braces < 0:
                return False
    return open_braces == 0


def _build_jump_table(instrs: Tuple[Instruction, ...]) -> Dict[int, int]:
    """Build a table mapping bracket positions for efficient jumping."""
    jump_table = {}
    stack = []

    for i, instr in enumerate(instrs):
        if instr is Instruction.LOOP_START:
            stack.append(i)
            jump_table[i] = 0
        elif instr is Instruction.LOOP_END:
            if not stack:
                raise RuntimeError(f"Unmatched ']' at position {i} (program was not validated)")
            start = stack.pop()
            jump_table[start] = i
            jump_table[i] = start

    if stack:
        raise RuntimeError(f"Unmatched '[' at position {stack[-1]} (program was not validated)")

    return jump_table


@dataclass(frozen=True)
class Program:
    """An immutable, validated instruction sequence with its loop jump table."""
    instrs: Tuple[Instruction, ...]
    jump_table: Dict[int, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        instrs = tuple(self.instrs)
        if not is_valid(instrs):
            raise InvalidProgram(f"Unbalanced loop brackets in program: {to_string(instrs)}")
        object.__setattr__(self, 'instrs', instrs)
        object.__setattr__(self, 'jump_table', _build_jump_table(instrs))

    def get(self, i: int) -> Instruction:
        return self.instrs[i]

    def matching_loop(self, i: int) -> Optional[int]:
        return self.jump_table.get(i)

    def __len__(self):
        return len(self.instrs)

    def __str__(self):
        return to_string(self.instrs)


def from_string(text: str) -> Program:
    """Parse program text, skipping any character that is not an instruction."""
    valid = {instr.value for instr in Instruction}
    return Program(tuple(Instruction(c) for c in text if c in valid))


def to_string(instrs: Iterable[Instruction]) -> str:
    return ''.join(instr.value for instr in instrs)


def _wrap_cell(value: int) -> int:
    """Wrap an integer into the signed byte range [-128, 127]."""
    return (value + 128) % 256 - 128


@dataclass
class TapeState:
    """Mutable run state for one execution of a Program."""
    program_pointer: int = 0
    memory_pointer: int = 0
    memory: List[int] = field(default_factory=lambda: [0] * INITIAL_MEMORY)
    memory_behavior: MemoryBehavior = DEFAULT_MEMORY_BEHAVIOR
    output: List[int] = field(default_factory=list)

    @classmethod
    def new(cls, memory_behavior: MemoryBehavior = DEFAULT_MEMORY_BEHAVIOR) -> 'TapeState':
        """Fresh zeroed tape sized for the given pointer policy."""
        if isinstance(memory_behavior, Wrapping):
            if memory_behavior.modulus <= 0:
                raise ValueError("Wrapping modulus must be positive")
            size = memory_behavior.modulus
        else:
            size = INITIAL_MEMORY
        return cls(memory=[0] * size, memory_behavior=memory_behavior)

    def halted(self, program: Program) -> bool:
        return self.program_pointer >= len(program.instrs)

    def current_instruction(self, program: Program) -> Optional[Instruction]:
        """Instruction about to execute, or None once halted."""
        if self.halted(program):
            return None
        return program.get(self.program_pointer)

    def snapshot(self) -> 'TapeState':
        """Independent copy of this state (tape and output are copied)."""
        return TapeState(
            program_pointer=self.program_pointer,
            memory_pointer=self.memory_pointer,
            memory=list(self.memory),
            memory_behavior=self.memory_behavior,
            output=list(self.output),
        )

    def output_bytes(self) -> bytes:
        """Output buffer reinterpreted as unsigned bytes."""
        return bytes(v % 256 for v in self.output)

    def step(self, program: Program, input_source: Iterator[int]) -> None:
        """Execute exactly one instruction and advance the program pointer."""
        assert not self.halted(program), "step() called on a halted state"

        instr = program.get(self.program_pointer)
        behavior = self.memory_behavior

        if instr is Instruction.INC:
            self.memory[self.memory_pointer] = _wrap_cell(self.memory[self.memory_pointer] + 1)

        elif instr is Instruction.DEC:
            self.memory[self.memory_pointer] = _wrap_cell(self.memory[self.memory_pointer] - 1)

        elif instr is Instruction.MOVE_LEFT:
            if isinstance(behavior, Wrapping):
                self.memory_pointer = (self.memory_pointer - 1) % behavior.modulus
            else:
                self.memory_pointer = max(0, self.memory_pointer - 1)

        elif instr is Instruction.MOVE_RIGHT:
            if isinstance(behavior, Wrapping):
                self.memory_pointer = (self.memory_pointer + 1) % behavior.modulus
            else:
                self.memory_pointer += 1
                if self.memory_pointer >= len(self.memory):
                    self.memory.extend([0] * behavior.chunk)

        elif instr is Instruction.LOOP_START:
            if self.memory[self.memory_pointer] == 0:
                self.program_pointer = self._jump(program)

        elif instr is Instruction.LOOP_END:
            if self.memory[self.memory_pointer] != 0:
                self.program_pointer = self._jump(program)

        elif instr is Instruction.READ:
            value = next(input_source, None)
            self.memory[self.memory_pointer] = 0 if value is None else _wrap_cell(int(value))

        elif instr is Instruction.WRITE:
            self.output.append(self.memory[self.memory_pointer])

        self.program_pointer += 1

    def _jump(self, program: Program) -> int:
        target = program.matching_loop(self.program_pointer)
        if target is None:
            raise RuntimeError(f"Missing jump table entry at position {self.program_pointer}")
        return target


def halted(state: TapeState, program: Program) -> bool:
    return state.halted(program)
