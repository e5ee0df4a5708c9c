from itertools import cycle
from typing import Iterator, List, Optional, Tuple

from bytefield.brainfuck import (DEFAULT_MEMORY_BEHAVIOR, Instruction, MemoryBehavior,
                                 Program, TapeState, halted)
from bytefield.config import DEFAULT_STEP_LIMIT


def _signed(b: int) -> int:
    return b - 256 if b > 127 else b


def cycle_input(text: str) -> Iterator[int]:
    """Endless input source repeating the bytes of `text` (as signed values)."""
    data = [_signed(b) for b in text.encode('utf-8')]
    if not data:
        return iter(())
    return cycle(data)


def finite_input(text: str) -> Iterator[int]:
    """Input source that is exhausted after the bytes of `text`; further reads give 0."""
    return iter([_signed(b) for b in text.encode('utf-8')])


def run(program: Program, input_source: Optional[Iterator[int]] = None,
        max_steps: int = DEFAULT_STEP_LIMIT,
        memory_behavior: MemoryBehavior = DEFAULT_MEMORY_BEHAVIOR) -> TapeState:
    """Step a fresh state until it halts or `max_steps` instructions have run."""
    if input_source is None:
        input_source = iter(())
    state = TapeState.new(memory_behavior)
    steps = 0
    while not halted(state, program) and steps < max_steps:
        state.step(program, input_source)
        steps += 1
    return state


def execution_history(program: Program, input_source: Optional[Iterator[int]] = None,
                      max_steps: int = DEFAULT_STEP_LIMIT,
                      memory_behavior: MemoryBehavior = DEFAULT_MEMORY_BEHAVIOR
                      ) -> List[Tuple[TapeState, Instruction]]:
    """Run like `run`, recording the state after every step with the instruction executed."""
    if input_source is None:
        input_source = iter(())
    history = []
    state = TapeState.new(memory_behavior)
    while not halted(state, program) and len(history) < max_steps:
        instr = program.get(state.program_pointer)
        state.step(program, input_source)
        history.append((state.snapshot(), instr))
    return history
