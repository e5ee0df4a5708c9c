#!/usr/bin/env python3
"""
Step-by-Step Debugger

Shows the execution of a tape program one instruction at a time (program
with the instruction pointer marked, a window of the tape around the memory
pointer, and the output so far), and the stack of a bytebeat after every
command.
"""

from typing import List

from bytefield import brainfuck, bytebeat
from bytefield.brainfuck import Instruction, TapeState
from bytefield.core.bf_runner import finite_input


class TapeDebugger:
    """Prints tape program execution step by step."""

    def __init__(self, show_memory_range=10, memory_behavior=brainfuck.DEFAULT_MEMORY_BEHAVIOR):
        self.show_memory_range = show_memory_range
        self.memory_behavior = memory_behavior
        self.step_count = 0

    def debug_run(self, program: brainfuck.Program, input_data: str = "", max_steps: int = 100) -> TapeState:
        """Execute a program with step-by-step printing; returns the final state."""
        print(f"🐛 TAPE DEBUGGER")
        print(f"Program: {program}")
        print(f"Input: {input_data!r} (as bytes: {list(input_data.encode('utf-8'))})")
        print("=" * 80)

        state = TapeState.new(self.memory_behavior)
        source = finite_input(input_data)
        self.step_count = 0

        self._show_state(program, state, "INITIAL")

        while not state.halted(program) and self.step_count < max_steps:
            instr = state.current_instruction(program)
            position = state.program_pointer
            self.step_count += 1

            print(f"\nStep {self.step_count}: Execute '{instr}' at position {position}")
            state.step(program, source)
            print(f"  {self._describe(instr, position, state)}")

            self._show_state(program, state, f"AFTER STEP {self.step_count}")

        if not state.halted(program):
            print(f"\n⚠️ Execution stopped after {max_steps} steps (possible infinite loop)")

        print(f"\n🎯 FINAL RESULT:")
        print(f"Output: {state.output}")
        return state

    def _describe(self, instr: Instruction, position: int, state: TapeState) -> str:
        ptr = state.memory_pointer
        if instr in (Instruction.MOVE_LEFT, Instruction.MOVE_RIGHT):
            return f"Move pointer → position {ptr}"
        if instr in (Instruction.INC, Instruction.DEC):
            return f"cell[{ptr}] → {state.memory[ptr]}"
        if instr is Instruction.READ:
            return f"Read input → cell[{ptr}] = {state.memory[ptr]}"
        if instr is Instruction.WRITE:
            return f"Output cell[{ptr}] = {state.memory[ptr]}"
        if state.program_pointer != position + 1:
            return f"Jump to position {state.program_pointer}"
        return "No jump"

    def _show_state(self, program: brainfuck.Program, state: TapeState, label: str) -> None:
        """Show current state of memory, pointer, and program."""
        print(f"\n{label}:")

        program_display = ""
        for i, instr in enumerate(program.instrs):
            if i == state.program_pointer:
                program_display += f"[{instr}]"
            else:
                program_display += str(instr)
        if state.halted(program):
            program_display += "[END]"
        print(f"Program:  {program_display}")

        # Show memory tape (focused around pointer)
        start = max(0, state.memory_pointer - self.show_memory_range // 2)
        end = min(len(state.memory), start + self.show_memory_range)
        if end - start < self.show_memory_range:
            start = max(0, end - self.show_memory_range)

        memory_vals = []
        memory_ptrs = []
        memory_addrs = []
        for i in range(start, end):
            memory_vals.append(f"{state.memory[i]:4d}")
            memory_ptrs.append("  ^ " if i == state.memory_pointer else "    ")
            memory_addrs.append(f"{i:4d}")

        print(f"Memory:   [" + "|".join(memory_vals) + "]")
        print(f"Pointer:   " + " ".join(memory_ptrs))
        print(f"Address:   " + " ".join(memory_addrs))

        if state.output:
            print(f"Output:   {state.output}")
        else:
            print(f"Output:   (empty)")


def print_beat_trace(program: bytebeat.Program, t=0, mouse_x=0, mouse_y=0, screen_x=0, screen_y=0,
                     key_x=0, key_y=0) -> List[bytebeat.Value]:
    """Print the stack after every command; returns the final stack."""
    print(f"🐛 BYTEBEAT TRACE: {program}")
    print(f"t={t} mx={mouse_x} my={mouse_y} sx={screen_x} sy={screen_y} kx={key_x} ky={key_y}")
    print("-" * 60)
    stack: tuple = ()
    for i, (cmd, stack) in enumerate(bytebeat.trace_beat(program, t, mouse_x, mouse_y, screen_x,
                                                          screen_y, key_x, key_y)):
        print(f"{i:3d}  {str(cmd):>12}  {list(stack)}")
    return list(stack)
