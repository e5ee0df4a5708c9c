from bytefield import brainfuck, bytebeat
from bytefield.debugger import TapeDebugger, print_beat_trace


def test_tape_debugger_runs_to_completion(capsys):
    state = TapeDebugger().debug_run(brainfuck.from_string("+."))
    assert state.output == [1]
    out = capsys.readouterr().out
    assert "Step 2: Execute '.'" in out
    assert "FINAL RESULT" in out
    assert "possible infinite loop" not in out


def test_tape_debugger_stops_runaway_loops(capsys):
    debugger = TapeDebugger(show_memory_range=4)
    state = debugger.debug_run(brainfuck.from_string("+[]"), max_steps=10)
    assert debugger.step_count == 10
    assert not state.halted(brainfuck.from_string("+[]"))
    assert "possible infinite loop" in capsys.readouterr().out


def test_tape_debugger_reads_input(capsys):
    state = TapeDebugger().debug_run(brainfuck.from_string(",."), input_data="A")
    assert state.output == [65]
    assert "Read input" in capsys.readouterr().out


def test_beat_trace(capsys):
    program = bytebeat.compile_beat(bytebeat.parse_beat("1 2 +"))
    assert print_beat_trace(program) == [3]
    out = capsys.readouterr().out
    assert "[1, 2]" in out
