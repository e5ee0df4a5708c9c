#!/usr/bin/env python3
"""
Art Evolution: a line of descent of generative programs.

Starting from a random (or given) program, each generation advances the art
piece a few frames, scores how interesting its output is, records it in the
lineage and mutates it into the next generation. Mutants that score below
`min_interest` are re-rolled a bounded number of times.
"""

import argparse
import os
import random
import sys
import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from bytefield import art, brainfuck, bytebeat
from bytefield.config import ArtConfig
from bytefield.core.eval_utils import EvalConfig
from bytefield.debugger import TapeDebugger, print_beat_trace
from bytefield.lineage import Lineage


def parse_program(kind: str, text: str):
    """Build a program of the given kind from its text form.
    Raises InvalidProgram, ParseError or CompileError (all ValueError)."""
    if kind == "brainfuck":
        return brainfuck.from_string(text)
    return bytebeat.compile_beat(bytebeat.parse_beat(text))


class LineageRunner:
    """Evolves one line of art programs."""

    def __init__(self, config: ArtConfig = None):
        self.config = config or ArtConfig()
        self.rng = random.Random(self.config.seed)
        self.lineage = Lineage(self.config.lineage_path)
        self.eval_cfg = EvalConfig(parallel=self.config.parallel,
                                   processes=self.config.processes or EvalConfig().processes)
        self.evolution_log: List[str] = []
        self.generation = 0

    def log(self, message: str) -> None:
        """Add a message to the evolution log."""
        timestamp = datetime.now().strftime("%H:%M:%S")
        log_entry = f"[{timestamp}] {message}"
        self.evolution_log.append(log_entry)
        print(log_entry)

    def initial_art(self) -> art.Art:
        cfg = self.config
        if cfg.program:
            program = parse_program(cfg.kind, cfg.program)
        elif cfg.kind == "brainfuck":
            return art.new_random(cfg.kind, cfg.program_length, self.rng, include_io=cfg.include_io,
                                  input_text=cfg.input_text, pixel_size=cfg.pixel_size)
        else:
            return art.new_random(cfg.kind, cfg.program_length, self.rng,
                                  width=cfg.width, height=cfg.height)
        if cfg.kind == "brainfuck":
            return art.new_from(program, input_text=cfg.input_text, pixel_size=cfg.pixel_size)
        return art.new_from(program, width=cfg.width, height=cfg.height)

    def advance(self, piece: art.Art) -> float:
        """Reset, run the configured number of frames and return the interest score."""
        art.reset(piece)
        # a tape program runs up to step_limit instructions per frame
        speed = self.config.step_limit if isinstance(piece, art.BrainfuckArt) else self.config.speed
        for _ in range(self.config.frames_per_generation):
            art.update(piece, speed, art.Inputs(), self.eval_cfg)
        return art.score(piece)

    def spawn(self, parent: art.Art) -> Tuple[art.Art, float]:
        """Mutate the parent, re-rolling dull children up to max_retries times."""
        child, interest = parent, 0.0
        for attempt in range(self.config.max_retries + 1):
            child = art.mutate(parent, self.config.mutation_chance, self.rng)
            interest = self.advance(child)
            if interest >= self.config.min_interest:
                break
            self.log(f"↩️ Mutant {attempt + 1} too dull ({interest:.3f}), retrying")
        return child, interest

    def snapshot(self, piece: art.Art) -> np.ndarray:
        image = np.zeros((self.config.height, self.config.width, 3), dtype=np.uint8)
        art.render(piece, image)
        return image

    def save_frame(self, piece: art.Art) -> Optional[str]:
        if not self.config.output_dir:
            return None
        os.makedirs(self.config.output_dir, exist_ok=True)
        path = os.path.join(self.config.output_dir, f"gen_{self.generation:03d}.png")
        plt.imsave(path, self.snapshot(piece))
        return path

    def run(self, piece: Optional[art.Art] = None) -> Dict[str, Any]:
        """Run the complete line of descent, from `piece` or a fresh initial piece."""
        cfg = self.config
        self.log(f"🧬 Starting {cfg.kind} lineage: {cfg.generations} generations")
        self.log(f"Program length: {cfg.program_length}, Mutation chance: {cfg.mutation_chance:.3f}, "
                 f"Seed: {cfg.seed}")

        start_time = time.time()
        if piece is None:
            piece = self.initial_art()
        interest = self.advance(piece)
        parent_code: Optional[str] = None
        frames: List[str] = []

        try:
            for gen in range(cfg.generations + 1):
                self.generation = gen
                code = str(piece.program)
                if self.lineage.has(code):
                    self.log(f"🔁 Gen {gen} repeats an earlier program")
                self.lineage.add(code, cfg.kind, gen, interest, parent=parent_code,
                                 metadata={'mutation_chance': cfg.mutation_chance})
                self.log(f"Gen {gen:3d} | interest {interest:.3f} | {code}")

                frame = self.save_frame(piece)
                if frame:
                    frames.append(frame)

                if gen == cfg.generations:
                    break
                parent_code = code
                piece, interest = self.spawn(piece)
        except KeyboardInterrupt:
            self.log("Evolution interrupted by user")

        duration = time.time() - start_time
        self.log(f"Evolution completed in {duration:.2f} seconds")
        self.lineage.save()

        best = self.lineage.best(1)
        return {
            'generations': self.generation,
            'duration': duration,
            'final_code': str(piece.program),
            'best_code': best[0].code if best else None,
            'best_interest': best[0].interest if best else 0.0,
            'frames': frames,
        }


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Evolve generative art programs")
    ap.add_argument("--config", default=None, help="YAML file with ArtConfig fields")
    ap.add_argument("--kind", choices=["brainfuck", "bytebeat"], default=None)
    ap.add_argument("--program", default=None, help="Starting program text; random if omitted")
    ap.add_argument("--length", type=int, default=None, dest="program_length")
    ap.add_argument("--mutation-chance", type=float, default=None, dest="mutation_chance")
    ap.add_argument("--gens", type=int, default=None, dest="generations")
    ap.add_argument("--frames", type=int, default=None, dest="frames_per_generation")
    ap.add_argument("--speed", type=int, default=None)
    ap.add_argument("--size", type=int, default=None, help="Square canvas size in pixels")
    ap.add_argument("--step-limit", type=int, default=None, dest="step_limit")
    ap.add_argument("--min-interest", type=float, default=None, dest="min_interest")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--no-parallel", action="store_true", help="Disable parallel bytebeat rendering")
    ap.add_argument("--out", default=None, dest="output_dir", help="Directory for PNG frames")
    ap.add_argument("--lineage", default=None, dest="lineage_path", help="JSON file for the lineage log")
    ap.add_argument("--debug", action="store_true", help="Trace the starting program and exit")
    return ap


def config_from_args(args: argparse.Namespace) -> ArtConfig:
    overrides = {
        'kind': args.kind,
        'program': args.program,
        'program_length': args.program_length,
        'mutation_chance': args.mutation_chance,
        'generations': args.generations,
        'frames_per_generation': args.frames_per_generation,
        'speed': args.speed,
        'width': args.size,
        'height': args.size,
        'step_limit': args.step_limit,
        'min_interest': args.min_interest,
        'seed': args.seed,
        'output_dir': args.output_dir,
        'lineage_path': args.lineage_path,
    }
    if args.no_parallel:
        overrides['parallel'] = False
    if args.config:
        return ArtConfig.from_file(args.config, **overrides)
    return ArtConfig.from_dict({k: v for k, v in overrides.items() if v is not None})


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    try:
        config = config_from_args(args)
        runner = LineageRunner(config)
        piece = runner.initial_art()
    except (OSError, ValueError) as e:
        print(f"❌ {e}")
        return 1

    if args.debug:
        if isinstance(piece, art.BrainfuckArt):
            TapeDebugger().debug_run(piece.program, config.input_text, max_steps=config.step_limit)
        else:
            print_beat_trace(piece.program)
        return 0

    results = runner.run(piece)
    runner.lineage.print_summary()
    print(f"\n🏆 Best program: {results['best_code']} (interest {results['best_interest']:.3f})")
    return 0


if __name__ == "__main__":
    sys.exit(main())
