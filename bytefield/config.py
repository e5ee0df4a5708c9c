#!/usr/bin/env python3
"""
Run configuration for the art driver.

Defaults can be overridden by a YAML file (`ArtConfig.from_file`) and, for the
interpreter step budget, by the BYTEFIELD_STEP_LIMIT environment variable
(a local .env file is honoured).
"""

import os
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional

import yaml
from dotenv import load_dotenv

load_dotenv()

DEFAULT_STEP_LIMIT = int(os.environ.get("BYTEFIELD_STEP_LIMIT", "10000"))

ART_KINDS = ("brainfuck", "bytebeat")


@dataclass
class ArtConfig:
    """Configuration parameters for evolving a line of art programs."""
    kind: str = "bytebeat"
    program: Optional[str] = None  # Starting program text; random when None
    program_length: int = 20
    mutation_chance: float = 3.0 / 20
    generations: int = 10
    frames_per_generation: int = 1
    speed: int = 1  # Frame counter advance per bytebeat update
    width: int = 128
    height: int = 128
    pixel_size: int = 32
    input_text: str = "Hello, world!"
    include_io: bool = False  # Allow , and . in random brainfuck programs
    step_limit: int = DEFAULT_STEP_LIMIT  # Tape instructions run per brainfuck update
    min_interest: float = 0.0
    max_retries: int = 5
    seed: Optional[int] = None
    parallel: bool = True
    processes: Optional[int] = None
    output_dir: Optional[str] = None
    lineage_path: Optional[str] = None

    def __post_init__(self):
        if self.kind not in ART_KINDS:
            raise ValueError(f"kind must be one of {ART_KINDS}, got {self.kind!r}")
        if self.program_length < 0:
            raise ValueError("program_length must be non-negative")
        if not 0.0 <= self.mutation_chance <= 1.0:
            raise ValueError("mutation_chance must be within [0, 1]")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("width and height must be positive")
        if self.pixel_size <= 0:
            raise ValueError("pixel_size must be positive")
        if self.generations < 0 or self.frames_per_generation < 0:
            raise ValueError("generations and frames_per_generation must be non-negative")
        if self.step_limit < 0:
            raise ValueError("step_limit must be non-negative")
        if self.max_retries < 0:
            raise ValueError("max_retries must be non-negative")

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ArtConfig':
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ValueError(f"Unknown config keys: {sorted(unknown)}")
        return cls(**data)

    @classmethod
    def from_file(cls, path: str, **overrides) -> 'ArtConfig':
        """Load from a YAML mapping; keyword overrides that are not None win."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Config file {path} must contain a mapping")
        data.update({k: v for k, v in overrides.items() if v is not None})
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
