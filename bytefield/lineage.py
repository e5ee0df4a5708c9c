#!/usr/bin/env python3
"""
Lineage Log for Art Evolution
Keeps the line of descent of evolved programs in a JSON file.
"""

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional


@dataclass
class LineageEntry:
    """One generation in a line of descent."""
    code: str
    kind: str
    generation: int
    interest: float
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    parent: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'LineageEntry':
        """Create from dictionary (JSON deserialization)."""
        return cls(**data)


class Lineage:
    """An ordered, optionally persisted record of evolved programs."""

    def __init__(self, path: Optional[str] = None):
        self.path = Path(path) if path else None
        self.entries: List[LineageEntry] = []
        self.load()

    def load(self) -> None:
        """Load entries from the lineage file, if there is one."""
        if self.path is None or not self.path.exists():
            self.entries = []
            return
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
            self.entries = [LineageEntry.from_dict(entry) for entry in data.get('entries', [])]
            print(f"📚 Loaded {len(self.entries)} lineage entries from {self.path}")
        except (OSError, ValueError, TypeError) as e:
            print(f"⚠️ Error loading lineage: {e}")
            self.entries = []

    def save(self) -> None:
        """Save entries, keeping the previous file as a backup."""
        if self.path is None:
            return
        if self.path.exists():
            backup_path = self.path.with_suffix('.backup.json')
            self.path.replace(backup_path)

        data = {
            'metadata': {
                'created': datetime.now().isoformat(),
                'total_entries': len(self.entries),
                'version': '1.0'
            },
            'entries': [entry.to_dict() for entry in self.entries]
        }
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, 'w') as f:
            json.dump(data, f, indent=2)

        print(f"💾 Saved {len(self.entries)} lineage entries to {self.path}")

    def add(self, code: str, kind: str, generation: int, interest: float,
            parent: Optional[str] = None, metadata: Dict[str, Any] = None) -> LineageEntry:
        entry = LineageEntry(code=code, kind=kind, generation=generation, interest=interest,
                             parent=parent, metadata=metadata or {})
        self.entries.append(entry)
        return entry

    def has(self, code: str) -> bool:
        return any(entry.code == code for entry in self.entries)

    def best(self, limit: int = 10) -> List[LineageEntry]:
        """Most interesting entries first."""
        return sorted(self.entries, key=lambda e: e.interest, reverse=True)[:limit]

    def stats(self) -> Dict[str, Any]:
        if not self.entries:
            return {'total': 0}
        interests = [e.interest for e in self.entries]
        lengths = [len(e.code) for e in self.entries]
        return {
            'total': len(self.entries),
            'kinds': sorted({e.kind for e in self.entries}),
            'interest_stats': {
                'min': min(interests),
                'max': max(interests),
                'avg': sum(interests) / len(interests)
            },
            'code_length_stats': {
                'min': min(lengths),
                'max': max(lengths),
                'avg': sum(lengths) / len(lengths)
            },
        }

    def print_summary(self) -> None:
        stats = self.stats()

        print(f"\n📚 Lineage Summary")
        print(f"=" * 40)
        print(f"Total entries: {stats['total']}")

        if stats['total'] > 0:
            print(f"Kinds: {', '.join(stats['kinds'])}")
            print(f"Interest range: {stats['interest_stats']['min']:.3f} - {stats['interest_stats']['max']:.3f}")
            print(f"Code length range: {stats['code_length_stats']['min']} - {stats['code_length_stats']['max']} chars")
            print(f"\nMost interesting:")
            for entry in self.best(3):
                print(f"  gen {entry.generation}: {entry.code} ({entry.interest:.3f})")
