"""Decoder for `git ls-files -u` (unmerged index entries)."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

STAGE_LABELS = {1: "base", 2: "ours", 3: "theirs"}


@dataclass
class ConflictEntry:
    path: str
    stages: Set[int] = field(default_factory=set)
    hashes: Set[str] = field(default_factory=set)

    @property
    def stage_names(self) -> List[str]:
        return [STAGE_LABELS.get(stage, f"stage {stage}") for stage in sorted(self.stages)]


def parse_conflicts(raw: str) -> List[ConflictEntry]:
    """Group `<mode> <hash> <stage>\\t<path>` lines by path, in first-seen order."""
    by_path: Dict[str, ConflictEntry] = {}

    for line in raw.split("\n"):
        if not line.strip():
            continue
        meta, _, path = line.partition("\t")
        if not meta or not path:
            continue
        meta_parts = meta.split()
        entry = by_path.setdefault(path, ConflictEntry(path))
        if len(meta_parts) > 1 and meta_parts[1]:
            entry.hashes.add(meta_parts[1])
        if len(meta_parts) > 2 and meta_parts[2].isdigit():
            entry.stages.add(int(meta_parts[2]))

    return list(by_path.values())


def render_conflict_summary(raw: str) -> Optional[str]:
    entries = parse_conflicts(raw)
    if not entries:
        return None

    lines = [f"Merge conflicts detected: {len(entries)} file(s)"]
    for entry in entries:
        lines.append(f"  - {entry.path} (stages: {', '.join(entry.stage_names)})")
    return "\n".join(lines)
