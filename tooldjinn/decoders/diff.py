"""Decoder for `git diff --numstat` output."""

from dataclasses import dataclass, field
from typing import List, Optional

MAX_DIFF_SUMMARY_FILES = 20


@dataclass
class DiffFileStat:
    path: str
    added: int
    removed: int


@dataclass
class DiffSummary:
    files_changed: int = 0
    insertions: int = 0
    deletions: int = 0
    # Only the first MAX_DIFF_SUMMARY_FILES entries; counts cover every file
    files: List[DiffFileStat] = field(default_factory=list)


def _count(value: str) -> int:
    # Binary files report "-" for both columns
    if value == "-":
        return 0
    try:
        return int(value)
    except ValueError:
        return 0


def parse_numstat(raw: str, max_files: int = MAX_DIFF_SUMMARY_FILES) -> DiffSummary:
    summary = DiffSummary()

    for line in raw.split("\n"):
        if not line.strip():
            continue
        parts = line.split("\t")
        if len(parts) < 3:
            continue
        added = _count(parts[0])
        removed = _count(parts[1])
        summary.files_changed += 1
        summary.insertions += added
        summary.deletions += removed
        if len(summary.files) < max_files:
            summary.files.append(DiffFileStat(parts[2], added, removed))

    return summary


def render_diff_summary(raw: str, max_files: int = MAX_DIFF_SUMMARY_FILES) -> Optional[str]:
    """Summarise numstat output, or None when no file changed."""
    summary = parse_numstat(raw, max_files)
    if summary.files_changed == 0:
        return None

    lines = [
        "Diff summary:",
        f"  Files changed: {summary.files_changed}",
        f"  Insertions: {summary.insertions}",
        f"  Deletions: {summary.deletions}",
    ]
    if summary.files:
        lines.append("  Per-file breakdown:")
        lines.extend(f"  - {stat.path}: +{stat.added} / -{stat.removed}" for stat in summary.files)
        if summary.files_changed > len(summary.files):
            lines.append(f"  ... {summary.files_changed - len(summary.files)} more")

    return "\n".join(lines)
