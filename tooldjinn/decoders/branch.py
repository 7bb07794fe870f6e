"""Decoder for tab-separated `git branch --format` output."""

import re
from dataclasses import dataclass
from typing import List, Optional

BRANCH_FIELDS = (
    "%(HEAD)",
    "%(refname:short)",
    "%(objectname:short)",
    "%(committerdate:relative)",
    "%(upstream:short)",
    "%(upstream:track,nobracket)",
    "%(authorname)",
    "%(subject)",
)
BRANCH_FORMAT = "\t".join(BRANCH_FIELDS)

_TRACK_COUNT = re.compile(r"(ahead|behind) (\d+)")


@dataclass
class BranchEntry:
    is_head: bool
    name: Optional[str]
    short_hash: Optional[str]
    relative_date: Optional[str]
    upstream: Optional[str] = None
    ahead: int = 0
    behind: int = 0
    upstream_gone: bool = False
    last_author: Optional[str] = None
    last_subject: Optional[str] = None

    @property
    def tracking(self) -> str:
        if not self.upstream:
            return "no upstream"
        if self.upstream_gone:
            return f"tracking {self.upstream} (gone)"
        return f"tracking {self.upstream} (ahead {self.ahead}, behind {self.behind})"


def parse_track(track: Optional[str]) -> tuple:
    """
    Decode `%(upstream:track,nobracket)`.

    Returns:
        (ahead, behind, gone); git prints nothing when in sync
    """
    track = (track or "").strip()
    if track == "gone":
        return 0, 0, True
    counts = dict(_TRACK_COUNT.findall(track))
    return int(counts.get("ahead", 0)), int(counts.get("behind", 0)), False


def parse_branches(raw: str) -> List[BranchEntry]:
    entries: List[BranchEntry] = []

    for line in raw.split("\n"):
        if not line.strip():
            continue
        fields: List[Optional[str]] = list(line.split("\t"))
        fields += [None] * (len(BRANCH_FIELDS) - len(fields))
        head, name, short_hash, relative_date, upstream, track, author, subject = (
            fields[:len(BRANCH_FIELDS)]
        )
        ahead, behind, gone = parse_track(track)
        entries.append(BranchEntry(
            is_head=head == "*",
            name=name,
            short_hash=short_hash,
            relative_date=relative_date,
            upstream=(upstream or "").strip() or None,
            ahead=ahead,
            behind=behind,
            upstream_gone=gone,
            last_author=author or None,
            last_subject=(subject or "").strip() or None,
        ))

    return entries


def render_branch_summary(raw: str, scope: str, by_divergence: bool = False) -> Optional[str]:
    """
    Render one block per branch, or None when no branch lines exist.

    With by_divergence, branches furthest from their upstream come first;
    git has no sort key for ahead/behind counts.
    """
    entries = parse_branches(raw)
    if not entries:
        return None
    if by_divergence:
        entries.sort(key=lambda entry: entry.ahead + entry.behind, reverse=True)

    lines = [f"Branch overview ({scope}):"]
    for entry in entries:
        marker = "*" if entry.is_head else " "
        lines.append(
            f"{marker} {entry.name or '(unknown)'} | {entry.short_hash or '????????'}"
            f" | {entry.relative_date or 'unknown recency'}"
        )
        lines.append(f"    {entry.tracking} | last author: {entry.last_author or 'unknown'}")
        if entry.last_subject:
            lines.append(f"    last commit: {entry.last_subject}")

    return "\n".join(lines)
