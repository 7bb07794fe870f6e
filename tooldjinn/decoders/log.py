"""Decoder for `git log` records written with control-character separators.

The separators are ASCII record/unit separators, which cannot appear in
author names or commit subjects. LOG_PRETTY_FORMAT is the only place the
format string is built; the log tool passes it to git unchanged.
"""

from dataclasses import dataclass
from typing import List, Optional

LOG_RECORD_SEPARATOR = "\x1e"
LOG_FIELD_SEPARATOR = "\x1f"

LOG_FIELDS = ("%H", "%an", "%ar", "%s", "%d")
LOG_PRETTY_FORMAT = LOG_FIELD_SEPARATOR.join(LOG_FIELDS) + LOG_RECORD_SEPARATOR

SHORT_HASH_LENGTH = 12


@dataclass
class LogEntry:
    index: int
    hash: str
    author: Optional[str]
    relative_time: Optional[str]
    subject: Optional[str]
    refs: Optional[str]

    @property
    def short_hash(self) -> str:
        return self.hash[:SHORT_HASH_LENGTH] if self.hash else "(unknown)"


def _strip_decoration(decoration: Optional[str]) -> Optional[str]:
    if decoration is None:
        return None
    refs = decoration.strip()
    if refs.startswith("("):
        refs = refs[1:]
    if refs.endswith(")"):
        refs = refs[:-1]
    return refs or None


def parse_log(raw: str, max_entries: Optional[int] = None) -> List[LogEntry]:
    entries: List[LogEntry] = []

    for record in raw.split(LOG_RECORD_SEPARATOR):
        if not record.strip():
            continue
        if max_entries is not None and len(entries) >= max_entries:
            break
        # git puts a newline between records; it belongs to no field
        fields = record.lstrip("\n").split(LOG_FIELD_SEPARATOR)
        fields += [None] * (len(LOG_FIELDS) - len(fields))
        commit_hash, author, relative_time, subject, decoration = fields[:len(LOG_FIELDS)]
        entries.append(LogEntry(
            index=len(entries) + 1,
            hash=commit_hash or "",
            author=author,
            relative_time=relative_time,
            subject=subject,
            refs=_strip_decoration(decoration),
        ))

    return entries


def render_log_summary(raw: str, max_entries: int) -> Optional[str]:
    """Render a numbered commit timeline, or None when there are no records."""
    entries = parse_log(raw, max_entries)
    if not entries:
        return None

    lines = [f"Recent commits (showing up to {max_entries}):"]
    for entry in entries:
        lines.append(
            f"{entry.index}. {entry.short_hash} | {entry.relative_time or 'unknown time'}"
            f" | {entry.author or 'unknown author'}"
        )
        lines.append(f"    {entry.subject or '(no subject)'}")
        if entry.refs:
            lines.append(f"    refs: {entry.refs}")

    return "\n".join(lines)
