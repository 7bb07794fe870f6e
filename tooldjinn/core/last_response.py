"""Search the stored response without re-running the command."""

from dataclasses import dataclass, field
from typing import List, Optional

from tooldjinn.core.session import Session
from tooldjinn.tools.output_trimmer import DETAIL_TOKEN_BUDGET, truncate_stream


@dataclass
class LineMatches:
    lines: List[str] = field(default_factory=list)
    total: int = 0


def find_matching_lines(
    text: str,
    query: str,
    case_sensitive: bool = False,
    max_matches: Optional[int] = None,
    line_numbers: bool = False,
) -> LineMatches:
    """
    Collect lines of `text` containing `query`.

    Every match is counted in `total`, but only the first `max_matches`
    lines are kept (all of them when max_matches is None).
    """
    needle = query if case_sensitive else query.lower()
    matches = LineMatches()

    for number, line in enumerate(text.split("\n"), start=1):
        haystack = line if case_sensitive else line.lower()
        if needle not in haystack:
            continue
        matches.total += 1
        if max_matches is None or len(matches.lines) < max_matches:
            matches.lines.append(f"{number}: {line}" if line_numbers else line)

    return matches


def query_last_response(
    session: Session,
    query: Optional[str] = None,
    case_sensitive: bool = False,
    max_matches: Optional[int] = None,
    line_numbers: bool = False,
    token_budget: int = DETAIL_TOKEN_BUDGET,
) -> str:
    """
    Inspect or search the most recent response stored in `session`.

    Args:
        session: Session holding the last response
        query: Substring to look for; None returns the whole response
        case_sensitive: Match case exactly
        max_matches: Maximum number of matching lines to return
        line_numbers: Prefix matches with their 1-based line number
        token_budget: Budget for the returned body

    Returns:
        Header lines followed by the (truncated) body
    """
    stored = session.get()
    if stored is None:
        return f"No {session.family} commands have been run yet in this session."

    extra_lines: List[str] = []
    if query:
        matches = find_matching_lines(
            stored.formatted_text, query, case_sensitive, max_matches, line_numbers
        )
        if not matches.lines:
            body = f'No matches for "{query}" in the last response.'
        else:
            body = "\n".join(matches.lines)
            returned = f"Matches returned: {len(matches.lines)}"
            if max_matches:
                returned += f" (max {max_matches}, total found {matches.total})"
            extra_lines.append(returned)
            if not max_matches or matches.total > len(matches.lines):
                extra_lines.append(f"Total matches found: {matches.total}")
    else:
        body = stored.formatted_text

    truncated = truncate_stream(body, prefer_tail=False, token_budget=token_budget)

    if query:
        filter_text = f'"{query}"' + (" (case-sensitive)" if case_sensitive else "")
    else:
        filter_text = "none"
    exit_code = "null" if stored.raw.exit_code is None else stored.raw.exit_code

    header = [
        f"Most recent command: {' '.join(stored.command_args)}",
        f"Captured at: {stored.captured_at}",
        f"Exit code: {exit_code}",
        f"Filter: {filter_text}",
        f"Tokens: showing ~{truncated.displayed_tokens} of ~{truncated.total_tokens}",
        *extra_lines,
    ]
    return "\n".join([*header, "", truncated.content])
