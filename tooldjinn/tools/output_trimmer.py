"""Token-budget truncation for command output."""

import math
from dataclasses import dataclass

# Rough ratio for English text and source code
CHARS_PER_TOKEN = 4

DETAIL_TOKEN_BUDGET = 1200
TRUNCATION_MARKER = "\n[...output truncated...]\n"

# Upper bound on shrink passes; token costs are estimates so the
# loop is not guaranteed to converge on its own.
MAX_TRUNCATION_PASSES = 10

HEAD_SHARE = 0.6


@dataclass(frozen=True)
class TruncationResult:
    """Bounded text plus the estimated token counts before and after."""
    content: str
    displayed_tokens: int
    total_tokens: int

    @property
    def truncated(self) -> bool:
        return self.displayed_tokens < self.total_tokens


def estimate_tokens(text: str) -> int:
    """
    Rough token estimation (4 chars ≈ 1 token).

    Args:
        text: Input text

    Returns:
        Estimated token count, 0 for empty text
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def _tail(content: str, chars: int) -> str:
    # content[-0:] would return the whole string
    return content[-chars:] if chars > 0 else ""


def truncate_stream(
    content: str,
    prefer_tail: bool,
    token_budget: int = DETAIL_TOKEN_BUDGET,
) -> TruncationResult:
    """
    Bound `content` to roughly `token_budget` tokens.

    Strategy:
    1. Under budget: return content untouched
    2. prefer_tail: keep the end of the output behind a truncation marker
       (errors and final results usually live there)
    3. Otherwise keep 60% head and 40% tail around the marker
    4. Re-estimate and shrink until the result fits, at most
       MAX_TRUNCATION_PASSES times

    If the budget cannot even hold the marker, a hard slice without
    marker is returned.

    Args:
        content: Text to bound
        prefer_tail: Keep only the tail instead of head + tail
        token_budget: Maximum estimated tokens for the result

    Returns:
        TruncationResult with the bounded content

    Example:
        >>> truncate_stream("x" * 100, prefer_tail=True, token_budget=50).content == "x" * 100
        True
    """
    total_tokens = estimate_tokens(content)
    if total_tokens <= token_budget:
        return TruncationResult(content, total_tokens, total_tokens)

    max_chars = max(0, int(token_budget * CHARS_PER_TOKEN))
    available_chars = max(max_chars - len(TRUNCATION_MARKER), 0)

    if available_chars <= 0:
        hard_slice = _tail(content, max_chars) if prefer_tail else content[:max_chars]
        return TruncationResult(hard_slice, estimate_tokens(hard_slice), total_tokens)

    def build_tail_only(chars: int) -> str:
        return f"{TRUNCATION_MARKER.rstrip()}\n{_tail(content, chars)}"

    def build_head_and_tail(chars: int) -> str:
        head_chars = max(int(chars * HEAD_SHARE), 0)
        tail_chars = max(chars - head_chars, 0)
        return f"{content[:head_chars]}{TRUNCATION_MARKER}{_tail(content, tail_chars)}"

    build = build_tail_only if prefer_tail else build_head_and_tail

    candidate = build(available_chars)
    displayed_tokens = estimate_tokens(candidate)
    passes = 0

    while (
        displayed_tokens > token_budget
        and available_chars > 0
        and passes < MAX_TRUNCATION_PASSES
    ):
        overshoot = displayed_tokens - token_budget
        available_chars = max(0, available_chars - max(1, overshoot * CHARS_PER_TOKEN))
        candidate = build(available_chars)
        displayed_tokens = estimate_tokens(candidate)
        passes += 1

    return TruncationResult(candidate, min(displayed_tokens, total_tokens), total_tokens)
