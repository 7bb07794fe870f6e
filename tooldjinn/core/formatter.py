"""Render a CommandResult as a short preview and a detailed transcript."""

from dataclasses import dataclass
from typing import Optional, Sequence

from tooldjinn.core.configs import OutputBudgets
from tooldjinn.core.types import CommandResult, FormattedResult
from tooldjinn.tools.output_trimmer import truncate_stream


@dataclass(frozen=True)
class StreamSection:
    text: str
    truncated: bool


def build_stream_section(
    label: str,
    raw: str,
    prefer_tail: bool,
    token_budget: int,
) -> Optional[StreamSection]:
    """
    Render one output stream under a `--- label ---` heading.

    Returns None when the stream is empty after trailing whitespace is removed.
    """
    trimmed = raw.rstrip()
    if not trimmed:
        return None

    result = truncate_stream(trimmed, prefer_tail, token_budget)
    suffix = ""
    if result.truncated:
        suffix = f" (showing ~{result.displayed_tokens} of ~{result.total_tokens} tokens)"

    return StreamSection(
        text=f"--- {label}{suffix} ---\n{result.content}",
        truncated=result.truncated,
    )


def format_header(command_line: Sequence[str], result: CommandResult) -> str:
    exit_code = "null" if result.exit_code is None else result.exit_code
    return "\n".join([
        f"Command: {' '.join(command_line)}",
        f"Working directory: {result.working_directory}",
        f"Exit code: {exit_code}",
        f"Duration: {result.duration_ms}ms",
    ])


def format_result(
    command_line: Sequence[str],
    result: CommandResult,
    budgets: Optional[OutputBudgets] = None,
    query_tool: str = "git_last_response",
) -> FormattedResult:
    """
    Build the preview and detailed renderings of one command invocation.

    The preview keeps the tail of each stream with small budgets; failures
    get larger budgets so more of the error output survives. The detailed
    rendering keeps head + tail of stdout and the tail of stderr with the
    detail budget, and is what gets stored for later querying.

    Args:
        command_line: Full argv including the binary name
        result: Captured process result
        budgets: Token budgets (defaults to OutputBudgets())
        query_tool: Tool name mentioned in the preview footer

    Returns:
        FormattedResult; is_error is True for any exit code other than 0
    """
    budgets = budgets or OutputBudgets()
    success = result.exit_code == 0
    stdout_budget, stderr_budget = budgets.preview_budgets(success)

    header = format_header(command_line, result)
    preview_blocks = [header]
    detailed_blocks = [header]
    preview_truncated = False

    stream_plan = (
        ("stdout", result.stdout, stdout_budget, False),
        ("stderr", result.stderr, stderr_budget, True),
    )
    for label, raw, preview_budget, detail_prefers_tail in stream_plan:
        preview = build_stream_section(label, raw, True, preview_budget)
        if preview:
            preview_blocks.append(preview.text)
            preview_truncated = preview_truncated or preview.truncated

        detailed = build_stream_section(label, raw, detail_prefers_tail, budgets.detail)
        if detailed:
            detailed_blocks.append(detailed.text)

    if preview_truncated:
        footer = f"Preview truncated. Run {query_tool} to inspect the complete command output."
    else:
        footer = f"Full output stored. Run {query_tool} to inspect the complete command output."
    preview_blocks.append(footer)

    return FormattedResult(
        preview_text="\n\n".join(preview_blocks),
        detailed_text="\n\n".join(detailed_blocks),
        is_error=result.exit_code != 0,
    )
