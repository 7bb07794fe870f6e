"""
Read-only git operations.

Each handler builds a fixed argument vector from a validated request, runs
git once (twice for diffs), swaps stdout for a decoder summary where one
exists, and hands the result to the session, which stores the detailed
rendering and returns the compact preview.
"""

from typing import List, Optional

from tooldjinn.core.configs import ToolSettings
from tooldjinn.core.session import Session
from tooldjinn.core.types import CommandResult, ToolResponse
from tooldjinn.decoders import (
    render_blame_summary,
    render_branch_summary,
    render_conflict_summary,
    render_diff_summary,
    render_log_summary,
    render_status_summary,
)
from tooldjinn.decoders.branch import BRANCH_FORMAT
from tooldjinn.decoders.log import LOG_PRETTY_FORMAT
from tooldjinn.tools.arguments import (
    GitBlameRequest,
    GitBranchOverviewRequest,
    GitConflictsRequest,
    GitDiffRequest,
    GitLogRequest,
    GitShowRequest,
    GitStatusRequest,
)
from tooldjinn.tools.exec_command import run_command

WHITESPACE_FLAGS = {
    "space-change": "--ignore-space-change",
    "all": "--ignore-all-space",
    "blank-lines": "--ignore-blank-lines",
    "eol": "--ignore-cr-at-eol",
}
WORD_DIFF_FLAGS = {
    "plain": "--word-diff",
    "porcelain": "--word-diff=porcelain",
}
# git cannot sort on ahead/behind; that order is applied after decoding
BRANCH_SORT_KEYS = {
    "recency": "-committerdate",
    "name": "refname",
    "ahead-behind": "refname",
}
DIFF_SECTION_SEPARATOR = "\n\n---\n\n"


def _pathspec(paths: Optional[List[str]]) -> List[str]:
    return ["--", *paths] if paths else []


def _run_git(settings: ToolSettings, args: List[str], working_directory: Optional[str]) -> CommandResult:
    return run_command(settings.git_binary, args, working_directory)


def _respond(
    session: Session,
    settings: ToolSettings,
    args: List[str],
    result: CommandResult,
    stdout: Optional[str] = None,
) -> ToolResponse:
    return session.build_response(
        [settings.git_binary, *args], result, stdout=stdout, budgets=settings.budgets
    )


def build_status_args(request: GitStatusRequest) -> List[str]:
    args = ["status", "--porcelain=2", "--branch", "--no-renames", "--no-color"]
    if request.include_ignored:
        args.append("--ignored")
    if request.show_stash:
        args.append("--show-stash")
    return args + _pathspec(request.paths)


def git_status(request: GitStatusRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    args = build_status_args(request)
    result = _run_git(settings, args, request.working_directory)

    summary = render_status_summary(result.stdout)
    if summary is None:
        display = "Working tree appears clean."
    else:
        raw = result.stdout.rstrip() or "(no status output)"
        display = f"{summary}\n\n--- git status (porcelain v2) ---\n{raw}"
    return _respond(session, settings, args, result, display)


def build_diff_base_args(request: GitDiffRequest) -> List[str]:
    """Arguments shared by the numstat pre-run and the main diff."""
    args = ["diff", "--no-color"]
    if request.staged:
        args.append("--cached")
    if request.context is not None:
        args.append(f"-U{request.context}")
    if request.ignore_whitespace in WHITESPACE_FLAGS:
        args.append(WHITESPACE_FLAGS[request.ignore_whitespace])
    if request.word_diff in WORD_DIFF_FLAGS:
        args.append(WORD_DIFF_FLAGS[request.word_diff])
    if request.revision_range:
        args.append(request.revision_range)
    return args


def build_diff_args(request: GitDiffRequest) -> List[str]:
    args = build_diff_base_args(request)
    if request.include_stat and request.include_patch:
        args.extend(["--stat", "--patch"])
    elif request.include_stat:
        args.append("--stat")
    elif not request.include_patch:
        args.append("--no-patch")
    # patch-only falls through to git's default output
    return args + _pathspec(request.paths)


def git_diff(request: GitDiffRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    sections: List[str] = []

    if request.include_stat or request.include_patch:
        numstat_args = build_diff_base_args(request) + ["--numstat"] + _pathspec(request.paths)
        stats = _run_git(settings, numstat_args, request.working_directory)
        summary = render_diff_summary(stats.stdout)
        if summary:
            sections.append(summary)

    args = build_diff_args(request)
    result = _run_git(settings, args, request.working_directory)
    body = result.stdout.rstrip()
    if body:
        sections.append(body)
    elif not sections:
        sections.append("No differences detected.")

    return _respond(session, settings, args, result, DIFF_SECTION_SEPARATOR.join(sections))


def build_log_args(request: GitLogRequest) -> List[str]:
    args = ["log", "--no-color", f"--pretty=format:{LOG_PRETTY_FORMAT}"]
    if request.revision:
        args.append(request.revision)
    args.extend(["-n", str(request.max_entries)])
    if request.author:
        args.append(f"--author={request.author}")
    if request.grep:
        args.append(f"--grep={request.grep}")
    if request.since:
        args.append(f"--since={request.since}")
    if request.until:
        args.append(f"--until={request.until}")
    if request.merge_filter == "only-merges":
        args.append("--merges")
    elif request.merge_filter == "no-merges":
        args.append("--no-merges")
    return args + _pathspec(request.paths)


def git_log(request: GitLogRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    args = build_log_args(request)
    result = _run_git(settings, args, request.working_directory)
    summary = render_log_summary(result.stdout, request.max_entries)
    return _respond(
        session, settings, args, result, summary or "No commits match the provided filters."
    )


def build_branch_args(request: GitBranchOverviewRequest) -> List[str]:
    args = ["branch", "--no-color", f"--format={BRANCH_FORMAT}"]
    if request.scope == "all":
        args.append("--all")
    elif request.scope == "remote":
        args.append("--remotes")
    if request.merge_filter == "merged":
        args.append("--merged")
    elif request.merge_filter == "no-merged":
        args.append("--no-merged")
    if request.contains:
        args.append(f"--contains={request.contains}")
    args.append(f"--sort={BRANCH_SORT_KEYS[request.sort_by]}")
    return args


def git_branch_overview(
    request: GitBranchOverviewRequest, session: Session, settings: ToolSettings
) -> ToolResponse:
    args = build_branch_args(request)
    result = _run_git(settings, args, request.working_directory)
    summary = render_branch_summary(
        result.stdout, request.scope, by_divergence=request.sort_by == "ahead-behind"
    )
    return _respond(
        session, settings, args, result, summary or "No branches match the requested filters."
    )


def build_show_args(request: GitShowRequest) -> List[str]:
    args = ["show", "--no-color"]
    if request.include_stat:
        args.append("--stat")
    if not request.include_patch:
        args.append("--no-patch")
    if request.pretty:
        args.append(f"--pretty={request.pretty}")
    args.append(request.git_object)
    return args + _pathspec(request.paths)


def git_show(request: GitShowRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    args = build_show_args(request)
    result = _run_git(settings, args, request.working_directory)
    return _respond(session, settings, args, result)


def build_blame_args(request: GitBlameRequest) -> List[str]:
    args = ["blame", "--line-porcelain", "--date=iso", request.revision or "HEAD"]
    if request.start_line is not None or request.end_line is not None:
        start = request.start_line if request.start_line is not None else 1
        end = request.end_line if request.end_line is not None else request.start_line
        args.extend(["-L", f"{start},{end}"])
    return args + ["--", request.file]


def git_blame_segment(request: GitBlameRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    args = build_blame_args(request)
    result = _run_git(settings, args, request.working_directory)
    summary = render_blame_summary(result.stdout, request.file)
    return _respond(
        session,
        settings,
        args,
        result,
        summary or "No blame information available for the specified range.",
    )


def build_conflict_args(request: GitConflictsRequest) -> List[str]:
    return ["ls-files", "-u"] + _pathspec(request.paths)


def git_list_conflicts(
    request: GitConflictsRequest, session: Session, settings: ToolSettings
) -> ToolResponse:
    args = build_conflict_args(request)
    result = _run_git(settings, args, request.working_directory)
    summary = render_conflict_summary(result.stdout)
    return _respond(
        session, settings, args, result, summary or "No merge conflicts detected in the working tree."
    )

