"""
Tool registry: names, schemas, and dispatch for every exposed tool.

Tools are grouped into families ("git", "dotnet"); each family keeps its
own last-response slot, so querying git output never returns a build log.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Optional, Type

from tooldjinn.core.configs import ToolSettings, get_tool_settings
from tooldjinn.core.errors import ToolError, UnknownToolError
from tooldjinn.core.last_response import query_last_response
from tooldjinn.core.session import Session
from tooldjinn.core.types import ToolResponse
from tooldjinn.tools import dotnet_tools, git_tools
from tooldjinn.tools.arguments import (
    DotnetAddPackageRequest,
    DotnetBuildRequest,
    DotnetCleanRequest,
    DotnetNewRequest,
    DotnetPublishRequest,
    DotnetRestoreRequest,
    DotnetRunRequest,
    DotnetTestRequest,
    GitBlameRequest,
    GitBranchOverviewRequest,
    GitConflictsRequest,
    GitDiffRequest,
    GitLogRequest,
    GitShowRequest,
    GitStatusRequest,
    LastResponseRequest,
    ToolRequest,
)

logger = logging.getLogger(__name__)

FAMILIES = ("git", "dotnet")

Handler = Callable[[Any, Session, ToolSettings], ToolResponse]


@dataclass(frozen=True)
class ToolSpec:
    """A callable tool and the request type that validates its arguments."""
    name: str
    description: str
    request_type: Type[ToolRequest]
    handler: Handler
    family: str

    @property
    def parameters(self) -> Dict[str, Any]:
        return self.request_type.json_schema()


def last_response(request: LastResponseRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    """Inspect or search the family's stored response; never spawns a process."""
    text = query_last_response(
        session,
        query=request.query,
        case_sensitive=request.case_sensitive,
        max_matches=request.max_matches,
        line_numbers=request.line_numbers,
        token_budget=settings.budgets.detail,
    )
    return ToolResponse(text=text)


TOOLS: List[ToolSpec] = [
    ToolSpec(
        "git_status",
        "Summarise repository status with staged, unstaged, and conflict details.",
        GitStatusRequest,
        git_tools.git_status,
        "git",
    ),
    ToolSpec(
        "git_diff",
        "Inspect diffs for revisions, staged changes, or specific paths with aggregated summaries.",
        GitDiffRequest,
        git_tools.git_diff,
        "git",
    ),
    ToolSpec(
        "git_log",
        "Display recent commits as a structured timeline.",
        GitLogRequest,
        git_tools.git_log,
        "git",
    ),
    ToolSpec(
        "git_branch_overview",
        "Summarise branches with upstream tracking and recent activity indicators.",
        GitBranchOverviewRequest,
        git_tools.git_branch_overview,
        "git",
    ),
    ToolSpec(
        "git_show",
        "Inspect a commit, tag, or other Git object without mutating state.",
        GitShowRequest,
        git_tools.git_show,
        "git",
    ),
    ToolSpec(
        "git_blame_segment",
        "Inspect ownership details for a file range using git blame.",
        GitBlameRequest,
        git_tools.git_blame_segment,
        "git",
    ),
    ToolSpec(
        "git_list_conflicts",
        "Summarise files with merge conflicts using git ls-files -u.",
        GitConflictsRequest,
        git_tools.git_list_conflicts,
        "git",
    ),
    ToolSpec(
        "git_last_response",
        "Inspect or search the most recent git command response captured in this session.",
        LastResponseRequest,
        last_response,
        "git",
    ),
    ToolSpec(
        "dotnet_restore",
        "Restore NuGet dependencies for a project or solution.",
        DotnetRestoreRequest,
        dotnet_tools.dotnet_restore,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_build",
        "Build a project or solution with dotnet build.",
        DotnetBuildRequest,
        dotnet_tools.dotnet_build,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_test",
        "Run tests with dotnet test.",
        DotnetTestRequest,
        dotnet_tools.dotnet_test,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_run",
        "Build and run a project with dotnet run.",
        DotnetRunRequest,
        dotnet_tools.dotnet_run,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_new",
        "Create a new project or item from a template.",
        DotnetNewRequest,
        dotnet_tools.dotnet_new,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_add_package",
        "Add a NuGet package reference to a project.",
        DotnetAddPackageRequest,
        dotnet_tools.dotnet_add_package,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_clean",
        "Clean build outputs with dotnet clean.",
        DotnetCleanRequest,
        dotnet_tools.dotnet_clean,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_publish",
        "Publish an application and its dependencies for deployment.",
        DotnetPublishRequest,
        dotnet_tools.dotnet_publish,
        "dotnet",
    ),
    ToolSpec(
        "dotnet_last_response",
        "Inspect or search the most recent dotnet command response captured in this session.",
        LastResponseRequest,
        last_response,
        "dotnet",
    ),
]

_TOOLS_BY_NAME: Dict[str, ToolSpec] = {spec.name: spec for spec in TOOLS}


def get_tool(name: str) -> ToolSpec:
    try:
        return _TOOLS_BY_NAME[name]
    except KeyError:
        raise UnknownToolError(name) from None


def build_tool_schema() -> List[Dict[str, Any]]:
    """Return function-calling schemas for every registered tool."""
    return [
        {
            "type": "function",
            "function": {
                "name": spec.name,
                "description": spec.description,
                "parameters": spec.parameters,
            },
        }
        for spec in TOOLS
    ]


def new_sessions(session_name: str = "default") -> Dict[str, Session]:
    """One empty Session per tool family."""
    return {family: Session(family=family, session_name=session_name) for family in FAMILIES}


def dispatch(
    name: str,
    arguments: Optional[Mapping[str, Any]],
    sessions: Dict[str, Session],
    settings: Optional[ToolSettings] = None,
) -> ToolResponse:
    """
    Validate arguments and run the named tool.

    Validation, working-directory and spawn failures abort the call and come
    back as an error response; a non-zero exit code is a normal rendered
    response with is_error set.

    Args:
        name: Registered tool name
        arguments: Raw JSON arguments
        sessions: Family name -> Session for the calling session
        settings: Binaries and budgets (loaded from config when omitted)

    Returns:
        ToolResponse
    """
    try:
        spec = get_tool(name)
    except UnknownToolError as e:
        logger.warning("Rejected call: %s", e)
        return ToolResponse(text=str(e), is_error=True)

    settings = settings or get_tool_settings()
    session = sessions.get(spec.family)
    if session is None:
        session = sessions[spec.family] = Session(family=spec.family)

    try:
        request = spec.request_type.from_arguments(arguments)
        return spec.handler(request, session, settings)
    except ToolError as e:
        logger.warning("Tool %s failed: %s", name, e)
        return ToolResponse(text=f"Command failed: {e}", is_error=True)
