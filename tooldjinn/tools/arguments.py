"""Typed, validated tool requests.

Every tool takes a frozen pydantic model. The model validates incoming
arguments (`from_arguments`) and produces the JSON schema advertised to
callers (`json_schema`), so the two cannot drift. Unknown or mistyped
arguments raise ArgumentValidationError before any process is spawned.

Blank strings, blank list entries and explicit nulls count as "not given",
so the field's default applies.
"""

from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, get_args, get_origin

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError, model_validator

from tooldjinn.core.errors import ArgumentValidationError

_TYPE_NAMES = {
    "string_type": "a string",
    "bool_type": "a boolean",
    "int_type": "an integer",
    "list_type": "an array of strings",
}


def _not_an_option(value: str) -> str:
    # These values sit before `--` on the git command line
    if value.startswith("-"):
        raise ValueError("must not start with '-'")
    return value


Revision = Annotated[str, AfterValidator(_not_an_option)]


def _drop_blanks(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, list):
        kept = [_drop_blanks(entry) for entry in value]
        return [entry for entry in kept if entry is not None] or None
    return value


def _literal_choices(annotation: Any) -> tuple:
    if get_origin(annotation) is Literal:
        return get_args(annotation)
    for arg in get_args(annotation):
        choices = _literal_choices(arg)
        if choices:
            return choices
    return ()


class ToolRequest(BaseModel):
    """Base class for validated tool arguments."""

    model_config = ConfigDict(extra="forbid", strict=True, frozen=True)

    @model_validator(mode="before")
    @classmethod
    def drop_blank_values(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        cleaned = {key: _drop_blanks(value) for key, value in data.items()}
        return {key: value for key, value in cleaned.items() if value is not None}

    @classmethod
    def from_arguments(cls, arguments: Optional[Mapping[str, Any]] = None):
        """
        Validate raw arguments and build the request.

        Raises:
            ArgumentValidationError: Unknown field, wrong type, out-of-range
                value, invalid enum member, or missing required field
        """
        arguments = arguments or {}
        if not isinstance(arguments, Mapping):
            raise ArgumentValidationError("Expected arguments to be an object.")
        try:
            return cls.model_validate(dict(arguments))
        except ValidationError as e:
            raise ArgumentValidationError(cls._describe(e.errors())) from e

    @classmethod
    def _describe(cls, errors: List[Dict[str, Any]]) -> str:
        unknown = sorted(str(err["loc"][0]) for err in errors if err["type"] == "extra_forbidden")
        if unknown:
            return f"Unknown argument(s): {', '.join(unknown)}."

        err = errors[0]
        kind, ctx = err["type"], err.get("ctx", {})
        if not err["loc"]:
            # Cross-field check raised by a model validator
            return str(ctx.get("error", err["msg"]))

        name = str(err["loc"][0])
        if kind == "missing":
            return f"{name} is required."
        if kind == "literal_error":
            choices = _literal_choices(cls.model_fields[name].annotation)
            return f"Invalid value for {name}. Expected one of: {', '.join(choices)}."
        if kind == "greater_than_equal":
            return f"Expected {name} to be >= {ctx['ge']}."
        if kind == "less_than_equal":
            return f"Expected {name} to be <= {ctx['le']}."
        if len(err["loc"]) > 1 or kind == "list_type":
            return f"Expected {name} to be an array of strings."
        if kind in _TYPE_NAMES:
            return f"Expected {name} to be {_TYPE_NAMES[kind]}."
        if kind == "value_error":
            return f"Invalid value for {name}: {ctx.get('error', err['msg'])}."
        return f"Invalid value for {name}: {err['msg']}."

    @classmethod
    def json_schema(cls) -> Dict[str, Any]:
        """Flat JSON schema: no titles, no null branches, no null defaults."""
        schema = cls.model_json_schema()
        schema.pop("title", None)
        schema.pop("description", None)

        properties: Dict[str, Any] = {}
        for name, prop in schema.get("properties", {}).items():
            prop = dict(prop)
            branches = [b for b in prop.pop("anyOf", []) if b.get("type") != "null"]
            if branches:
                prop = {**branches[0], **prop}
            prop.pop("title", None)
            if "default" in prop and prop["default"] is None:
                del prop["default"]
            properties[name] = prop
        schema["properties"] = properties
        return schema


class CommandRequest(ToolRequest):
    """Request for a tool that spawns a process."""
    working_directory: Optional[str] = Field(
        None,
        description="Directory to run the command in (defaults to the server launch directory).",
    )


class LastResponseRequest(ToolRequest):
    query: Optional[str] = Field(None, description="Substring to search for within the stored response.")
    case_sensitive: bool = Field(False, description="Treat the query as case-sensitive during matching.")
    max_matches: Optional[Annotated[int, Field(ge=1)]] = Field(
        None, description="Maximum number of matching lines to return."
    )
    line_numbers: bool = Field(
        False, description="Prefix matches with their line numbers from the stored response."
    )


# Git requests

IgnoreWhitespace = Literal["none", "space-change", "all", "blank-lines", "eol"]
WordDiff = Literal["none", "plain", "porcelain"]
LogMergeFilter = Literal["any", "only-merges", "no-merges"]
BranchScope = Literal["local", "remote", "all"]
BranchMergeFilter = Literal["any", "merged", "no-merged"]
BranchSort = Literal["recency", "name", "ahead-behind"]
PrettyFormat = Literal["medium", "full", "fuller", "raw", "oneline"]
PathList = Optional[List[str]]


class GitStatusRequest(CommandRequest):
    include_ignored: bool = Field(False, description="Include ignored files using git status --ignored.")
    show_stash: bool = Field(False, description="Include stash information in the status summary.")
    paths: PathList = Field(None, description="Optional list of pathspecs to limit status inspection.")


class GitDiffRequest(CommandRequest):
    revision_range: Optional[Revision] = Field(
        None, description="Revision range or commit-ish to compare (e.g. HEAD~2..HEAD)."
    )
    staged: bool = Field(False, description="Use the staged index (git diff --cached).")
    include_stat: bool = Field(True, description="Include diffstat summary.")
    include_patch: bool = Field(
        True, description="Include patch details; disable for stat-only summaries."
    )
    context: Optional[Annotated[int, Field(ge=0, le=200)]] = Field(
        None, description="Number of context lines to show around changes."
    )
    ignore_whitespace: IgnoreWhitespace = Field("none", description="Whitespace handling.")
    word_diff: WordDiff = Field("none", description="Enable word diff highlighting.")
    paths: PathList = Field(None, description="Limit the diff to these pathspecs.")


class GitLogRequest(CommandRequest):
    revision: Optional[Revision] = Field(None, description="Starting revision (defaults to HEAD).")
    max_entries: int = Field(20, ge=1, le=250, description="Maximum number of commits to retrieve.")
    author: Optional[str] = Field(None, description="Filter commits by author (uses git log --author).")
    grep: Optional[str] = Field(None, description="Filter commit messages using git log --grep.")
    since: Optional[str] = Field(None, description="Only show commits more recent than this date.")
    until: Optional[str] = Field(None, description="Only show commits older than this date.")
    merge_filter: LogMergeFilter = Field("any", description="Filter merge commits.")
    paths: PathList = Field(None, description="Limit the history to specific paths.")


class GitBranchOverviewRequest(CommandRequest):
    scope: BranchScope = Field("local", description="Branch scope to inspect.")
    merge_filter: BranchMergeFilter = Field("any", description="Filter by merge status.")
    contains: Optional[Revision] = Field(
        None, description="Limit to branches containing the specified revision."
    )
    sort_by: BranchSort = Field("recency", description="Sorting strategy.")


class GitShowRequest(CommandRequest):
    git_object: Revision = Field(description="Git object to display (commit, tag, tree, blob).")
    include_patch: bool = Field(True, description="Include patch output (default true for commits).")
    include_stat: bool = Field(False, description="Include diffstat summary.")
    pretty: Optional[PrettyFormat] = Field(None, description="Pretty-print style.")
    paths: PathList = Field(None, description="Restrict output to these pathspecs.")


class GitBlameRequest(CommandRequest):
    file: str = Field(description="Path to the file to annotate.")
    start_line: Optional[Annotated[int, Field(ge=1)]] = Field(
        None, description="Starting line number (1-based)."
    )
    end_line: Optional[Annotated[int, Field(ge=1)]] = Field(
        None, description="Ending line number (inclusive)."
    )
    revision: Optional[Revision] = Field(None, description="Optional revision (defaults to HEAD).")

    @model_validator(mode="after")
    def check_line_order(self):
        if (
            self.start_line is not None
            and self.end_line is not None
            and self.end_line < self.start_line
        ):
            raise ValueError("end_line must be greater than or equal to start_line.")
        return self


class GitConflictsRequest(CommandRequest):
    paths: PathList = Field(None, description="Optional pathspecs to limit the conflict report.")


# Dotnet requests

Verbosity = Literal["quiet", "minimal", "normal", "detailed", "diagnostic"]


class DotnetRestoreRequest(CommandRequest):
    project: Optional[str] = Field(None, description="Path to a project or solution file.")
    runtime: Optional[str] = Field(None, description="Target runtime to restore packages for.")
    configfile: Optional[str] = Field(None, description="Custom NuGet config file.")
    force: bool = Field(
        False,
        description="Force all dependencies to be resolved even if the last restore was successful.",
    )
    no_cache: bool = Field(False, description="Disables restoring from the packages cache on disk.")
    interactive: bool = Field(
        False, description="Allows the command to stop and wait for user input or action."
    )
    verbosity: Optional[Verbosity] = Field(None, description="Sets the MSBuild verbosity level.")


class DotnetBuildRequest(CommandRequest):
    project: Optional[str] = Field(None, description="Path to a project or solution file.")
    configuration: Optional[str] = Field(None, description="Build configuration (e.g. Debug or Release).")
    framework: Optional[str] = Field(None, description="Target framework to build for.")
    runtime: Optional[str] = Field(None, description="Target runtime identifier (RID).")
    output: Optional[str] = Field(None, description="Output directory for build artifacts.")
    no_restore: bool = Field(False, description="Skip restoring the project before building.")
    verbosity: Optional[Verbosity] = Field(None, description="Sets the MSBuild verbosity level.")


class DotnetTestRequest(CommandRequest):
    project: Optional[str] = Field(None, description="Project or solution file to test.")
    configuration: Optional[str] = Field(None, description="Build configuration to use.")
    framework: Optional[str] = Field(None, description="Specify a target framework.")
    logger: Optional[str] = Field(None, description="Logger to use for test results.")
    filter: Optional[str] = Field(None, description="Run tests that match the given expression.")
    settings: Optional[str] = Field(None, description="Path to a runsettings file.")
    collect: Optional[str] = Field(
        None, description="Collect diagnostic data with the specified data collector."
    )
    no_build: bool = Field(False, description="Skip building the project prior to running.")
    no_restore: bool = Field(
        False, description="Skip restoring project-to-project references and packages."
    )


class DotnetRunRequest(CommandRequest):
    project: Optional[str] = Field(None, description="Project file path to run.")
    configuration: Optional[str] = Field(None, description="Build configuration (e.g. Debug or Release).")
    framework: Optional[str] = Field(None, description="Target framework to run.")
    runtime: Optional[str] = Field(None, description="Runtime identifier.")
    launch_profile: Optional[str] = Field(None, description="Launch profile name to use.")
    no_build: bool = Field(False, description="Skip building the project before running.")
    no_restore: bool = Field(False, description="Skip restoring project dependencies.")
    additional_arguments: PathList = Field(
        None, description="Additional arguments to pass after `--`."
    )


class DotnetNewRequest(CommandRequest):
    template: str = Field(description="Template short name to create (e.g. console, classlib).")
    name: Optional[str] = Field(None, description="Name for the output created from the template.")
    output: Optional[str] = Field(None, description="Output directory for the new project or file.")
    language: Optional[str] = Field(
        None, description="Language for the generated project (if template supports it)."
    )
    framework: Optional[str] = Field(None, description="Target framework (if template supports it).")
    force: bool = Field(
        False, description="Force content to be generated even if it would change existing files."
    )
    skip_restore: bool = Field(False, description="Skip running `dotnet restore` on the created project.")
    dry_run: bool = Field(False, description="Show what would be created without making any changes.")
    no_update_check: bool = Field(False, description="Skip checking for template package updates.")
    additional_arguments: PathList = Field(None, description="Additional template-specific arguments.")


class DotnetAddPackageRequest(CommandRequest):
    package: str = Field(description="NuGet package ID to add.")
    project: Optional[str] = Field(
        None, description="Project file to update (optional when running inside the project directory)."
    )
    version: Optional[str] = Field(None, description="Package version to install.")
    prerelease: bool = Field(False, description="Allow prerelease packages.")
    source: Optional[str] = Field(None, description="NuGet package source to use.")
    no_restore: bool = Field(False, description="Do not perform an implicit restore.")


class DotnetCleanRequest(CommandRequest):
    project: Optional[str] = Field(None, description="Project or solution file to clean.")
    configuration: Optional[str] = Field(None, description="Build configuration to clean.")
    framework: Optional[str] = Field(None, description="Target framework to clean.")
    runtime: Optional[str] = Field(None, description="Target runtime identifier.")
    output: Optional[str] = Field(None, description="Output directory to clean.")


class DotnetPublishRequest(CommandRequest):
    project: Optional[str] = Field(None, description="Project or solution file to publish.")
    configuration: Optional[str] = Field(None, description="Build configuration to use.")
    framework: Optional[str] = Field(None, description="Target framework to publish.")
    runtime: Optional[str] = Field(None, description="Runtime identifier (RID).")
    output: Optional[str] = Field(None, description="Directory to place published output.")
    self_contained: bool = Field(False, description="Publish the .NET runtime with the application.")
    no_restore: bool = Field(False, description="Skip restoring before publishing.")
    verbosity: Optional[Verbosity] = Field(None, description="Sets the MSBuild verbosity level.")
