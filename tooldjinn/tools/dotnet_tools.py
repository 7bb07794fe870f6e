"""dotnet CLI operations (restore, build, test, run, new, add package, clean, publish).

Build output has no stable machine format, so these tools pass stdout and
stderr straight to the formatter; the truncator keeps the tail, where
compiler errors and test summaries land.
"""

from typing import List, Optional

from tooldjinn.core.configs import ToolSettings
from tooldjinn.core.session import Session
from tooldjinn.core.types import ToolResponse
from tooldjinn.tools.arguments import (
    DotnetAddPackageRequest,
    DotnetBuildRequest,
    DotnetCleanRequest,
    DotnetNewRequest,
    DotnetPublishRequest,
    DotnetRestoreRequest,
    DotnetRunRequest,
    DotnetTestRequest,
)
from tooldjinn.tools.exec_command import run_command


def _option(args: List[str], flag: str, value: Optional[str]) -> None:
    if value:
        args.extend([flag, value])


def _switch(args: List[str], flag: str, enabled: bool) -> None:
    if enabled:
        args.append(flag)


def _run_dotnet(
    args: List[str], working_directory: Optional[str], session: Session, settings: ToolSettings
) -> ToolResponse:
    result = run_command(settings.dotnet_binary, args, working_directory)
    return session.build_response(
        [settings.dotnet_binary, *args], result, budgets=settings.budgets
    )


def build_restore_args(request: DotnetRestoreRequest) -> List[str]:
    args = ["restore"]
    if request.project:
        args.append(request.project)
    _option(args, "--runtime", request.runtime)
    _option(args, "--configfile", request.configfile)
    _switch(args, "--force", request.force)
    _switch(args, "--no-cache", request.no_cache)
    _switch(args, "--interactive", request.interactive)
    _option(args, "--verbosity", request.verbosity)
    return args


def build_build_args(request: DotnetBuildRequest) -> List[str]:
    args = ["build"]
    if request.project:
        args.append(request.project)
    _option(args, "--configuration", request.configuration)
    _option(args, "--framework", request.framework)
    _option(args, "--runtime", request.runtime)
    _option(args, "--output", request.output)
    _switch(args, "--no-restore", request.no_restore)
    _option(args, "--verbosity", request.verbosity)
    return args


def build_test_args(request: DotnetTestRequest) -> List[str]:
    args = ["test"]
    if request.project:
        args.append(request.project)
    _option(args, "--configuration", request.configuration)
    _option(args, "--framework", request.framework)
    _option(args, "--logger", request.logger)
    _option(args, "--filter", request.filter)
    _option(args, "--settings", request.settings)
    _option(args, "--collect", request.collect)
    _switch(args, "--no-build", request.no_build)
    _switch(args, "--no-restore", request.no_restore)
    return args


def build_run_args(request: DotnetRunRequest) -> List[str]:
    args = ["run"]
    _option(args, "--project", request.project)
    _option(args, "--configuration", request.configuration)
    _option(args, "--framework", request.framework)
    _option(args, "--runtime", request.runtime)
    _option(args, "--launch-profile", request.launch_profile)
    _switch(args, "--no-build", request.no_build)
    _switch(args, "--no-restore", request.no_restore)
    if request.additional_arguments:
        args.extend(["--", *request.additional_arguments])
    return args


def build_new_args(request: DotnetNewRequest) -> List[str]:
    args = ["new", request.template]
    _option(args, "--name", request.name)
    _option(args, "--output", request.output)
    _option(args, "--language", request.language)
    _option(args, "--framework", request.framework)
    _switch(args, "--force", request.force)
    _switch(args, "--skip-restore", request.skip_restore)
    _switch(args, "--dry-run", request.dry_run)
    _switch(args, "--no-update-check", request.no_update_check)
    if request.additional_arguments:
        args.extend(request.additional_arguments)
    return args


def build_add_package_args(request: DotnetAddPackageRequest) -> List[str]:
    args = ["add"]
    if request.project:
        args.append(request.project)
    args.extend(["package", request.package])
    _option(args, "--version", request.version)
    _switch(args, "--prerelease", request.prerelease)
    _option(args, "--source", request.source)
    _switch(args, "--no-restore", request.no_restore)
    return args


def build_clean_args(request: DotnetCleanRequest) -> List[str]:
    args = ["clean"]
    if request.project:
        args.append(request.project)
    _option(args, "--configuration", request.configuration)
    _option(args, "--framework", request.framework)
    _option(args, "--runtime", request.runtime)
    _option(args, "--output", request.output)
    return args


def build_publish_args(request: DotnetPublishRequest) -> List[str]:
    args = ["publish"]
    if request.project:
        args.append(request.project)
    _option(args, "--configuration", request.configuration)
    _option(args, "--framework", request.framework)
    _option(args, "--runtime", request.runtime)
    _option(args, "--output", request.output)
    _switch(args, "--self-contained", request.self_contained)
    _switch(args, "--no-restore", request.no_restore)
    _option(args, "--verbosity", request.verbosity)
    return args


def dotnet_restore(request: DotnetRestoreRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_restore_args(request), request.working_directory, session, settings)


def dotnet_build(request: DotnetBuildRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_build_args(request), request.working_directory, session, settings)


def dotnet_test(request: DotnetTestRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_test_args(request), request.working_directory, session, settings)


def dotnet_run(request: DotnetRunRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_run_args(request), request.working_directory, session, settings)


def dotnet_new(request: DotnetNewRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_new_args(request), request.working_directory, session, settings)


def dotnet_add_package(
    request: DotnetAddPackageRequest, session: Session, settings: ToolSettings
) -> ToolResponse:
    return _run_dotnet(build_add_package_args(request), request.working_directory, session, settings)


def dotnet_clean(request: DotnetCleanRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_clean_args(request), request.working_directory, session, settings)


def dotnet_publish(request: DotnetPublishRequest, session: Session, settings: ToolSettings) -> ToolResponse:
    return _run_dotnet(build_publish_args(request), request.working_directory, session, settings)

