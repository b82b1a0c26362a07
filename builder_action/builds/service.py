"""Build service module.

This module provides the high-level build API:
- build_project(): run the build pipeline with injected collaborators
- run_build(): parse options, wire the backend collaborators and run

Pipeline stages run strictly in order and each external call is made
exactly once:

    validate (monitored) -> abort check -> assemble request
    -> configure platform -> content build -> build -> report

Fatal errors stop the pipeline at the stage they occur and map to an exit
code; only content build failures are tolerated.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from builder_action.builds.extensions import (
    ContentBuildExtension,
    detect_content_extension,
    run_content_build,
)
from builder_action.builds.platform import (
    PlatformConfigurationError,
    PlayerSettings,
    configure_platform,
)
from builder_action.builds.report import BuildOutcome, report_summary
from builder_action.builds.request import BuildRequest, assemble_build_request
from builder_action.builds.runner import (
    BackendError,
    BackendRunner,
    CommandBuildExecutor,
)
from builder_action.builds.validation import CommandValidationRunner, ValidationRunner
from builder_action.diagnostics import DiagnosticMonitor
from builder_action.options import ConfigurationError, get_validated_options
from builder_action.project import ProjectReadError, read_enabled_scenes
from builder_action.types import ExitCode

if TYPE_CHECKING:
    from rich.console import Console

    from builder_action.config import Settings

logger = logging.getLogger(__name__)


class BuildExecutor(Protocol):
    """Performs the actual build."""

    def execute(self, request: BuildRequest, settings: PlayerSettings) -> BuildOutcome:
        ...


def build_project(
    options: Mapping[str, str],
    *,
    validator: ValidationRunner,
    executor: BuildExecutor,
    scenes: Iterable[str],
    console: Console,
    extension: ContentBuildExtension | None = None,
    player_settings: PlayerSettings | None = None,
    monitor: DiagnosticMonitor | None = None,
    strict: bool = True,
) -> ExitCode:
    """Run the build pipeline for validated options.

    Args:
        options: Validated option map.
        validator: Pre-build validation runner.
        executor: Build executor.
        scenes: Enabled scene paths.
        console: Console the summary is printed to.
        extension: Optional content build extension, None if absent.
        player_settings: Settings overlay to fill; a fresh one if None.
        monitor: Diagnostic monitor; a fresh one if None.
        strict: Run validation in strict mode.

    Returns:
        Process exit code.
    """
    if monitor is None:
        monitor = DiagnosticMonitor()
    if player_settings is None:
        player_settings = PlayerSettings()

    logger.info("Validating assets (strict=%s)", strict)
    try:
        with monitor.monitoring() as diagnostics:
            validator.validate(strict, diagnostics)
    except BackendError as e:
        logger.error("Validation could not run: %s", e)
        return ExitCode.BACKEND_ERROR

    if monitor.abort_requested:
        logger.error("Errors were reported during validation, aborting build")
        return ExitCode.DIAGNOSTIC_ABORT

    try:
        request = assemble_build_request(options, scenes)
    except ConfigurationError as e:
        logger.error("Invalid build configuration: %s", e)
        return e.exit_code

    try:
        configure_platform(request, options, player_settings)
    except PlatformConfigurationError as e:
        logger.error("Failed to configure %s: %s", request.target.name, e)
        return ExitCode.PLATFORM_CONFIGURATION_ERROR

    run_content_build(extension)

    logger.info("Building %s to %s", request.target.name, request.location_path_name)
    try:
        outcome = executor.execute(request, player_settings)
    except BackendError as e:
        logger.error("Build could not run: %s", e)
        return ExitCode.BACKEND_ERROR

    return report_summary(outcome, console)


def run_build(
    argv: Sequence[str],
    settings: Settings,
    console: Console,
) -> ExitCode:
    """Parse raw options, wire backend collaborators and build.

    Args:
        argv: Raw ``-key value`` tokens.
        settings: Application settings.
        console: Console the summary is printed to.

    Returns:
        Process exit code.
    """
    try:
        options = get_validated_options(argv)
    except ConfigurationError as e:
        logger.error("%s", e)
        return e.exit_code

    backend_argv = settings.backend_argv()
    if not backend_argv:
        logger.error(
            "No backend command configured, set BUILDER_ACTION_BACKEND_COMMAND"
        )
        return ExitCode.BACKEND_ERROR

    project_path = Path(options["projectPath"])
    runner = BackendRunner(backend_argv, settings.log_dir)
    try:
        scenes = read_enabled_scenes(project_path)
        extension = detect_content_extension(
            project_path, runner, timeout=settings.content_timeout
        )
    except ProjectReadError as e:
        logger.error("%s", e)
        return ExitCode.INVALID_CONFIGURATION

    return build_project(
        options,
        validator=CommandValidationRunner(
            runner, project_path, timeout=settings.validation_timeout
        ),
        executor=CommandBuildExecutor(
            runner, project_path, timeout=settings.build_timeout
        ),
        scenes=scenes,
        console=console,
        extension=extension,
        strict=settings.strict_validation,
    )


__all__ = ["BuildExecutor", "build_project", "run_build"]
