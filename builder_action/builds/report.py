"""Build outcome reporting.

This module handles:
- The BuildOutcome model read from the backend's build report
- Formatting a deterministic human-readable summary
- Mapping build results to process exit codes

The exit code mapping is total: any status the backend reports that is
not a known result is treated as unknown.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from rich.console import Console

from builder_action.types import BuildResult, ExitCode

logger = logging.getLogger(__name__)

_EXIT_CODES: dict[BuildResult, ExitCode] = {
    BuildResult.SUCCEEDED: ExitCode.SUCCEEDED,
    BuildResult.FAILED: ExitCode.BUILD_FAILED,
    BuildResult.CANCELLED: ExitCode.BUILD_CANCELLED,
    BuildResult.UNKNOWN: ExitCode.BUILD_UNKNOWN,
}

_RESULT_MESSAGES: dict[BuildResult, str] = {
    BuildResult.SUCCEEDED: "Build succeeded!",
    BuildResult.FAILED: "Build failed!",
    BuildResult.CANCELLED: "Build cancelled!",
    BuildResult.UNKNOWN: "Build result is unknown!",
}


class BuildStep(BaseModel):
    """One step of the backend build, as reported."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    duration_seconds: float = Field(default=0.0, ge=0)
    errors: int = Field(default=0, ge=0)
    warnings: int = Field(default=0, ge=0)


class BuildOutcome(BaseModel):
    """Structured result of a build attempt.

    Only ``result`` drives the exit code; the rest is summary detail.

    Attributes:
        result: Final build status.
        output_path: Location of the produced player.
        platform: Target platform name.
        total_time_seconds: Build duration.
        total_size: Output size in bytes.
        total_errors: Error count.
        total_warnings: Warning count.
        steps: Per-step detail, if the backend reports it.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    result: BuildResult = BuildResult.UNKNOWN
    output_path: str | None = None
    platform: str | None = None
    total_time_seconds: float = Field(default=0.0, ge=0)
    total_size: int = Field(default=0, ge=0)
    total_errors: int = Field(default=0, ge=0)
    total_warnings: int = Field(default=0, ge=0)
    steps: list[BuildStep] = Field(default_factory=list)

    @field_validator("result", mode="before")
    @classmethod
    def coerce_result(cls, v: Any) -> Any:
        """Map unrecognized statuses to unknown instead of failing."""
        if isinstance(v, BuildResult):
            return v
        if isinstance(v, str):
            normalized = v.strip().lower()
            if normalized in {member.value for member in BuildResult}:
                return normalized
        logger.warning("Unrecognized build result %r, treating as unknown", v)
        return BuildResult.UNKNOWN


def exit_code_for(result: BuildResult) -> ExitCode:
    """Map a build result to its process exit code."""
    return _EXIT_CODES.get(result, ExitCode.BUILD_UNKNOWN)


def result_message(result: BuildResult) -> str:
    """Return the one-line verdict for a build result."""
    return _RESULT_MESSAGES.get(result, _RESULT_MESSAGES[BuildResult.UNKNOWN])


def _format_duration(seconds: float) -> str:
    whole = int(seconds)
    hours, remainder = divmod(whole, 3600)
    minutes, secs = divmod(remainder, 60)
    fraction = seconds - whole
    return f"{hours:02d}:{minutes:02d}:{secs + fraction:06.3f}"


def format_summary(outcome: BuildOutcome) -> str:
    """Render the build summary as plain text.

    Args:
        outcome: Build outcome to summarize.

    Returns:
        Multi-line summary; identical input gives identical output.
    """
    lines = [
        "",
        "###########################",
        "#      Build results      #",
        "###########################",
        "",
        f"Result: {outcome.result.value}",
        f"Platform: {outcome.platform or '(unknown)'}",
        f"Output: {outcome.output_path or '(none)'}",
        f"Duration: {_format_duration(outcome.total_time_seconds)}",
        f"Warnings: {outcome.total_warnings}",
        f"Errors: {outcome.total_errors}",
        f"Size: {outcome.total_size} bytes",
    ]
    if outcome.steps:
        lines.append("")
        lines.append("Steps:")
        for step in outcome.steps:
            lines.append(
                f"  - {step.name}: {_format_duration(step.duration_seconds)}"
                f" ({step.errors} error(s), {step.warnings} warning(s))"
            )
    lines.append("")
    return "\n".join(lines)


def report_summary(outcome: BuildOutcome, console: Console) -> ExitCode:
    """Print the summary and verdict, returning the exit code.

    Args:
        outcome: Build outcome.
        console: Console to print to.

    Returns:
        Exit code for the outcome.
    """
    console.print(format_summary(outcome), markup=False, highlight=False)
    console.print(result_message(outcome.result), markup=False, highlight=False)
    code = exit_code_for(outcome.result)
    logger.info(
        "Build finished with result %s (exit code %d)", outcome.result.value, code
    )
    return code


__all__ = [
    "BuildOutcome",
    "BuildStep",
    "exit_code_for",
    "format_summary",
    "report_summary",
    "result_message",
]
