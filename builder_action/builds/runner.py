"""Backend runner for executing build actions.

This module handles:
- Writing the JSON manifest each backend action reads
- Executing the backend command with subprocess
- Capturing stdout/stderr to per-action log files
- Streaming output lines to a callback from a reader thread
- Enforcing action timeouts
- Turning the backend's build report into a BuildOutcome

The backend is invoked as ``<backend_command> <action> <manifest_path>``.
"""

from __future__ import annotations

import json
import logging
import os
import shlex
import signal
import subprocess
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Any

from pydantic import ValidationError

from builder_action.builds.platform import PlayerSettings
from builder_action.builds.report import BuildOutcome
from builder_action.builds.request import BuildRequest
from builder_action.types import BuildResult

logger = logging.getLogger(__name__)

BUILD_REPORT_FILENAME = "build-report.json"

# Seconds to wait for the output reader once the backend is gone
READER_JOIN_TIMEOUT = 10

LineCallback = Callable[[str], None]


class BackendError(Exception):
    """Raised when a backend action cannot be executed."""

    def __init__(
        self,
        message: str,
        exit_code: int | None = None,
        code: str = "backend_error",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.code = code


@dataclass
class BackendRunResult:
    """Result of one backend action.

    Attributes:
        action: Action name.
        exit_code: Process exit code.
        log_path: Path to the action log file.
        manifest_path: Path to the manifest passed to the backend.
        started_at: Action start time.
        finished_at: Action finish time.
        command: The command that was executed.
    """

    action: str
    exit_code: int
    log_path: Path
    manifest_path: Path
    started_at: datetime
    finished_at: datetime
    command: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


def write_manifest(path: Path, payload: dict[str, Any]) -> Path:
    """Write an action manifest as JSON.

    Args:
        path: Destination file.
        payload: JSON-serializable manifest content.

    Returns:
        The written path.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n")
    # Manifests can carry signing secrets
    path.chmod(0o600)
    return path


def _pump_output(
    stream: IO[str],
    log_file: IO[str],
    on_line: LineCallback | None,
    failures: list[Exception],
) -> None:
    """Copy output lines to the log and the callback until EOF.

    A failure is recorded in ``failures`` and the rest of the stream is
    still drained so the backend never blocks on a full pipe.
    """
    try:
        for line in stream:
            log_file.write(line)
            if on_line is not None:
                on_line(line.rstrip("\r\n"))
    except Exception as e:
        logger.error("Failed to process backend output: %s", e)
        failures.append(e)
        for _ in stream:
            pass
    finally:
        log_file.flush()


def _kill_process_group(process: subprocess.Popen[str]) -> None:
    """Kill the backend and any helper processes it started."""
    if os.name == "posix":
        try:
            os.killpg(process.pid, signal.SIGKILL)
        except ProcessLookupError:
            pass
    else:
        process.kill()
    process.wait()


class BackendRunner:
    """Runs backend actions as subprocesses."""

    def __init__(
        self,
        command: Sequence[str],
        log_dir: Path,
        env_override: dict[str, str] | None = None,
    ) -> None:
        if not command:
            raise BackendError("No backend command configured", code="no_backend")
        self.command = list(command)
        self.log_dir = log_dir
        self.env_override = env_override

    def manifest_path(self, action: str) -> Path:
        return self.log_dir / f"{action}.json"

    def run(
        self,
        action: str,
        payload: dict[str, Any],
        extra_args: Sequence[str] = (),
        on_line: LineCallback | None = None,
        timeout: int | None = None,
    ) -> BackendRunResult:
        """Execute one backend action.

        Args:
            action: Action name passed to the backend.
            payload: Manifest content for the action.
            extra_args: Additional arguments after the manifest path.
            on_line: Called with each output line, from a reader thread.
            timeout: Timeout in seconds (None = no timeout).

        Returns:
            BackendRunResult with execution details. A non-zero exit code
            is reported, not raised.

        Raises:
            BackendError: If the action times out or cannot be started.
        """
        self.log_dir.mkdir(parents=True, exist_ok=True)
        manifest_path = write_manifest(self.manifest_path(action), payload)
        log_path = self.log_dir / f"{action}.log"

        cmd = [*self.command, action, str(manifest_path), *extra_args]
        cmd_str = shlex.join(cmd)
        logger.info("Executing backend action %s: %s", action, cmd_str)

        env: dict[str, str] | None = None
        if self.env_override:
            env = dict(os.environ)
            env.update(self.env_override)

        started_at = datetime.now(timezone.utc)

        try:
            with log_path.open("w", encoding="utf-8") as log_file:
                log_file.write(f"# Command: {cmd_str}\n")
                log_file.write(f"# Started: {started_at.isoformat()}\n")
                log_file.write(f"# CWD: {Path.cwd()}\n")
                log_file.write("# " + "=" * 70 + "\n\n")
                log_file.flush()

                process = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    encoding="utf-8",
                    errors="replace",
                    env=env,
                    start_new_session=True,
                )
                assert process.stdout is not None
                failures: list[Exception] = []
                reader = threading.Thread(
                    target=_pump_output,
                    args=(process.stdout, log_file, on_line, failures),
                    name=f"backend-{action}-output",
                    daemon=True,
                )
                reader.start()

                try:
                    exit_code = process.wait(timeout=timeout)
                except subprocess.TimeoutExpired as e:
                    _kill_process_group(process)
                    reader.join(timeout=READER_JOIN_TIMEOUT)
                    log_file.write(f"\n# TIMEOUT after {timeout} seconds\n")
                    message = f"Backend action {action} timed out after {timeout}s"
                    logger.error("%s. See log: %s", message, log_path)
                    raise BackendError(
                        message, exit_code=-1, code="backend_timeout"
                    ) from e

                reader.join(timeout=READER_JOIN_TIMEOUT)
                if reader.is_alive():
                    logger.warning(
                        "Backend action %s left processes holding its output, "
                        "killing them",
                        action,
                    )
                    _kill_process_group(process)
                    reader.join(timeout=READER_JOIN_TIMEOUT)
                finished_at = datetime.now(timezone.utc)
                duration = (finished_at - started_at).total_seconds()
                log_file.write(f"\n# Finished: {finished_at.isoformat()}\n")
                log_file.write(f"# Exit code: {exit_code}\n")
                log_file.write(f"# Duration: {duration:.1f}s\n")

        except OSError as e:
            message = f"Failed to execute backend action {action}: {e}"
            logger.error(message)
            raise BackendError(message, code="execution_error") from e

        if failures:
            message = f"Backend action {action} output could not be processed"
            raise BackendError(
                message, exit_code=exit_code, code="output_error"
            ) from failures[0]

        if exit_code != 0:
            logger.error(
                "Backend action %s exited with code %d. See log: %s",
                action,
                exit_code,
                log_path,
            )

        return BackendRunResult(
            action=action,
            exit_code=exit_code,
            log_path=log_path,
            manifest_path=manifest_path,
            started_at=started_at,
            finished_at=finished_at,
            command=cmd_str,
        )


def read_build_report(report_path: Path) -> BuildOutcome | None:
    """Load the backend's build report.

    Args:
        report_path: Path to the report JSON.

    Returns:
        BuildOutcome, or None if the report is missing or unreadable.
    """
    if not report_path.is_file():
        logger.warning("Build report not found: %s", report_path)
        return None
    try:
        return BuildOutcome.model_validate_json(report_path.read_text())
    except (OSError, ValidationError) as e:
        logger.error("Invalid build report %s: %s", report_path, e)
        return None


class CommandBuildExecutor:
    """Build executor backed by the ``build`` backend action."""

    def __init__(
        self,
        runner: BackendRunner,
        project_path: Path,
        timeout: int | None = None,
    ) -> None:
        self.runner = runner
        self.project_path = project_path
        self.timeout = timeout

    @property
    def report_path(self) -> Path:
        return self.runner.log_dir / BUILD_REPORT_FILENAME

    def execute(self, request: BuildRequest, settings: PlayerSettings) -> BuildOutcome:
        """Run the build and read its outcome.

        A missing report yields an unknown result, or a failed one if the
        backend also exited non-zero. A report claiming success is not
        trusted when the backend exited non-zero.

        Raises:
            BackendError: If the backend cannot be run.
        """
        self.report_path.unlink(missing_ok=True)
        payload = {
            "projectPath": str(self.project_path),
            "reportPath": str(self.report_path),
            "request": request.to_dict(),
            "playerSettings": settings.to_manifest(),
        }
        run = self.runner.run("build", payload, timeout=self.timeout)

        outcome = read_build_report(self.report_path)
        if outcome is None:
            result = BuildResult.UNKNOWN if run.success else BuildResult.FAILED
            duration = (run.finished_at - run.started_at).total_seconds()
            return BuildOutcome(
                result=result,
                output_path=request.location_path_name,
                platform=request.target.name,
                total_time_seconds=duration,
            )

        if not run.success and outcome.result is BuildResult.SUCCEEDED:
            logger.error(
                "Build report says succeeded but backend exited with code %d",
                run.exit_code,
            )
            outcome = outcome.model_copy(update={"result": BuildResult.FAILED})
        return outcome


__all__ = [
    "BUILD_REPORT_FILENAME",
    "BackendError",
    "BackendRunResult",
    "BackendRunner",
    "CommandBuildExecutor",
    "read_build_report",
    "write_manifest",
]
