"""Pre-build validation through the backend.

The validation runner performs asset checks before any build work. It
reports problems as diagnostic events through the subscription handle it
is given, so they only reach the monitor while validation runs.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from builder_action.builds.runner import BackendRunner
from builder_action.diagnostics import (
    DiagnosticEvent,
    DiagnosticSubscription,
    parse_diagnostic_line,
)
from builder_action.types import LogType

logger = logging.getLogger(__name__)


class ValidationRunner(Protocol):
    """Performs pre-build checks, emitting diagnostic events."""

    def validate(self, strict: bool, diagnostics: DiagnosticSubscription) -> None:
        ...


class CommandValidationRunner:
    """Validation runner backed by the ``validate`` backend action.

    Each output line becomes a diagnostic event. A non-zero exit is
    reported as an error event rather than raised.
    """

    def __init__(
        self,
        runner: BackendRunner,
        project_path: Path,
        timeout: int | None = None,
    ) -> None:
        self.runner = runner
        self.project_path = project_path
        self.timeout = timeout

    def validate(self, strict: bool, diagnostics: DiagnosticSubscription) -> None:
        def on_line(line: str) -> None:
            event = parse_diagnostic_line(line)
            if event.severity is not LogType.LOG:
                logger.debug("Validation %s: %s", event.severity.value, event.message)
            diagnostics.emit(event)

        payload = {"projectPath": str(self.project_path), "strict": strict}
        extra_args = ["--strict"] if strict else []
        run = self.runner.run(
            "validate",
            payload,
            extra_args=extra_args,
            on_line=on_line,
            timeout=self.timeout,
        )
        if not run.success:
            diagnostics.emit(
                DiagnosticEvent(
                    message=f"Asset validation exited with code {run.exit_code}",
                    stacktrace="",
                    severity=LogType.ERROR,
                )
            )


__all__ = ["CommandValidationRunner", "ValidationRunner"]
