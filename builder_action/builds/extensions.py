"""Optional content-build extension.

This module handles:
- Detecting whether the project has the addressable content package
- Running its clean and build content steps before the player build

The content build is additive. Its absence is silent and its failures are
logged as warnings; neither stops the player build.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Protocol

from builder_action.builds.runner import BackendRunner
from builder_action.project import has_package

logger = logging.getLogger(__name__)

ADDRESSABLES_PACKAGE = "com.unity.addressables"


class ContentBuildExtension(Protocol):
    """A separately installed content build step."""

    def clean_content(self) -> None:
        ...

    def build_content(self) -> None:
        ...


class ContentBuildError(Exception):
    """Raised when a content build step fails."""

    def __init__(self, message: str, code: str = "content_build_error") -> None:
        super().__init__(message)
        self.code = code


class AddressablesExtension:
    """Addressable content build through backend actions."""

    def __init__(
        self,
        runner: BackendRunner,
        project_path: Path,
        timeout: int | None = None,
    ) -> None:
        self.runner = runner
        self.project_path = project_path
        self.timeout = timeout

    def _run(self, action: str) -> None:
        run = self.runner.run(
            action, {"projectPath": str(self.project_path)}, timeout=self.timeout
        )
        if not run.success:
            raise ContentBuildError(
                f"{action} exited with code {run.exit_code}, see {run.log_path}"
            )

    def clean_content(self) -> None:
        self._run("clean-content")

    def build_content(self) -> None:
        self._run("build-content")


def detect_content_extension(
    project_path: Path,
    runner: BackendRunner,
    timeout: int | None = None,
) -> ContentBuildExtension | None:
    """Decide at startup whether the content extension is available.

    Args:
        project_path: Root of the game project.
        runner: Backend runner the extension will use.
        timeout: Timeout for each content action.

    Returns:
        The extension if the project declares the package, otherwise None.
    """
    if not has_package(project_path, ADDRESSABLES_PACKAGE):
        logger.debug("%s not installed, no content build", ADDRESSABLES_PACKAGE)
        return None
    logger.info("Detected %s, content build enabled", ADDRESSABLES_PACKAGE)
    return AddressablesExtension(runner, project_path, timeout=timeout)


def run_content_build(extension: ContentBuildExtension | None) -> bool:
    """Clean then build content, swallowing failures.

    Args:
        extension: Installed extension, or None if absent.

    Returns:
        True if both steps ran without error, False otherwise.
    """
    if extension is None:
        return False
    try:
        extension.clean_content()
        extension.build_content()
    except Exception:
        logger.warning("Failed to run default content build", exc_info=True)
        return False
    logger.info("Content build completed")
    return True


__all__ = [
    "ADDRESSABLES_PACKAGE",
    "AddressablesExtension",
    "ContentBuildError",
    "ContentBuildExtension",
    "detect_content_extension",
    "run_content_build",
]
