"""Project discovery helpers.

This module reads the parts of the game project the orchestrator needs:
- The enabled scene list from the editor build settings
- The package manifest, used to detect optional extensions

Files are read as-is; nothing here writes to the project.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

BUILD_SETTINGS_PATH = Path("ProjectSettings") / "EditorBuildSettings.asset"
PACKAGE_MANIFEST_PATH = Path("Packages") / "manifest.json"


class ProjectReadError(Exception):
    """Raised when a project file exists but cannot be parsed."""

    def __init__(
        self, path: Path, reason: str, code: str = "project_read_error"
    ) -> None:
        super().__init__(f"Failed to read {path}: {reason}")
        self.path = path
        self.code = code


def _strip_unity_yaml(text: str) -> str:
    """Drop YAML directives and tagged document markers PyYAML cannot load.

    Serialized assets start with ``%YAML``/``%TAG`` directives followed by
    ``--- !u!<class> &<id>`` document markers using a custom tag handle.
    """
    lines = []
    for line in text.splitlines():
        if line.startswith("%"):
            continue
        if line.startswith("---"):
            lines.append("---")
            continue
        lines.append(line)
    return "\n".join(lines)


def read_enabled_scenes(project_path: Path) -> list[str]:
    """Return paths of enabled scenes, in build order.

    Args:
        project_path: Root of the game project.

    Returns:
        Scene paths relative to the project; empty if no build settings.

    Raises:
        ProjectReadError: If the build settings cannot be parsed.
    """
    settings_path = project_path / BUILD_SETTINGS_PATH
    if not settings_path.is_file():
        logger.warning(
            "No build settings at %s, building without scenes", settings_path
        )
        return []

    try:
        documents = list(
            yaml.safe_load_all(_strip_unity_yaml(settings_path.read_text("utf-8")))
        )
    except (OSError, yaml.YAMLError) as e:
        raise ProjectReadError(settings_path, str(e)) from e

    scenes: list[str] = []
    for document in documents:
        if not isinstance(document, dict):
            continue
        build_settings = document.get("EditorBuildSettings") or {}
        for scene in build_settings.get("m_Scenes") or []:
            if str(scene.get("enabled", 0)) == "1" and scene.get("path"):
                scenes.append(scene["path"])

    logger.debug("Found %d enabled scene(s)", len(scenes))
    return scenes


def read_package_manifest(project_path: Path) -> dict[str, Any]:
    """Load the project's package manifest.

    Args:
        project_path: Root of the game project.

    Returns:
        Parsed manifest, or an empty dict if the project has none.

    Raises:
        ProjectReadError: If the manifest is not valid JSON.
    """
    manifest_path = project_path / PACKAGE_MANIFEST_PATH
    if not manifest_path.is_file():
        return {}

    try:
        data = json.loads(manifest_path.read_text("utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise ProjectReadError(manifest_path, str(e)) from e

    if not isinstance(data, dict):
        raise ProjectReadError(manifest_path, "manifest is not a JSON object")
    return data


def has_package(project_path: Path, package_name: str) -> bool:
    """Check whether the package manifest declares a dependency."""
    dependencies = read_package_manifest(project_path).get("dependencies") or {}
    return package_name in dependencies


__all__ = [
    "BUILD_SETTINGS_PATH",
    "PACKAGE_MANIFEST_PATH",
    "ProjectReadError",
    "has_package",
    "read_enabled_scenes",
    "read_package_manifest",
]
