"""Build request assembly.

This module handles:
- Resolving the build target against the supported platforms
- Collecting build option switches from the option map
- Resolving platform-specific fields (standalone subtarget, Android
  version code) into a per-platform variant
- Producing the immutable BuildRequest passed to the backend

Option switches are enabled by key presence, not by value: ``-Development
false`` still enables Development.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from builder_action.options import ConfigurationError
from builder_action.types import (
    DEFAULT_STANDALONE_SUBTARGET,
    STANDALONE_TARGETS,
    BuildOptions,
    BuildTarget,
    ExitCode,
    StandaloneBuildSubtarget,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StandaloneConfig:
    """Fields only standalone platforms define."""

    subtarget: StandaloneBuildSubtarget = DEFAULT_STANDALONE_SUBTARGET


@dataclass(frozen=True)
class AndroidConfig:
    """Fields only Android defines."""

    version_code: int


PlatformConfig = StandaloneConfig | AndroidConfig | None


@dataclass(frozen=True)
class BuildRequest:
    """Immutable configuration consumed by the build backend.

    Attributes:
        target: Platform to build for.
        location_path_name: Output location of the player.
        scenes: Scene paths included in the build, in order.
        options: Enabled build option switches.
        platform: Platform-specific variant, None for platforms without one.
    """

    target: BuildTarget
    location_path_name: str
    scenes: tuple[str, ...] = ()
    options: BuildOptions = BuildOptions.NONE
    platform: PlatformConfig = field(default=None)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        result: dict[str, Any] = {
            "target": self.target.name,
            "locationPathName": self.location_path_name,
            "scenes": list(self.scenes),
            "options": [
                name
                for name, member in BuildOptions.__members__.items()
                if member and member in self.options
            ],
            "optionsValue": int(self.options),
        }
        if isinstance(self.platform, StandaloneConfig):
            result["subtarget"] = self.platform.subtarget.name
        elif isinstance(self.platform, AndroidConfig):
            result["androidVersionCode"] = self.platform.version_code
        return result


def resolve_build_target(options: Mapping[str, str]) -> BuildTarget:
    """Look up the buildTarget option among supported platforms.

    Raises:
        ConfigurationError: If the option is missing or names no platform.
    """
    name = options.get("buildTarget")
    if name is None:
        raise ConfigurationError(
            "Missing argument -buildTarget",
            exit_code=ExitCode.MISSING_BUILD_TARGET,
            code="missing_option",
        )
    try:
        return BuildTarget[name]
    except KeyError:
        raise ConfigurationError(
            f"{name} is not a defined BuildTarget",
            exit_code=ExitCode.INVALID_BUILD_TARGET,
            code="invalid_build_target",
        ) from None


def resolve_build_options(options: Mapping[str, str]) -> BuildOptions:
    """Union every build option whose name is an option key.

    Args:
        options: Option map.

    Returns:
        Combined BuildOptions; NONE if no switch is present.
    """
    build_options = BuildOptions.NONE
    for name, member in BuildOptions.__members__.items():
        if name in options:
            build_options |= member
    return build_options


def _parse_subtarget(value: str) -> StandaloneBuildSubtarget | None:
    if value in StandaloneBuildSubtarget.__members__:
        return StandaloneBuildSubtarget[value]
    try:
        return StandaloneBuildSubtarget(int(value))
    except ValueError:
        return None


def resolve_subtarget(options: Mapping[str, str]) -> StandaloneBuildSubtarget:
    """Resolve the standalone subtarget, falling back to the default.

    Absent or unparseable values are not errors.
    """
    value = options.get("standaloneBuildSubtarget")
    if value is None:
        return DEFAULT_STANDALONE_SUBTARGET

    subtarget = _parse_subtarget(value)
    if subtarget is None:
        logger.debug(
            "Unknown standaloneBuildSubtarget %r, using %s",
            value,
            DEFAULT_STANDALONE_SUBTARGET.name,
        )
        return DEFAULT_STANDALONE_SUBTARGET
    return subtarget


def resolve_android_version_code(options: Mapping[str, str]) -> int:
    """Parse the androidVersionCode option.

    Raises:
        ConfigurationError: If the option is missing or not an integer.
    """
    value = options.get("androidVersionCode")
    if value is None:
        raise ConfigurationError(
            "Missing argument -androidVersionCode",
            code="missing_option",
        )
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(
            f"androidVersionCode must be an integer, got {value!r}",
            code="invalid_option",
        ) from None


def resolve_platform_config(
    target: BuildTarget, options: Mapping[str, str]
) -> PlatformConfig:
    """Build the platform variant for a target."""
    if target in STANDALONE_TARGETS:
        return StandaloneConfig(subtarget=resolve_subtarget(options))
    if target is BuildTarget.Android:
        return AndroidConfig(version_code=resolve_android_version_code(options))
    return None


def assemble_build_request(
    options: Mapping[str, str], scenes: Iterable[str]
) -> BuildRequest:
    """Assemble the build request from options and enabled scenes.

    Args:
        options: Validated option map.
        scenes: Enabled scene paths.

    Returns:
        Immutable BuildRequest.

    Raises:
        ConfigurationError: If the target or a required option is invalid.
    """
    target = resolve_build_target(options)
    location = options.get("customBuildPath")
    if location is None:
        raise ConfigurationError(
            "Missing argument -customBuildPath",
            exit_code=ExitCode.MISSING_BUILD_PATH,
            code="missing_option",
        )

    request = BuildRequest(
        target=target,
        location_path_name=location,
        scenes=tuple(scenes),
        options=resolve_build_options(options),
        platform=resolve_platform_config(target, options),
    )
    logger.info(
        "Assembled build request: target=%s, output=%s, scenes=%d",
        request.target.name,
        request.location_path_name,
        len(request.scenes),
    )
    return request


__all__ = [
    "AndroidConfig",
    "BuildRequest",
    "PlatformConfig",
    "StandaloneConfig",
    "assemble_build_request",
    "resolve_android_version_code",
    "resolve_build_options",
    "resolve_build_target",
    "resolve_platform_config",
    "resolve_subtarget",
]
