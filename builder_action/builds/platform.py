"""Platform-specific configuration of a build.

This module handles:
- Applying the bundle version for every target
- Applying the Android version code and signing/export settings
- Collecting the result as a PlayerSettings overlay for the backend

Errors here are fatal: a misconfigured platform build is worse than none.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from builder_action.builds.request import AndroidConfig, BuildRequest
from builder_action.types import BuildTarget

logger = logging.getLogger(__name__)

NO_VERSION = "none"
ANDROID_API_LEVEL_AUTO = "AndroidApiLevelAuto"
ANDROID_API_LEVEL_PATTERN = re.compile(r"^AndroidApiLevel\d+$")


class PlatformConfigurationError(Exception):
    """Raised when platform settings cannot be applied."""

    def __init__(self, message: str, code: str = "platform_configuration") -> None:
        super().__init__(message)
        self.code = code


class AndroidExportType(str, Enum):
    """Android artifact kind."""

    PACKAGE = "androidPackage"
    APP_BUNDLE = "androidAppBundle"
    STUDIO_PROJECT = "androidStudioProject"


class AndroidSymbolType(str, Enum):
    """Native symbol packaging for Android builds."""

    NONE = "none"
    PUBLIC = "public"
    DEBUGGING = "debugging"


class AndroidSettings(BaseModel):
    """Android-only player settings.

    Attributes:
        version_code: Bundle version code.
        build_app_bundle: Produce an app bundle instead of an APK.
        export_as_studio_project: Export a Gradle project instead of building.
        use_custom_keystore: Sign with the configured keystore.
        keystore_name: Keystore path.
        keystore_pass: Keystore password.
        keyalias_name: Key alias.
        keyalias_pass: Key alias password.
        target_sdk_version: Target API level name.
        symbol_type: Native symbol packaging.
    """

    model_config = ConfigDict(validate_assignment=True)

    version_code: int | None = Field(default=None, gt=0)
    build_app_bundle: bool = False
    export_as_studio_project: bool = False
    use_custom_keystore: bool = False
    keystore_name: str | None = None
    keystore_pass: str | None = Field(default=None, repr=False)
    keyalias_name: str | None = Field(default=None, repr=False)
    keyalias_pass: str | None = Field(default=None, repr=False)
    target_sdk_version: str | None = None
    symbol_type: AndroidSymbolType | None = None


class PlayerSettings(BaseModel):
    """Player settings overlay handed to the backend with the request."""

    model_config = ConfigDict(validate_assignment=True)

    bundle_version: str | None = None
    android: AndroidSettings = Field(default_factory=AndroidSettings)

    def to_manifest(self) -> dict[str, object]:
        """Serialize for the backend manifest, secrets included."""
        return self.model_dump(mode="json", exclude_none=True)


def apply_version(version: str, settings: PlayerSettings) -> None:
    """Apply the bundle version unless it is the literal ``none``."""
    if version == NO_VERSION:
        logger.info("Build version is '%s', keeping project version", NO_VERSION)
        return
    settings.bundle_version = version
    logger.info("Bundle version set to %s", version)


def apply_android_version_code(version_code: int, settings: PlayerSettings) -> None:
    """Apply the Android version code; non-positive codes are skipped."""
    if version_code <= 0:
        logger.info("Android version code %d is not positive, skipping", version_code)
        return
    settings.android.version_code = version_code


def _non_empty(options: Mapping[str, str], key: str) -> str | None:
    value = options.get(key)
    return value if value else None


def _parse_enum(enum_type: type[Enum], key: str, value: str) -> Enum:
    try:
        return enum_type(value)
    except ValueError:
        allowed = ", ".join(member.value for member in enum_type)
        raise PlatformConfigurationError(
            f"Invalid {key} {value!r}, expected one of: {allowed}"
        ) from None


def apply_android_settings(
    options: Mapping[str, str], settings: PlayerSettings
) -> None:
    """Apply Android signing, SDK and export options.

    Empty values are ignored. An unknown target SDK falls back to the
    automatic API level.

    Args:
        options: Option map.
        settings: Player settings to update.

    Raises:
        PlatformConfigurationError: If the export or symbol type is unknown.
    """
    android = settings.android
    android.build_app_bundle = options.get("customBuildPath", "").endswith(".aab")

    keystore_name = _non_empty(options, "androidKeystoreName")
    if keystore_name:
        android.use_custom_keystore = True
        android.keystore_name = keystore_name
    if keystore_pass := _non_empty(options, "androidKeystorePass"):
        android.keystore_pass = keystore_pass
    if keyalias_name := _non_empty(options, "androidKeyaliasName"):
        android.keyalias_name = keyalias_name
    if keyalias_pass := _non_empty(options, "androidKeyaliasPass"):
        android.keyalias_pass = keyalias_pass

    if target_sdk := _non_empty(options, "androidTargetSdkVersion"):
        if not (
            target_sdk == ANDROID_API_LEVEL_AUTO
            or ANDROID_API_LEVEL_PATTERN.match(target_sdk)
        ):
            logger.warning(
                "Failed to parse androidTargetSdkVersion %r, falling back to %s",
                target_sdk,
                ANDROID_API_LEVEL_AUTO,
            )
            target_sdk = ANDROID_API_LEVEL_AUTO
        android.target_sdk_version = target_sdk

    if export_value := _non_empty(options, "androidExportType"):
        export_type = _parse_enum(AndroidExportType, "androidExportType", export_value)
        android.build_app_bundle = export_type is AndroidExportType.APP_BUNDLE
        android.export_as_studio_project = (
            export_type is AndroidExportType.STUDIO_PROJECT
        )

    if symbol_value := _non_empty(options, "androidSymbolType"):
        android.symbol_type = _parse_enum(
            AndroidSymbolType, "androidSymbolType", symbol_value
        )


def configure_platform(
    request: BuildRequest,
    options: Mapping[str, str],
    settings: PlayerSettings,
) -> PlayerSettings:
    """Apply version and platform-specific settings for a request.

    Args:
        request: Assembled build request.
        options: Option map the request was built from.
        settings: Player settings to update.

    Returns:
        The updated settings.

    Raises:
        PlatformConfigurationError: If a setting cannot be applied.
    """
    version = options.get("buildVersion")
    if version is not None:
        apply_version(version, settings)

    if request.target is BuildTarget.Android:
        if not isinstance(request.platform, AndroidConfig):
            raise PlatformConfigurationError(
                "Android build request has no Android configuration"
            )
        apply_android_version_code(request.platform.version_code, settings)
        apply_android_settings(options, settings)
        logger.info("Applied Android settings")

    return settings


__all__ = [
    "AndroidExportType",
    "AndroidSettings",
    "AndroidSymbolType",
    "PlatformConfigurationError",
    "PlayerSettings",
    "apply_android_settings",
    "apply_android_version_code",
    "apply_version",
    "configure_platform",
]
