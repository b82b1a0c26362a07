"""Option store for build runs.

This module handles:
- Parsing CLI-style ``-key value`` tokens into an immutable option map
- Masking secrets when echoing parsed options
- Validating required options before any build work starts

Flags without a value (``-Development``) map to an empty string; only the
presence of a key matters for build option switches.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from types import MappingProxyType

from builder_action.types import BuildTarget, ExitCode

logger = logging.getLogger(__name__)

OptionMap = Mapping[str, str]

SECRET_OPTIONS = frozenset(
    {"androidKeystorePass", "androidKeyaliasName", "androidKeyaliasPass"}
)
HIDDEN_VALUE = "*HIDDEN*"
DEFAULT_BUILD_NAME = "TestBuild"


class ConfigurationError(Exception):
    """Raised when build options are missing or malformed."""

    def __init__(
        self,
        message: str,
        exit_code: ExitCode = ExitCode.INVALID_CONFIGURATION,
        code: str = "configuration_error",
    ) -> None:
        super().__init__(message)
        self.exit_code = exit_code
        self.code = code


def parse_arguments(argv: Sequence[str]) -> OptionMap:
    """Parse ``-key value`` tokens into an option map.

    Every token starting with ``-`` is a key with its leading dashes
    stripped. The value is the following token unless that token is itself
    a key, in which case the value is empty. Tokens that are neither keys
    nor values are ignored. Later duplicates override earlier ones.

    Args:
        argv: Raw argument tokens.

    Returns:
        Read-only mapping of option name to value.
    """
    parsed: dict[str, str] = {}
    for index, token in enumerate(argv):
        if not token.startswith("-"):
            continue
        key = token.lstrip("-")
        if not key:
            continue

        has_value = index + 1 < len(argv) and not argv[index + 1].startswith("-")
        value = argv[index + 1] if has_value else ""

        display = HIDDEN_VALUE if key in SECRET_OPTIONS else f'"{value}"'
        logger.info('Found flag "%s" with value %s.', key, display)
        parsed[key] = value

    return MappingProxyType(parsed)


def _require(options: Mapping[str, str], key: str, exit_code: ExitCode) -> str:
    value = options.get(key)
    if value is None:
        raise ConfigurationError(
            f"Missing argument -{key}",
            exit_code=exit_code,
            code="missing_option",
        )
    return value


def validate_options(options: Mapping[str, str]) -> OptionMap:
    """Check required options and fill defaults.

    Args:
        options: Parsed option map.

    Returns:
        New read-only option map with defaults applied.

    Raises:
        ConfigurationError: If a required option is missing or the build
            target is not a known platform.
    """
    _require(options, "projectPath", ExitCode.MISSING_PROJECT_PATH)

    build_target = _require(options, "buildTarget", ExitCode.MISSING_BUILD_TARGET)
    if build_target not in BuildTarget.__members__:
        raise ConfigurationError(
            f"{build_target} is not a defined BuildTarget",
            exit_code=ExitCode.INVALID_BUILD_TARGET,
            code="invalid_build_target",
        )

    _require(options, "customBuildPath", ExitCode.MISSING_BUILD_PATH)
    _require(options, "buildVersion", ExitCode.MISSING_BUILD_VERSION)

    validated = dict(options)
    if not validated.get("customBuildName"):
        logger.warning(
            "Missing or empty argument -customBuildName, defaulting to %s.",
            DEFAULT_BUILD_NAME,
        )
        validated["customBuildName"] = DEFAULT_BUILD_NAME

    return MappingProxyType(validated)


def get_validated_options(argv: Sequence[str]) -> OptionMap:
    """Parse and validate raw argument tokens.

    Args:
        argv: Raw argument tokens.

    Returns:
        Validated read-only option map.

    Raises:
        ConfigurationError: If validation fails.
    """
    return validate_options(parse_arguments(argv))


__all__ = [
    "DEFAULT_BUILD_NAME",
    "SECRET_OPTIONS",
    "ConfigurationError",
    "OptionMap",
    "get_validated_options",
    "parse_arguments",
    "validate_options",
]
