"""Shared type definitions for builder_action.

This module contains the enumerations shared across subpackages to avoid
circular imports: build targets, build option flags, diagnostic severities,
build results and process exit codes.
"""

from enum import Enum, IntEnum, IntFlag


class BuildTarget(IntEnum):
    """Player platforms the backend can build for.

    Values mirror the backend's numeric identifiers. Names are matched
    exactly (case-sensitive) against the ``buildTarget`` option.
    """

    StandaloneOSX = 2
    StandaloneWindows = 5
    iOS = 9
    Android = 13
    StandaloneWindows64 = 19
    WebGL = 20
    WSAPlayer = 21
    StandaloneLinux64 = 24
    PS4 = 31
    XboxOne = 33
    tvOS = 37
    Switch = 38
    LinuxHeadlessSimulation = 41
    GameCoreXboxSeries = 42
    GameCoreXboxOne = 43
    PS5 = 44
    EmbeddedLinux = 45
    QNX = 46
    VisionOS = 47


STANDALONE_TARGETS = frozenset(
    {
        BuildTarget.StandaloneOSX,
        BuildTarget.StandaloneWindows,
        BuildTarget.StandaloneWindows64,
        BuildTarget.StandaloneLinux64,
    }
)


class BuildOptions(IntFlag):
    """Backend build option switches.

    Each member name doubles as an option key: a member is enabled when its
    name is present in the option map, whatever the value.
    """

    NONE = 0
    Development = 1 << 0
    AutoRunPlayer = 1 << 2
    ShowBuiltPlayer = 1 << 3
    BuildAdditionalStreamedScenes = 1 << 4
    AcceptExternalModificationsToPlayer = 1 << 5
    InstallInBuildFolder = 1 << 6
    CleanBuildCache = 1 << 7
    ConnectWithProfiler = 1 << 8
    AllowDebugging = 1 << 9
    SymlinkSources = 1 << 10
    UncompressedAssetBundle = 1 << 11
    ConnectToHost = 1 << 12
    CustomConnectionID = 1 << 13
    BuildScriptsOnly = 1 << 15
    PatchPackage = 1 << 16
    CompressWithLz4 = 1 << 18
    CompressWithLz4HC = 1 << 19
    StrictMode = 1 << 21
    IncludeTestAssemblies = 1 << 22
    NoUniqueIdentifier = 1 << 23
    WaitForPlayerConnection = 1 << 25
    EnableCodeCoverage = 1 << 26
    EnableDeepProfilingSupport = 1 << 28
    DetailedBuildReport = 1 << 29
    ShaderLivelinkSupport = 1 << 30


class StandaloneBuildSubtarget(IntEnum):
    """Subtargets defined for standalone platforms."""

    Player = 2
    Server = 1


DEFAULT_STANDALONE_SUBTARGET = StandaloneBuildSubtarget.Player


class LogType(str, Enum):
    """Severity of a diagnostic event."""

    ERROR = "error"
    ASSERT = "assert"
    WARNING = "warning"
    LOG = "log"
    EXCEPTION = "exception"


class BuildResult(str, Enum):
    """Status of a finished build as reported by the backend."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


class ExitCode(IntEnum):
    """Process exit codes of a build run."""

    SUCCEEDED = 0
    DIAGNOSTIC_ABORT = 1
    BUILD_FAILED = 101
    BUILD_CANCELLED = 102
    BUILD_UNKNOWN = 103
    MISSING_PROJECT_PATH = 110
    MISSING_BUILD_TARGET = 120
    INVALID_BUILD_TARGET = 121
    MISSING_BUILD_PATH = 130
    MISSING_BUILD_VERSION = 140
    INVALID_CONFIGURATION = 141
    PLATFORM_CONFIGURATION_ERROR = 150
    BACKEND_ERROR = 160


__all__ = [
    "DEFAULT_STANDALONE_SUBTARGET",
    "STANDALONE_TARGETS",
    "BuildOptions",
    "BuildResult",
    "BuildTarget",
    "ExitCode",
    "LogType",
    "StandaloneBuildSubtarget",
]
