"""Tests for builds/request.py module.

Tests build target resolution, option switches and platform variants.
"""

import dataclasses
from types import MappingProxyType

import pytest

from builder_action.builds.request import (
    AndroidConfig,
    BuildRequest,
    StandaloneConfig,
    assemble_build_request,
    resolve_build_options,
    resolve_build_target,
    resolve_subtarget,
)
from builder_action.options import ConfigurationError
from builder_action.types import (
    BuildOptions,
    BuildTarget,
    ExitCode,
    StandaloneBuildSubtarget,
)


@pytest.fixture
def standalone_options() -> dict[str, str]:
    """Create options for a standalone build."""
    return {
        "projectPath": "/work/game",
        "buildTarget": "StandaloneWindows64",
        "customBuildPath": "/tmp/out/Game.exe",
        "buildVersion": "1.0.0",
    }


@pytest.fixture
def android_options() -> dict[str, str]:
    """Create options for an Android build."""
    return {
        "projectPath": "/work/game",
        "buildTarget": "Android",
        "customBuildPath": "/tmp/out/game.apk",
        "buildVersion": "1.0.0",
        "androidVersionCode": "42",
    }


class TestResolveBuildTarget:
    """Tests for resolve_build_target function."""

    def test_known_target(self):
        """Should resolve a known platform name."""
        assert resolve_build_target({"buildTarget": "WebGL"}) is BuildTarget.WebGL

    def test_unknown_target(self):
        """Should fail on an unrecognized platform without defaulting."""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_build_target({"buildTarget": "LinuxServer"})
        assert exc_info.value.exit_code == ExitCode.INVALID_BUILD_TARGET

    def test_missing_target(self):
        """Should fail when buildTarget is missing."""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_build_target({})
        assert exc_info.value.exit_code == ExitCode.MISSING_BUILD_TARGET


class TestResolveBuildOptions:
    """Tests for resolve_build_options function."""

    def test_no_switches(self):
        """Should resolve to NONE without switch keys."""
        assert resolve_build_options({"buildTarget": "iOS"}) == BuildOptions.NONE

    def test_union_of_present_keys(self):
        """Should union exactly the switches present as keys."""
        options = {
            "Development": "",
            "AllowDebugging": "",
            "buildTarget": "iOS",
        }
        result = resolve_build_options(options)
        assert result == BuildOptions.Development | BuildOptions.AllowDebugging
        assert BuildOptions.AutoRunPlayer not in result

    def test_value_is_ignored(self):
        """Key presence enables a switch even when its value reads false.

        This mirrors the backend contract: -Development false still
        produces a development build.
        """
        result = resolve_build_options({"Development": "false"})
        assert BuildOptions.Development in result

    def test_names_are_case_sensitive(self):
        """Should not enable switches for differently cased keys."""
        assert resolve_build_options({"development": ""}) == BuildOptions.NONE

    def test_order_independent(self):
        """Should not depend on option order."""
        first = resolve_build_options({"StrictMode": "", "CompressWithLz4": ""})
        second = resolve_build_options({"CompressWithLz4": "", "StrictMode": ""})
        assert first == second


class TestResolveSubtarget:
    """Tests for resolve_subtarget function."""

    def test_default_when_absent(self):
        """Should fall back to the player subtarget."""
        assert resolve_subtarget({}) is StandaloneBuildSubtarget.Player

    def test_by_name(self):
        """Should resolve a subtarget by name."""
        options = {"standaloneBuildSubtarget": "Server"}
        assert resolve_subtarget(options) is StandaloneBuildSubtarget.Server

    def test_by_value(self):
        """Should resolve a subtarget by numeric value."""
        options = {"standaloneBuildSubtarget": "1"}
        assert resolve_subtarget(options) is StandaloneBuildSubtarget.Server

    @pytest.mark.parametrize("value", ["Headless", "", "99"])
    def test_default_when_unparseable(self, value):
        """Should silently fall back on unparseable values."""
        options = {"standaloneBuildSubtarget": value}
        assert resolve_subtarget(options) is StandaloneBuildSubtarget.Player


class TestAssembleBuildRequest:
    """Tests for assemble_build_request function."""

    def test_standalone_request(self, standalone_options):
        """Should assemble a standalone request with a subtarget variant."""
        standalone_options["Development"] = ""
        request = assemble_build_request(
            standalone_options, ["Assets/Scenes/Main.unity"]
        )

        assert request.target is BuildTarget.StandaloneWindows64
        assert request.location_path_name == "/tmp/out/Game.exe"
        assert request.scenes == ("Assets/Scenes/Main.unity",)
        assert request.options == BuildOptions.Development
        assert request.platform == StandaloneConfig(
            subtarget=StandaloneBuildSubtarget.Player
        )

    def test_android_request(self, android_options):
        """Should assemble an Android request with a version code variant."""
        request = assemble_build_request(android_options, [])
        assert request.platform == AndroidConfig(version_code=42)

    def test_android_missing_version_code(self, android_options):
        """Should fail when the Android version code is missing."""
        del android_options["androidVersionCode"]
        with pytest.raises(ConfigurationError):
            assemble_build_request(android_options, [])

    def test_android_invalid_version_code(self, android_options):
        """Should fail when the Android version code is not an integer."""
        android_options["androidVersionCode"] = "forty-two"
        with pytest.raises(ConfigurationError) as exc_info:
            assemble_build_request(android_options, [])
        assert exc_info.value.code == "invalid_option"

    def test_platform_without_variant(self, standalone_options):
        """Should leave the variant empty for platforms without one."""
        standalone_options["buildTarget"] = "WebGL"
        standalone_options["standaloneBuildSubtarget"] = "Server"
        request = assemble_build_request(standalone_options, [])
        assert request.platform is None

    def test_unknown_target(self):
        """Should fail before building anything for an unknown target."""
        options = {"buildTarget": "LinuxServer", "customBuildPath": "/tmp/out"}
        with pytest.raises(ConfigurationError) as exc_info:
            assemble_build_request(options, [])
        assert exc_info.value.exit_code == ExitCode.INVALID_BUILD_TARGET

    def test_missing_output_path(self, standalone_options):
        """Should fail when the output path is missing."""
        del standalone_options["customBuildPath"]
        with pytest.raises(ConfigurationError) as exc_info:
            assemble_build_request(standalone_options, [])
        assert exc_info.value.exit_code == ExitCode.MISSING_BUILD_PATH

    def test_accepts_read_only_options(self, standalone_options):
        """Should accept the read-only mapping produced by the option store."""
        request = assemble_build_request(MappingProxyType(standalone_options), [])
        assert request.target is BuildTarget.StandaloneWindows64

    def test_request_is_immutable(self, standalone_options):
        """Should not allow mutation after assembly."""
        request = assemble_build_request(standalone_options, [])
        with pytest.raises(dataclasses.FrozenInstanceError):
            request.location_path_name = "/elsewhere"  # type: ignore[misc]


class TestBuildRequestToDict:
    """Tests for BuildRequest.to_dict method."""

    def test_standalone(self):
        """Should serialize names and the subtarget."""
        request = BuildRequest(
            target=BuildTarget.StandaloneLinux64,
            location_path_name="/tmp/out/game",
            scenes=("Assets/Main.unity",),
            options=BuildOptions.Development | BuildOptions.StrictMode,
            platform=StandaloneConfig(),
        )
        data = request.to_dict()

        assert data["target"] == "StandaloneLinux64"
        assert data["locationPathName"] == "/tmp/out/game"
        assert data["scenes"] == ["Assets/Main.unity"]
        assert data["options"] == ["Development", "StrictMode"]
        assert data["optionsValue"] == int(
            BuildOptions.Development | BuildOptions.StrictMode
        )
        assert data["subtarget"] == "Player"

    def test_android(self):
        """Should serialize the Android version code."""
        request = BuildRequest(
            target=BuildTarget.Android,
            location_path_name="/tmp/out/game.aab",
            platform=AndroidConfig(version_code=7),
        )
        data = request.to_dict()
        assert data["options"] == []
        assert data["androidVersionCode"] == 7
        assert "subtarget" not in data
