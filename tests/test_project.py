"""Tests for project discovery module."""

import json

import pytest

from builder_action.project import (
    BUILD_SETTINGS_PATH,
    PACKAGE_MANIFEST_PATH,
    ProjectReadError,
    has_package,
    read_enabled_scenes,
    read_package_manifest,
)

BUILD_SETTINGS = """\
%YAML 1.1
%TAG !u! tag:unity3d.com,2011:
--- !u!1045 &1
EditorBuildSettings:
  m_ObjectHideFlags: 0
  serializedVersion: 2
  m_Scenes:
  - enabled: 1
    path: Assets/Scenes/Boot.unity
    guid: 0c9a8f0e2b7d4c1a9e3f5b6d7c8a9b0c
  - enabled: 0
    path: Assets/Scenes/Sandbox.unity
    guid: 1d0b9f1e3c8e5d2b0f4a6c7e8d9b0c1d
  - enabled: 1
    path: Assets/Scenes/Main.unity
    guid: 2e1c0a2f4d9f6e3c1a5b7d8f9e0c1d2e
  m_configObjects: {}
"""


@pytest.fixture
def project(tmp_path):
    """Create an empty project directory."""
    (tmp_path / "ProjectSettings").mkdir()
    (tmp_path / "Packages").mkdir()
    return tmp_path


class TestReadEnabledScenes:
    """Tests for read_enabled_scenes function."""

    def test_enabled_scenes_in_order(self, project):
        """Should return enabled scene paths in build order."""
        (project / BUILD_SETTINGS_PATH).write_text(BUILD_SETTINGS)
        assert read_enabled_scenes(project) == [
            "Assets/Scenes/Boot.unity",
            "Assets/Scenes/Main.unity",
        ]

    def test_missing_settings(self, project):
        """Should return no scenes without build settings."""
        assert read_enabled_scenes(project) == []

    def test_no_scenes(self, project):
        """Should handle an empty scene list."""
        (project / BUILD_SETTINGS_PATH).write_text(
            "--- !u!1045 &1\nEditorBuildSettings:\n  m_Scenes: []\n"
        )
        assert read_enabled_scenes(project) == []

    def test_invalid_yaml(self, project):
        """Should raise ProjectReadError for unparseable settings."""
        (project / BUILD_SETTINGS_PATH).write_text("EditorBuildSettings: [unclosed\n")
        with pytest.raises(ProjectReadError) as exc_info:
            read_enabled_scenes(project)
        assert exc_info.value.code == "project_read_error"


class TestPackageManifest:
    """Tests for read_package_manifest and has_package."""

    def test_reads_manifest(self, project):
        """Should parse the package manifest."""
        manifest = {"dependencies": {"com.unity.addressables": "1.21.19"}}
        (project / PACKAGE_MANIFEST_PATH).write_text(json.dumps(manifest))
        assert read_package_manifest(project) == manifest
        assert has_package(project, "com.unity.addressables") is True

    def test_missing_manifest(self, project):
        """Should return an empty manifest when absent."""
        assert read_package_manifest(project) == {}
        assert has_package(project, "com.unity.addressables") is False

    def test_package_not_declared(self, project):
        """Should report undeclared packages as absent."""
        manifest = {"dependencies": {"com.unity.textmeshpro": "3.0.6"}}
        (project / PACKAGE_MANIFEST_PATH).write_text(json.dumps(manifest))
        assert has_package(project, "com.unity.addressables") is False

    def test_invalid_json(self, project):
        """Should raise ProjectReadError for invalid JSON."""
        (project / PACKAGE_MANIFEST_PATH).write_text("{not json")
        with pytest.raises(ProjectReadError):
            read_package_manifest(project)

    def test_non_object_manifest(self, project):
        """Should reject a manifest that is not an object."""
        (project / PACKAGE_MANIFEST_PATH).write_text("[]")
        with pytest.raises(ProjectReadError):
            read_package_manifest(project)
