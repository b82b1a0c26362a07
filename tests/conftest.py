"""Shared fixtures for builder_action tests."""

import sys
import textwrap
from pathlib import Path

import pytest

from builder_action.builds.runner import BackendRunner

FAKE_BACKEND = textwrap.dedent(
    """\
    import json
    import os
    import subprocess
    import sys
    import time

    action, manifest_path = sys.argv[1], sys.argv[2]
    with open(manifest_path) as f:
        manifest = json.load(f)
    mode = os.environ.get("FAKE_BACKEND_MODE", "ok")

    with open(os.path.join(os.path.dirname(manifest_path), "calls.txt"), "a") as f:
        f.write(" ".join(sys.argv[1:2] + sys.argv[3:]) + "\\n")

    if mode == "sleep":
        time.sleep(30)
    elif mode == "spawn":
        subprocess.Popen([sys.executable, "-c", "import time; time.sleep(30)"])
        time.sleep(30)

    print(f"[Log] {action} started")
    if action == "validate":
        print("[Warning] Slow import")
        if mode == "undecodable":
            sys.stdout.flush()
            sys.stdout.buffer.write(b"[Log] texture \\xff\\xfe name\\n")
            sys.stdout.buffer.flush()
        if mode in ("validation-error", "undecodable"):
            print("[Exception] NullReferenceException in Importer")
    elif action == "build" and mode != "no-report":
        report = {
            "result": "failed" if mode == "fail" else "succeeded",
            "output_path": manifest["request"]["locationPathName"],
            "platform": manifest["request"]["target"],
            "total_size": 2048,
        }
        with open(manifest["reportPath"], "w") as f:
            json.dump(report, f)
    elif action in ("clean-content", "build-content") and mode == "content-error":
        print("[Error] content build exploded")
        sys.exit(3)

    sys.exit(int(os.environ.get("FAKE_BACKEND_EXIT", "0")))
    """
)


@pytest.fixture
def fake_backend(tmp_path) -> Path:
    """Write the fake backend script."""
    script = tmp_path / "fake_backend.py"
    script.write_text(FAKE_BACKEND)
    return script


@pytest.fixture
def make_runner(tmp_path, fake_backend):
    """Create a BackendRunner for the fake backend in a given mode."""

    def _make(mode: str = "ok", exit_code: int = 0) -> BackendRunner:
        return BackendRunner(
            [sys.executable, str(fake_backend)],
            tmp_path / "logs",
            env_override={
                "FAKE_BACKEND_MODE": mode,
                "FAKE_BACKEND_EXIT": str(exit_code),
            },
        )

    return _make


@pytest.fixture
def backend_calls():
    """Return a reader for the actions the fake backend recorded."""

    def _read(runner: BackendRunner) -> list[str]:
        calls = runner.log_dir / "calls.txt"
        if not calls.exists():
            return []
        return calls.read_text().splitlines()

    return _read
