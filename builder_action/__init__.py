"""Builder Action - unattended game-project builds for CI.

This package orchestrates a non-interactive player build driven by
CLI-style options: validation with diagnostic monitoring, build request
assembly, platform configuration, optional content builds, and exit-code
reporting.
"""

__version__ = "0.1.0"
__all__ = ["__version__"]
