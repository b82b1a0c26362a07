"""Build orchestration module.

This module handles:
- Build request assembly from options
- Platform-specific player settings
- Optional content builds
- Running backend actions (validate, content, build)
- Build outcome reporting and exit codes
"""

from builder_action.builds.report import BuildOutcome
from builder_action.builds.request import BuildRequest

__all__ = ["BuildOutcome", "BuildRequest"]

# Lazy imports for submodules to avoid circular imports
# Access via builder_action.builds.service, etc.
