"""
CI environment integration.

Captures the run identity of the current pipeline step, collects outputs
produced by commands and hands them to the CI platform.
"""

from .base import EnvironmentContext, PlatformType
from .factory import detect_platform, new_ci_context
from .generic import GenericContext
from .github import GitHubContext
from .identity import RefType, RunIdentity
from .outputs import OutputSet, OutputValue
from .sink import OutputSinkWriter

__all__ = [
    "EnvironmentContext",
    "PlatformType",
    "GitHubContext",
    "GenericContext",
    "RunIdentity",
    "RefType",
    "OutputValue",
    "OutputSet",
    "OutputSinkWriter",
    "detect_platform",
    "new_ci_context",
]
