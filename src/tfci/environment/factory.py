"""Detects the CI platform and builds the matching environment context."""

from __future__ import annotations

import logging
import os
from typing import IO, Callable, Dict, Optional

from .base import EnvironmentContext, PlatformType
from .generic import GenericContext
from .github import ENV_RUN_ID, GitHubContext
from .identity import GetEnv

ContextBuilder = Callable[..., EnvironmentContext]

_BUILDERS: Dict[PlatformType, ContextBuilder] = {
    PlatformType.GITHUB_ACTIONS: GitHubContext.from_env,
    PlatformType.GENERIC: GenericContext.from_env,
}


def detect_platform(getenv: GetEnv = os.environ.get) -> PlatformType:
    """Pick the platform from its signature environment variables."""
    if (getenv("GITHUB_ACTIONS") or "").lower() == "true" or getenv(ENV_RUN_ID):
        return PlatformType.GITHUB_ACTIONS
    return PlatformType.GENERIC


def new_ci_context(
    getenv: GetEnv = os.environ.get,
    platform: Optional[PlatformType] = None,
    logger: Optional[logging.Logger] = None,
    stdout: Optional[IO[str]] = None,
) -> EnvironmentContext:
    """Build the context for ``platform``, detecting it when not given."""
    platform = platform or detect_platform(getenv)
    builder = _BUILDERS[platform]
    context = builder(getenv=getenv, logger=logger, stdout=stdout)
    context.logger.debug("Using %s environment", platform.value)
    return context
