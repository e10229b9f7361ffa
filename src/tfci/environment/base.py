#!/usr/bin/env python3
"""
CI Environment Context Interface

Defines the contract every CI platform integration implements. A command only
talks to this interface: it reads the run identity, merges outputs as it goes
and closes the output once when it finishes.
"""

from __future__ import annotations

import logging
import sys
from abc import ABC, abstractmethod
from enum import Enum
from pathlib import Path
from typing import IO, Mapping, Optional

from .identity import RunIdentity
from .outputs import OutputSet, OutputValue


class PlatformType(str, Enum):
    """CI platforms tfci knows how to report to."""

    GITHUB_ACTIONS = "github_actions"
    GENERIC = "generic"


class EnvironmentContext(ABC):
    """Abstract base class for CI platform contexts."""

    platform: PlatformType
    id_prefix: str = "ci"

    def __init__(
        self,
        run_identity: RunIdentity,
        logger: Optional[logging.Logger] = None,
        stdout: Optional[IO[str]] = None,
    ):
        self._identity = run_identity
        self._outputs = OutputSet()
        self.logger = logger or logging.getLogger(f"environment.{self.platform.value}")
        self._stdout = stdout

    def identity(self) -> RunIdentity:
        return self._identity

    @property
    def id(self) -> str:
        return self._identity.composite_id(self.id_prefix)

    @property
    def sha(self) -> str:
        return self._identity.commit_sha

    @property
    def sha_short(self) -> str:
        return self._identity.short_sha

    @property
    def author(self) -> str:
        return self._identity.actor

    @property
    def write_dir(self) -> Optional[Path]:
        return self._identity.scratch_dir

    @property
    def outputs(self) -> OutputSet:
        return self._outputs

    @property
    def stdout(self) -> IO[str]:
        return self._stdout or sys.stdout

    def merge_outputs(self, outputs: Mapping[str, OutputValue]) -> None:
        """Union ``outputs`` into the pending set, last write wins."""
        self._outputs.merge(outputs)

    @abstractmethod
    def close_output(self) -> None:
        """
        Deliver every pending output to the platform and reset the set.

        Raises:
            SinkUnavailable: outputs are pending but there is no destination
            SinkWriteError: the destination could not be written
            SinkCloseError: the destination could not be released
        """
        pass

    def _echo_legacy(self, outputs: Mapping[str, str]) -> None:
        """Mirror outputs to the live log with the legacy set-output command."""
        for key, value in outputs.items():
            print(f"::set-output name={key}::{value}", file=self.stdout)
