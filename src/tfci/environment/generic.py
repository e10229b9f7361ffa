"""Console-only context used when no supported CI platform is detected."""

from __future__ import annotations

import logging
import os
from typing import IO, Optional

from .base import EnvironmentContext, PlatformType
from .identity import GetEnv, RunIdentity


class GenericContext(EnvironmentContext):
    """Keeps outputs in memory and never writes a platform file."""

    platform = PlatformType.GENERIC
    id_prefix = "ci"

    @classmethod
    def from_env(
        cls,
        getenv: GetEnv = os.environ.get,
        logger: Optional[logging.Logger] = None,
        stdout: Optional[IO[str]] = None,
    ) -> "GenericContext":
        identity = RunIdentity.from_env(
            getenv,
            run_id="CI_RUN_ID",
            run_number="CI_RUN_NUMBER",
            commit_sha="CI_COMMIT_SHA",
            actor="CI_ACTOR",
            repository="CI_REPOSITORY",
            ref_name="CI_REF_NAME",
            ref_type="CI_REF_TYPE",
            scratch_dir="TMPDIR",
        )
        return cls(identity, logger=logger, stdout=stdout)

    def close_output(self) -> None:
        if self._outputs:
            self.logger.debug(
                "Discarding %d outputs, no CI platform detected", len(self._outputs)
            )
        self._outputs.clear()
