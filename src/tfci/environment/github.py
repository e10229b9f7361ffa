"""GitHub Actions environment context."""

from __future__ import annotations

import logging
import os
from typing import IO, Optional

from ..errors import SinkUnavailable
from .base import EnvironmentContext, PlatformType
from .identity import GetEnv, RunIdentity
from .sink import OutputSinkWriter

# https://docs.github.com/en/actions/learn-github-actions/variables#default-environment-variables
ENV_RUN_ID = "GITHUB_RUN_ID"
ENV_RUN_NUMBER = "GITHUB_RUN_NUMBER"
ENV_SHA = "GITHUB_SHA"
ENV_ACTOR = "GITHUB_ACTOR"
ENV_REPOSITORY = "GITHUB_REPOSITORY"
ENV_REF_NAME = "GITHUB_REF_NAME"
ENV_REF_TYPE = "GITHUB_REF_TYPE"
ENV_RUNNER_TEMP = "RUNNER_TEMP"
ENV_OUTPUT = "GITHUB_OUTPUT"
# older runners only expose the env file
ENV_LEGACY_OUTPUT = "GITHUB_ENV"


def make_delimiter(run_id: str, run_number: str, pid: Optional[int] = None) -> str:
    return f"GHDELIM_{run_id}_{run_number}_{os.getpid() if pid is None else pid}"


class GitHubContext(EnvironmentContext):
    """Reports outputs through the ``$GITHUB_OUTPUT`` file."""

    platform = PlatformType.GITHUB_ACTIONS
    id_prefix = "gha"

    def __init__(
        self,
        run_identity: RunIdentity,
        output_path: Optional[str] = None,
        logger: Optional[logging.Logger] = None,
        stdout: Optional[IO[str]] = None,
        pid: Optional[int] = None,
        writer: Optional[OutputSinkWriter] = None,
    ):
        super().__init__(run_identity, logger=logger, stdout=stdout)
        self.output_path = output_path or None
        self.delimiter = make_delimiter(
            run_identity.run_id, run_identity.run_number, pid
        )
        self.writer = writer or OutputSinkWriter(self.delimiter, logger=self.logger)

    @classmethod
    def from_env(
        cls,
        getenv: GetEnv = os.environ.get,
        logger: Optional[logging.Logger] = None,
        stdout: Optional[IO[str]] = None,
    ) -> "GitHubContext":
        logger = logger or logging.getLogger("environment.github_actions")
        identity = RunIdentity.from_env(
            getenv,
            run_id=ENV_RUN_ID,
            run_number=ENV_RUN_NUMBER,
            commit_sha=ENV_SHA,
            actor=ENV_ACTOR,
            repository=ENV_REPOSITORY,
            ref_name=ENV_REF_NAME,
            ref_type=ENV_REF_TYPE,
            scratch_dir=ENV_RUNNER_TEMP,
        )
        output_path = getenv(ENV_OUTPUT) or ""

        logger.debug(
            "GitHub environment",
            extra={
                "run_id": identity.run_id,
                "run_number": identity.run_number,
                "sha": identity.commit_sha,
                "actor": identity.actor,
                "repository": identity.repository,
                "ref_name": identity.ref_name,
                "ref_type": identity.ref_type.value if identity.ref_type else None,
                "output_path": output_path,
            },
        )

        if not output_path:
            logger.warning(
                "%s environment variable is not set. Outputs will not be "
                "available in GitHub Actions.",
                ENV_OUTPUT,
            )
            legacy = getenv(ENV_LEGACY_OUTPUT) or ""
            if legacy:
                logger.info(
                    "Using %s as fallback for outputs: %s", ENV_LEGACY_OUTPUT, legacy
                )
                output_path = legacy

        return cls(identity, output_path=output_path, logger=logger, stdout=stdout)

    def close_output(self) -> None:
        if not self._outputs:
            self.logger.debug("No outputs pending")
            return

        pending = self._outputs.platform_values()
        if pending and not self.output_path:
            self.logger.error("%s environment variable not set", ENV_OUTPUT)
            raise SinkUnavailable(f"{ENV_OUTPUT} environment variable not set")

        echo = self._outputs.stdout_values()
        try:
            if pending:
                self.writer.write(self.output_path, pending)
        finally:
            # unwritten entries are dropped on failure as well
            self._outputs.clear()

        self._echo_legacy(echo)
