#!/usr/bin/env python3
"""
Base Command

Every tfci command performs one HCP Terraform operation and reports the
outcome to the CI platform. The shared flow lives here: outputs start with a
pessimistic ``status``, the subclass adds its own outputs while it works, and
the output is closed exactly once whether the operation succeeded or not.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

from ..cloud import CloudService
from ..contracts.models import Status
from ..environment import EnvironmentContext, OutputValue
from ..errors import CloudTimeout, OutputSinkError, TfciError
from ..writer import ResultWriter

# failures a command reports through its status output instead of crashing
COMMAND_ERRORS = (TfciError, OSError, ValueError)


@dataclass
class Meta:
    """Collaborators shared by every command of one invocation."""

    cloud: CloudService
    env: EnvironmentContext
    organization: str
    writer: ResultWriter


class BaseCommand(ABC):
    """Abstract base class for tfci commands."""

    name: str = ""
    failure_message: str = "command failed"

    def __init__(self, meta: Meta):
        self.meta = meta
        self.cloud = meta.cloud
        self.env = meta.env
        self.organization = meta.organization
        self.writer = meta.writer
        self.logger = logging.getLogger(f"command.{self.name or type(self).__name__}")

    @abstractmethod
    def execute(self) -> None:
        """Perform the remote operation, adding outputs as results arrive."""
        pass

    def run(self) -> int:
        """Execute the command and close its output; return the exit code."""
        self.add_output("status", Status.ERROR.value)

        error: Optional[Exception] = None
        try:
            self.execute()
        except COMMAND_ERRORS as e:
            error = e
            self.logger.error("%s: %s", self.failure_message, e)
            self._recover_details(e)
        except Exception:
            # status is still Error; deliver it before the traceback
            self.logger.exception("%s: unexpected error", self.failure_message)
            self.close_output()
            raise

        status = self.resolve_status(error)
        self.add_output("status", status.value)
        if error is not None:
            self.writer.error_result(f"{self.failure_message}: {error}")

        outputs = self.close_output()
        if outputs is None:
            return 1
        self.writer.output_result(outputs)
        return 0 if error is None else 1

    def add_resource_details(self, resource: Any) -> None:
        """Add outputs for a resource recovered from a failed operation."""
        pass

    def _recover_details(self, error: Exception) -> None:
        resource = getattr(error, "resource", None)
        if resource is None:
            return
        try:
            self.add_resource_details(resource)
        except COMMAND_ERRORS as e:
            self.logger.warning("Could not collect details after failure: %s", e)

    @staticmethod
    def resolve_status(error: Optional[Exception]) -> Status:
        if error is None:
            return Status.SUCCESS
        if isinstance(error, CloudTimeout):
            return Status.TIMEOUT
        return Status.ERROR

    def add_output(self, name: str, value: Any) -> None:
        self.env.merge_outputs({name: OutputValue.of(value)})

    def add_output_with_opts(
        self,
        name: str,
        value: Any,
        multiline: bool = False,
        stdout: bool = True,
        platform_out: bool = True,
    ) -> None:
        self.env.merge_outputs(
            {
                name: OutputValue.of(
                    value, multiline=multiline, stdout=stdout, platform_out=platform_out
                )
            }
        )

    def add_payload(self, resource: Any) -> None:
        """The raw API resource, for steps that need more than the summary."""
        self.add_output_with_opts(
            "payload",
            "null" if resource is None else resource,
            multiline=True,
            stdout=False,
            platform_out=True,
        )

    def close_output(self) -> Optional[Dict[str, str]]:
        """Flush outputs to the CI platform.

        Returns the stdout-visible outputs for console rendering, or None when
        the platform sink failed.
        """
        shown = self.env.outputs.stdout_values()
        try:
            self.env.close_output()
        except OutputSinkError as e:
            self.logger.error("Failed to write outputs: %s", e, extra={"path": e.path})
            self.writer.error_result(f"failed to write outputs: {e}")
            return None
        return shown

