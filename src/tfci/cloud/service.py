"""Command-level operations composed from TfeClient calls."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from ..contracts.models import (
    ConfigurationVersion,
    CostEstimate,
    Plan,
    Run,
    StateVersionOutput,
)
from ..errors import CloudError, CloudTimeout
from .client import TfeClient

logger = logging.getLogger(__name__)

CV_TERMINAL = {"uploaded", "errored"}

# statuses after which a run no longer changes without user action
RUN_PLANNED = {
    "planned",
    "planned_and_finished",
    "planned_and_saved",
    "cost_estimated",
    "policy_checked",
    "policy_override",
    "policy_soft_failed",
    "post_plan_completed",
}
RUN_FINAL = {
    "applied",
    "discarded",
    "canceled",
    "force_canceled",
    "errored",
    "planned_and_finished",
}


@dataclass
class UploadOptions:
    workspace: str
    organization: str
    directory: Path
    speculative: bool = False
    provisional: bool = False


@dataclass
class CreateRunOptions:
    workspace: str
    organization: str
    configuration_version: str
    message: str = ""
    plan_only: bool = False
    save_plan: bool = False
    wait: bool = True


class CloudService:
    """High level HCP Terraform operations used by tfci commands."""

    def __init__(
        self,
        client: TfeClient,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.config = client.config
        self._sleep = sleep
        self._clock = clock

    def _poll(self, read, done: Callable[[str], bool], what: str):
        deadline = self._clock() + self.config.poll_timeout
        resource = read()
        while not done(resource.status):
            if self._clock() >= deadline:
                raise CloudTimeout(
                    f"timed out waiting for {what}, last status {resource.status!r}",
                    resource=resource,
                )
            logger.debug("Waiting for %s", what, extra={"status": resource.status})
            self._sleep(self.config.poll_interval)
            resource = read()
        return resource

    def upload_config(self, options: UploadOptions) -> ConfigurationVersion:
        workspace = self.client.read_workspace(options.organization, options.workspace)
        cv = self.client.create_configuration_version(
            workspace.id,
            speculative=options.speculative,
            provisional=options.provisional,
        )
        logger.info("Created configuration version", extra={"cv_id": cv.id})
        if not cv.upload_url:
            raise CloudError(f"configuration version {cv.id} has no upload url")

        cv_id = cv.id
        self.client.upload_configuration(cv.upload_url, options.directory)
        cv = self._poll(
            lambda: self.client.read_configuration_version(cv_id),
            lambda status: status in CV_TERMINAL,
            f"configuration version {cv_id} upload",
        )
        if cv.status == "errored":
            raise CloudError(
                f"configuration version {cv.id} errored: "
                f"{cv.error_message or cv.error}",
                resource=cv,
            )
        return cv

    def create_run(self, options: CreateRunOptions) -> Run:
        workspace = self.client.read_workspace(options.organization, options.workspace)
        run = self.client.create_run(
            workspace.id,
            options.configuration_version,
            message=options.message,
            plan_only=options.plan_only,
            save_plan=options.save_plan,
        )
        logger.info("Created run", extra={"run_id": run.id})
        if not options.wait:
            return run
        return self.wait_for_run(run.id, RUN_PLANNED | RUN_FINAL)

    def wait_for_run(self, run_id: str, statuses: Iterable[str]) -> Run:
        targets = set(statuses)
        return self._poll(
            lambda: self.client.read_run(run_id),
            lambda status: status in targets,
            f"run {run_id}",
        )

    def get_run(self, run_id: str) -> Run:
        return self.client.read_run(run_id)

    def apply_run(self, run_id: str, comment: str = "", wait: bool = True) -> Run:
        self.client.run_action(run_id, "apply", comment)
        if not wait:
            return self.client.read_run(run_id)
        return self.wait_for_run(run_id, RUN_FINAL)

    def discard_run(self, run_id: str, comment: str = "") -> Run:
        self.client.run_action(run_id, "discard", comment)
        return self.client.read_run(run_id)

    def cancel_run(self, run_id: str, comment: str = "") -> Run:
        self.client.run_action(run_id, "cancel", comment)
        return self.client.read_run(run_id)

    def get_plan(self, plan_id: str) -> Plan:
        return self.client.read_plan(plan_id)

    def get_cost_estimate(self, cost_estimate_id: str) -> CostEstimate:
        return self.client.read_cost_estimate(cost_estimate_id)

    def workspace_outputs(
        self, organization: str, workspace: str
    ) -> List[StateVersionOutput]:
        ws = self.client.read_workspace(organization, workspace)
        return self.client.current_state_outputs(ws.id)

    def run_link(
        self, organization: str, run: Run, workspace: Optional[str] = None
    ) -> str:
        """Browser link to ``run``; empty when the workspace cannot be resolved."""
        if not workspace and run.workspace_id:
            try:
                workspace = self.client.read_workspace_by_id(run.workspace_id).name
            except CloudError as e:
                logger.debug("Could not resolve workspace for run link: %s", e)
        if not workspace:
            return ""
        return self.client.run_link(organization, workspace, run.id)
