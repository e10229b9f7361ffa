"""``tfci run ...``: create, apply, show, discard and cancel runs."""

from abc import abstractmethod
from typing import Any, Optional

from ..cloud import CreateRunOptions
from ..contracts.models import Run
from ..errors import CloudError
from .base import BaseCommand, Meta


class RunCommand(BaseCommand):
    """Shared run outputs."""

    def add_resource_details(self, resource: Any) -> None:
        if isinstance(resource, Run):
            self.add_run_details(resource)

    def add_run_details(self, run: Run, workspace: Optional[str] = None) -> None:
        self.add_output("run_id", run.id)
        self.add_output("run_status", run.status)
        self.add_output("run_message", run.message)
        link = self.cloud.run_link(self.organization, run, workspace)
        self.add_output("run_link", link)
        self.add_payload(run)

    def check_run(self, run: Run) -> None:
        if run.status == "errored":
            raise CloudError(f"run {run.id} errored", resource=run)


class CreateRunCommand(RunCommand):
    name = "run create"
    failure_message = "error creating run in HCP Terraform"

    def __init__(
        self,
        meta: Meta,
        workspace: str,
        configuration_version: str,
        message: str = "",
        plan_only: bool = False,
        save_plan: bool = False,
        async_no_log: bool = False,
    ):
        super().__init__(meta)
        self.workspace = workspace
        self.configuration_version = configuration_version
        self.message = message
        self.plan_only = plan_only
        self.save_plan = save_plan
        self.async_no_log = async_no_log

    def execute(self) -> None:
        run = self.cloud.create_run(
            CreateRunOptions(
                workspace=self.workspace,
                organization=self.organization,
                configuration_version=self.configuration_version,
                message=self.message,
                plan_only=self.plan_only,
                save_plan=self.save_plan,
                wait=not self.async_no_log,
            )
        )
        self.check_run(run)
        self.add_run_details(run, self.workspace)

    def add_run_details(self, run: Run, workspace: Optional[str] = None) -> None:
        super().add_run_details(run, workspace or self.workspace)
        if run.configuration_version_id:
            self.add_output("configuration_version_id", run.configuration_version_id)
        if run.plan_id:
            self.add_output("plan_id", run.plan_id)
            self.add_output("plan_status", self.cloud.get_plan(run.plan_id).status)
        if run.cost_estimate_id:
            self.add_output("cost_estimation_id", run.cost_estimate_id)
            estimate = self.cloud.get_cost_estimate(run.cost_estimate_id)
            self.add_output("cost_estimation_status", estimate.status)


class RunActionCommand(RunCommand):
    """A command acting on an existing run."""

    def __init__(self, meta: Meta, run_id: str, comment: str = ""):
        super().__init__(meta)
        self.run_id = run_id
        self.comment = comment

    def execute(self) -> None:
        run = self.act()
        self.check_run(run)
        self.add_run_details(run)

    @abstractmethod
    def act(self) -> Run:
        """Perform the run action and return the resulting run."""
        pass


class ApplyRunCommand(RunActionCommand):
    name = "run apply"
    failure_message = "error applying run in HCP Terraform"

    def act(self) -> Run:
        return self.cloud.apply_run(self.run_id, self.comment)


class ShowRunCommand(RunActionCommand):
    name = "run show"
    failure_message = "error reading run from HCP Terraform"

    def act(self) -> Run:
        return self.cloud.get_run(self.run_id)

    def check_run(self, run: Run) -> None:
        # showing an errored run is not a failure
        pass


class DiscardRunCommand(RunActionCommand):
    name = "run discard"
    failure_message = "error discarding run in HCP Terraform"

    def act(self) -> Run:
        return self.cloud.discard_run(self.run_id, self.comment)


class CancelRunCommand(RunActionCommand):
    name = "run cancel"
    failure_message = "error canceling run in HCP Terraform"

    def act(self) -> Run:
        return self.cloud.cancel_run(self.run_id, self.comment)
