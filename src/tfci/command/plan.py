"""``tfci plan output``: resource change counts for a plan."""

from typing import Any

from ..contracts.models import Plan
from .base import BaseCommand, Meta


class OutputPlanCommand(BaseCommand):
    name = "plan output"
    failure_message = "error reading plan from HCP Terraform"

    def __init__(self, meta: Meta, plan_id: str):
        super().__init__(meta)
        self.plan_id = plan_id

    def execute(self) -> None:
        plan = self.cloud.get_plan(self.plan_id)
        self.add_plan_details(plan)

    def add_resource_details(self, resource: Any) -> None:
        if isinstance(resource, Plan):
            self.add_plan_details(resource)

    def add_plan_details(self, plan: Plan) -> None:
        self.add_output("plan_id", plan.id or self.plan_id)
        self.add_output("plan_status", plan.status)
        self.add_output("add", plan.resource_additions)
        self.add_output("change", plan.resource_changes)
        self.add_output("destroy", plan.resource_destructions)
        self.add_payload(plan)
