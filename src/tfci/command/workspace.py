"""``tfci workspace output list``: current state outputs of a workspace."""

import json

from .base import BaseCommand, Meta


class WorkspaceOutputCommand(BaseCommand):
    name = "workspace output list"
    failure_message = "error reading workspace outputs from HCP Terraform"

    def __init__(self, meta: Meta, workspace: str):
        super().__init__(meta)
        self.workspace = workspace

    def execute(self) -> None:
        outputs = self.cloud.workspace_outputs(self.organization, self.workspace)
        self.logger.debug(
            "Workspace outputs",
            extra={"workspace": self.workspace, "count": len(outputs)},
        )
        redacted = [output.redacted() for output in outputs]
        self.add_output_with_opts(
            "outputs", json.dumps(redacted, default=str), multiline=True
        )
