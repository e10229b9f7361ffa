"""
Unit tests for tfci commands.

Commands run against a mocked CloudService and a real GitHub context, so the
assertions read back the output file a workflow step would see.
"""

import json
import re

import pytest

from tfci.command import (
    ApplyRunCommand,
    CancelRunCommand,
    CreateRunCommand,
    DiscardRunCommand,
    OutputPlanCommand,
    ShowRunCommand,
    UploadConfigurationCommand,
    WorkspaceOutputCommand,
)
from tfci.command.base import BaseCommand, Meta
from tfci.command.run import RunActionCommand
from tfci.contracts.models import CostEstimate, StateVersionOutput, Status
from tfci.environment import GitHubContext
from tfci.errors import CloudError, CloudTimeout

HEREDOC = re.compile(r"^(?P<key>[^=<]+)<<(?P<delim>.+)$")


def parse_outputs(text):
    """Decode a GITHUB_OUTPUT file into a dict."""
    outputs = {}
    lines = iter(text.split("\n"))
    for line in lines:
        if not line:
            continue
        match = HEREDOC.match(line)
        if match:
            body = []
            for part in lines:
                if part == match.group("delim"):
                    break
                body.append(part)
            outputs[match.group("key")] = "\n".join(body)
        else:
            key, _, value = line.partition("=")
            outputs[key] = value
    return outputs


@pytest.fixture
def written(output_file):
    def read():
        if not output_file.exists():
            return {}
        return parse_outputs(output_file.read_text(encoding="utf-8"))

    return read


class TestBaseCommand:
    @pytest.mark.parametrize(
        "error, expected",
        [
            (None, Status.SUCCESS),
            (CloudTimeout("slow"), Status.TIMEOUT),
            (CloudError("boom"), Status.ERROR),
            (OSError("disk"), Status.ERROR),
        ],
    )
    def test_resolve_status(self, error, expected):
        assert BaseCommand.resolve_status(error) is expected

    def test_status_is_first_output(self, meta, mock_cloud, factory, output_file):
        mock_cloud.get_run.return_value = factory.run()

        ShowRunCommand(meta, run_id="run-1").run()

        first_line = output_file.read_text(encoding="utf-8").split("\n", 1)[0]
        assert first_line == "status=Success"


class TestRunCommands:
    def test_show_run(self, meta, mock_cloud, mock_writer, factory, written, stdout):
        mock_cloud.get_run.return_value = factory.run(status="planned")

        code = ShowRunCommand(meta, run_id="run-1").run()

        assert code == 0
        outputs = written()
        assert outputs["status"] == "Success"
        assert outputs["run_id"] == "run-1"
        assert outputs["run_status"] == "planned"
        assert outputs["run_message"] == "Triggered from CI"
        assert outputs["run_link"].endswith("/runs/run-1")
        assert json.loads(outputs["payload"])["id"] == "run-1"

        shown = mock_writer.output_result.call_args.args[0]
        assert shown["run_id"] == "run-1"
        assert "payload" not in shown
        assert "::set-output name=status::Success" in stdout.getvalue()

    def test_show_errored_run_is_not_a_failure(self, meta, mock_cloud, factory, written):
        mock_cloud.get_run.return_value = factory.run(status="errored")

        assert ShowRunCommand(meta, run_id="run-1").run() == 0
        assert written()["status"] == "Success"

    def test_create_run_outputs_plan_details(self, meta, mock_cloud, factory, written):
        mock_cloud.create_run.return_value = factory.run(
            plan_id="plan-1", configuration_version_id="cv-1"
        )
        mock_cloud.get_plan.return_value = factory.plan()

        code = CreateRunCommand(
            meta, workspace="ws", configuration_version="cv-1", message="From CI"
        ).run()

        assert code == 0
        outputs = written()
        assert outputs["status"] == "Success"
        assert outputs["plan_id"] == "plan-1"
        assert outputs["plan_status"] == "finished"
        assert outputs["configuration_version_id"] == "cv-1"
        assert "cost_estimation_id" not in outputs

        options = mock_cloud.create_run.call_args.args[0]
        assert options.organization == "test-org"
        assert options.message == "From CI"
        assert options.wait is True
        mock_cloud.run_link.assert_called_once()
        assert mock_cloud.run_link.call_args.args[2] == "ws"

    def test_create_run_async_does_not_wait(self, meta, mock_cloud, factory):
        mock_cloud.create_run.return_value = factory.run(status="pending")

        CreateRunCommand(
            meta, workspace="ws", configuration_version="cv-1", async_no_log=True
        ).run()

        assert mock_cloud.create_run.call_args.args[0].wait is False

    def test_create_run_cost_estimate(self, meta, mock_cloud, factory, written):
        mock_cloud.create_run.return_value = factory.run(cost_estimate_id="ce-1")
        mock_cloud.get_cost_estimate.return_value = CostEstimate(id="ce-1", status="finished")

        CreateRunCommand(meta, workspace="ws", configuration_version="cv-1").run()

        outputs = written()
        assert outputs["cost_estimation_id"] == "ce-1"
        assert outputs["cost_estimation_status"] == "finished"

    def test_create_run_timeout_keeps_last_run(
        self, meta, mock_cloud, mock_writer, factory, written
    ):
        mock_cloud.create_run.side_effect = CloudTimeout(
            "timed out waiting for run run-1", resource=factory.run(status="planning")
        )

        code = CreateRunCommand(meta, workspace="ws", configuration_version="cv-1").run()

        assert code == 1
        outputs = written()
        assert outputs["status"] == "Timeout"
        assert outputs["run_id"] == "run-1"
        assert outputs["run_status"] == "planning"
        mock_writer.error_result.assert_called_once()

    def test_create_run_error_without_resource(self, meta, mock_cloud, written):
        mock_cloud.create_run.side_effect = CloudError("workspace not found", status_code=404)

        code = CreateRunCommand(meta, workspace="ws", configuration_version="cv-1").run()

        assert code == 1
        assert written() == {"status": "Error"}

    def test_apply_errored_run_reports_details(self, meta, mock_cloud, factory, written):
        mock_cloud.apply_run.return_value = factory.run(status="errored")

        code = ApplyRunCommand(meta, run_id="run-1", comment="go").run()

        assert code == 1
        outputs = written()
        assert outputs["status"] == "Error"
        assert outputs["run_status"] == "errored"
        mock_cloud.apply_run.assert_called_once_with("run-1", "go")

    @pytest.mark.parametrize(
        "command_cls, method, status",
        [
            (DiscardRunCommand, "discard_run", "discarded"),
            (CancelRunCommand, "cancel_run", "canceled"),
        ],
    )
    def test_run_actions(self, meta, mock_cloud, factory, written, command_cls, method, status):
        getattr(mock_cloud, method).return_value = factory.run(status=status)

        code = command_cls(meta, run_id="run-1", comment="stop").run()

        assert code == 0
        assert written()["run_status"] == status
        getattr(mock_cloud, method).assert_called_once_with("run-1", "stop")

    def test_failure_while_recovering_details_still_closes(
        self, meta, mock_cloud, factory, written
    ):
        mock_cloud.apply_run.side_effect = CloudError("failed", resource=factory.run())
        mock_cloud.run_link.side_effect = CloudError("also failed")

        code = ApplyRunCommand(meta, run_id="run-1").run()

        assert code == 1
        outputs = written()
        assert outputs["status"] == "Error"
        assert outputs["run_id"] == "run-1"


class TestUploadCommand:
    def test_upload(self, meta, mock_cloud, factory, written, tmp_path):
        config_dir = tmp_path / "config"
        config_dir.mkdir()
        mock_cloud.upload_config.return_value = factory.configuration_version()

        code = UploadConfigurationCommand(
            meta, workspace="ws", directory=config_dir, speculative=True
        ).run()

        assert code == 0
        outputs = written()
        assert outputs["status"] == "Success"
        assert outputs["configuration_version_id"] == "cv-1"
        assert outputs["configuration_version_status"] == "uploaded"
        assert "upload-url" not in outputs["payload"]

        options = mock_cloud.upload_config.call_args.args[0]
        assert options.directory == config_dir.resolve()
        assert options.speculative is True

    def test_missing_directory(self, meta, mock_cloud, written, tmp_path):
        code = UploadConfigurationCommand(
            meta, workspace="ws", directory=tmp_path / "absent"
        ).run()

        assert code == 1
        assert written()["status"] == "Error"
        mock_cloud.upload_config.assert_not_called()

    def test_errored_configuration_version(self, meta, mock_cloud, factory, written, tmp_path):
        mock_cloud.upload_config.side_effect = CloudError(
            "configuration version cv-1 errored",
            resource=factory.configuration_version(status="errored"),
        )

        code = UploadConfigurationCommand(meta, workspace="ws", directory=tmp_path).run()

        assert code == 1
        outputs = written()
        assert outputs["status"] == "Error"
        assert outputs["configuration_version_status"] == "errored"


class TestPlanCommand:
    def test_plan_output(self, meta, mock_cloud, factory, written):
        mock_cloud.get_plan.return_value = factory.plan()

        code = OutputPlanCommand(meta, plan_id="plan-1").run()

        assert code == 0
        outputs = written()
        assert outputs["plan_status"] == "finished"
        assert (outputs["add"], outputs["change"], outputs["destroy"]) == ("2", "1", "0")
        assert json.loads(outputs["payload"])["resource-additions"] == 2


class TestWorkspaceOutputCommand:
    def test_sensitive_values_are_redacted(self, meta, mock_cloud, written):
        mock_cloud.workspace_outputs.return_value = [
            StateVersionOutput(id="o1", name="url", value="https://x", type="string"),
            StateVersionOutput(id="o2", name="password", value="hunter2", sensitive=True),
        ]

        code = WorkspaceOutputCommand(meta, workspace="ws").run()

        assert code == 0
        listed = json.loads(written()["outputs"])
        assert listed[0] == {
            "name": "url",
            "sensitive": False,
            "type": "string",
            "value": "https://x",
        }
        assert listed[1]["value"] is None
        mock_cloud.workspace_outputs.assert_called_once_with("test-org", "ws")


class TestOutputSinkFailure:
    def test_sink_failure_exits_nonzero(
        self, mock_cloud, mock_writer, factory, github_env, tmp_path
    ):
        github_env["GITHUB_OUTPUT"] = str(tmp_path)
        env = GitHubContext.from_env(github_env.get)
        meta = Meta(cloud=mock_cloud, env=env, organization="test-org", writer=mock_writer)
        mock_cloud.get_run.return_value = factory.run()

        code = ShowRunCommand(meta, run_id="run-1").run()

        assert code == 1
        mock_writer.output_result.assert_not_called()
        message = mock_writer.error_result.call_args.args[0]
        assert message.startswith("failed to write outputs")
        assert len(env.outputs) == 0

    def test_missing_destination_exits_nonzero(self, mock_cloud, mock_writer, factory, github_env):
        del github_env["GITHUB_OUTPUT"]
        env = GitHubContext.from_env(github_env.get)
        meta = Meta(cloud=mock_cloud, env=env, organization="test-org", writer=mock_writer)
        mock_cloud.get_run.return_value = factory.run()

        assert ShowRunCommand(meta, run_id="run-1").run() == 1


class TestUnexpectedErrors:
    def test_unexpected_error_still_writes_error_status(self, meta, mock_cloud, written):
        mock_cloud.workspace_outputs.side_effect = TypeError(
            "'NoneType' object is not iterable"
        )

        with pytest.raises(TypeError):
            WorkspaceOutputCommand(meta, workspace="ws").run()

        assert written() == {"status": "Error"}
        assert len(meta.env.outputs) == 0

    def test_unexpected_error_keeps_partial_outputs(self, meta, mock_cloud, factory, written):
        mock_cloud.create_run.return_value = factory.run(plan_id="plan-1")
        mock_cloud.get_plan.side_effect = KeyError("status")

        with pytest.raises(KeyError):
            CreateRunCommand(meta, workspace="ws", configuration_version="cv-1").run()

        outputs = written()
        assert outputs["status"] == "Error"
        assert outputs["run_id"] == "run-1"


def test_upload_without_configuration_version_emits_null_payload(
    meta, mock_cloud, written, tmp_path
):
    mock_cloud.upload_config.return_value = None

    code = UploadConfigurationCommand(meta, workspace="ws", directory=tmp_path).run()

    assert code == 0
    outputs = written()
    assert outputs["payload"] == "null"
    assert "configuration_version_id" not in outputs


def test_run_action_command_requires_act(meta):
    with pytest.raises(TypeError):
        RunActionCommand(meta, run_id="run-1")
