#!/usr/bin/env python3
"""
tfci Main Entry Point

Command-line interface used as a CI pipeline step. Each invocation performs a
single HCP Terraform operation and reports its outputs to the CI platform.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import typer

from . import __version__
from .cloud import CloudService, TfeClient
from .command import (
    ApplyRunCommand,
    BaseCommand,
    CancelRunCommand,
    CreateRunCommand,
    DiscardRunCommand,
    Meta,
    OutputPlanCommand,
    ShowRunCommand,
    UploadConfigurationCommand,
    WorkspaceOutputCommand,
)
from .config import TfciConfig, load_config
from .environment import PlatformType, detect_platform, new_ci_context
from .errors import ConfigError
from .utils.json_logger import configure_logging
from .writer import ResultWriter

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="tfci",
    help="HCP Terraform CI tooling",
    rich_markup_mode="rich",
    no_args_is_help=True,
)
run_app = typer.Typer(name="run", help="Create and manage HCP Terraform runs")
plan_app = typer.Typer(name="plan", help="Inspect HCP Terraform plans")
workspace_app = typer.Typer(name="workspace", help="Inspect HCP Terraform workspaces")
workspace_output_app = typer.Typer(name="output", help="Workspace state outputs")

app.add_typer(run_app, name="run")
app.add_typer(plan_app, name="plan")
app.add_typer(workspace_app, name="workspace")
workspace_app.add_typer(workspace_output_app, name="output")


@dataclass
class GlobalOptions:
    hostname: Optional[str] = None
    token: Optional[str] = None
    organization: Optional[str] = None
    platform: str = ""


def build_cloud(config: TfciConfig, platform: str) -> CloudService:
    return CloudService(TfeClient(config, platform=platform))


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"tfci {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    hostname: Optional[str] = typer.Option(
        None,
        "--hostname",
        help=(
            "The hostname of a Terraform Enterprise installation. "
            "Defaults to HCP Terraform (app.terraform.io)"
        ),
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        help=(
            "The token used to authenticate with HCP Terraform. "
            "Defaults to reading the TF_API_TOKEN environment variable"
        ),
    ),
    organization: Optional[str] = typer.Option(
        None, "--organization", help="HCP Terraform Organization Name"
    ),
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show the version and exit",
    ),
):
    """Run HCP Terraform operations from a CI pipeline."""
    platform = detect_platform().value
    configure_logging(platform=platform)
    logger.info("Starting application", extra={"version": __version__})
    ctx.obj = GlobalOptions(
        hostname=hostname or None,
        token=token or None,
        organization=organization or None,
        platform=platform,
    )


def _fail(writer: ResultWriter, message: str) -> None:
    logger.error("Invalid configuration: %s", message)
    writer.error_result(message)


def _meta(ctx: typer.Context) -> Meta:
    options: GlobalOptions = ctx.obj or GlobalOptions()
    writer = ResultWriter()
    try:
        config = load_config(
            hostname=options.hostname,
            token=options.token,
            organization=options.organization,
        )
    except ConfigError as e:
        _fail(writer, str(e))
        raise typer.Exit(code=1)

    problems = config.validate()
    if problems:
        for problem in problems:
            _fail(writer, problem)
        raise typer.Exit(code=1)

    env = new_ci_context(logger=logging.getLogger("tfci.environment"))
    if env.platform is PlatformType.GENERIC:
        writer.warn("No supported CI platform detected, outputs are printed only")
    logger.debug(
        "Subcommand details",
        extra={"organization": config.organization, "ci_id": env.id},
    )
    return Meta(
        cloud=build_cloud(config, env.platform.value),
        env=env,
        organization=config.organization,
        writer=writer,
    )


def _run(command: BaseCommand) -> None:
    logger.debug("Running command", extra={"command": command.name})
    code = command.run()
    if code:
        raise typer.Exit(code=code)


@app.command("upload")
def upload(
    ctx: typer.Context,
    workspace: str = typer.Option(
        ...,
        "--workspace",
        help="The name of the workspace to create the new configuration version in.",
    ),
    directory: Path = typer.Option(
        ..., "--directory", help="Path to the configuration files on disk."
    ),
    speculative: bool = typer.Option(
        False,
        "--speculative",
        help="Configuration version may only be used for speculative runs.",
    ),
    provisional: bool = typer.Option(
        False,
        "--provisional",
        help="Configuration version becomes current once a run using it is applied.",
    ),
):
    """Creates and uploads a new configuration version for the provided workspace."""
    _run(
        UploadConfigurationCommand(
            _meta(ctx),
            workspace=workspace,
            directory=directory,
            speculative=speculative,
            provisional=provisional,
        )
    )


@run_app.command("create")
def run_create(
    ctx: typer.Context,
    workspace: str = typer.Option(
        ..., "--workspace", help="The workspace where the run will be executed."
    ),
    configuration_version: str = typer.Option(
        ...,
        "--configuration-version",
        help="The configuration version to use for this run.",
    ),
    message: str = typer.Option(
        "", "--message", help="Message to associate with the run."
    ),
    plan_only: bool = typer.Option(
        False, "--plan-only", help="Speculative, plan-only run that cannot be applied."
    ),
    save_plan: bool = typer.Option(
        False, "--save-plan", help="Create a saved plan run."
    ),
    async_no_log: bool = typer.Option(
        False, "--async-no-log", help="Do not wait for the plan to finish."
    ),
):
    """Performs a new plan run in HCP Terraform."""
    _run(
        CreateRunCommand(
            _meta(ctx),
            workspace=workspace,
            configuration_version=configuration_version,
            message=message,
            plan_only=plan_only,
            save_plan=save_plan,
            async_no_log=async_no_log,
        )
    )


@run_app.command("apply")
def run_apply(
    ctx: typer.Context,
    run: str = typer.Option(..., "--run", help="The run ID to apply."),
    comment: str = typer.Option("", "--comment", help="Comment for the apply."),
):
    """Applies a run that is paused waiting for confirmation."""
    _run(ApplyRunCommand(_meta(ctx), run_id=run, comment=comment))


@run_app.command("show")
def run_show(
    ctx: typer.Context,
    run: str = typer.Option(..., "--run", help="The run ID to show."),
):
    """Returns run details for the provided run ID."""
    _run(ShowRunCommand(_meta(ctx), run_id=run))


@run_app.command("discard")
def run_discard(
    ctx: typer.Context,
    run: str = typer.Option(..., "--run", help="The run ID to discard."),
    comment: str = typer.Option("", "--comment", help="Comment for the discard."),
):
    """Skips any remaining work on a run that is paused waiting for confirmation."""
    _run(DiscardRunCommand(_meta(ctx), run_id=run, comment=comment))


@run_app.command("cancel")
def run_cancel(
    ctx: typer.Context,
    run: str = typer.Option(..., "--run", help="The run ID to cancel."),
    comment: str = typer.Option("", "--comment", help="Comment for the cancel."),
):
    """Interrupts a run that is currently planning or applying."""
    _run(CancelRunCommand(_meta(ctx), run_id=run, comment=comment))


@plan_app.command("output")
def plan_output(
    ctx: typer.Context,
    plan: str = typer.Option(
        ..., "--plan", help="The plan ID to retrieve details for."
    ),
):
    """Returns the plan details for the provided plan ID."""
    _run(OutputPlanCommand(_meta(ctx), plan_id=plan))


@workspace_output_app.command("list")
def workspace_output_list(
    ctx: typer.Context,
    workspace: str = typer.Option(
        ..., "--workspace", help="The workspace to read outputs from."
    ),
):
    """Returns the latest state version outputs for a workspace."""
    _run(WorkspaceOutputCommand(_meta(ctx), workspace=workspace))


if __name__ == "__main__":
    app()
