"""
Master test configuration for tfci.

Provides shared fixtures:
- A complete GitHub Actions environment rooted in a temporary directory
- GitHub contexts wired to an in-memory stdout
- Resource factories for HCP Terraform API models
- Root logger isolation between tests
"""

import io
import logging
from pathlib import Path
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest

from tfci.cloud import CloudService
from tfci.command import Meta
from tfci.config import TfciConfig
from tfci.contracts.models import ConfigurationVersion, Plan, Run
from tfci.environment import GitHubContext
from tfci.writer import ResultWriter


# Core Fixtures


@pytest.fixture(autouse=True)
def isolated_root_logger():
    """Restore root logger handlers replaced by configure_logging."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture
def github_env(tmp_path) -> Dict[str, str]:
    """Environment of a GitHub Actions step."""
    return {
        "GITHUB_ACTIONS": "true",
        "GITHUB_RUN_ID": "42",
        "GITHUB_RUN_NUMBER": "7",
        "GITHUB_SHA": "abcdef1234567890",
        "GITHUB_ACTOR": "octocat",
        "GITHUB_REPOSITORY": "octocat/Hello-World",
        "GITHUB_REF_NAME": "main",
        "GITHUB_REF_TYPE": "branch",
        "RUNNER_TEMP": str(tmp_path / "runner"),
        "GITHUB_OUTPUT": str(tmp_path / "github_output"),
    }


@pytest.fixture
def output_file(github_env) -> Path:
    return Path(github_env["GITHUB_OUTPUT"])


@pytest.fixture
def stdout() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def github_context(github_env, stdout) -> GitHubContext:
    return GitHubContext.from_env(github_env.get, stdout=stdout)


@pytest.fixture
def test_config() -> TfciConfig:
    return TfciConfig(
        hostname="app.terraform.io",
        token="test-token",
        organization="test-org",
        poll_interval=1.0,
        poll_timeout=10.0,
    )


@pytest.fixture
def mock_cloud(test_config):
    """CloudService double with a spec so typos fail loudly."""
    cloud = MagicMock(spec=CloudService)
    cloud.config = test_config
    cloud.run_link.return_value = "https://app.terraform.io/app/test-org/workspaces/ws/runs/run-1"
    return cloud


@pytest.fixture
def mock_writer():
    return MagicMock(spec=ResultWriter)


@pytest.fixture
def meta(mock_cloud, github_context, mock_writer) -> Meta:
    return Meta(
        cloud=mock_cloud,
        env=github_context,
        organization="test-org",
        writer=mock_writer,
    )


# Test Data Factories


class TestDataFactory:
    """Factory for HCP Terraform resources."""

    @staticmethod
    def configuration_version(**overrides) -> ConfigurationVersion:
        data: Dict[str, Any] = {
            "id": "cv-1",
            "status": "uploaded",
            "upload_url": "https://archivist.example.com/upload",
        }
        data.update(overrides)
        return ConfigurationVersion(**data)

    @staticmethod
    def run(**overrides) -> Run:
        data: Dict[str, Any] = {
            "id": "run-1",
            "status": "planned",
            "message": "Triggered from CI",
            "workspace_id": "ws-1",
        }
        data.update(overrides)
        return Run(**data)

    @staticmethod
    def plan(**overrides) -> Plan:
        data: Dict[str, Any] = {
            "id": "plan-1",
            "status": "finished",
            "resource_additions": 2,
            "resource_changes": 1,
            "resource_destructions": 0,
        }
        data.update(overrides)
        return Plan(**data)

    @staticmethod
    def jsonapi(resource_type: str, resource_id: str, **attributes) -> Dict[str, Any]:
        return {"data": {"id": resource_id, "type": resource_type, "attributes": attributes}}


@pytest.fixture
def factory():
    return TestDataFactory()


def pytest_configure(config):
    """Configure pytest."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


def pytest_collection_modifyitems(config, items):
    """Add default markers based on test location."""
    for item in items:
        test_path = str(item.fspath)
        if "unit" in test_path:
            item.add_marker(pytest.mark.unit)
        else:
            item.add_marker(pytest.mark.integration)
