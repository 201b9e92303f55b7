"""
Shared test fixtures and configuration.
"""

import os
from pathlib import Path

import pytest

from architech.adapters.mock import MockCommandRunner
from architech.core.engine.executor import BlueprintExecutor
from architech.core.models.action import parse_action
from architech.core.models.blueprint import Blueprint, ModuleSpec
from architech.core.paths.resolver import PathResolver


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An empty project directory."""
    root = tmp_path / "app"
    root.mkdir()
    return root


@pytest.fixture
def resolver(project: Path) -> PathResolver:
    return PathResolver(root=str(project))


@pytest.fixture
def mock_runner() -> MockCommandRunner:
    return MockCommandRunner()


@pytest.fixture
def executor(mock_runner: MockCommandRunner) -> BlueprintExecutor:
    return BlueprintExecutor(runner=mock_runner)


@pytest.fixture
def make_module():
    """Build a ModuleSpec from raw action mappings."""

    def _make(actions, module_id="test/module", parameters=None, **kwargs) -> ModuleSpec:
        blueprint = Blueprint(
            id=kwargs.pop("blueprint_id", module_id.replace("/", "-")),
            contextual_files=kwargs.pop("contextual_files", []),
            actions=[parse_action(a) for a in actions],
        )
        return ModuleSpec(
            id=module_id,
            blueprint=blueprint,
            category=module_id.split("/", 1)[0],
            parameters=parameters or {},
            **kwargs,
        )

    return _make


@pytest.fixture
def umask_022():
    """Pin the process umask so new-file modes are predictable."""
    previous = os.umask(0o022)
    yield
    os.umask(previous)
