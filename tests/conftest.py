"""
Root conftest.py — Shared Pytest fixtures and configuration.

Provides fixtures for:
- Toolchain and stack configuration loading
- External tools via the tool factory (real binaries or MockTool)
- Terraform stacks via TerraformOptions (real driver or MockTerraform)
- Latest-release resolution for version checks

Simulation is the default: every tool and stack is mocked so the suites
validate the harness on machines without the infrastructure tooling.
Pass --live to run the real binaries, and additionally --run-stacks to
let the stack suites provision and destroy real infrastructure.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, List

import pytest
from loguru import logger

from src.config.loader import ConfigLoader, default_config_dir
from src.terraform import MockTerraform, Terraform, TerraformOptions, TerraformOptionsError
from src.tools import ToolBase, create_tool_from_config
from src.tools.releases import ReleaseChecker


# ---------------------------------------------------------------------------
# CLI Options
# ---------------------------------------------------------------------------


def pytest_addoption(parser: pytest.Parser) -> None:
    """Add custom CLI options for the harness."""
    parser.addoption(
        "--live",
        action="store_true",
        default=False,
        help="Invoke the real binaries instead of mocks. Default: simulate",
    )
    parser.addoption(
        "--run-stacks",
        action="store_true",
        default=False,
        help="With --live, allow stack suites to apply and destroy real infrastructure",
    )
    parser.addoption(
        "--stack",
        action="append",
        default=[],
        help="Restrict stack suites to the named stack (repeatable)",
    )
    parser.addoption(
        "--config-dir",
        default=None,
        help="Configuration directory. Default: $IAC_HARNESS_CONFIG_DIR or ./config",
    )


# ---------------------------------------------------------------------------
# Configuration Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def config_dir(request: pytest.FixtureRequest) -> Path:
    """Return the path to the configuration directory."""
    override = request.config.getoption("--config-dir")
    return Path(override) if override else default_config_dir()


@pytest.fixture(scope="session")
def config_loader(config_dir: Path) -> ConfigLoader:
    """Create a shared ConfigLoader instance for the test session."""
    return ConfigLoader(config_dir=config_dir)


@pytest.fixture(scope="session")
def toolchain_config(config_loader: ConfigLoader) -> Dict[str, Any]:
    return config_loader.load_toolchain()


@pytest.fixture(scope="session")
def stacks_config(config_loader: ConfigLoader) -> Dict[str, Any]:
    return config_loader.load_stacks()


@pytest.fixture(scope="session")
def test_config(request: pytest.FixtureRequest) -> Dict[str, Any]:
    """
    Consolidated runtime parameters from CLI options.
    """
    return {
        "simulate": not request.config.getoption("--live"),
        "run_stacks": request.config.getoption("--run-stacks"),
        "stacks": request.config.getoption("--stack"),
    }


# ---------------------------------------------------------------------------
# Tool Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def release_checker(test_config: Dict[str, Any]) -> ReleaseChecker:
    return ReleaseChecker(simulate=test_config["simulate"])


@pytest.fixture(scope="session")
def make_tool(
    test_config: Dict[str, Any],
    toolchain_config: Dict[str, Any],
) -> Callable[[str], ToolBase]:
    """
    Factory fixture returning a configured tool by name.

    In live mode a tool whose binary is not on PATH skips the test.
    """
    simulate = test_config["simulate"]
    tools_cfg = toolchain_config.get("tools", {})

    def _make(name: str) -> ToolBase:
        tool = create_tool_from_config(name, tools_cfg.get(name, {}), simulate=simulate)
        if not simulate and not tool.is_available():
            pytest.skip(f"{tool.binary} not installed")
        return tool

    return _make


# ---------------------------------------------------------------------------
# Stack Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_stack(
    test_config: Dict[str, Any],
    config_loader: ConfigLoader,
) -> Callable[[str], Terraform]:
    """
    Factory fixture returning a Terraform driver for a configured stack.

    Simulation returns a MockTerraform whose outputs echo the stack's vars.
    Live mode requires --run-stacks, the terraform binary, and an existing
    stack directory; otherwise the test is skipped.
    """
    simulate = test_config["simulate"]
    selected: List[str] = test_config["stacks"]

    def _make(name: str) -> Terraform:
        if selected and name not in selected:
            pytest.skip(f"stack '{name}' not selected")

        entry = config_loader.get_stack(name)
        options = TerraformOptions.from_dict(entry, base_dir=config_loader.base_dir)

        if simulate:
            return MockTerraform(options, outputs=dict(options.vars))

        if not test_config["run_stacks"]:
            pytest.skip("live stack apply/destroy needs --run-stacks")
        try:
            options.validate()
        except TerraformOptionsError as e:
            pytest.skip(f"stack '{name}' not runnable here: {e}")

        terraform = Terraform(options)
        if terraform.runner.which(options.binary) is None:
            pytest.skip(f"{options.binary} not installed")
        return terraform

    return _make


# ---------------------------------------------------------------------------
# Markers
# ---------------------------------------------------------------------------


def pytest_configure(config: pytest.Config) -> None:
    """Register custom Pytest markers."""
    config.addinivalue_line(
        "markers",
        "integration: Tests that exercise external binaries (mocked unless --live)",
    )
    config.addinivalue_line(
        "markers",
        "smoke: Toolchain availability smoke tests",
    )
    config.addinivalue_line(
        "markers",
        "stacks: Terraform apply/destroy tests",
    )


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Mark everything under tests/integration/ as an integration test."""
    integration = 0
    for item in items:
        if "integration" in item.path.parts:
            item.add_marker(pytest.mark.integration)
            integration += 1

    mode = "live" if config.getoption("--live") else "simulate"
    logger.info(f"Collected {len(items)} tests ({integration} integration, mode={mode})")
