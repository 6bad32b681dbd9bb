"""
Unit Tests for the Toolchain Pre-flight Check.
"""

from __future__ import annotations

from typing import List, Optional

from src.preflight import PreflightResult, ToolchainChecker
from src.tools.mock_tool import MockTool
from src.tools.runner import CommandResult, ToolExecutionError


class _FlakyTool(MockTool):
    """Tool whose first N version calls time out."""

    def __init__(self, name: str, failures: int) -> None:
        super().__init__(name)
        self.failures = failures

    def run(self, *args: str, timeout_sec: Optional[float] = None) -> CommandResult:
        if self.failures > 0:
            self.failures -= 1
            raise ToolExecutionError(f"{self.binary} timed out")
        return super().run(*args, timeout_sec=timeout_sec)


def _toolchain(**overrides) -> List[MockTool]:
    names = ["terraform", "gpg", "talosctl", "flux"]
    return [overrides.get(name) or MockTool(name) for name in names]


class TestPreflightResult:

    def test_partitions_checks(self):
        result = PreflightResult(checks={"terraform": True, "flux": False})
        assert result.passed_checks == ["terraform"]
        assert result.failed_checks == ["flux"]


class TestToolchainChecker:
    """Tests for ToolchainChecker against mock tools."""

    def test_all_healthy(self):
        result = ToolchainChecker().check(_toolchain())

        assert result.healthy
        assert result.failed_checks == []
        assert "All 4 checks passed" in result.message
        assert result.details["terraform"]["version"].startswith("Terraform v")
        assert result.details["gpg"]["binary"] == "gpg"

    def test_missing_tool(self):
        result = ToolchainChecker().check(_toolchain(flux=MockTool("flux", missing=True)))

        assert not result.healthy
        assert result.failed_checks == ["flux"]
        assert "not found on PATH" in result.details["flux"]["error"]
        assert "flux" in result.message

    def test_failing_tool(self):
        result = ToolchainChecker().check(_toolchain(talosctl=MockTool("talosctl", fail=True)))

        assert not result.healthy
        assert result.details["talosctl"]["exit_code"] == 1
        assert result.details["talosctl"]["error"] == "exit code 1"

    def test_retries_transient_errors(self):
        flaky = _FlakyTool("terraform", failures=1)
        result = ToolchainChecker(retry_count=2).check([flaky])

        assert result.healthy
        assert "error" not in result.details["terraform"]

    def test_gives_up_after_retry_count(self):
        flaky = _FlakyTool("terraform", failures=5)
        result = ToolchainChecker(retry_count=2).check([flaky])

        assert not result.healthy
        assert flaky.failures == 3

    def test_retry_count_floor(self):
        assert ToolchainChecker(retry_count=0).retry_count == 1

    def test_empty_toolchain_is_healthy(self):
        assert ToolchainChecker().check([]).healthy
