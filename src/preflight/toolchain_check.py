"""
Toolchain Pre-flight Check.

Verifies, before a live run, that every configured binary is on PATH and
answers its version command. The runner uses the result to refuse a live
run up front; the test session uses it to skip tools that are absent
instead of failing them one by one.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List

from loguru import logger

from src.tools.runner import ToolError
from src.tools.tool_base import ToolBase


@dataclass
class PreflightResult:
    """
    Result of a toolchain pre-flight check.

    Attributes:
        healthy: Whether every tool passed.
        checks: Tool name -> passed.
        message: Summary message.
        details: Per-tool detail (resolved binary, first output line, error).
    """

    healthy: bool = True
    checks: Dict[str, bool] = field(default_factory=dict)
    message: str = "All checks passed."
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def failed_checks(self) -> List[str]:
        """Return list of tool names that failed."""
        return [name for name, passed in self.checks.items() if not passed]

    @property
    def passed_checks(self) -> List[str]:
        return [name for name, passed in self.checks.items() if passed]


class ToolchainChecker:
    """
    Performs pre-flight checks on the external toolchain.

    Usage::

        checker = ToolchainChecker(retry_count=2)
        result = checker.check(tools)
        if not result.healthy:
            logger.error(result.message)
    """

    def __init__(self, retry_count: int = 1) -> None:
        """
        Args:
            retry_count: Attempts per tool before it is reported as failed.
        """
        self.retry_count = max(1, retry_count)
        logger.info(f"ToolchainChecker initialized — retries={self.retry_count}")

    def check(self, tools: Iterable[ToolBase]) -> PreflightResult:
        """Check every tool and return the combined result."""
        result = PreflightResult()

        for tool in tools:
            detail: Dict[str, Any] = {"binary": tool.binary}
            passed = self._run_check_with_retry(tool, lambda t=tool: self._check_tool(t, detail))
            result.checks[tool.name] = passed
            result.details[tool.name] = detail
            if not passed:
                result.healthy = False

        if result.healthy:
            result.message = f"Toolchain: All {len(result.checks)} checks passed."
            logger.info(result.message)
        else:
            failed = result.failed_checks
            result.message = (
                f"Toolchain: {len(failed)} check(s) failed — {', '.join(failed)}"
            )
            logger.warning(result.message)

        return result

    def _run_check_with_retry(self, tool: ToolBase, check_fn: Callable[[], bool]) -> bool:
        """Run a single check with retries."""
        for attempt in range(1, self.retry_count + 1):
            try:
                if check_fn():
                    return True
                logger.debug(
                    f"Check '{tool.name}' failed (attempt {attempt}/{self.retry_count})"
                )
            except ToolError as e:
                logger.error(
                    f"Check '{tool.name}' raised: {e} (attempt {attempt}/{self.retry_count})"
                )
        return False

    @staticmethod
    def _check_tool(tool: ToolBase, detail: Dict[str, Any]) -> bool:
        detail.pop("error", None)
        if not tool.is_available():
            detail["error"] = f"'{tool.binary}' not found on PATH"
            return False

        version = tool.version()
        first_line = version.output.strip().splitlines()[0] if version.output.strip() else ""
        detail["exit_code"] = version.exit_code
        detail["version"] = first_line
        if not version.ok:
            detail["error"] = f"exit code {version.exit_code}"
            return False
        return True
