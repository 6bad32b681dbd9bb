"""
External Tool Atomic Actions.

Encapsulates the smoke checks run against each infrastructure binary:
- Version check, optionally requiring an expected version.
- Key listing for the key-management tool.

A non-zero exit is an ERROR; exiting cleanly with empty or unexpected
output is a FAILURE.
"""

from __future__ import annotations

import re
from typing import Any, Dict, Optional, Sequence

from loguru import logger

from src.actions.base import ActionFailure, ActionResult, AtomicAction
from src.tools.releases import LATEST, ReleaseChecker
from src.tools.tool_base import ToolBase


# Where each tool prints its own version. Terraform appends an "out of date"
# notice naming the latest release, so only its first line is trusted.
VERSION_PATTERNS = {
    "terraform": re.compile(r"\ATerraform v(\S+)"),
    "talosctl": re.compile(r"^\s*Tag:\s+v(\S+)", re.MULTILINE),
    "flux": re.compile(r"^flux: v(\S+)", re.MULTILINE),
}


def installed_version(tool_name: str, output: str) -> Optional[str]:
    """Extract the version a tool reports for itself, or None if unknown."""
    pattern = VERSION_PATTERNS.get(tool_name)
    if pattern is None:
        return None
    match = pattern.search(output.lstrip())
    return match.group(1) if match else None


def version_matches(tool_name: str, output: str, expect: str) -> bool:
    """
    Check the reported version against an expected one.

    A parseable version must equal expect exactly. Otherwise expect must
    appear in the output on a version boundary, so 1.9.8 does not match
    1.9.80.
    """
    expect = expect.lstrip("v")
    installed = installed_version(tool_name, output)
    if installed is not None:
        return installed.lstrip("v") == expect
    pattern = rf"(?<![\w.])v?{re.escape(expect)}(?![\w.])"
    return re.search(pattern, output) is not None


class ToolActions:
    """
    Collection of atomic actions for one external tool.

    Usage::

        actions = ToolActions(create_tool("flux"))
        result = actions.check_version()
        assert result.is_success, result.message
    """

    def __init__(
        self,
        tool: ToolBase,
        release_checker: Optional[ReleaseChecker] = None,
    ) -> None:
        self.tool = tool
        self.release_checker = release_checker
        logger.info(f"ToolActions initialized — tool={tool.name}")

    def check_version(self, expect: Optional[str] = None, **kwargs: Any) -> ActionResult:
        """
        Run the tool's version command.

        Args:
            expect: Version the tool must report. "latest" is resolved
                through the release checker; if it cannot be resolved the
                check falls back to requiring non-empty output.
        """
        expected = self._resolve_expected(expect)
        action = _RunToolAction(
            name=f"{self.tool.name}_version",
            tool=self.tool,
            args=self.tool.version_args,
            empty_message=f"{self.tool.name} integration failed, no output received",
            timeout_sec=self.tool.timeout_sec,
        )
        result = action.run(expect=expected, **kwargs)
        result.metadata["expected"] = expected
        return result

    def list_keys(self, **kwargs: Any) -> ActionResult:
        """List keys in the keyring; an empty keyring is a failure."""
        action = _RunToolAction(
            name=f"{self.tool.name}_list_keys",
            tool=self.tool,
            args=("--list-keys",),
            empty_message="No GPG keys found, issue may still exist",
            timeout_sec=self.tool.timeout_sec,
        )
        return action.run(expect=None, **kwargs)

    def _resolve_expected(self, expect: Optional[str]) -> Optional[str]:
        if expect != LATEST:
            return expect
        if self.release_checker is None:
            logger.warning(f"No release checker for '{LATEST}' — requiring non-empty output only")
            return None
        resolved = self.release_checker.resolve_expected(expect, product=self.tool.name)
        if resolved is None:
            logger.warning(
                f"Could not resolve '{LATEST}' {self.tool.name} version — "
                "requiring non-empty output only"
            )
        return resolved


# ---------------------------------------------------------------------------
# Internal Atomic Action Implementations
# ---------------------------------------------------------------------------


class _RunToolAction(AtomicAction):
    """Atomic action: run a tool command and check its output."""

    def __init__(
        self,
        name: str,
        tool: ToolBase,
        args: Sequence[str],
        empty_message: str,
        timeout_sec: float = 60.0,
    ) -> None:
        # Allow the process timeout to trip first; this only flags slow runs.
        super().__init__(name=name, timeout_sec=timeout_sec + 5)
        self.tool = tool
        self.args = list(args)
        self.empty_message = empty_message

    def _execute(self, **kwargs: Any) -> Dict[str, Any]:
        expect = kwargs.get("expect")
        result = self.tool.run(*self.args)
        data = result.to_dict()

        if not result.ok:
            raise RuntimeError(
                f"Failed to run {result.command_line}: exit code {result.exit_code}\n"
                f"{result.output}"
            )

        if not result.output.strip():
            raise ActionFailure(self.empty_message, data=data)

        if expect and not version_matches(self.tool.name, result.output, expect):
            first_line = result.output.strip().splitlines()[0]
            raise ActionFailure(
                f"Expected {self.tool.name} version {expect}, got {first_line}",
                data=data,
            )

        return data
