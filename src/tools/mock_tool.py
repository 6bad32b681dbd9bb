"""
Mock Tool — simulation layer for running the suites without the binaries.

Returns realistic canned output for every supported tool so CI can
validate the harness itself on machines that have none of the
infrastructure tooling installed.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from loguru import logger

from src.tools.runner import CommandResult, ToolNotFoundError
from src.tools.tool_base import ToolBase


MOCK_TERRAFORM_VERSION = "1.9.8"

MOCK_OUTPUTS: Dict[str, str] = {
    "terraform": (
        f"Terraform v{MOCK_TERRAFORM_VERSION}\n"
        "on linux_amd64\n"
    ),
    "gpg": (
        "/home/ci/.gnupg/pubring.kbx\n"
        "---------------------------\n"
        "pub   ed25519 2024-03-01 [SC]\n"
        "      7A1B2C3D4E5F60718293A4B5C6D7E8F901234567\n"
        "uid           [ultimate] CI Bot <ci@example.com>\n"
        "sub   cv25519 2024-03-01 [E]\n"
    ),
    "talosctl": (
        "Client:\n"
        "\tTag:         v1.8.3\n"
        "\tSHA:         6494aced\n"
        "\tOS/Arch:     linux/amd64\n"
    ),
    "flux": "flux: v2.4.0\n",
}


class MockTool(ToolBase):
    """
    Mock tool that simulates an external binary.

    Args:
        name: Tool name; selects the canned output.
        fail: Return exit code 1 instead of 0.
        empty_output: Succeed but print nothing.
        missing: Behave as if the binary is not on PATH.
        output: Override the canned output.
    """

    def __init__(
        self,
        name: str,
        binary: Optional[str] = None,
        version_args: Optional[Sequence[str]] = None,
        timeout_sec: float = 60.0,
        fail: bool = False,
        empty_output: bool = False,
        missing: bool = False,
        output: Optional[str] = None,
    ) -> None:
        if version_args is None and name == "gpg":
            version_args = ("--list-keys",)
        super().__init__(name, binary=binary, version_args=version_args, timeout_sec=timeout_sec)
        self._fail = fail
        self._empty_output = empty_output
        self._missing = missing
        self._output = output if output is not None else MOCK_OUTPUTS.get(name, f"{name} mock\n")
        self.calls: List[List[str]] = []
        logger.info(f"MockTool [{name}] initialized — simulation mode")

    def is_available(self) -> bool:
        return not self._missing

    def run(self, *args: str, timeout_sec: Optional[float] = None) -> CommandResult:
        argv = [self.binary, *args]
        self.calls.append(argv)

        if self._missing:
            raise ToolNotFoundError(self.binary)

        if self._fail:
            logger.warning(f"MockTool: Simulating failure of '{' '.join(argv)}'")
            return CommandResult(
                argv=argv,
                exit_code=1,
                output=f"{self.name}: simulated failure\n",
            )

        output = "" if self._empty_output else self._output
        logger.debug(f"MockTool: '{' '.join(argv)}' -> {len(output)} bytes")
        return CommandResult(argv=argv, exit_code=0, output=output)
