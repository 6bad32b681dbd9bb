"""
Mock Terraform — simulation layer for stack tests without the binary.

Builds exactly the same argument vectors as the real driver and records
them, returning canned output instead of running anything. Retry handling
is inherited unchanged.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from loguru import logger

from src.terraform.options import TerraformOptions
from src.terraform.terraform_driver import Terraform
from src.tools.runner import CommandResult


MOCK_OUTPUTS = {
    "init": "Terraform has been successfully initialized!\n",
    "apply": "Apply complete! Resources: 1 added, 0 changed, 0 destroyed.\n",
    "destroy": "Destroy complete! Resources: 1 destroyed.\n",
}


class MockTerraform(Terraform):
    """
    Terraform driver that simulates every command.

    Args:
        options: Options record; the directory need not exist.
        outputs: Values returned by ``terraform output``.
        fail_on: Subcommands ("init", "apply", "destroy", "output") that
            exit non-zero.
        failure_output: Output printed by failing subcommands; make it match
            a retryable pattern to exercise retries.
        failures_before_success: How many times a fail_on subcommand fails
            before it starts succeeding. None means it always fails.
    """

    def __init__(
        self,
        options: TerraformOptions,
        outputs: Optional[Dict[str, Any]] = None,
        fail_on: Iterable[str] = (),
        failure_output: str = "Error: simulated failure\n",
        failures_before_success: Optional[int] = None,
    ) -> None:
        super().__init__(options, sleep=lambda _seconds: None)
        self._outputs = outputs or {}
        self._fail_on = set(fail_on)
        self._failure_output = failure_output
        self._failures_left = failures_before_success
        self.commands: List[List[str]] = []
        self.applied = False

    def _invoke(self, args: List[str]) -> CommandResult:
        argv = [self.options.binary, *args]
        self.commands.append(argv)
        subcommand = args[0]

        if subcommand in self._fail_on and (self._failures_left is None or self._failures_left > 0):
            if self._failures_left is not None:
                self._failures_left -= 1
            logger.warning(f"MockTerraform: Simulating failure of '{subcommand}'")
            return CommandResult(argv=argv, exit_code=1, output=self._failure_output,
                                 cwd=self.options.terraform_dir)

        if subcommand == "output":
            output = json.dumps({
                name: {"sensitive": False, "type": "string", "value": value}
                for name, value in self._outputs.items()
            })
        else:
            output = MOCK_OUTPUTS.get(subcommand, "")
        if subcommand == "apply":
            self.applied = True
        elif subcommand == "destroy":
            self.applied = False

        logger.debug(f"MockTerraform: {' '.join(argv)}")
        return CommandResult(argv=argv, exit_code=0, output=output, cwd=self.options.terraform_dir)

    @property
    def subcommands(self) -> List[str]:
        """Subcommands run so far, in order."""
        return [argv[1] for argv in self.commands]
