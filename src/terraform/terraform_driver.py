"""
Terraform Driver — init/apply/destroy of a configuration directory.

Runs the terraform binary non-interactively through CommandRunner:

    terraform init -input=false -upgrade=false -no-color
    terraform apply -input=false -auto-approve -lock=false -no-color -var k=v ... -var-file f
    terraform destroy -auto-approve -input=false -lock=false -no-color -var k=v ... -var-file f

A failed command is retried only when its output matches one of the
options' retryable error patterns; any other failure raises at once.
"""

from __future__ import annotations

import json
import re
import time
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generator, List, Mapping, Optional, Sequence

from loguru import logger

from src.terraform.options import TerraformOptions
from src.tools.runner import CommandResult, CommandRunner, ToolError


class TerraformError(Exception):
    """Raised when a terraform command fails."""

    def __init__(self, message: str, result: Optional[CommandResult] = None) -> None:
        super().__init__(message)
        self.result = result


class MaxRetriesExceeded(TerraformError):
    """Raised when a retryable failure persists past max_retries."""

    pass


def format_var_value(value: Any) -> str:
    """
    Render a Python value as a Terraform -var value.

    Lists and maps are JSON encoded, which Terraform parses as HCL
    tuple/object expressions.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return value
    return json.dumps(value, sort_keys=True, separators=(",", ":"))


def format_var_args(variables: Mapping[str, Any]) -> List[str]:
    """Build ``-var key=value`` pairs, ordered by key."""
    args: List[str] = []
    for key in sorted(variables):
        args.extend(["-var", f"{key}={format_var_value(variables[key])}"])
    return args


def format_var_file_args(var_files: Sequence[str]) -> List[str]:
    args: List[str] = []
    for var_file in var_files:
        args.extend(["-var-file", var_file])
    return args


class Terraform:
    """
    Drives the terraform binary for one TerraformOptions record.

    Usage::

        tf = Terraform(TerraformOptions(terraform_dir="infra/smoke"))
        with stack(tf):
            assert tf.output("greeting") == "hello"
    """

    def __init__(
        self,
        options: TerraformOptions,
        runner: Optional[CommandRunner] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.options = options
        self.runner = runner or CommandRunner(default_timeout_sec=options.timeout_sec)
        self._sleep = sleep
        self._retryable = [
            (re.compile(pattern), description)
            for pattern, description in options.retryable_errors.items()
        ]
        logger.info(
            f"Terraform initialized — dir={options.terraform_dir}, "
            f"vars={len(options.vars)}, var_files={len(options.var_files)}, "
            f"retryable_errors={len(options.retryable_errors)}"
        )

    # --- Argument building ---

    def _common_flags(self) -> List[str]:
        return ["-no-color"] if self.options.no_color else []

    def _var_args(self) -> List[str]:
        return format_var_args(self.options.vars) + format_var_file_args(self.options.var_files)

    def init_args(self) -> List[str]:
        return [
            "init",
            "-input=false",
            f"-upgrade={'true' if self.options.upgrade else 'false'}",
            *self._common_flags(),
        ]

    def apply_args(self) -> List[str]:
        return [
            "apply",
            "-input=false",
            "-auto-approve",
            f"-lock={'true' if self.options.lock else 'false'}",
            *self._common_flags(),
            *self._var_args(),
        ]

    def destroy_args(self) -> List[str]:
        return [
            "destroy",
            "-auto-approve",
            "-input=false",
            f"-lock={'true' if self.options.lock else 'false'}",
            *self._common_flags(),
            *self._var_args(),
        ]

    def output_args(self) -> List[str]:
        return ["output", "-no-color", "-json"]

    # --- Operations ---

    def init(self) -> str:
        """Run ``terraform init`` and return its output."""
        return self._run_with_retry(self.init_args(), "terraform init").output

    def apply(self) -> str:
        """Run ``terraform apply`` and return its output."""
        return self._run_with_retry(self.apply_args(), "terraform apply").output

    def init_and_apply(self) -> str:
        """Run init then apply; return the apply output."""
        self.init()
        return self.apply()

    def destroy(self) -> str:
        """Run ``terraform destroy`` and return its output."""
        return self._run_with_retry(self.destroy_args(), "terraform destroy").output

    def output_all(self) -> Dict[str, Any]:
        """Return every root module output as {name: value}."""
        result = self._run_with_retry(self.output_args(), "terraform output")
        try:
            raw = json.loads(result.output or "{}")
        except json.JSONDecodeError as e:
            raise TerraformError(f"terraform output returned invalid JSON: {e}", result) from e
        return {name: entry.get("value") for name, entry in raw.items()}

    def output(self, name: str) -> Any:
        """
        Return a single root module output.

        Raises:
            KeyError: If the output is not defined.
        """
        outputs = self.output_all()
        if name not in outputs:
            raise KeyError(f"Output '{name}' not found. Available: {sorted(outputs)}")
        return outputs[name]

    # --- Internal helpers ---

    def _invoke(self, args: List[str]) -> CommandResult:
        if not self.options.path.is_dir():
            raise TerraformError(
                f"Terraform directory does not exist: {self.options.terraform_dir}"
            )
        return self.runner.run(
            [self.options.binary, *args],
            cwd=self.options.terraform_dir,
            env=self.options.env() or None,
            timeout_sec=self.options.timeout_sec,
        )

    def _match_retryable(self, output: str) -> Optional[str]:
        for pattern, description in self._retryable:
            if pattern.search(output):
                return description
        return None

    def _run_with_retry(self, args: List[str], description: str) -> CommandResult:
        max_retries = self.options.max_retries if self._retryable else 0
        attempt = 0
        while True:
            attempt += 1
            logger.info(f"[{description}] attempt {attempt}/{max_retries + 1}")
            result = self._invoke(args)
            if result.ok:
                logger.info(f"[{description}] succeeded in {result.duration_ms:.1f}ms")
                return result

            reason = self._match_retryable(result.output)
            if reason is None:
                logger.error(f"[{description}] failed with exit code {result.exit_code}")
                raise TerraformError(
                    f"'{description}' failed with exit code {result.exit_code}:\n{result.output}",
                    result,
                )

            if attempt > max_retries:
                logger.error(f"[{description}] still failing after {max_retries} retries: {reason}")
                raise MaxRetriesExceeded(
                    f"'{description}' unsuccessful after {max_retries} retries: {reason}",
                    result,
                )

            logger.warning(
                f"[{description}] retryable error ({reason}); "
                f"sleeping {self.options.time_between_retries_sec}s"
            )
            self._sleep(self.options.time_between_retries_sec)


@contextmanager
def stack(terraform: Terraform) -> Generator[Terraform, None, None]:
    """
    Apply a configuration for the duration of a block, then destroy it.

    Destroy runs even when init/apply or the block itself fails. A destroy
    failure is raised only when nothing else failed first; otherwise it is
    logged so the original error is the one reported.
    """
    failed = False
    try:
        terraform.init_and_apply()
        yield terraform
    except BaseException:
        failed = True
        raise
    finally:
        try:
            terraform.destroy()
        except (TerraformError, ToolError) as e:
            if not failed:
                raise
            logger.error(f"Destroy after failure also failed: {e}")
