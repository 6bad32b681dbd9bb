"""
Terraform Options — the configuration record for one apply/destroy run.

Mirrors the option set of the usual Terraform test helpers: a target
directory, -var values, -var-file paths, environment variables for the
child process, and output patterns that make a failed command retryable.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union


class TerraformOptionsError(ValueError):
    """Raised when a TerraformOptions record is not well formed."""

    pass


@dataclass
class TerraformOptions:
    """
    Parameters for running Terraform against one configuration directory.

    Attributes:
        terraform_dir: Directory holding the Terraform configuration.
        vars: Values passed with ``-var key=value``.
        var_files: Paths passed with ``-var-file``; relative paths are
            relative to terraform_dir, like Terraform itself treats them.
        env_vars: ``KEY=VALUE`` strings added to the process environment.
            A mapping is accepted and converted.
        retryable_errors: Regex -> description. A failed command whose
            output matches one of the patterns is retried.
        max_retries: Retries after the first attempt for retryable failures.
        time_between_retries_sec: Sleep between retries.
        no_color: Pass ``-no-color``.
        lock: Value of ``-lock`` for apply/destroy.
        upgrade: Value of ``-upgrade`` for init.
        binary: Terraform executable.
        timeout_sec: Per-command timeout.
    """

    terraform_dir: str = "."
    vars: Dict[str, Any] = field(default_factory=dict)
    var_files: List[str] = field(default_factory=list)
    env_vars: Union[List[str], Dict[str, str]] = field(default_factory=list)
    retryable_errors: Dict[str, str] = field(default_factory=dict)
    max_retries: int = 3
    time_between_retries_sec: float = 5.0
    no_color: bool = True
    lock: bool = False
    upgrade: bool = False
    binary: str = "terraform"
    timeout_sec: float = 1800.0

    def __post_init__(self) -> None:
        self.terraform_dir = str(self.terraform_dir)
        if isinstance(self.env_vars, Mapping):
            self.env_vars = [f"{k}={v}" for k, v in self.env_vars.items()]
        else:
            self.env_vars = list(self.env_vars)
        self.var_files = [str(p) for p in self.var_files]

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], base_dir: Optional[Union[str, Path]] = None
    ) -> "TerraformOptions":
        """
        Build options from a stack entry in config/stacks.yaml.

        A relative ``dir`` is resolved against base_dir when one is given.
        """
        terraform_dir = Path(data.get("dir", "."))
        if base_dir is not None and not terraform_dir.is_absolute():
            terraform_dir = Path(base_dir) / terraform_dir

        known = {
            "vars", "var_files", "env_vars", "retryable_errors", "max_retries",
            "time_between_retries_sec", "no_color", "lock", "upgrade", "binary",
            "timeout_sec",
        }
        kwargs = {k: v for k, v in data.items() if k in known and v is not None}
        return cls(terraform_dir=str(terraform_dir), **kwargs)

    @property
    def path(self) -> Path:
        return Path(self.terraform_dir)

    def env(self) -> Dict[str, str]:
        """Return env_vars as a mapping."""
        env: Dict[str, str] = {}
        for entry in self.env_vars:
            key, sep, value = entry.partition("=")
            if not sep or not key:
                raise TerraformOptionsError(
                    f"Environment variable must be KEY=VALUE, got '{entry}'"
                )
            env[key] = value
        return env

    def resolved_var_files(self) -> List[Path]:
        return [
            p if p.is_absolute() else self.path / p
            for p in (Path(f) for f in self.var_files)
        ]

    def validate(self) -> None:
        """
        Check that the record refers to things that exist.

        Raises:
            TerraformOptionsError: Listing every problem found.
        """
        problems: List[str] = []
        if not self.path.is_dir():
            problems.append(f"terraform_dir does not exist: {self.terraform_dir}")
        for var_file in self.resolved_var_files():
            if not var_file.is_file():
                problems.append(f"var file does not exist: {var_file}")
        try:
            self.env()
        except TerraformOptionsError as e:
            problems.append(str(e))
        if self.max_retries < 0:
            problems.append(f"max_retries must be >= 0, got {self.max_retries}")

        if problems:
            raise TerraformOptionsError("; ".join(problems))
