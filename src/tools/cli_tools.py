"""
Concrete CLI tool wrappers.

- TerraformTool: provisioning tool, ``terraform version``.
- GpgTool: key-management tool, ``gpg --list-keys``.
- TalosctlTool: cluster bootstrap tool, ``talosctl version``.
- FluxTool: GitOps reconciliation tool, ``flux version``.

talosctl and flux contact a cluster by default when asked for their version.
Pass ``version_args=("version", "--client")`` (see config/toolchain.yaml)
to check only the local binary.
"""

from __future__ import annotations

from typing import Optional, Sequence

from src.tools.runner import CommandResult, CommandRunner
from src.tools.tool_base import ToolBase


class CLITool(ToolBase):
    """Tool backed by a real executable on PATH."""

    def __init__(
        self,
        name: str,
        binary: Optional[str] = None,
        version_args: Optional[Sequence[str]] = None,
        timeout_sec: float = 60.0,
        runner: Optional[CommandRunner] = None,
    ) -> None:
        super().__init__(name, binary=binary, version_args=version_args, timeout_sec=timeout_sec)
        self.runner = runner or CommandRunner(default_timeout_sec=timeout_sec)

    def is_available(self) -> bool:
        return self.runner.which(self.binary) is not None

    def run(self, *args: str, timeout_sec: Optional[float] = None) -> CommandResult:
        return self.runner.run(
            [self.binary, *args],
            timeout_sec=timeout_sec if timeout_sec is not None else self.timeout_sec,
        )


class TerraformTool(CLITool):
    def __init__(self, binary: Optional[str] = None, **kwargs) -> None:
        super().__init__("terraform", binary=binary, **kwargs)


class GpgTool(CLITool):
    """gpg's "version check" is listing the keyring; an empty keyring prints nothing."""

    DEFAULT_VERSION_ARGS = ("--list-keys",)

    def __init__(self, binary: Optional[str] = None, **kwargs) -> None:
        super().__init__("gpg", binary=binary, **kwargs)

    def list_keys(self) -> CommandResult:
        return self.run("--list-keys")


class TalosctlTool(CLITool):
    def __init__(self, binary: Optional[str] = None, **kwargs) -> None:
        super().__init__("talosctl", binary=binary, **kwargs)


class FluxTool(CLITool):
    def __init__(self, binary: Optional[str] = None, **kwargs) -> None:
        super().__init__("flux", binary=binary, **kwargs)
