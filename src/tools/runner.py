"""
Command Runner — the single subprocess seam for every external binary.

All tools and the Terraform wrapper go through CommandRunner.run(), which
captures combined stdout/stderr the same way the tools print it to a
terminal, so assertions on "output" see what a user would see.
"""

from __future__ import annotations

import os
import shutil
import subprocess
import time
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from loguru import logger


class ToolError(Exception):
    """Base class for errors raised while invoking an external tool."""

    pass


class ToolNotFoundError(ToolError):
    """Raised when the requested binary is not on PATH."""

    def __init__(self, binary: str) -> None:
        super().__init__(f"Executable '{binary}' not found on PATH")
        self.binary = binary


class ToolExecutionError(ToolError):
    """Raised when a process cannot be run to completion (e.g. timeout)."""

    pass


@dataclass
class CommandResult:
    """
    Outcome of a single external process invocation.

    Attributes:
        argv: Full argument vector, binary first.
        exit_code: Process return code.
        output: Combined stdout and stderr.
        duration_ms: Wall-clock execution time.
        cwd: Working directory the process ran in, if any.
    """

    argv: List[str] = field(default_factory=list)
    exit_code: int = 0
    output: str = ""
    duration_ms: float = 0.0
    cwd: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def command_line(self) -> str:
        return " ".join(self.argv)

    def to_dict(self) -> Dict[str, object]:
        return {
            "argv": self.argv,
            "exit_code": self.exit_code,
            "output": self.output,
            "duration_ms": round(self.duration_ms, 3),
            "cwd": self.cwd,
        }


class CommandRunner:
    """
    Runs external commands synchronously and returns a CommandResult.

    A non-zero exit code is NOT an exception here; callers decide what a
    failure means. Only a missing binary or a timeout raise.
    """

    def __init__(self, default_timeout_sec: float = 300.0) -> None:
        self.default_timeout_sec = default_timeout_sec

    @staticmethod
    def which(binary: str) -> Optional[str]:
        """Return the resolved path of a binary, or None if it is not on PATH."""
        return shutil.which(binary)

    def run(
        self,
        argv: Sequence[str],
        *,
        cwd: Optional[str] = None,
        env: Optional[Dict[str, str]] = None,
        timeout_sec: Optional[float] = None,
    ) -> CommandResult:
        """
        Run a command to completion.

        Args:
            argv: Command and arguments.
            cwd: Working directory.
            env: Extra environment variables, merged over os.environ.
            timeout_sec: Kill the process after this many seconds.

        Raises:
            ToolNotFoundError: If argv[0] cannot be executed.
            ToolExecutionError: If the process times out.
        """
        argv = [str(a) for a in argv]
        timeout = timeout_sec if timeout_sec is not None else self.default_timeout_sec
        proc_env = None
        if env:
            proc_env = dict(os.environ)
            proc_env.update(env)

        logger.debug(f"CommandRunner: $ {' '.join(argv)} (cwd={cwd or '.'})")
        start = time.perf_counter()
        try:
            completed = subprocess.run(
                argv,
                cwd=cwd,
                env=proc_env,
                stdout=subprocess.PIPE,
                stderr=subprocess.STDOUT,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise ToolNotFoundError(argv[0]) from e
        except subprocess.TimeoutExpired as e:
            raise ToolExecutionError(
                f"'{' '.join(argv)}' timed out after {timeout}s"
            ) from e

        elapsed_ms = (time.perf_counter() - start) * 1000
        result = CommandResult(
            argv=argv,
            exit_code=completed.returncode,
            output=completed.stdout or "",
            duration_ms=elapsed_ms,
            cwd=cwd,
        )
        logger.debug(
            f"CommandRunner: {argv[0]} exited {result.exit_code} in {elapsed_ms:.1f}ms"
        )
        return result
