"""
Abstract Base Class for External CLI Tools.

Defines the interface shared by the real tool wrappers and the mock used in
simulation mode, so the smoke suites run against either transparently.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from loguru import logger

from src.tools.runner import CommandResult


class ToolBase(ABC):
    """
    Abstract base class for all external tool wrappers.

    Attributes:
        name: Logical tool name ("terraform", "gpg", ...).
        binary: Executable invoked on PATH.
        version_args: Arguments that make the tool report its version.
        timeout_sec: Per-invocation timeout.
    """

    DEFAULT_VERSION_ARGS: Sequence[str] = ("version",)

    def __init__(
        self,
        name: str,
        binary: Optional[str] = None,
        version_args: Optional[Sequence[str]] = None,
        timeout_sec: float = 60.0,
    ) -> None:
        self.name = name
        self.binary = binary or name
        self.version_args: List[str] = list(
            version_args if version_args is not None else self.DEFAULT_VERSION_ARGS
        )
        self.timeout_sec = timeout_sec
        logger.info(f"Tool [{name}] initialized — binary={self.binary}")

    @abstractmethod
    def is_available(self) -> bool:
        """Check whether the tool can be invoked."""
        ...

    @abstractmethod
    def run(self, *args: str, timeout_sec: Optional[float] = None) -> CommandResult:
        """Invoke the tool with the given arguments."""
        ...

    def version(self) -> CommandResult:
        """Invoke the tool's version command."""
        return self.run(*self.version_args)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, binary={self.binary!r})"
