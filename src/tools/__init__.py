"""
External Tool Abstraction Layer.

Provides a unified interface for invoking the infrastructure binaries:
- terraform, gpg, talosctl, flux via CLITool subclasses
- MockTool for simulation without the binaries installed

The factory function `create_tool()` returns the appropriate wrapper
based on the tool name and whether simulation mode is enabled.
"""

from src.tools.runner import (
    CommandResult,
    CommandRunner,
    ToolError,
    ToolExecutionError,
    ToolNotFoundError,
)
from src.tools.tool_base import ToolBase
from src.tools.tool_factory import create_tool, create_tool_from_config

__all__ = [
    "CommandResult",
    "CommandRunner",
    "ToolBase",
    "ToolError",
    "ToolExecutionError",
    "ToolNotFoundError",
    "create_tool",
    "create_tool_from_config",
]
