"""
Tool Factory — creates the appropriate tool wrapper based on configuration.

Selects the real CLI wrapper or the mock based on the simulation flag.
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence, Type

from loguru import logger

from src.tools.cli_tools import CLITool, FluxTool, GpgTool, TalosctlTool, TerraformTool
from src.tools.mock_tool import MockTool
from src.tools.tool_base import ToolBase


TOOL_REGISTRY: Dict[str, Type[CLITool]] = {
    "terraform": TerraformTool,
    "gpg": GpgTool,
    "talosctl": TalosctlTool,
    "flux": FluxTool,
}


def create_tool(
    name: str,
    simulate: bool = False,
    binary: Optional[str] = None,
    version_args: Optional[Sequence[str]] = None,
    timeout_sec: float = 60.0,
) -> ToolBase:
    """
    Factory function to create the correct tool wrapper.

    Args:
        name: One of "terraform", "gpg", "talosctl", "flux".
        simulate: If True, always returns MockTool.
        binary: Executable name or path (defaults to the tool name).
        version_args: Override for the version command arguments.
        timeout_sec: Per-invocation timeout.

    Raises:
        ValueError: If name is unknown.
    """
    if name not in TOOL_REGISTRY:
        raise ValueError(
            f"Unknown tool '{name}'. Supported tools: {list(TOOL_REGISTRY.keys())}"
        )

    if simulate:
        logger.info(f"Creating MockTool for {name}")
        return MockTool(name, binary=binary, version_args=version_args, timeout_sec=timeout_sec)

    tool_cls = TOOL_REGISTRY[name]
    logger.info(f"Creating {tool_cls.__name__} (binary={binary or name})")
    return tool_cls(binary=binary, version_args=version_args, timeout_sec=timeout_sec)


def create_tool_from_config(
    name: str, tool_config: Dict[str, Any], simulate: bool = False
) -> ToolBase:
    """Create a tool from its entry in config/toolchain.yaml."""
    return create_tool(
        name,
        simulate=simulate,
        binary=tool_config.get("binary"),
        version_args=tool_config.get("version_args"),
        timeout_sec=tool_config.get("timeout_sec", 60.0),
    )
