"""
Pre-flight Module.

Checks that the external toolchain is installed and responding
before a live test session starts.
"""

from src.preflight.toolchain_check import PreflightResult, ToolchainChecker

__all__ = ["PreflightResult", "ToolchainChecker"]
