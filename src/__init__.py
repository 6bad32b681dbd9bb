"""
Infrastructure Toolchain Test Harness - Core Source Package.

This package contains the core logic for:
- Tools: Wrappers around the external CLI binaries (terraform, gpg, talosctl, flux).
- Terraform: Init/apply/destroy of infrastructure-as-code stacks.
- Configuration: Toolchain and stack configuration management.
- Actions: Atomic check/apply/destroy primitives used by the test suites.
- Preflight: Toolchain availability checks before a live run.
"""

__version__ = "0.1.0"
