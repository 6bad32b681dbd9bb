"""
Infrastructure Toolchain Test Harness - Test Suite Package.

Contains Pytest-based test suites organized by test type:
- Unit tests (this directory): config, tools, terraform driver, actions, preflight.
- integration/: Toolchain smoke checks and stack apply/destroy.
"""
