#!/usr/bin/env python
"""
Run Tests Script.

Utility script for executing the harness suites with proper configuration.
In live mode the configured toolchain is checked first, so a machine
missing terraform/gpg/talosctl/flux is rejected before any test runs.

Usage:
    python scripts/run_tests.py --suite unit
    python scripts/run_tests.py --suite smoke --live
    python scripts/run_tests.py --suite stacks --live --run-stacks --stack terraform
"""

import argparse
import sys
from pathlib import Path

import pytest
from loguru import logger

# Add project root to path
ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.config.loader import ConfigLoader, ConfigurationError
from src.preflight import ToolchainChecker
from src.tools import create_tool_from_config


SUITES = {
    "unit": ["tests", "--ignore", "tests/integration"],
    "smoke": ["tests/integration", "-m", "smoke"],
    "stacks": ["tests/integration", "-m", "stacks"],
    "all": ["tests"],
}

# Tools each suite needs on PATH in live mode.
SUITE_TOOLS = {
    "unit": [],
    "smoke": None,
    "stacks": ["terraform"],
    "all": None,
}


def parse_args(argv=None):
    """Parse command-line arguments for test execution."""
    parser = argparse.ArgumentParser(
        description="Infrastructure Toolchain Harness — Test Runner"
    )
    parser.add_argument(
        "--suite",
        choices=sorted(SUITES),
        default="all",
        help="Test suite to execute (default: all)",
    )
    parser.add_argument(
        "--live",
        action="store_true",
        help="Invoke the real binaries instead of mocks",
    )
    parser.add_argument(
        "--run-stacks",
        action="store_true",
        help="With --live, apply and destroy real infrastructure",
    )
    parser.add_argument(
        "--stack",
        action="append",
        default=[],
        help="Restrict stack suites to the named stack (repeatable)",
    )
    parser.add_argument(
        "--config-dir",
        type=str,
        default=None,
        help="Configuration directory (default: $IAC_HARNESS_CONFIG_DIR or ./config)",
    )
    parser.add_argument(
        "--skip-preflight",
        action="store_true",
        help="Skip the toolchain pre-flight check in live mode",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output",
    )
    return parser.parse_args(argv)


def configure_logging(verbose: bool) -> None:
    logger.remove()
    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | {message}",
    )


def run_preflight(args, config_loader: ConfigLoader) -> bool:
    """
    Check the toolchain the selected suite needs.

    Returns:
        True if the session may proceed.
    """
    toolchain = config_loader.load_toolchain()
    tools_cfg = toolchain.get("tools", {})
    wanted = SUITE_TOOLS[args.suite]
    names = sorted(tools_cfg) if wanted is None else [n for n in wanted if n in tools_cfg]
    if not names:
        logger.info("[Runner] No tools to check for this suite")
        return True

    retry_count = toolchain.get("preflight", {}).get("retry_count", 1)
    checker = ToolchainChecker(retry_count=retry_count)
    result = checker.check(create_tool_from_config(name, tools_cfg[name]) for name in names)

    for name, detail in result.details.items():
        status = "ok" if result.checks[name] else "FAILED"
        logger.info(f"[Runner]   {name:<10} {status:<6} {detail.get('version') or detail.get('error', '')}")
    return result.healthy


def build_pytest_args(args):
    pytest_args = list(SUITES[args.suite])
    pytest_args[0] = str(ROOT / pytest_args[0])
    if "--ignore" in pytest_args:
        idx = pytest_args.index("--ignore") + 1
        pytest_args[idx] = str(ROOT / pytest_args[idx])

    if args.live:
        pytest_args.append("--live")
    if args.run_stacks:
        pytest_args.append("--run-stacks")
    for name in args.stack:
        pytest_args.extend(["--stack", name])
    if args.config_dir:
        pytest_args.extend(["--config-dir", args.config_dir])
    if args.verbose:
        pytest_args.append("-v")
    return pytest_args


def main(argv=None):
    """Main entry point for the test runner."""
    args = parse_args(argv)
    configure_logging(args.verbose)

    logger.info("=" * 60)
    logger.info("[Runner] Infrastructure Toolchain Harness — Test Runner")
    logger.info("=" * 60)
    logger.info(f"[Runner] Suite: {args.suite}")
    logger.info(f"[Runner] Mode: {'live' if args.live else 'simulate'}")
    if args.stack:
        logger.info(f"[Runner] Stacks: {', '.join(args.stack)}")

    if args.run_stacks and not args.live:
        logger.warning("[Runner] --run-stacks has no effect without --live")

    # --- Step 1: Pre-flight (live only) ---
    if args.live and not args.skip_preflight:
        try:
            config_loader = ConfigLoader(config_dir=args.config_dir)
            healthy = run_preflight(args, config_loader)
        except (ConfigurationError, FileNotFoundError) as e:
            logger.error(f"[Runner] Cannot load toolchain config: {e}")
            return 2
        if not healthy:
            logger.error("[Runner] Toolchain pre-flight failed. Exiting.")
            return 1

    # --- Step 2: Build Pytest command ---
    pytest_args = build_pytest_args(args)
    logger.info(f"[Runner] Pytest args: {pytest_args}")

    # --- Step 3: Execute tests ---
    exit_code = int(pytest.main(pytest_args))

    logger.info(f"[Runner] Finished with exit code: {exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(main())
