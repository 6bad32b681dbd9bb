"""
Version Compatibility Manager.

Handles backward compatibility for configuration files from older versions.
Implements a migration pipeline that transforms old config formats to
the current version. Stack files at schema 0.1.0 use the field names of
terratest's terraform.Options (terraform_dir, retryable_terraform_errors,
env_vars as a map), so option records ported from Go test suites load
without edits.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Tuple

from loguru import logger


# (config_data) -> config_data
MigrationFunc = Callable[[Dict[str, Any]], Dict[str, Any]]


class VersionCompatManager:
    """
    Manages version-aware migrations for configuration files.

    Migrations are registered as functions that transform a config dict
    from one schema version to the next. When loading a config file with
    an older schema_version, all applicable migrations are applied in order.

    Example:
        manager = VersionCompatManager()

        @manager.register_migration("1.0.0", "1.1.0")
        def add_backend(config):
            for stack in config.get("stacks", {}).values():
                stack.setdefault("backend_config", {})
            return config
    """

    CURRENT_VERSION = "1.0.0"

    def __init__(self) -> None:
        self._migrations: List[Tuple[str, str, MigrationFunc]] = []
        self._register_builtin_migrations()

    def register_migration(
        self, from_version: str, to_version: str
    ) -> Callable[[MigrationFunc], MigrationFunc]:
        """
        Decorator to register a migration function.

        Args:
            from_version: Source schema version (semver string).
            to_version: Target schema version (semver string).

        Returns:
            Decorator function.
        """

        def decorator(func: MigrationFunc) -> MigrationFunc:
            self._migrations.append((from_version, to_version, func))
            self._migrations.sort(key=lambda m: self._version_tuple(m[0]))
            logger.debug(f"Registered migration: {from_version} -> {to_version}")
            return func

        return decorator

    def migrate(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        Apply all necessary migrations to bring a config to the current version.

        If the config has no schema_version field, it is assumed to be current
        and returned as-is with the current version injected.
        """
        current_version = config.get("schema_version")

        if current_version is None:
            logger.debug("No schema_version found — assuming current version.")
            config["schema_version"] = self.CURRENT_VERSION
            return config

        if current_version == self.CURRENT_VERSION:
            logger.debug(f"Config already at current version ({self.CURRENT_VERSION}).")
            return config

        logger.info(
            f"Migrating config from v{current_version} to v{self.CURRENT_VERSION}"
        )

        for from_ver, to_ver, migration_func in self._migrations:
            if self._version_tuple(from_ver) >= self._version_tuple(current_version) and \
               self._version_tuple(to_ver) <= self._version_tuple(self.CURRENT_VERSION):
                logger.debug(f"Applying migration: {from_ver} -> {to_ver}")
                try:
                    config = migration_func(config)
                    config["schema_version"] = to_ver
                except Exception as e:
                    logger.error(f"Migration {from_ver} -> {to_ver} failed: {e}")
                    raise

        return config

    def _register_builtin_migrations(self) -> None:
        """Register built-in migrations for known version transitions."""

        @self.register_migration("0.1.0", "1.0.0")
        def _migrate_0_1_to_1_0(config: Dict[str, Any]) -> Dict[str, Any]:
            """
            Migrate terratest-style stack fields (schema v0.1.0) to v1.0.0.

            Changes (per stack):
            - terraform_dir (TerraformDir) becomes dir.
            - retryable_terraform_errors (RetryableTerraformErrors) becomes
              retryable_errors.
            - env_vars mapping (EnvVars) flattened to KEY=VALUE strings.
            """
            for name, stack in config.get("stacks", {}).items():
                if "terraform_dir" in stack and "dir" not in stack:
                    stack["dir"] = stack.pop("terraform_dir")
                    logger.debug(f"Migrated stacks.{name}.terraform_dir -> dir")

                if "retryable_terraform_errors" in stack and "retryable_errors" not in stack:
                    stack["retryable_errors"] = stack.pop("retryable_terraform_errors")
                    logger.debug(f"Migrated stacks.{name}.retryable_terraform_errors")

                env_vars = stack.get("env_vars")
                if isinstance(env_vars, dict):
                    stack["env_vars"] = [f"{k}={v}" for k, v in env_vars.items()]
                    logger.debug(f"Flattened stacks.{name}.env_vars to KEY=VALUE list")

            return config

    @staticmethod
    def _version_tuple(version_str: str) -> Tuple[int, ...]:
        """Convert a semver string to a comparable tuple of ints."""
        try:
            return tuple(int(part) for part in version_str.split("."))
        except (ValueError, AttributeError):
            logger.warning(f"Invalid version string: {version_str}, treating as (0, 0, 0)")
            return (0, 0, 0)

    def get_migration_path(self, from_version: str) -> List[Tuple[str, str]]:
        """Get the ordered list of (from, to) migrations needed from a given version."""
        path = []
        for from_ver, to_ver, _ in self._migrations:
            if self._version_tuple(from_ver) >= self._version_tuple(from_version) and \
               self._version_tuple(to_ver) <= self._version_tuple(self.CURRENT_VERSION):
                path.append((from_ver, to_ver))
        return path
