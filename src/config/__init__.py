"""
Configuration Management Module.

Handles loading and validation of:
- Toolchain configuration (binaries, version commands, expected output).
- Stack configuration (Terraform directories, variables, retryable errors).
- Version-aware backward compatibility for older config formats.
"""

from src.config.loader import ConfigLoader, ConfigurationError
from src.config.schema_registry import SchemaRegistry, SchemaValidationError

__all__ = ["ConfigLoader", "ConfigurationError", "SchemaRegistry", "SchemaValidationError"]
