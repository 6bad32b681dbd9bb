"""
Terraform Module.

Wraps the provisioning tool for apply/destroy smoke tests:
- TerraformOptions: the per-run configuration record.
- Terraform: init/apply/destroy/output with retryable-error handling.
- MockTerraform: simulation twin used when the binary is not required.
- stack(): apply on entry, destroy on exit.
"""

from src.terraform.options import TerraformOptions, TerraformOptionsError
from src.terraform.terraform_driver import (
    MaxRetriesExceeded,
    Terraform,
    TerraformError,
    format_var_args,
    stack,
)
from src.terraform.mock_terraform import MockTerraform


def create_terraform(options: TerraformOptions, simulate: bool = False) -> Terraform:
    """Return a MockTerraform in simulation mode, the real driver otherwise."""
    if simulate:
        return MockTerraform(options)
    return Terraform(options)


__all__ = [
    "MaxRetriesExceeded",
    "MockTerraform",
    "Terraform",
    "TerraformError",
    "TerraformOptions",
    "TerraformOptionsError",
    "create_terraform",
    "format_var_args",
    "stack",
]
