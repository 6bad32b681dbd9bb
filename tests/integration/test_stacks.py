"""
Integration Tests — Stack Apply/Destroy.

Each test initializes and applies one Terraform configuration from
config/stacks.yaml and destroys it again at the end, whether or not
the apply or the assertions succeed.
"""

from __future__ import annotations

import pytest

from src.actions import StackActions
from src.terraform import stack


@pytest.mark.stacks
class TestStacks:
    """Apply/destroy of the configured stacks."""

    def test_k3s_node(self, make_stack) -> None:
        tf = make_stack("k3s_node")
        with stack(tf):
            assert tf.options.terraform_dir.endswith("k3s")

    def test_proxmox_k3s(self, make_stack) -> None:
        tf = make_stack("proxmox_k3s")
        with stack(tf):
            assert tf.options.retryable_errors, "proxmox stacks should tolerate API hiccups"

    def test_talos_setup(self, make_stack) -> None:
        tf = make_stack("talos")
        with stack(tf):
            assert tf.options.var_files

    def test_terraform(self, make_stack) -> None:
        tf = make_stack("terraform")
        actions = StackActions(tf, name="terraform")

        applied = actions.init_and_apply()
        try:
            if applied.is_fatal:
                pytest.fail(f"Terraform apply failed! {applied.error}")

            outputs = actions.outputs()
            assert outputs.is_success, outputs.message
            assert outputs.data["greeting"] == "hello"
        finally:
            destroyed = actions.destroy()
            assert destroyed.is_success, destroyed.message
