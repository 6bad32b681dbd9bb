"""
Stack Atomic Actions.

Apply and destroy of one Terraform configuration, packaged as atomic
actions so the runner and the stack suites report them uniformly.
"""

from __future__ import annotations

from typing import Any, Dict

from loguru import logger

from src.actions.base import ActionResult, AtomicAction
from src.terraform.terraform_driver import Terraform


class StackActions:
    """
    Collection of atomic actions for a Terraform stack.

    Usage::

        actions = StackActions(Terraform(options))
        applied = actions.init_and_apply()
        try:
            assert applied.is_success, applied.message
        finally:
            actions.destroy()
    """

    def __init__(self, terraform: Terraform, name: str = "stack") -> None:
        self.terraform = terraform
        self.name = name
        self._applied = False
        logger.info(f"StackActions initialized — stack={name}")

    def init_and_apply(self, **kwargs: Any) -> ActionResult:
        """Run terraform init and apply."""
        result = _InitAndApplyAction(self.terraform, self.name).run(**kwargs)
        if result.is_success:
            self._applied = True
            logger.info(f"Stack '{self.name}': Terraform applied successfully!")
        else:
            logger.error(f"Stack '{self.name}': Terraform apply failed!")
        result.metadata["stack"] = self.name
        return result

    def destroy(self, **kwargs: Any) -> ActionResult:
        """Run terraform destroy."""
        result = _DestroyAction(self.terraform, self.name).run(**kwargs)
        if result.is_success:
            self._applied = False
        result.metadata["stack"] = self.name
        return result

    def outputs(self, **kwargs: Any) -> ActionResult:
        """Read all root module outputs."""
        result = _OutputsAction(self.terraform, self.name).run(**kwargs)
        result.metadata["stack"] = self.name
        return result

    @property
    def is_applied(self) -> bool:
        return self._applied


# ---------------------------------------------------------------------------
# Internal Atomic Action Implementations
# ---------------------------------------------------------------------------


class _InitAndApplyAction(AtomicAction):
    def __init__(self, terraform: Terraform, stack: str) -> None:
        super().__init__(name=f"{stack}_init_and_apply", timeout_sec=2 * terraform.options.timeout_sec)
        self.terraform = terraform

    def _execute(self, **kwargs: Any) -> Dict[str, Any]:
        return {"output": self.terraform.init_and_apply()}


class _DestroyAction(AtomicAction):
    def __init__(self, terraform: Terraform, stack: str) -> None:
        super().__init__(name=f"{stack}_destroy", timeout_sec=terraform.options.timeout_sec)
        self.terraform = terraform

    def _execute(self, **kwargs: Any) -> Dict[str, Any]:
        return {"output": self.terraform.destroy()}


class _OutputsAction(AtomicAction):
    def __init__(self, terraform: Terraform, stack: str) -> None:
        super().__init__(name=f"{stack}_outputs", timeout_sec=terraform.options.timeout_sec)
        self.terraform = terraform

    def _execute(self, **kwargs: Any) -> Dict[str, Any]:
        return self.terraform.output_all()
