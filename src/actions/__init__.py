"""
Atomic Actions Module.

Contains reusable, atomic functions representing harness operations.
These actions are the building blocks for all test scenarios:
- Tool version and key-listing checks.
- Stack init/apply, destroy and output reads.
"""

from src.actions.base import ActionFailure, ActionResult, ActionStatus, AtomicAction
from src.actions.stack_actions import StackActions
from src.actions.tool_actions import ToolActions

__all__ = [
    "ActionFailure",
    "ActionResult",
    "ActionStatus",
    "AtomicAction",
    "StackActions",
    "ToolActions",
]
