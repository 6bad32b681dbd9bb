"""
Atomic Action Base Module.

Provides the foundational classes and patterns for all atomic actions.
Every harness operation (tool version check, key listing, stack apply,
stack destroy) is encapsulated as an atomic action — a reusable,
self-contained function with standardized input/output and error handling.

Two kinds of unsuccessful outcome are distinguished:
- ERROR: the operation itself could not complete (process exited non-zero,
  binary missing, timeout). This is the fatal case.
- FAILURE: the operation completed but its result did not meet the
  expectation (empty output, expected text missing). This is the
  non-fatal case; the result data is still attached.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional

from loguru import logger


class ActionStatus(Enum):
    """Status of an atomic action execution."""

    SUCCESS = "success"
    FAILURE = "failure"
    SKIPPED = "skipped"
    TIMEOUT = "timeout"
    ERROR = "error"


class ActionFailure(Exception):
    """
    Raised from _execute when the operation ran but its result is unacceptable.

    Attributes:
        data: Whatever the operation produced, kept on the ActionResult.
    """

    def __init__(self, message: str, data: Any = None) -> None:
        super().__init__(message)
        self.data = data


@dataclass
class ActionResult:
    """
    Result of an atomic action execution.

    Attributes:
        status: Execution status (success, failure, etc.).
        data: Arbitrary return data from the action.
        message: Human-readable result description.
        duration_ms: Execution time in milliseconds.
        error: Exception details if the action failed.
        metadata: Additional key-value metadata for reporting.
    """

    status: ActionStatus = ActionStatus.SUCCESS
    data: Any = None
    message: str = ""
    duration_ms: float = 0.0
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return self.status == ActionStatus.SUCCESS

    @property
    def is_failure(self) -> bool:
        return self.status in (ActionStatus.FAILURE, ActionStatus.ERROR, ActionStatus.TIMEOUT)

    @property
    def is_fatal(self) -> bool:
        """True when the operation itself did not complete."""
        return self.status in (ActionStatus.ERROR, ActionStatus.TIMEOUT)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the result to a dictionary for reporting."""
        return {
            "status": self.status.value,
            "data": self.data,
            "message": self.message,
            "duration_ms": round(self.duration_ms, 3),
            "error": self.error,
            "metadata": self.metadata,
        }


class AtomicAction(ABC):
    """
    Abstract base class for all atomic actions.

    Provides a standardized execution pattern with:
    - Pre-action validation
    - Timed execution
    - Post-action cleanup
    - Automatic error handling and result packaging

    Subclasses must implement the `_execute` method.

    Example usage::

        class CheckVersion(AtomicAction):
            def _execute(self, **kwargs: Any) -> Any:
                result = kwargs["tool"].version()
                if not result.output:
                    raise ActionFailure("no output", data=result.to_dict())
                return result.to_dict()

        result = CheckVersion(name="check_version").run(tool=tool)
        assert result.is_success
    """

    def __init__(self, name: str, timeout_sec: float = 30.0) -> None:
        """
        Initialize the atomic action.

        Args:
            name: Human-readable name of the action (used in logs/reports).
            timeout_sec: Maximum execution time in seconds.
        """
        self.name = name
        self.timeout_sec = timeout_sec

    def run(self, **kwargs: Any) -> ActionResult:
        """
        Execute the action with standardized error handling and timing.

        Returns:
            ActionResult with status, data, timing, and error details.
        """
        logger.info(f"[Action: {self.name}] Starting with params: {list(kwargs.keys())}")
        start_time = time.perf_counter()

        try:
            self._validate(**kwargs)

            data = self._execute(**kwargs)

            elapsed_ms = (time.perf_counter() - start_time) * 1000

            if elapsed_ms > self.timeout_sec * 1000:
                logger.warning(
                    f"[Action: {self.name}] Completed but exceeded timeout "
                    f"({elapsed_ms:.1f}ms > {self.timeout_sec * 1000:.0f}ms)"
                )
                return ActionResult(
                    status=ActionStatus.TIMEOUT,
                    data=data,
                    message=f"Action '{self.name}' exceeded timeout",
                    duration_ms=elapsed_ms,
                )

            logger.info(f"[Action: {self.name}] Completed in {elapsed_ms:.1f}ms")
            return ActionResult(
                status=ActionStatus.SUCCESS,
                data=data,
                message=f"Action '{self.name}' completed successfully",
                duration_ms=elapsed_ms,
            )

        except ActionFailure as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(f"[Action: {self.name}] Check failed: {e}")
            return ActionResult(
                status=ActionStatus.FAILURE,
                data=e.data,
                message=f"Action '{self.name}' check failed: {e}",
                duration_ms=elapsed_ms,
                error=str(e),
            )

        except Exception as e:
            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.error(f"[Action: {self.name}] Failed: {e}")
            return ActionResult(
                status=ActionStatus.ERROR,
                message=f"Action '{self.name}' failed: {e}",
                duration_ms=elapsed_ms,
                error=str(e),
            )

        finally:
            self._cleanup(**kwargs)

    def _validate(self, **kwargs: Any) -> None:
        """
        Pre-execution validation hook. Override to add checks.

        Raises:
            ValueError: If validation fails.
        """
        pass

    @abstractmethod
    def _execute(self, **kwargs: Any) -> Any:
        """Core action logic. Must be implemented by subclasses."""
        ...

    def _cleanup(self, **kwargs: Any) -> None:
        """Post-execution cleanup hook. Override for resource cleanup."""
        pass
