"""
Saga Helper

Runs an ordered list of store operations with compensating actions.
No store offers multi-key transactions, so every multi-store write is
expressed as a saga: steps run strictly in order, and when one fails the
completed steps are undone in reverse, best effort.
"""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Any

from system_model.application.exceptions_application import ConsistencyError

logger = logging.getLogger(__name__)

StepAction = Callable[[], Awaitable[Any]]


@dataclass
class SagaStep:
    """
    One store operation of a saga.

    A step without a compensation is a safe failure point only if nothing
    after it can fail; otherwise a failure of a later step leaves an
    unrecoverable partial effect and is reported as a consistency fault.
    """

    name: str
    action: StepAction
    compensation: StepAction | None = None


@dataclass
class Saga:
    """Ordered list of steps sharing one set of identifiers for reporting."""

    name: str
    steps: list[SagaStep] = field(default_factory=list)
    identifiers: dict[str, Any] = field(default_factory=dict)

    def add_step(
        self, name: str, action: StepAction, compensation: StepAction | None = None
    ) -> "Saga":
        self.steps.append(SagaStep(name, action, compensation))
        return self

    async def execute(self) -> list[Any]:
        """
        Run every step in order.

        Returns:
            The result of each step, in order

        Raises:
            ConsistencyError: If a step failed after a completed step that
                cannot be compensated
            Exception: The failing step's error, after compensation
        """
        completed: list[SagaStep] = []
        results: list[Any] = []

        for step in self.steps:
            try:
                results.append(await step.action())
            except Exception as e:
                logger.warning(
                    f"Saga {self.name} failed at step '{step.name}': {e}",
                    extra={"saga": self.name, "step": step.name, **self.identifiers},
                )
                unrecoverable = await self._compensate(completed)
                if unrecoverable:
                    logger.error(
                        f"Saga {self.name} left a partial effect after "
                        f"{', '.join(s.name for s in unrecoverable)}; manual reconciliation needed",
                        extra={"saga": self.name, "step": step.name, **self.identifiers},
                    )
                    raise ConsistencyError(
                        self.name,
                        f"step '{step.name}' failed after '{unrecoverable[-1].name}' "
                        f"completed and cannot be undone: {e}",
                        identifiers=self.identifiers,
                        cause=e,
                    ) from e
                raise
            completed.append(step)

        return results

    async def _compensate(self, completed: list[SagaStep]) -> list[SagaStep]:
        """
        Undo completed steps in reverse order.

        Compensation failures are logged and swallowed so the original error
        stays visible to the caller.

        Returns:
            Completed steps that have no compensation
        """
        unrecoverable: list[SagaStep] = []
        for step in reversed(completed):
            if step.compensation is None:
                unrecoverable.insert(0, step)
                continue
            try:
                await step.compensation()
                logger.info(
                    f"Saga {self.name} compensated step '{step.name}'",
                    extra={"saga": self.name, "step": step.name, **self.identifiers},
                )
            except Exception as e:
                logger.error(
                    f"Saga {self.name} failed to compensate step '{step.name}': {e}",
                    extra={"saga": self.name, "step": step.name, **self.identifiers},
                )
        return unrecoverable
