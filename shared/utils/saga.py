"""
shared/utils/saga.py
Ordered multi-collection writes without a transaction.

Each step may declare a compensating action. If the first step fails the
original error propagates untouched (nothing was written). If a later step
fails, completed steps are compensated in reverse order back to the most
recent step that has no compensation, and a PartialFailure describing
what landed and what was undone is raised. Anything left in place needs
manual reconciliation; that is logged at ERROR, never swallowed.
"""

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Type

from shared.utils.errors import PartialFailure

logger = logging.getLogger(__name__)

Action = Callable[[], Awaitable[Any]]


@dataclass
class SagaStep:
    name: str
    action: Action
    compensate: Optional[Action] = None


class Saga:
    def __init__(
        self,
        operation: str,
        error_cls: Type[PartialFailure] = PartialFailure,
        **context: Any,
    ):
        self.operation = operation
        self.error_cls = error_cls
        self.context = context
        self.steps: List[SagaStep] = []
        self.results: Dict[str, Any] = {}

    def step(self, name: str, action: Action, compensate: Optional[Action] = None) -> "Saga":
        self.steps.append(SagaStep(name, action, compensate))
        return self

    async def run(self) -> Dict[str, Any]:
        completed: List[SagaStep] = []
        for step in self.steps:
            try:
                self.results[step.name] = await step.action()
            except Exception as exc:
                if not completed:
                    raise
                compensated = await self._compensate(completed)
                failure = self.error_cls(
                    operation=self.operation,
                    failed_step=step.name,
                    completed_steps=[s.name for s in completed],
                    compensated_steps=compensated,
                    cause=str(exc),
                    **self.context,
                )
                logger.error(
                    "Saga %s failed at step '%s' (completed=%s, compensated=%s, reconcile=%s) %s",
                    self.operation,
                    step.name,
                    failure.completed_steps,
                    compensated,
                    failure.reconciliation_required,
                    self.context,
                    exc_info=exc,
                )
                raise failure from exc
            completed.append(step)
        return self.results

    async def _compensate(self, completed: List[SagaStep]) -> List[str]:
        compensated: List[str] = []
        for step in reversed(completed):
            # A step without compensation is a pivot: it and everything
            # before it stays committed
            if step.compensate is None:
                break
            try:
                await step.compensate()
            except Exception:
                logger.exception(
                    "Compensation for step '%s' of %s failed %s",
                    step.name, self.operation, self.context,
                )
                continue
            compensated.append(step.name)
        return compensated
