"""Minimal saga runner.

A saga is an ordered list of steps. Each step has an action and, if the
action can be undone, a compensation. When a step fails, compensations of
the steps that already succeeded run in reverse order and the original
error is re-raised.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, final

logger = logging.getLogger(__name__)

#: Results of finished steps, keyed by step name.
SagaState = dict[str, Any]


@final
@dataclass(frozen=True)
class SagaStep:
    """Single saga step."""

    name: str
    action: Callable[[SagaState], Any]
    compensation: Callable[[SagaState], None] | None = None


@final
class Saga:
    """Runs steps in order with reverse-order compensation."""

    def __init__(self, name: str) -> None:
        """Initialize an empty saga.

        Args:
            name: Label used in log messages.
        """
        self.name = name
        self._steps: list[SagaStep] = []

    def step(
        self,
        name: str,
        action: Callable[[SagaState], Any],
        compensation: Callable[[SagaState], None] | None = None,
    ) -> 'Saga':
        """Append a step.

        Args:
            name: Step name; its result is stored under this key.
            action: Callable receiving results of previous steps.
            compensation: Optional undo, receives the same state.

        Returns:
            The saga, for chaining.
        """
        self._steps.append(SagaStep(name, action, compensation))
        return self

    def execute(self) -> SagaState:
        """Run all steps.

        Returns:
            Results of every step, keyed by step name.

        Raises:
            Exception: Whatever the failing step raised, after compensation.
        """
        state: SagaState = {}
        completed: list[SagaStep] = []

        for saga_step in self._steps:
            try:
                state[saga_step.name] = saga_step.action(state)
            except Exception:
                logger.exception(
                    'Saga %s failed at step %s',
                    self.name,
                    saga_step.name,
                )
                self._compensate(completed, state)
                raise
            completed.append(saga_step)

        return state

    def _compensate(self, completed: list[SagaStep], state: SagaState) -> None:
        for saga_step in reversed(completed):
            if saga_step.compensation is None:
                continue
            try:
                logger.warning(
                    'Saga %s compensating step %s',
                    self.name,
                    saga_step.name,
                )
                saga_step.compensation(state)
            except Exception:
                # Best-effort: the original failure is what the caller sees
                logger.exception(
                    'Saga %s could not compensate step %s',
                    self.name,
                    saga_step.name,
                )
