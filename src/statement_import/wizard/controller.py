"""
Wizard step interface and the generic step sequencer.

The controller only moves an index. Each step owns its data and decides
whether it is valid; the controller reads that predicate to gate forward
navigation. Going back is never blocked.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Sequence
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..errors import StatementImportError

logger = logging.getLogger(__name__)


class StepStatus(str, Enum):
    """Position of a step relative to the current one (progress indicator)."""

    COMPLETED = "completed"
    CURRENT = "current"
    UPCOMING = "upcoming"


class WizardStep(ABC):
    """
    Base class for all wizard steps.

    Uniform contract: id, title, description, is_valid.
    """

    id: str = ""
    title: str = ""
    description: str = ""

    def __init__(self) -> None:
        # Last step-scoped failure, cleared on the next successful action
        self.error: StatementImportError | None = None

    @property
    @abstractmethod
    def is_valid(self) -> bool:
        """Whether the user may move forward from this step."""
        pass

    def on_leave_forward(self) -> None:
        """Hook run right before the wizard moves past this step."""
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={self.id!r} valid={self.is_valid}>"


class WizardController:
    """
    Sequences an ordered list of steps.

    Navigation rules:
    - advance(): only from a valid, non-final step
    - retreat(): always allowed except on the first step
    - jump_to(k): k <= current, or k == current + 1 with a valid current step

    Disallowed moves are silently ignored; every method returns whether the
    index changed.
    """

    def __init__(self, steps: Sequence[WizardStep]):
        if not steps:
            raise ValueError("A wizard needs at least one step")
        self._steps = list(steps)
        self._current = 0

    @property
    def steps(self) -> tuple[WizardStep, ...]:
        return tuple(self._steps)

    @property
    def current_index(self) -> int:
        return self._current

    @property
    def current_step(self) -> WizardStep:
        return self._steps[self._current]

    @property
    def last_index(self) -> int:
        return len(self._steps) - 1

    @property
    def is_last(self) -> bool:
        return self._current == self.last_index

    def can_advance(self) -> bool:
        return not self.is_last and self.current_step.is_valid

    def can_jump_to(self, index: int) -> bool:
        if index < 0 or index > self.last_index:
            return False
        if index <= self._current:
            return True
        return index == self._current + 1 and self.current_step.is_valid

    def advance(self) -> bool:
        """Move to the next step if the current one is valid."""
        if not self.can_advance():
            return False
        self._move_forward()
        return True

    def retreat(self) -> bool:
        """Move to the previous step. Never blocked by validity."""
        if self._current == 0:
            return False
        self._current -= 1
        logger.debug("Wizard back to step %d (%s)", self._current, self.current_step.id)
        return True

    def jump_to(self, index: int) -> bool:
        """Go to a visited step, or to the next one when the current step is valid."""
        if not self.can_jump_to(index):
            logger.debug("Ignored jump from step %d to %d", self._current, index)
            return False
        if index == self._current + 1:
            self._move_forward()
        else:
            self._current = index
            logger.debug("Wizard jumped to step %d (%s)", index, self.current_step.id)
        return True

    def reset(self) -> None:
        self._current = 0

    def _move_forward(self) -> None:
        self.current_step.on_leave_forward()
        self._current += 1
        logger.debug("Wizard advanced to step %d (%s)", self._current, self.current_step.id)

    def step_states(self) -> list[tuple[WizardStep, StepStatus]]:
        """Each step with its progress status."""
        states = []
        for index, step in enumerate(self._steps):
            if index < self._current:
                status = StepStatus.COMPLETED
            elif index == self._current:
                status = StepStatus.CURRENT
            else:
                status = StepStatus.UPCOMING
            states.append((step, status))
        return states
