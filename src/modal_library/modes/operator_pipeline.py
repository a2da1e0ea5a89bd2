"""Turns a resolved operator + range into an execution plan and runs it."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple

from modal_library.actions import core as core_actions
from modal_library.runtime import telemetry

from .base_mode import ModeContext, ModeResult
from .state import Operator


@dataclass(slots=True)
class ExecutionPlan:
    operator: Operator
    indices: Tuple[int, ...]
    register: Optional[str]
    source: str

    @property
    def label(self) -> str:
        return f"{self.operator.kind.name.lower()}:{self.source}"


class OperatorPipeline:
    """Runs plans built by operator-pending and Visual mode alike."""

    def __init__(self, context: ModeContext) -> None:
        self.context = context

    def plan(self, operator: Operator, indices: Sequence[int], source: str) -> ExecutionPlan:
        return ExecutionPlan(
            operator=operator,
            indices=tuple(sorted(set(indices))),
            register=self.context.state.register,
            source=source,
        )

    def run(self, plan: ExecutionPlan) -> ModeResult:
        with telemetry.span(
            f"operator::{plan.operator.kind.name.lower()}",
            component="operators",
            metadata={
                "source": plan.source,
                "items": len(plan.indices),
                "register": plan.register or '"',
            },
        ):
            return core_actions.execute_operator(self.context, plan.operator, plan.indices)

    def execute(self, operator: Operator, indices: Sequence[int], source: str) -> ModeResult:
        return self.run(self.plan(operator, indices, source))


__all__ = ["ExecutionPlan", "OperatorPipeline"]
