"""Operation, workflow and generation models shared across all stages."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass, field
from enum import Enum


class Stage(str, Enum):
    IDLE = "idle"
    PLANNING = "planning"
    GENERATION = "generation"
    COMPILATION = "compilation"
    ERROR_REPAIR = "error_repair"
    TESTING = "testing"
    TEST_REPAIR = "test_repair"
    FINALIZATION = "finalization"
    COMPLETED = "completed"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (Stage.COMPLETED, Stage.ERROR)


# Forward edges of the workflow graph. ERROR is reachable from every non-terminal stage.
TRANSITIONS = {
    Stage.IDLE: {Stage.PLANNING},
    Stage.PLANNING: {Stage.GENERATION},
    Stage.GENERATION: {Stage.COMPILATION},
    Stage.COMPILATION: {Stage.TESTING, Stage.ERROR_REPAIR},
    Stage.ERROR_REPAIR: {Stage.COMPILATION},
    Stage.TESTING: {Stage.FINALIZATION, Stage.TEST_REPAIR},
    Stage.TEST_REPAIR: {Stage.COMPILATION},
    Stage.FINALIZATION: {Stage.COMPLETED},
    Stage.COMPLETED: set(),
    Stage.ERROR: set(),
}


def can_transition(current: Stage, target: Stage) -> bool:
    if current.is_terminal:
        return False
    return target == Stage.ERROR or target in TRANSITIONS[current]


class ComponentKind(str, Enum):
    UI = "ui"
    LOGIC = "logic"
    DATA = "data"


@dataclass
class WorkflowState:
    current: Stage = Stage.IDLE
    previous: Stage | None = None
    entered_at: float = field(default_factory=time.time)


@dataclass
class SubComponent:
    name: str
    kind: ComponentKind
    description: str = ""
    dependencies: list[str] = field(default_factory=list)
    source: str | None = None
    priority: int = 999                 # 1 high, 2 medium, 3 low, 999 unspecified
    implementation_plan: str = ""
    notes: str = ""


@dataclass
class GenerationPlan:
    description: str
    artifact_kind: str = "gui"
    components: list[str] = field(default_factory=list)          # declaration order
    details: dict[str, str] = field(default_factory=dict)
    dependencies: dict[str, list[str]] = field(default_factory=dict)
    implementation_order: list[str] = field(default_factory=list)
    notes: dict[str, str] = field(default_factory=dict)
    priorities: dict[str, int] = field(default_factory=dict)


@dataclass
class Verdict:
    passed: bool
    text: str


@dataclass
class BuildResult:
    success: bool
    artifact: str | None = None         # path of the built entry file
    diagnostics: str | None = None


@dataclass
class Operation:
    spec: str
    artifact_kind: str = "gui"
    operation_id: str = field(default_factory=lambda: uuid.uuid4().hex[:8])
    plan: GenerationPlan | None = None
    plan_text: str = ""
    source: str = ""
    repair_attempts: int = 0
    components: list[SubComponent] = field(default_factory=list)
    started_at: float = field(default_factory=time.time)
    artifact: str | None = None
    diagnostics: str = ""
    verdict: Verdict | None = None
    history: list[Stage] = field(default_factory=list)

    def summary(self) -> dict:
        """JSON-safe summary handed to the memory service on completion."""
        return {
            "operation_id": self.operation_id,
            "spec": self.spec,
            "artifact_kind": self.artifact_kind,
            "components": [c.name for c in self.components],
            "repair_attempts": self.repair_attempts,
            "source": self.source,
            "verdict": self.verdict.text if self.verdict else "",
            "duration": round(time.time() - self.started_at, 3),
        }


@dataclass
class SelectionRecord:
    task_key: str
    option: str
    success_rate: float = 0.5
    attempts: int = 0
    successes: int = 0
    updated_at: float = field(default_factory=time.time)
    last_success: bool = False
    last_confidence: float = 0.0
