"""In-process typed event bus and the events the orchestrator publishes."""

from __future__ import annotations

import logging
import threading
from collections import defaultdict
from dataclasses import dataclass, field

from core.state import BuildResult, GenerationPlan, SubComponent, WorkflowState

logger = logging.getLogger(__name__)


@dataclass
class StateChanged:
    operation_id: str
    state: WorkflowState


@dataclass
class OperationStarted:
    operation_id: str
    spec: str
    artifact_kind: str


@dataclass
class PlanCreated:
    plan: GenerationPlan


@dataclass
class ComponentsIdentified:
    components: list[SubComponent]


@dataclass
class ComponentGenerated:
    name: str
    length: int
    valid: bool


@dataclass
class ComponentsIntegrated:
    method: str                 # "model", "manual" or "single"
    component_count: int


@dataclass
class GenerationCompleted:
    success: bool
    message: str
    source: str = field(default="", repr=False)


@dataclass
class BuildCompleted:
    operation_id: str
    result: BuildResult


@dataclass
class InspectionCompleted:
    operation_id: str
    description: str


@dataclass
class SelectionMade:
    task_key: str
    option: str
    mode: str                   # "exploration" or "exploitation"
    score: float


@dataclass
class ResultRecorded:
    option: str
    success: bool
    confidence: float


class EventBus:
    """Typed broadcast. Handlers for one event type run in publish order.

    A failing subscriber is logged and skipped; it never affects the publisher
    or the other subscribers.
    """

    def __init__(self):
        self._handlers = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type, handler):
        with self._lock:
            if handler not in self._handlers[event_type]:
                self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type, handler):
        with self._lock:
            if handler in self._handlers[event_type]:
                self._handlers[event_type].remove(handler)

    def publish(self, event):
        with self._lock:
            handlers = list(self._handlers.get(type(event), ()))
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                logger.exception("Subscriber %r failed on %s", handler, type(event).__name__)


class EventLogger:
    """Subscriber that writes workflow progress to the log."""

    def __init__(self, bus: EventBus):
        self.bus = bus
        bus.subscribe(StateChanged, self.on_state_changed)
        bus.subscribe(ComponentsIntegrated, self.on_integrated)

    def close(self):
        self.bus.unsubscribe(StateChanged, self.on_state_changed)
        self.bus.unsubscribe(ComponentsIntegrated, self.on_integrated)

    def on_state_changed(self, event: StateChanged):
        prev = event.state.previous.value if event.state.previous else "-"
        logger.info("[%s] %s -> %s", event.operation_id, prev, event.state.current.value)

    def on_integrated(self, event: ComponentsIntegrated):
        logger.info("Integrated %d component(s) via %s", event.component_count, event.method)
