"""Workflow coordinator — drives one operation through the stage machine.

The coordinator is an actor: start() and the build / inspection callbacks
only post messages to a single-consumer mailbox, and run() handles them one
at a time on the calling thread. Collaborator callbacks may come from any
thread. There is no timeout; an operation whose collaborator never answers
stays in its current stage.
"""

import logging
import queue
import threading

from agents.builder import PythonBuildService
from agents.inspector import StaticInspector
from agents.multipass import MultiPassGenerator, build_selector
from config.defaults import DEFAULTS
from config.stacks import get_kind
from core.errors import OperationInFlightError, PipelineError
from core.events import (
    BuildCompleted,
    EventBus,
    InspectionCompleted,
    OperationStarted,
    StateChanged,
)
from core.memory import JsonApplicationMemory
from core.selector import JsonSelectionRepository
from core.state import Operation, Stage, WorkflowState, can_transition
from manager.classifier import classify
from utils.llm import AnthropicModelClient

logger = logging.getLogger(__name__)


class Coordinator:
    """Runs the workflow: plan → generate → compile → test, with bounded repair.

    Collaborators:
        generator: generate(), repair(), judge(), record_outcome()
        builder: submit(source, artifact_kind, on_complete)
        inspector: submit(artifact, on_complete)
        memory: save_application(summary), save_trace(spec, kind, text)
    """

    def __init__(self, generator, builder, inspector, memory=None, bus=None, config=None):
        self.config = config or DEFAULTS
        self.generator = generator
        self.builder = builder
        self.inspector = inspector
        self.memory = memory
        self.bus = bus or EventBus()
        self.max_repair_attempts = self.config["max_repair_attempts"]

        self.mailbox = queue.Queue()
        self.operation = None
        self.state = WorkflowState()
        self._lock = threading.Lock()
        self._awaiting_repair_outcome = False

    @property
    def in_flight(self):
        return self.operation is not None and not self.state.current.is_terminal

    def start(self, spec, artifact_kind=None):
        """Create an operation for spec and queue its first step.

        Raises OperationInFlightError while another operation is running.
        """
        spec = (spec or "").strip()
        if not spec:
            raise ValueError("Specification text must not be empty")

        with self._lock:
            if self.in_flight:
                raise OperationInFlightError(
                    f"Operation {self.operation.operation_id} is still in {self.state.current.value}"
                )
            if not artifact_kind:
                artifact_kind, _ = classify(spec)
            operation = Operation(spec=spec, artifact_kind=artifact_kind)
            self.operation = operation
            self.state = WorkflowState()
            self._awaiting_repair_outcome = False
            operation.history.append(Stage.IDLE)

        logger.info("[%s] Starting %s operation: %s", operation.operation_id, artifact_kind, spec)
        self.post(OperationStarted(operation.operation_id, spec, artifact_kind))
        return operation

    def post(self, message):
        """Queue a message for run(). Safe to call from any thread."""
        self.mailbox.put(message)

    def run(self):
        """Handle messages until the current operation reaches a terminal stage.

        The loop is bound to the operation that was current when it started;
        once another operation replaces it, this runner returns and leaves the
        mailbox to that operation's runner.
        """
        operation = self.operation
        while self.operation is operation and self.in_flight:
            self._handle(self.mailbox.get())
        return operation

    def run_operation(self, spec, artifact_kind=None):
        self.start(spec, artifact_kind)
        return self.run()

    def snapshot(self):
        """JSON-safe view of the current operation and its stage history."""
        operation = self.operation
        if operation is None:
            return None
        return {
            "operation_id": operation.operation_id,
            "spec": operation.spec,
            "artifact_kind": operation.artifact_kind,
            "stage": self.state.current.value,
            "previous": self.state.previous.value if self.state.previous else None,
            "history": [stage.value for stage in operation.history],
            "repair_attempts": operation.repair_attempts,
            "components": [c.name for c in operation.components],
            "diagnostics": operation.diagnostics,
            "verdict": operation.verdict.text if operation.verdict else None,
            "source": operation.source,
        }

    # -- message handling -------------------------------------------------

    def _handle(self, message):
        operation = self.operation
        if getattr(message, "operation_id", None) != operation.operation_id:
            logger.warning("Ignoring %s for a finished operation", type(message).__name__)
            return

        handlers = {
            OperationStarted: self._on_started,
            BuildCompleted: self._on_build_completed,
            InspectionCompleted: self._on_inspection_completed,
        }
        handler = handlers.get(type(message))
        if handler is None:
            logger.warning("Unknown message %r", message)
            return

        self.bus.publish(message)
        try:
            handler(message)
        except Exception:
            logger.exception("[%s] Stage %s failed", operation.operation_id, self.state.current.value)
            if not self.state.current.is_terminal:
                self._transition(Stage.ERROR)

    def _transition(self, target):
        current = self.state.current
        if not can_transition(current, target):
            raise PipelineError(f"Invalid transition {current.value} -> {target.value}")
        self.state = WorkflowState(current=target, previous=current)
        self.operation.history.append(target)
        self.bus.publish(StateChanged(self.operation.operation_id, self.state))

    def _on_started(self, message):
        operation = self.operation
        self._transition(Stage.PLANNING)
        operation.plan_text = self._plan_text(operation)

        self._transition(Stage.GENERATION)
        operation.source = self.generator.generate(
            operation.spec, operation.plan_text, operation.artifact_kind,
        )
        operation.plan = getattr(self.generator, "last_plan", None)
        operation.components = list(getattr(self.generator, "last_components", None) or [])
        self._compile()

    def _plan_text(self, operation):
        kind = get_kind(operation.artifact_kind)
        return f"Create a {kind['name']} described as: {operation.spec}"

    def _compile(self):
        self._transition(Stage.COMPILATION)
        operation_id = self.operation.operation_id
        self.builder.submit(
            self.operation.source,
            self.operation.artifact_kind,
            lambda result: self.post(BuildCompleted(operation_id, result)),
        )

    def _on_build_completed(self, message):
        operation = self.operation
        result = message.result

        if self._awaiting_repair_outcome:
            self._awaiting_repair_outcome = False
            self.generator.record_outcome(result.success)

        if not result.success:
            operation.diagnostics = result.diagnostics or "Build failed"
            logger.info("[%s] Build failed: %s", operation.operation_id, operation.diagnostics[:200])
            self._repair(Stage.ERROR_REPAIR, "compile", operation.diagnostics)
            return

        operation.artifact = result.artifact
        self._transition(Stage.TESTING)
        operation_id = operation.operation_id
        self.inspector.submit(
            result.artifact,
            lambda description: self.post(InspectionCompleted(operation_id, description)),
        )

    def _on_inspection_completed(self, message):
        operation = self.operation
        verdict = self.generator.judge(message.description, operation.spec, operation.artifact_kind)
        operation.verdict = verdict
        self._save_trace(verdict.text)

        if not verdict.passed:
            operation.diagnostics = verdict.text
            logger.info("[%s] Test failed: %s", operation.operation_id, verdict.text[:200])
            self._repair(Stage.TEST_REPAIR, "test", verdict.text)
            return

        self._transition(Stage.FINALIZATION)
        if self.memory is not None:
            try:
                self.memory.save_application(operation.summary())
            except Exception:
                logger.warning("Could not save the application to memory", exc_info=True)
        self._transition(Stage.COMPLETED)
        logger.info("[%s] Completed after %d repair(s)", operation.operation_id, operation.repair_attempts)

    def _repair(self, stage, hint, diagnostics):
        operation = self.operation
        self._transition(stage)
        operation.repair_attempts += 1
        if operation.repair_attempts > self.max_repair_attempts:
            logger.error(
                "[%s] Maximum repair attempts reached (%d)",
                operation.operation_id, self.max_repair_attempts,
            )
            self._transition(Stage.ERROR)
            return

        operation.source = self.generator.repair(
            operation.source,
            diagnostics,
            hint,
            operation.repair_attempts,
            artifact_kind=operation.artifact_kind,
            spec=operation.spec,
        )
        self._awaiting_repair_outcome = True
        self._compile()

    def _save_trace(self, text):
        if self.memory is None:
            return
        try:
            self.memory.save_trace(self.operation.spec, self.operation.artifact_kind, text)
        except Exception:
            logger.warning("Could not save the test trace", exc_info=True)


def create_coordinator(config=None, client=None, bus=None):
    """Wire a coordinator with the default collaborators."""
    config = config or DEFAULTS
    bus = bus or EventBus()
    memory = JsonApplicationMemory(config["memory_path"] or None)
    repository = JsonSelectionRepository(config["selector_path"]) if config["selector_path"] else None
    selector = build_selector(config, repository=repository, bus=bus)
    client = client or AnthropicModelClient(model=config["model"], max_tokens=config["max_tokens"])

    generator = MultiPassGenerator(client, selector, memory, config, bus)
    return Coordinator(
        generator,
        PythonBuildService(config),
        StaticInspector(),
        memory=memory,
        bus=bus,
        config=config,
    )
