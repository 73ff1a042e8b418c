"""Tests for core.state models."""

from core.state import (
    ComponentKind,
    Operation,
    SelectionRecord,
    Stage,
    SubComponent,
    Verdict,
    WorkflowState,
    can_transition,
)


def test_terminal_stages():
    assert Stage.COMPLETED.is_terminal
    assert Stage.ERROR.is_terminal
    assert not Stage.TEST_REPAIR.is_terminal


def test_forward_transitions():
    assert can_transition(Stage.IDLE, Stage.PLANNING)
    assert can_transition(Stage.COMPILATION, Stage.TESTING)
    assert can_transition(Stage.COMPILATION, Stage.ERROR_REPAIR)
    assert can_transition(Stage.TEST_REPAIR, Stage.COMPILATION)
    assert not can_transition(Stage.PLANNING, Stage.COMPILATION)
    assert not can_transition(Stage.TESTING, Stage.COMPLETED)


def test_error_reachable_from_every_non_terminal_stage():
    for stage in Stage:
        assert can_transition(stage, Stage.ERROR) == (not stage.is_terminal)


def test_no_transition_out_of_terminal():
    for stage in Stage:
        assert not can_transition(Stage.COMPLETED, stage)


def test_workflow_state_defaults():
    state = WorkflowState()
    assert state.current == Stage.IDLE
    assert state.previous is None


def test_sub_component_defaults():
    c = SubComponent("Panel", ComponentKind.UI)
    assert c.source is None
    assert c.priority == 999
    assert c.dependencies == []


def test_operation_summary():
    op = Operation(spec="a counter", artifact_kind="gui")
    op.components = [SubComponent("CounterWindow", ComponentKind.UI)]
    op.verdict = Verdict(True, "TEST PASS")
    op.repair_attempts = 2

    summary = op.summary()

    assert summary["spec"] == "a counter"
    assert summary["components"] == ["CounterWindow"]
    assert summary["repair_attempts"] == 2
    assert summary["verdict"] == "TEST PASS"
    assert summary["duration"] >= 0
    assert len(op.operation_id) == 8


def test_selection_record_defaults():
    record = SelectionRecord("planning", "model-a")
    assert record.success_rate == 0.5
    assert record.attempts == 0
