"""Tests for core.memory."""

from core.memory import JsonApplicationMemory, similarity


def _summary(spec, op_id="op1"):
    return {
        "operation_id": op_id,
        "spec": spec,
        "artifact_kind": "gui",
        "components": ["CounterWindow", "CounterLogic"],
        "repair_attempts": 1,
    }


def test_similarity():
    assert similarity("counter with reset button", "counter with plus button") > 0.3
    assert similarity("counter", "weather report") == 0.0
    assert similarity("", "anything") == 0.0


def test_empty_memory_has_no_context():
    assert JsonApplicationMemory().get_relevant_context("a counter") == ""


def test_context_lists_similar_applications():
    memory = JsonApplicationMemory()
    memory.save_application(_summary("counter with reset button"))
    memory.save_application(_summary("weather report downloader", "op2"))

    context = memory.get_relevant_context("counter with plus button")

    assert "counter with reset button" in context
    assert "CounterWindow, CounterLogic" in context
    assert "weather" not in context


def test_context_includes_traces():
    memory = JsonApplicationMemory()
    memory.save_application(_summary("counter with reset button"))
    memory.save_trace("counter with reset button", "gui", "TEST FAIL: reset did nothing")

    context = memory.get_relevant_context("counter with reset")

    assert "TEST FAIL: reset did nothing" in context


def test_persists_to_json(tmp_path):
    path = str(tmp_path / "memory" / "apps.json")
    memory = JsonApplicationMemory(path)
    memory.save_application(_summary("counter with reset button"))
    memory.save_trace("counter with reset button", "gui", "TEST PASS")

    reloaded = JsonApplicationMemory(path)

    assert len(reloaded.applications) == 1
    assert reloaded.traces[0]["text"] == "TEST PASS"
    assert reloaded.find_similar("reset counter")[0][1]["operation_id"] == "op1"
