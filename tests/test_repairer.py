"""Tests for agents.repairer and agents.judge."""

from unittest.mock import MagicMock

from agents.judge import JudgeAgent
from agents.repairer import RepairAgent
from core.errors import ModelClientError
from core.selector import AdaptiveSelector

ORIGINAL = "import tkinter as tk\n\nclass App(tk.Tk):\n    def __init__(self):\n        super().__init__(\n"

FIXED = (
    "import tkinter as tk\n\n\n"
    "class App(tk.Tk):\n"
    "    def __init__(self):\n"
    "        super().__init__()\n\n\n"
    "if __name__ == \"__main__\":\n"
    "    App().mainloop()\n"
)


def _selector():
    selector = AdaptiveSelector(exploration_rate=0.0)
    selector.register("repair", "fixer", 0.8)
    selector.register("strategy:repair", "conservative", 0.9)
    selector.register("strategy:repair", "aggressive", 0.1)
    selector.register("prompt:repair", "focused", 0.9)
    selector.register("testing", "judge-model", 0.8)
    return selector


def _agent(reply):
    client = MagicMock()
    if isinstance(reply, Exception):
        client.generate.side_effect = reply
    else:
        client.generate.return_value = reply
    selector = _selector()
    return RepairAgent(client, selector), client, selector


def test_repair_accepted():
    agent, client, _ = _agent(f"Fixed:\n```python\n{FIXED}```")

    result = agent.run(ORIGINAL, "SyntaxError: '(' was never closed", "gui", "compile", 1)

    assert result == FIXED.strip()
    prompt = client.generate.call_args.args[0]
    assert "was never closed" in prompt
    assert "smallest possible fix" in prompt
    assert "repeated attempt" not in prompt
    assert client.generate.call_args.kwargs["model"] == "fixer"


def test_repeat_note_on_later_attempts():
    agent, client, _ = _agent(f"```python\n{FIXED}```")
    agent.run(ORIGINAL, "SyntaxError", "gui", "compile", 3)
    assert "repeated attempt number 3" in client.generate.call_args.args[0]


def test_test_repair_uses_spec():
    agent, client, _ = _agent(f"```python\n{FIXED}```")
    agent.run(FIXED, "TEST FAIL: no reset button", "gui", "test", 1, spec="a counter with reset")
    prompt = client.generate.call_args.args[0]
    assert "a counter with reset" in prompt
    assert "no reset button" in prompt


def test_short_repair_rejected():
    agent, _, _ = _agent("```python\nprint(1)\n```")
    assert agent.run(ORIGINAL, "SyntaxError", "gui") == ORIGINAL


def test_repair_without_markers_rejected():
    reply = "```python\n" + "def main():\n    print('a counter without a window')\n" * 3 + "```"
    agent, _, _ = _agent(reply)
    assert agent.run(ORIGINAL, "SyntaxError", "gui") == ORIGINAL


def test_console_repair_markers():
    reply = "```python\ndef main():\n    print('hello world from the console')\n\n\nmain()\n```"
    agent, _, _ = _agent(reply)
    assert agent.run("def main(:\n", "SyntaxError", "console").startswith("def main():")


def test_model_error_returns_original():
    agent, _, _ = _agent(ModelClientError("offline"))
    assert agent.run(ORIGINAL, "SyntaxError", "gui") == ORIGINAL
    assert agent.pending is None


def test_long_diagnostics_condensed():
    agent, client, _ = _agent(f"```python\n{FIXED}```")
    diagnostics = "noise " * 300 + "\napp.py:3: error: first\napp.py:4: error: second"
    agent.run(ORIGINAL, diagnostics, "gui")
    prompt = client.generate.call_args.args[0]
    assert "noise noise" not in prompt
    assert "app.py:3: error: first" in prompt


def test_record_outcome_credits_resources_once():
    agent, _, selector = _agent(f"```python\n{FIXED}```")
    agent.run(ORIGINAL, "SyntaxError", "gui")

    agent.record_outcome(True)
    agent.record_outcome(False)

    assert selector.statistics("repair")[0]["successes"] == 1
    strategies = {s["option"]: s for s in selector.statistics("strategy:repair")}
    assert strategies["conservative"]["attempts"] == 1
    assert strategies["aggressive"]["attempts"] == 0
    assert selector.statistics("prompt:repair")[0]["attempts"] == 1


def test_judge_pass_and_fail():
    client = MagicMock()
    judge = JudgeAgent(client, _selector())

    client.generate.return_value = "TEST PASS: all buttons present"
    assert judge.run("Widgets: Button '+'", "a counter").passed

    client.generate.return_value = "TEST FAIL: the reset button is missing"
    verdict = judge.run("Widgets: Button '+'", "a counter with reset")
    assert not verdict.passed
    assert "reset" in verdict.text


def test_judge_model_error_is_failing_verdict():
    client = MagicMock()
    client.generate.side_effect = ModelClientError("rate limited")
    verdict = JudgeAgent(client, _selector()).run("Widgets: none", "a counter")
    assert not verdict.passed
    assert "rate limited" in verdict.text


def test_judge_prompt_contains_inspection():
    client = MagicMock()
    client.generate.return_value = "TEST PASS"
    JudgeAgent(client, _selector()).run("Window titles: Counter", "a counter")
    prompt = client.generate.call_args.args[0]
    assert "Window titles: Counter" in prompt
    assert client.generate.call_args.kwargs["model"] == "judge-model"
