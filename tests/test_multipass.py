"""Tests for agents.multipass — full pass chain and fallbacks, model mocked."""

from unittest.mock import MagicMock

from agents.multipass import MultiPassGenerator, build_selector
from config.defaults import MODEL_OPTIONS, load_config
from core.errors import ModelClientError
from core.events import ComponentsIntegrated, EventBus, GenerationCompleted

CONFIG = load_config({"exploration_rate": 0.0}, environ={})

SINGLE_PASS = '''import tkinter as tk


class CounterApp(tk.Tk):
    def __init__(self):
        super().__init__()
        self.count = 0
        self.label = tk.Label(self, text="0")
        self.label.pack()


if __name__ == "__main__":
    CounterApp().mainloop()
'''


def _routing_client(plan_reply, code_for, integrate_reply="no code"):
    """Answers by prompt type, like a model that follows the templates."""
    client = MagicMock()

    def generate(prompt, model=None):
        if prompt.startswith("You are a software architect"):
            return plan_reply
        if prompt.startswith("Create a short, concrete implementation plan"):
            return "1. one class"
        if prompt.startswith("Write the Python code for one component"):
            name = prompt.split("Component: ", 1)[1].split(" ", 1)[0]
            return f"```python\n{code_for(name)}\n```"
        if prompt.startswith("Integrate these components"):
            return integrate_reply
        return f"```python\n{SINGLE_PASS}```"

    client.generate.side_effect = generate
    return client


def _component_code(name):
    return f"class {name}:\n    def run(self):\n        return '{name}'\n"


def test_build_selector_registers_catalogue():
    selector = build_selector(CONFIG)
    for task in MODEL_OPTIONS:
        assert selector.select(task) is not None
    assert selector.select("strategy:repair") == "standard"


def test_multi_pass_produces_integrated_source():
    plan = (
        "Component: CounterWindow - the window\n"
        "Component: CounterLogic - the count\n"
        "Dependency: CounterWindow depends on CounterLogic\n"
    )
    client = _routing_client(plan, _component_code)
    bus = EventBus()
    integrated, completed = [], []
    bus.subscribe(ComponentsIntegrated, integrated.append)
    bus.subscribe(GenerationCompleted, completed.append)
    generator = MultiPassGenerator(client, config=CONFIG, bus=bus)

    source = generator.generate("a counter", "Create a counter", "gui")

    names = [c.name for c in generator.last_components]
    assert len(names) == 5
    assert names.index("CounterLogic") < names.index("CounterWindow")
    assert generator.last_plan.components == ["CounterWindow", "CounterLogic"]
    for name in names:
        assert f"class {name}:" in source
    assert integrated[0].method == "manual"
    assert completed[0].success and completed[0].message == "multi-pass generation succeeded"


def test_pipeline_exception_falls_back_to_single_pass():
    client = MagicMock()
    client.generate.side_effect = [ModelClientError("planner down"), f"```python\n{SINGLE_PASS}```"]
    generator = MultiPassGenerator(client, config=CONFIG)

    source = generator.generate("a counter", "", "gui")

    assert source == SINGLE_PASS.strip()
    assert generator.last_plan is None
    assert client.generate.call_args.args[0].startswith("Write a complete")


def test_short_single_pass_uses_stub():
    client = MagicMock()
    client.generate.side_effect = [ModelClientError("planner down"), "```python\nprint(1)\n```"]
    bus = EventBus()
    completed = []
    bus.subscribe(GenerationCompleted, completed.append)

    source = MultiPassGenerator(client, config=CONFIG, bus=bus).generate("a counter", "", "gui")

    assert "class MainWindow(tk.Tk)" in source
    assert "'a counter'" in source
    assert completed[0].message == "minimal stub"


def test_everything_failing_still_returns_console_stub():
    client = MagicMock()
    client.generate.side_effect = ModelClientError("offline")

    source = MultiPassGenerator(client, config=CONFIG).generate("a word counter", "", "console")

    assert 'if __name__ == "__main__":' in source
    assert "DESCRIPTION = 'a word counter'" in source


def test_repair_and_outcome_delegate_to_repairer():
    client = MagicMock()
    client.generate.return_value = f"```python\n{SINGLE_PASS}```"
    generator = MultiPassGenerator(client, config=CONFIG)

    repaired = generator.repair("broken(", "SyntaxError", "compile", 1, artifact_kind="gui")
    generator.record_outcome(True)

    assert repaired == SINGLE_PASS.strip()
    stats = generator.selector.statistics("strategy:repair")
    assert sum(s["attempts"] for s in stats) == 1


def test_judge_delegates():
    client = MagicMock()
    client.generate.return_value = "TEST FAIL: no label"
    verdict = MultiPassGenerator(client, config=CONFIG).judge("Widgets: none", "a counter")
    assert not verdict.passed
