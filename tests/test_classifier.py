"""Tests for manager.classifier."""

from core.state import ComponentKind
from manager.classifier import classify, classify_component


def test_gui_classification():
    kind, scores = classify("a counter with a plus button and a reset button")
    assert kind == "gui"
    assert scores["gui"] > scores["console"]


def test_console_classification():
    kind, scores = classify("a script that reads stdin and prints a report")
    assert kind == "console"


def test_explicit_kind_overrides_keywords():
    kind, scores = classify("a command-line tool that shows a window title")
    assert kind == "console"
    assert scores["console"] == 100


def test_explicit_tkinter():
    kind, _ = classify("write it in tkinter")
    assert kind == "gui"


def test_default_is_gui():
    kind, scores = classify("something")
    assert kind == "gui"
    assert scores == {"gui": 0, "console": 0}


def test_component_kind_by_name():
    assert classify_component("MainWindow") == ComponentKind.UI
    assert classify_component("SettingsForm") == ComponentKind.UI
    assert classify_component("NoteRepository") == ComponentKind.DATA
    assert classify_component("CounterModel") == ComponentKind.DATA
    assert classify_component("Calculator") == ComponentKind.LOGIC


def test_component_kind_lookalikes():
    assert classify_component("Formatter") == ComponentKind.LOGIC
    assert classify_component("GameController") == ComponentKind.LOGIC


def test_component_kind_by_description():
    assert classify_component("Toolbar", "a row of button widgets above the editor") == ComponentKind.UI
    assert classify_component("Journal", "saves entries to a file") == ComponentKind.DATA
    assert classify_component("Engine", "computes the next move") == ComponentKind.LOGIC
