"""Tests for utils.pysource."""

from utils.pysource import (
    class_bases,
    declared_names,
    has_main_guard,
    is_valid_python,
    primary_name,
    rename_symbol,
    split_module,
    top_level_names,
)

MODULE = '''"""Counter window."""

import tkinter as tk
from tkinter import messagebox

STEP = 1


def helper():
    return STEP


class CounterWindow(tk.Frame):
    def __init__(self, master):
        super().__init__(master)
        self.helper = helper


if __name__ == "__main__":
    root = tk.Tk()
    CounterWindow(root)
    root.mainloop()
'''


def test_is_valid_python():
    assert is_valid_python("x = 1")
    assert not is_valid_python("def broken(:")
    assert is_valid_python("")


def test_top_level_and_declared_names():
    assert top_level_names(MODULE) == ["STEP", "helper", "CounterWindow"]
    assert declared_names(MODULE) == ["helper", "CounterWindow"]


def test_primary_name_prefers_class():
    assert primary_name(MODULE) == "CounterWindow"
    assert primary_name("def run():\n    pass\n") == "run"
    assert primary_name("x = 1") is None


def test_class_bases():
    assert class_bases(MODULE, "CounterWindow") == ["tk.Frame"]
    assert class_bases("class App(tk.Tk):\n    def x(:\n", "App") == ["tk.Tk"]


def test_has_main_guard():
    assert has_main_guard(MODULE)
    assert not has_main_guard("print('no guard')")


def test_split_module():
    imports, body, guard = split_module(MODULE)
    assert imports == ["import tkinter as tk", "from tkinter import messagebox"]
    assert body.startswith("STEP = 1")
    assert "Counter window" not in body
    assert "__main__" not in body
    assert guard.startswith('if __name__ == "__main__":')
    assert guard.rstrip().endswith("root.mainloop()")


def test_split_module_invalid_source_falls_back_to_lines():
    source = "import os\nclass A:\n    def f(:\n        pass\nif __name__ == '__main__':\n    A()\n"
    imports, body, guard = split_module(source)
    assert imports == ["import os"]
    assert body.startswith("class A:")
    assert guard.startswith("if __name__")


def test_rename_symbol_leaves_attributes_and_strings():
    source = "class Helper:\n    pass\n\nh = Helper()\nh.Helper = 'Helper'\n"
    renamed = rename_symbol(source, "Helper", "Helper_Logic")
    assert renamed == (
        "class Helper_Logic:\n    pass\n\nh = Helper_Logic()\nh.Helper = 'Helper'\n"
    )


def test_rename_symbol_whole_words_only():
    assert rename_symbol("HelperX = Helper\n", "Helper", "H2") == "HelperX = H2\n"
