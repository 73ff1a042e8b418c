"""Artifact kind definitions: structural markers, stubs and build commands."""

import re

GUI_STUB = '''"""Minimal fallback application."""

import tkinter as tk


class MainWindow(tk.Tk):
    def __init__(self):
        super().__init__()
        self.title("Generated Application")
        self.geometry("400x200")
        self.label = tk.Label(self, text=$description)
        self.label.pack(pady=10)
        self.entry = tk.Entry(self)
        self.entry.pack(pady=5)
        self.button = tk.Button(self, text="OK", command=self.on_click)
        self.button.pack(pady=5)

    def on_click(self):
        self.label.config(text="You entered: " + self.entry.get())


if __name__ == "__main__":
    app = MainWindow()
    app.mainloop()
'''

CONSOLE_STUB = '''"""Minimal fallback program."""

DESCRIPTION = $description


def main():
    print(DESCRIPTION)
    answer = input("> ")
    print("You entered: " + answer)


if __name__ == "__main__":
    main()
'''

_MAIN_GUARD = re.compile(r"""^if\s+__name__\s*==\s*["']__main__["']\s*:""", re.MULTILINE)

ARTIFACT_KINDS = {
    "gui": {
        "name": "Tkinter Desktop App",
        "entry_requirement": "Use only the standard library tkinter module. End the file with an `if __name__ == \"__main__\":` block that creates the main window and calls its mainloop().",
        "entry_markers": [_MAIN_GUARD, re.compile(r"\.mainloop\(\s*\)")],
        "repair_markers": [
            re.compile(r"^\s*class\s+\w+", re.MULTILINE),
            re.compile(r"^\s*(?:import\s+tkinter|from\s+tkinter\s+import)", re.MULTILINE),
        ],
        "stub": GUI_STUB,
        "build_command": ["python3", "-m", "py_compile"],
        "entry_file": "app.py",
    },
    "console": {
        "name": "Console Program",
        "entry_requirement": "Use only the standard library. End the file with an `if __name__ == \"__main__\":` block that runs the program.",
        "entry_markers": [_MAIN_GUARD],
        "repair_markers": [re.compile(r"^\s*(?:def|class)\s+\w+", re.MULTILINE)],
        "stub": CONSOLE_STUB,
        "build_command": ["python3", "-m", "py_compile"],
        "entry_file": "app.py",
    },
}

DEFAULT_KIND = "gui"


def get_kind(kind):
    """Return the artifact kind config, falling back to the default kind."""
    return ARTIFACT_KINDS.get(kind, ARTIFACT_KINDS[DEFAULT_KIND])
