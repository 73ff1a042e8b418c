"""Static inspector — describes a built program's windows, widgets and callbacks."""

import ast
import logging
import threading

from utils.pysource import has_main_guard

logger = logging.getLogger(__name__)

WIDGETS = {
    "Button", "Label", "Entry", "Text", "Canvas", "Listbox", "Checkbutton",
    "Radiobutton", "Scale", "Spinbox", "Frame", "LabelFrame", "Menu",
    "Menubutton", "Scrollbar", "Message", "Toplevel", "PanedWindow",
    "Combobox", "Treeview", "Notebook", "Progressbar", "Separator",
}

_CALLBACK_KEYWORDS = {"command", "postcommand", "validatecommand"}


def _const(node):
    if isinstance(node, ast.Constant) and isinstance(node.value, (str, int, float)):
        return str(node.value)
    if isinstance(node, ast.JoinedStr):
        return ast.unparse(node)
    return None


def _call_name(node):
    func = node.func
    if isinstance(func, ast.Attribute):
        return func.attr
    if isinstance(func, ast.Name):
        return func.id
    return None


class _Collector(ast.NodeVisitor):
    def __init__(self):
        self.classes = []
        self.functions = []
        self.titles = []
        self.geometry = []
        self.widgets = []
        self.callbacks = []
        self.bindings = []
        self.menu_items = []
        self.io_calls = {"print": 0, "input": 0}
        self.mainloop = False

    def visit_ClassDef(self, node):
        bases = ", ".join(ast.unparse(b) for b in node.bases)
        self.classes.append(f"{node.name}({bases})" if bases else node.name)
        self.generic_visit(node)

    def visit_FunctionDef(self, node):
        self.functions.append(node.name)
        self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_Call(self, node):
        name = _call_name(node)
        keywords = {k.arg: k.value for k in node.keywords if k.arg}

        if name == "title" and node.args and _const(node.args[0]):
            self.titles.append(_const(node.args[0]))
        elif name == "geometry" and node.args and _const(node.args[0]):
            self.geometry.append(_const(node.args[0]))
        elif name == "mainloop":
            self.mainloop = True
        elif name == "bind" and len(node.args) >= 2:
            self.bindings.append(f"{_const(node.args[0]) or ast.unparse(node.args[0])} -> {ast.unparse(node.args[1])}")
        elif name in ("add_command", "add_checkbutton", "add_radiobutton"):
            label = _const(keywords["label"]) if "label" in keywords else None
            self.menu_items.append(label or "(unlabelled)")
        elif name in self.io_calls:
            self.io_calls[name] += 1

        if name in WIDGETS:
            text = None
            for key in ("text", "label", "textvariable"):
                if key in keywords:
                    text = _const(keywords[key]) or ast.unparse(keywords[key])
                    break
            self.widgets.append(f"{name} '{text}'" if text else name)

        for key in _CALLBACK_KEYWORDS & set(keywords):
            self.callbacks.append(f"{name or 'widget'}.{key} -> {ast.unparse(keywords[key])}")

        self.generic_visit(node)


class StaticInspector:
    """inspect(artifact) -> plain-text description of the program at that path."""

    name = "inspector"

    def inspect(self, artifact):
        with open(artifact) as f:
            source = f.read()
        return self.describe(source)

    def describe(self, source):
        try:
            tree = ast.parse(source)
        except SyntaxError as e:
            return f"The program could not be parsed: {e}"

        found = _Collector()
        found.visit(tree)

        lines = []
        if found.titles:
            lines.append("Window titles: " + ", ".join(found.titles))
        if found.geometry:
            lines.append("Window size: " + ", ".join(found.geometry))
        lines.append("Classes: " + (", ".join(found.classes) or "none"))
        lines.append("Functions: " + (", ".join(found.functions) or "none"))
        if found.widgets:
            lines.append(f"Widgets ({len(found.widgets)}):")
            lines.extend(f"  - {w}" for w in found.widgets)
        else:
            lines.append("Widgets: none")
        if found.menu_items:
            lines.append("Menu items: " + ", ".join(found.menu_items))
        if found.callbacks:
            lines.append("Callbacks:")
            lines.extend(f"  - {c}" for c in found.callbacks)
        if found.bindings:
            lines.append("Event bindings:")
            lines.extend(f"  - {b}" for b in found.bindings)
        if any(found.io_calls.values()):
            lines.append(
                f"Console I/O: {found.io_calls['print']} print call(s), "
                f"{found.io_calls['input']} input call(s)"
            )

        entry = []
        if has_main_guard(source):
            entry.append("__main__ guard")
        if found.mainloop:
            entry.append("mainloop() call")
        lines.append("Entry point: " + (", ".join(entry) or "none"))
        return "\n".join(lines)

    def submit(self, artifact, on_complete):
        """Inspect on a worker thread and pass the description to on_complete."""
        def worker():
            try:
                description = self.inspect(artifact)
            except OSError as e:
                logger.error("Could not read artifact %s: %s", artifact, e)
                description = f"The artifact could not be read: {e}"
            on_complete(description)

        thread = threading.Thread(target=worker, name="forgeloop-inspect", daemon=True)
        thread.start()
        return thread
