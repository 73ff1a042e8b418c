"""Keyword-scoring classifiers for artifact kinds and component kinds."""

import re

from core.state import ComponentKind

# Keywords that are prefix patterns (match word starts, e.g. "calculat" -> "calculator")
_PREFIX_KEYWORDS = {"calculat", "visuali", "edit"}

# Explicit technology mentions that force an artifact kind.
EXPLICIT_KIND = [
    (r"\btkinter\b", "gui"),
    (r"\bgui\b", "gui"),
    (r"\bdesktop\b", "gui"),
    (r"\bcommand[\s-]*line\b", "console"),
    (r"\bconsole\b", "console"),
    (r"\bterminal\b", "console"),
]

KEYWORDS = {
    "gui": {
        "window": 3, "button": 3, "form": 2, "dialog": 3, "menu": 2,
        "click": 2, "label": 2, "textbox": 3, "checkbox": 3, "slider": 3,
        "calculat": 2, "counter": 2, "editor": 2, "edit": 1, "panel": 2,
        "display": 1, "visuali": 2, "app": 1, "notepad": 3, "canvas": 3,
    },
    "console": {
        "script": 3, "print": 2, "stdin": 3, "stdout": 3, "argument": 2,
        "prompt": 1, "batch": 2, "file": 1, "report": 1, "log": 1,
    },
}

# Component kind heuristics, checked against the name first, then the description.
_UI_NAME = re.compile(r"form(?!at|ul)|panel|control(?!ler)|view|window|dialog|widget|frame|screen|menu|ui(?![a-z])|tab$", re.IGNORECASE)
_DATA_NAME = re.compile(r"data|repository|repo(?![a-z])|db(?![a-z])|storage|store|model|persist|entity|record", re.IGNORECASE)
_UI_DESC = re.compile(r"\b(?:ui|user interface|form|panel|view|window|dialog|widget|button|display|screen)\b", re.IGNORECASE)
_DATA_DESC = re.compile(r"\b(?:data|database|model|storage|persist\w*|save|load|file|repository)\b", re.IGNORECASE)


def classify(request):
    """Score a request against each artifact kind and return the best match.

    If the user explicitly names a technology or kind (e.g. "tkinter"),
    that overrides keyword scoring.

    Returns (kind, scores_dict).
    """
    text = request.lower()

    for pattern, kind in EXPLICIT_KIND:
        if re.search(pattern, text):
            scores = {k: 0 for k in KEYWORDS}
            scores[kind] = 100
            return kind, scores

    scores = {}
    for kind, kw_map in KEYWORDS.items():
        score = 0
        for keyword, weight in kw_map.items():
            if keyword in _PREFIX_KEYWORDS:
                pat = r"\b" + re.escape(keyword)
            else:
                pat = r"\b" + re.escape(keyword) + r"\b"
            if re.search(pat, text):
                score += weight
        scores[kind] = score

    best = max(scores, key=scores.get)
    # Default to a desktop app if nothing scored
    if scores[best] == 0:
        best = "gui"
    return best, scores


def classify_component(name, description=""):
    """Return the ComponentKind for a component by keyword heuristics."""
    if _UI_NAME.search(name):
        return ComponentKind.UI
    if _DATA_NAME.search(name):
        return ComponentKind.DATA
    if _UI_DESC.search(description or ""):
        return ComponentKind.UI
    if _DATA_DESC.search(description or ""):
        return ComponentKind.DATA
    return ComponentKind.LOGIC
