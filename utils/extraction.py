"""Lenient extraction of plans, code, diagnostics and verdicts from model text.

Plan grammar (case-insensitive, one entry per line, optional bullet / bold):

    Component: <Name> - <description>          (also "Module: ...")
    Dependency: <Name> depends on <A>, <B>      ("requires", "uses", "needs")
    Priority: <Name>: high|medium|low|<n>
    Note: <Name>: <text>
    Implementation Order: A, B, C               (or a bulleted list below)

Fallbacks: a stated order is only a preference; the final implementation order
is always a topological sort of the dependency graph. With no components the
nodes of the dependency graph become the components. Anything left in a cycle
is appended in declaration order.
"""

import ast
import logging
import re

from core.state import GenerationPlan, Verdict

logger = logging.getLogger(__name__)

_BULLET = r"^[ \t]*(?:[-*+]|\d+[.)])?[ \t]*(?:\*\*|__|#+[ \t]*)?"
_NAME = r"(?:\*\*|__|`)?([A-Za-z_]\w*)(?:\*\*|__|`)?"
_KEY_SEP = r"(?:\*\*|__)?[ \t]*:?[ \t]*(?:\*\*|__)?[ \t]*"

COMPONENT_RE = re.compile(
    _BULLET + r"(?:component|module)\b" + _KEY_SEP + _NAME
    + r"[ \t]*(?:\*\*)?[ \t]*[:\-–—(]?[ \t]*([^\n]*)",
    re.IGNORECASE | re.MULTILINE,
)
DEPENDENCY_RE = re.compile(
    _BULLET + r"(?:dependency|dependencies)\b" + _KEY_SEP + _NAME
    + r"[ \t]*:?[ \t]*(?:depends[ \t]+on|requires|uses|needs)[ \t]*:?[ \t]*([\w ,]*)",
    re.IGNORECASE | re.MULTILINE,
)
PRIORITY_RE = re.compile(
    _BULLET + r"priority\b" + _KEY_SEP + _NAME
    + r"[ \t]*[:\-–—][ \t]*(\w+)",
    re.IGNORECASE | re.MULTILINE,
)
NOTE_RE = re.compile(
    _BULLET + r"note\b" + _KEY_SEP + _NAME
    + r"[ \t]*[:\-–—][ \t]*([^\n]+)",
    re.IGNORECASE | re.MULTILINE,
)
ORDER_RE = re.compile(
    r"implementation[ \t]+order(?:\*\*|__)?[ \t]*:?[ \t]*([^\n]*)((?:\n[ \t]*(?:[-*+]|\d+[.)])[^\n]*)*)",
    re.IGNORECASE,
)

_IDENT = re.compile(r"[A-Za-z_]\w*")
_STOP_WORDS = {"and", "then", "finally", "none", "nothing", "first", "last", "order"}

_PRIORITY_WORDS = {"high": 1, "critical": 1, "medium": 2, "normal": 2, "low": 3}


def parse_priority(text):
    """Map 'high'/'medium'/'low' or a number to a priority (999 if unknown)."""
    text = (text or "").strip().lower()
    if text in _PRIORITY_WORDS:
        return _PRIORITY_WORDS[text]
    match = re.search(r"\d+", text)
    if match:
        return int(match.group())
    return 999


def _identifiers(text):
    return [w for w in _IDENT.findall(text) if w.lower() not in _STOP_WORDS]


def _dedupe(items):
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


def topological_order(graph, nodes=None, preference=None):
    """Order nodes so every node follows its dependencies.

    graph maps node -> list of dependencies. Edges to unknown nodes and
    self-edges are ignored. Among ready nodes the one earliest in
    `preference` (then in `nodes`) goes first. Nodes stuck in a cycle are
    appended in declaration order.
    """
    if nodes is None:
        nodes = []
        for node, deps in graph.items():
            nodes.append(node)
            nodes.extend(deps)
    nodes = _dedupe(nodes)
    known = set(nodes)

    ranked = _dedupe([n for n in (preference or []) if n in known] + nodes)
    deps = {
        n: {d for d in graph.get(n, []) if d in known and d != n}
        for n in nodes
    }

    order = []
    placed = set()
    while len(order) < len(ranked):
        ready = next((n for n in ranked if n not in placed and deps[n] <= placed), None)
        if ready is None:
            break
        order.append(ready)
        placed.add(ready)

    remainder = [n for n in nodes if n not in placed]
    if remainder:
        logger.warning("Dependency cycle among %s; using declaration order", ", ".join(remainder))
        order.extend(remainder)
    return order


def _parse_order(text):
    match = ORDER_RE.search(text)
    if not match:
        return []
    names = _identifiers(re.sub(r"->|=>|→", ",", match.group(1)))
    for line in match.group(2).splitlines():
        line = re.sub(r"^[ \t]*(?:[-*+]|\d+[.)])[ \t]*", "", line)
        first = _identifiers(line.replace("*", "").replace("`", ""))
        if first:
            names.append(first[0])
    return _dedupe(names)


def parse_plan(text, description="", artifact_kind="gui"):
    """Parse free-form planning text into a GenerationPlan."""
    plan = GenerationPlan(description=description, artifact_kind=artifact_kind)
    text = text or ""

    for match in COMPONENT_RE.finditer(text):
        name = match.group(1).strip()
        if name.lower() in _STOP_WORDS or name in plan.details:
            continue
        plan.components.append(name)
        plan.details[name] = match.group(2).strip().rstrip(")").strip()

    for match in DEPENDENCY_RE.finditer(text):
        name = match.group(1).strip()
        found = [d for d in _identifiers(match.group(2)) if d != name]
        plan.dependencies.setdefault(name, [])
        plan.dependencies[name] = _dedupe(plan.dependencies[name] + found)

    for match in PRIORITY_RE.finditer(text):
        plan.priorities[match.group(1)] = parse_priority(match.group(2))

    for match in NOTE_RE.finditer(text):
        plan.notes[match.group(1)] = match.group(2).strip()

    stated = _parse_order(text)

    if not plan.components and plan.dependencies:
        # Only edges were recognised: their nodes become the components.
        plan.components = topological_order(plan.dependencies)
        logger.info("No components found in plan; derived %d from dependencies", len(plan.components))

    if plan.components:
        stated = [n for n in stated if n in plan.details or n in plan.components]
        by_priority = sorted(plan.components, key=lambda n: plan.priorities.get(n, 999))
        plan.implementation_order = topological_order(
            plan.dependencies, plan.components, preference=stated + by_priority,
        )
    if not plan.implementation_order:
        plan.implementation_order = list(plan.components)
    return plan


_FENCE_RE = re.compile(r"```[ \t]*([\w.+-]*)[^\n]*\n(.*?)```", re.DOTALL)
_CODE_START_RE = re.compile(
    r"^(?:import\s|from\s+[\w.]+\s+import\s|class\s|def\s|async\s+def\s|@|#!|\"\"\"|'''|if\s+__name__)",
)


def _parses(code):
    try:
        ast.parse(code)
    except (SyntaxError, ValueError):
        return False
    return True


def extract_code(response):
    """Strip prose and fences from a model reply, returning only source text."""
    response = response or ""
    blocks = [
        body.strip("\n")
        for lang, body in _FENCE_RE.findall(response)
        if lang.lower() in ("", "python", "py", "python3") or lang.lower().endswith(".py")
    ]
    blocks = [b for b in blocks if b.strip()]
    if blocks:
        return max(blocks, key=len).strip()

    lines = response.splitlines()
    start = next((i for i, line in enumerate(lines) if _CODE_START_RE.match(line)), None)
    if start is not None:
        code_lines = lines[start:]
        # Drop trailing prose lines until the remainder parses.
        while len(code_lines) > 1 and not _parses("\n".join(code_lines)):
            last = code_lines[-1]
            if last.startswith((" ", "\t")) or _CODE_START_RE.match(last):
                break
            code_lines.pop()
        return "\n".join(code_lines).strip()

    return re.sub(r"```[\w.+-]*", "", response).strip()


def condense_diagnostics(errors, limit=1000, max_lines=5):
    """Shorten long diagnostics to the first few error-looking lines."""
    errors = errors or ""
    if len(errors) <= limit:
        return errors
    picked = []
    for line in errors.splitlines():
        if re.search(r"error|exception", line, re.IGNORECASE):
            picked.append(line.strip())
            if len(picked) >= max_lines:
                break
    if not picked:
        return errors[:limit]
    return "\n".join(picked)


_FAIL_WORDS = re.compile(r"\bfail|\bnot\s+(?:satisf|match|meet|pass)|\bmissing\b|\bdoes\s+not\b", re.IGNORECASE)
_PASS_WORDS = re.compile(r"\bpass|\bsuccess|\bsatisf|\bmeets\b|\bmatches\b", re.IGNORECASE)


def parse_verdict(text):
    """Normalise a judge reply to a 'TEST PASS' / 'TEST FAIL' verdict.

    An explicit marker wins (the earliest one if both appear). Otherwise
    failure words are checked before success words; undecidable is a fail.
    """
    text = (text or "").strip()
    upper = text.upper()
    pass_at = upper.find("TEST PASS")
    fail_at = upper.find("TEST FAIL")

    if pass_at >= 0 and (fail_at < 0 or pass_at < fail_at):
        return Verdict(passed=True, text=text)
    if fail_at >= 0:
        return Verdict(passed=False, text=text)

    if _FAIL_WORDS.search(text):
        return Verdict(passed=False, text=f"TEST FAIL: {text}")
    if _PASS_WORDS.search(text):
        return Verdict(passed=True, text=f"TEST PASS: {text}")
    return Verdict(passed=False, text="TEST FAIL: could not determine the result from the reply.")
