"""Integrator — merges generated components into one program."""

import logging
import re
from collections import Counter

from agents.base import BaseAgent
from config.stacks import get_kind
from core.events import ComponentsIntegrated
from core.quality import has_entry_point, references_all
from core.state import ComponentKind
from utils.extraction import extract_code, topological_order
from utils.pysource import (
    class_bases,
    primary_name,
    rename_symbol,
    split_module,
    top_level_names,
)
from utils.template_engine import render_prompt, render_stub

logger = logging.getLogger(__name__)

_KIND_RANK = {ComponentKind.DATA: 0, ComponentKind.LOGIC: 1, ComponentKind.UI: 2}
_TK_BASE = re.compile(r"(?:^|\.)Tk$")


def detect_dependencies(components):
    """Add dependency edges for cross-references found in generated source.

    Best effort: a component that cannot be scanned is skipped.
    Returns the number of edges added.
    """
    added = 0
    exported = {}
    for component in components:
        try:
            exported[component.name] = {component.name, *top_level_names(component.source or "")}
        except Exception:
            logger.warning("Could not scan %s for declarations", component.name, exc_info=True)
            exported[component.name] = {component.name}

    for component in components:
        if not component.source:
            continue
        for other in components:
            if other is component or other.name in component.dependencies:
                continue
            names = exported[other.name] - exported[component.name]
            if any(re.search(rf"\b{re.escape(n)}\b", component.source) for n in names):
                component.dependencies.append(other.name)
                added += 1
                logger.debug("Detected dependency %s -> %s", component.name, other.name)
    return added


def _merge_imports(groups):
    seen = set()
    future, regular = [], []
    for imports in groups:
        for statement in imports:
            key = statement.strip()
            if not key or key in seen:
                continue
            seen.add(key)
            (future if key.startswith("from __future__") else regular).append(key)
    return future + regular


def _module_names(source):
    # Dunder names such as __all__ are module metadata, never renamed.
    return [n for n in top_level_names(source) if not (n.startswith("__") and n.endswith("__"))]


def _merge_order(parts):
    """Data, then logic, then UI; dependencies first within each kind."""
    ordered = []
    for rank in sorted({_KIND_RANK.get(c.kind, 1) for c in parts}):
        group = [c for c in parts if _KIND_RANK.get(c.kind, 1) == rank]
        by_name = {c.name: c for c in group}
        names = topological_order(
            {c.name: c.dependencies for c in group},
            nodes=[c.name for c in group],
        )
        ordered.extend(by_name[n] for n in names)
    return ordered


def _entry_point(source, artifact_kind):
    """Build a __main__ block that starts the primary declaration of source.

    Returns (block, needs_tkinter_import); block is None when nothing is declared.
    """
    name = primary_name(source)
    if not name:
        return None, False
    if re.search(rf"^(?:async\s+)?def\s+{re.escape(name)}\b", source, re.MULTILINE):
        return f'if __name__ == "__main__":\n    {name}()', False
    if artifact_kind == "gui":
        if any(_TK_BASE.search(b) for b in class_bases(source, name)):
            return f'if __name__ == "__main__":\n    app = {name}()\n    app.mainloop()', False
        return (
            'if __name__ == "__main__":\n'
            "    root = tkinter.Tk()\n"
            f"    app = {name}(root)\n"
            "    root.mainloop()"
        ), True
    return f'if __name__ == "__main__":\n    {name}()', False


def integrate_manually(components, artifact_kind, description=""):
    """Concatenate component bodies data -> logic -> UI with collisions renamed."""
    parts = [c for c in components if c.source and c.source.strip()]
    if not parts:
        return render_stub(get_kind(artifact_kind), description)
    if len(parts) == 1:
        return parts[0].source

    counts = Counter(name for c in parts for name in set(_module_names(c.source)))
    colliding = {name for name, n in counts.items() if n > 1}

    sources = {}
    for component in parts:
        source = component.source
        for name in _module_names(source):
            if name in colliding:
                new = f"{name}_{component.name}"
                source = rename_symbol(source, name, new)
                logger.info("Renamed %s to %s in %s", name, new, component.name)
        sources[component.name] = source

    ordered = _merge_order(parts)
    import_groups, bodies, guards = [], [], []
    for component in ordered:
        imports, body, guard = split_module(sources[component.name])
        import_groups.append(imports)
        if body.strip():
            bodies.append(f"# --- {component.name} ---\n{body.strip()}")
        if guard:
            guards.append((component, guard))

    guard = next((g for c, g in guards if c.kind == ComponentKind.UI), None)
    if guard is None and guards:
        guard = guards[0][1]
    if guard is None:
        starter = next((c for c in ordered if c.kind == ComponentKind.UI), ordered[-1])
        guard, needs_tk = _entry_point(sources[starter.name], artifact_kind)
        if needs_tk:
            import_groups.append(["import tkinter"])
        if guard:
            logger.info("Synthesized entry point for %s", starter.name)

    imports = _merge_imports(import_groups)
    sections = []
    if imports:
        sections.append("\n".join(imports))
    sections.extend(bodies)
    if guard:
        sections.append(guard)
    return "\n\n\n".join(sections) + "\n"


class IntegratorAgent(BaseAgent):
    """Model-assisted integration with structural checks, manual otherwise."""

    name = "integrator"

    def run(self, spec, components, artifact_kind="gui"):
        parts = [c for c in components if c.source and c.source.strip()]
        kind = self._kind(artifact_kind)

        if len(parts) <= 1:
            source = parts[0].source if parts else render_stub(kind, spec)
            self._publish(ComponentsIntegrated("single", len(parts)))
            return source

        combined = sum(len(c.source) for c in parts)
        if combined < self.config["integration_size_budget"]:
            source = self._integrate_with_model(spec, parts, kind)
            if source is not None:
                self._publish(ComponentsIntegrated("model", len(parts)))
                return source
        else:
            logger.info("Combined size %d exceeds the integration budget, merging manually", combined)

        source = integrate_manually(parts, artifact_kind, spec)
        self._publish(ComponentsIntegrated("manual", len(parts)))
        return source

    def _integrate_with_model(self, spec, parts, kind):
        listing = "\n\n".join(
            f"### Component: {c.name} ({c.kind.value})\n```python\n{c.source}\n```"
            for c in parts
        )
        prompt = render_prompt(
            "integrate",
            spec=spec,
            kind_name=kind["name"],
            components=listing,
            entry_requirement=kind["entry_requirement"],
        )
        response, model = self._call_model(prompt, "integration", complex_task=True)
        source = extract_code(response)

        accepted = (
            len(source) >= self.config["min_source_length"]
            and references_all(source, parts)
            and has_entry_point(source, kind)
        )
        self.selector.record(model, accepted, confidence=0.5, task_key="integration")
        if not accepted:
            logger.warning("Model integration failed the structural checks")
            return None
        return source
