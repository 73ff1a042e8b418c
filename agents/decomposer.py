"""Decomposer — second pass: plan entries to SubComponents, with minimum granularity."""

import logging
import re

from config.defaults import DEFAULTS
from core.events import ComponentsIdentified
from core.state import ComponentKind, SubComponent
from manager.classifier import classify_component
from utils.extraction import topological_order

logger = logging.getLogger(__name__)

_DATA_HINT = re.compile(r"\b(?:data|database|file|files|save|load|storage|store|persist\w*)\b", re.IGNORECASE)

# Generic components added when splitting is not enough: (name, description, kind)
GENERIC_COMPONENTS = [
    ("Constants", "Constants and configuration values", ComponentKind.DATA),
    ("Utilities", "Utility functions shared by the other components", ComponentKind.LOGIC),
    ("Models", "Data models and entities", ComponentKind.DATA),
]


class Decomposer:
    """Turns a GenerationPlan into SubComponents. Zero LLM calls."""

    name = "decomposer"

    def __init__(self, config=None, bus=None):
        self.config = config or DEFAULTS
        self.bus = bus

    def run(self, plan):
        components = [
            SubComponent(
                name=name,
                kind=classify_component(name, plan.details.get(name, "")),
                description=plan.details.get(name, "") or name,
                dependencies=list(plan.dependencies.get(name, [])),
                priority=plan.priorities.get(name, 999),
                notes=plan.notes.get(name, ""),
            )
            for name in plan.components
        ]

        if not components:
            logger.warning("Plan has no components, using the default set")
            components = self._default_components(plan.description)

        components = self.expand(components)
        if self.bus is not None:
            self.bus.publish(ComponentsIdentified(list(components)))
        return components

    def _default_components(self, description):
        components = [
            SubComponent(
                name="MainWindow",
                kind=ComponentKind.UI,
                description=f"Main window for the application: {description}",
                dependencies=["AppLogic"],
            ),
            SubComponent(
                name="AppLogic",
                kind=ComponentKind.LOGIC,
                description=f"Application logic for: {description}",
            ),
        ]
        if _DATA_HINT.search(description or ""):
            components.append(SubComponent(
                name="DataStore",
                kind=ComponentKind.DATA,
                description=f"Data access and persistence for: {description}",
            ))
            components[1].dependencies.append("DataStore")
        return components

    def expand(self, components):
        """Split components until the minimum split threshold is reached."""
        minimum = self.config["min_component_split"]
        if len(components) >= minimum:
            return components

        names = {c.name for c in components}

        def add(name, description, kind, dependencies=()):
            if name in names or len(components) >= minimum:
                return
            names.add(name)
            components.append(SubComponent(
                name=name, kind=kind, description=description,
                dependencies=list(dependencies),
            ))

        for ui in [c for c in components if c.kind == ComponentKind.UI]:
            add(f"{ui.name}Menu", f"Menu bar and commands for {ui.name}", ComponentKind.UI, [ui.name])
            add(f"{ui.name}Panel", f"Main content panel for {ui.name}", ComponentKind.UI, [ui.name])

        for logic in [c for c in components if c.kind == ComponentKind.LOGIC]:
            add(f"{logic.name}Helper", f"Helper functions for {logic.name}", ComponentKind.LOGIC, [logic.name])

        for name, description, kind in GENERIC_COMPONENTS:
            add(name, description, kind)

        logger.info("Expanded to %d component(s)", len(components))
        return components


def implementation_order(components, preference=()):
    """Return components ordered so each follows its dependencies."""
    by_name = {c.name: c for c in components}
    graph = {c.name: c.dependencies for c in components}
    ranked = sorted(components, key=lambda c: c.priority)
    order = topological_order(
        graph,
        [c.name for c in components],
        preference=list(preference) + [c.name for c in ranked],
    )
    return [by_name[name] for name in order]
