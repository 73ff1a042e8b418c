"""Generator agent — implementation plan and code for each component."""

import logging

from agents.base import BaseAgent
from agents.decomposer import implementation_order
from core.events import ComponentGenerated
from utils.extraction import extract_code
from utils.pysource import is_valid_python
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


class ComponentGenerator(BaseAgent):
    """Generates every component in dependency order, two model calls each."""

    name = "generator"

    def run(self, spec, components, artifact_kind="gui", preference=()):
        kind = self._kind(artifact_kind)
        ordered = implementation_order(components, preference)
        style = self._choose_style("code_generation")

        for component in ordered:
            deps = ", ".join(component.dependencies) or "none"
            component.implementation_plan = self._plan_component(spec, kind, component, deps)

            prompt = render_prompt(
                "component",
                style=style,
                spec=spec,
                kind_name=kind["name"],
                component_name=component.name,
                kind=component.kind.value,
                description=component.description,
                dependencies=deps,
                implementation_plan=component.implementation_plan or "(none)",
            )
            task_key = f"code_generation:{component.kind.value}"
            response, model = self._call_model(prompt, task_key)
            component.source = extract_code(response)

            valid = is_valid_python(component.source)
            self.selector.record(model, valid, confidence=0.5, task_key=task_key)
            self.selector.record(style, valid, confidence=0.5, task_key="prompt:code_generation")
            if not valid:
                logger.warning("Component %s is not valid Python", component.name)
            logger.info("Generated %s (%d chars)", component.name, len(component.source))
            self._publish(ComponentGenerated(component.name, len(component.source), valid))

        return ordered

    def _plan_component(self, spec, kind, component, deps):
        prompt = render_prompt(
            "implementation_plan",
            spec=spec,
            kind_name=kind["name"],
            component_name=component.name,
            kind=component.kind.value,
            description=component.description,
            dependencies=deps,
            notes=component.notes or "none",
        )
        response, _ = self._call_model(prompt, "planning")
        return response.strip()
