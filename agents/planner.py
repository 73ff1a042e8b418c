"""Planner agent — first pass: strategic plan with components and dependencies."""

import logging

from agents.base import BaseAgent
from core.events import PlanCreated
from utils.extraction import parse_plan
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


class PlannerAgent(BaseAgent):
    """Asks the model for a component plan and parses it into a GenerationPlan."""

    name = "planner"

    def __init__(self, client, selector, memory=None, config=None, bus=None):
        super().__init__(client, selector, config, bus)
        self.memory = memory

    def _context(self, spec):
        if self.memory is None:
            return ""
        try:
            return self.memory.get_relevant_context(spec) or ""
        except Exception:
            logger.warning("Memory context lookup failed", exc_info=True)
            return ""

    def run(self, spec, artifact_kind="gui", requirements=""):
        kind = self._kind(artifact_kind)
        context = self._context(spec)

        prompt = render_prompt(
            "plan",
            spec=spec,
            kind_name=kind["name"],
            requirements=requirements or spec,
            context=context or "(none)",
        )
        response, model = self._call_model(prompt, "planning", complex_task=True)
        plan = parse_plan(response, description=spec, artifact_kind=artifact_kind)

        self.selector.record(model, bool(plan.components), confidence=0.5, task_key="planning")
        logger.info(
            "Plan created: %d component(s), %d dependency edge(s)",
            len(plan.components), sum(len(d) for d in plan.dependencies.values()),
        )
        self._publish(PlanCreated(plan))
        return plan
