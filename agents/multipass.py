"""Multi-pass generator: plan, decompose, generate, integrate, with fallbacks.

Pass failures never escape generate(): any exception falls back to a single
request built from the description, and an empty or implausibly short result
is replaced by the minimal stub of the artifact kind.
"""

import logging

from agents.decomposer import Decomposer
from agents.generator import ComponentGenerator
from agents.integrator import IntegratorAgent, detect_dependencies
from agents.judge import JudgeAgent
from agents.planner import PlannerAgent
from agents.repairer import RepairAgent
from config.defaults import DEFAULTS, MODEL_OPTIONS, PROMPT_STYLES, REPAIR_STRATEGIES
from config.stacks import get_kind
from core.events import GenerationCompleted
from core.selector import AdaptiveSelector
from utils.extraction import extract_code
from utils.template_engine import render_prompt, render_stub

logger = logging.getLogger(__name__)


def build_selector(config=None, repository=None, bus=None, rng=None):
    """Return an AdaptiveSelector with the default option catalogue registered."""
    config = config or DEFAULTS
    selector = AdaptiveSelector(
        repository=repository,
        exploration_rate=config["exploration_rate"],
        learning_rate=config["learning_rate"],
        decay_rate=config["decay_rate"],
        rng=rng,
        bus=bus,
    )
    for catalogue in (MODEL_OPTIONS, PROMPT_STYLES, REPAIR_STRATEGIES):
        selector.register_many(catalogue)
    return selector


class MultiPassGenerator:
    """Generator collaborator used by the coordinator."""

    def __init__(self, client, selector=None, memory=None, config=None, bus=None):
        self.client = client
        self.config = config or DEFAULTS
        self.selector = selector or build_selector(self.config, bus=bus)
        self.bus = bus

        self.planner = PlannerAgent(client, self.selector, memory, self.config, bus)
        self.decomposer = Decomposer(self.config, bus)
        self.generator = ComponentGenerator(client, self.selector, self.config, bus)
        self.integrator = IntegratorAgent(client, self.selector, self.config, bus)
        self.repairer = RepairAgent(client, self.selector, self.config, bus)
        self.judge_agent = JudgeAgent(client, self.selector, self.config, bus)

        self.last_plan = None
        self.last_components = []

    def plan(self, spec, artifact_kind="gui", requirements=""):
        return self.planner.run(spec, artifact_kind, requirements)

    def generate(self, spec, plan_text="", artifact_kind="gui"):
        """Return source for spec. Never raises on pipeline failures."""
        self.last_plan = None
        self.last_components = []
        try:
            source = self._multi_pass(spec, plan_text, artifact_kind)
            message = "multi-pass generation succeeded"
        except Exception as e:
            logger.warning("Multi-pass generation failed (%s), falling back to a single pass", e)
            source = self._single_pass(spec, plan_text, artifact_kind)
            message = f"single-pass fallback after: {e}"

        if len((source or "").strip()) < self.config["min_source_length"]:
            logger.warning("Generated source is too short, using the minimal stub")
            source = render_stub(get_kind(artifact_kind), spec)
            message = "minimal stub"

        self._publish(GenerationCompleted(True, message, source))
        return source

    def _multi_pass(self, spec, plan_text, artifact_kind):
        plan = self.planner.run(spec, artifact_kind, plan_text)
        self.last_plan = plan

        components = self.decomposer.run(plan)
        ordered = self.generator.run(
            spec, components, artifact_kind, preference=plan.implementation_order,
        )
        self.last_components = ordered

        try:
            added = detect_dependencies(ordered)
            if added:
                logger.info("Detected %d additional dependency edge(s)", added)
        except Exception:
            logger.warning("Dependency detection failed", exc_info=True)

        return self.integrator.run(spec, ordered, artifact_kind)

    def _single_pass(self, spec, plan_text, artifact_kind):
        kind = get_kind(artifact_kind)
        prompt = render_prompt(
            "single_pass",
            spec=spec,
            kind_name=kind["name"],
            requirements=plan_text or spec,
            entry_requirement=kind["entry_requirement"],
        )
        try:
            return extract_code(self.client.generate(prompt))
        except Exception as e:
            logger.error("Single-pass generation failed: %s", e)
            return ""

    def repair(self, source, diagnostics, strategy_hint="compile", attempt=1,
               artifact_kind="gui", spec=""):
        return self.repairer.run(source, diagnostics, artifact_kind, strategy_hint, attempt, spec)

    def judge(self, inspection, spec, artifact_kind="gui"):
        return self.judge_agent.run(inspection, spec, artifact_kind)

    def record_outcome(self, success):
        self.repairer.record_outcome(success)

    def _publish(self, event):
        if self.bus is not None:
            self.bus.publish(event)
