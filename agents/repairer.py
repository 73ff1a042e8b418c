"""Repair agent — rewrites source from compile errors or failed test verdicts."""

import logging

from agents.base import BaseAgent
from config.defaults import STYLE_NOTES
from core.quality import acceptable_repair
from utils.extraction import condense_diagnostics, extract_code
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)

REPEAT_NOTE = (
    "\nThis is repeated attempt number {attempt}: the previous fixes did not work. "
    "Look for the root cause and fix it thoroughly.\n"
)

_TEMPLATES = {"compile": "repair_compile", "test": "repair_test"}


class RepairAgent(BaseAgent):
    """Asks the model for a repaired program and keeps it only if it looks complete.

    The strategy, prompt style and model chosen for the last repair are kept
    until record_outcome() reports whether the next build succeeded.
    """

    name = "repairer"

    def __init__(self, client, selector, config=None, bus=None):
        super().__init__(client, selector, config, bus)
        self.pending = None

    def run(self, source, diagnostics, artifact_kind="gui", strategy_hint="compile",
            attempt=1, spec=""):
        kind = self._kind(artifact_kind)
        template = _TEMPLATES.get(strategy_hint, "repair_compile")
        strategy = self.selector.select("strategy:repair") or "standard"
        style = self._choose_style("repair")

        notes = [STYLE_NOTES.get(strategy, ""), STYLE_NOTES.get(style, "")]
        prompt = render_prompt(
            template,
            style_note="\n".join(n for n in notes if n),
            spec=spec,
            kind_name=kind["name"],
            diagnostics=condense_diagnostics(diagnostics) or "(no details)",
            source=source,
            repeat_note=REPEAT_NOTE.format(attempt=attempt) if attempt > 1 else "",
            entry_requirement=kind["entry_requirement"],
        )

        try:
            response, model = self._call_model(prompt, "repair")
        except Exception:
            logger.warning("Repair request failed, keeping the original source", exc_info=True)
            self.pending = None
            return source

        self.pending = (model, strategy, style)
        repaired = extract_code(response)
        if not acceptable_repair(repaired, kind, self.config["min_repair_length"]):
            logger.warning("Repair attempt %d rejected (%d chars), keeping the original", attempt, len(repaired))
            return source

        logger.info("Repair attempt %d accepted (%s strategy, %s style)", attempt, strategy, style)
        return repaired

    def record_outcome(self, success):
        """Credit or penalise the resources used by the last repair."""
        if self.pending is None:
            return
        model, strategy, style = self.pending
        self.pending = None
        self.selector.record(model, success, task_key="repair")
        self.selector.record(strategy, success, task_key="strategy:repair")
        self.selector.record(style, success, task_key="prompt:repair")
