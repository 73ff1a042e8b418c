"""Judge agent — decides whether an inspected program satisfies its description."""

import logging

from agents.base import BaseAgent
from core.state import Verdict
from utils.extraction import parse_verdict
from utils.template_engine import render_prompt

logger = logging.getLogger(__name__)


class JudgeAgent(BaseAgent):
    name = "judge"

    def run(self, inspection, spec, artifact_kind="gui"):
        kind = self._kind(artifact_kind)
        prompt = render_prompt(
            "judge",
            spec=spec,
            kind_name=kind["name"],
            inspection=inspection or "(nothing was observed)",
        )
        try:
            response, model = self._call_model(prompt, "testing")
        except Exception as e:
            logger.error("Judge request failed: %s", e)
            return Verdict(passed=False, text=f"TEST FAIL: judge request failed: {e}")

        verdict = parse_verdict(response)
        # A decisive reply counts as a success for the model, whichever way it went.
        decisive = "TEST PASS" in response.upper() or "TEST FAIL" in response.upper()
        self.selector.record(model, decisive, confidence=0.5, task_key="testing")
        logger.info("Verdict: %s", "pass" if verdict.passed else "fail")
        return verdict
