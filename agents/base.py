"""Base class for the agents that talk to the generative model."""

import logging

from config.defaults import DEFAULTS
from config.stacks import get_kind

logger = logging.getLogger(__name__)


def model_affinity(option, complex_task):
    """Context similarity of a model option: larger models suit complex work."""
    large = "sonnet" in option or "opus" in option
    if complex_task:
        return 0.8 if large else 0.4
    return 0.4 if large else 0.7


class BaseAgent:
    """Shared plumbing: model choice through the adaptive selector, then the call."""

    name = "base"

    def __init__(self, client, selector, config=None, bus=None):
        self.client = client
        self.selector = selector
        self.config = config or DEFAULTS
        self.bus = bus

    def _choose_model(self, task_key, complex_task=False):
        return self.selector.select(
            task_key, lambda option: model_affinity(option, complex_task),
        )

    def _choose_style(self, prompt_type):
        return self.selector.select(f"prompt:{prompt_type}") or "standard"

    def _call_model(self, prompt, task_key, complex_task=False):
        """Call the model chosen for task_key. Returns (text, model)."""
        model = self._choose_model(task_key, complex_task)
        logger.debug("[%s] calling %s for %s", self.name, model or "default model", task_key)
        return self.client.generate(prompt, model=model), model

    def _kind(self, artifact_kind):
        return get_kind(artifact_kind)

    def _publish(self, event):
        if self.bus is not None:
            self.bus.publish(event)
