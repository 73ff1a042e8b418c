"""Claude API client used as the generative model collaborator."""

import logging
import os
import time

import anthropic

from config.defaults import DEFAULTS
from core.errors import ModelClientError

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert Python developer who writes complete, working programs. "
    "Follow the requested output format exactly."
)


def get_client():
    """Return an Anthropic client. Raises if no API key is set."""
    api_key = os.environ.get("ANTHROPIC_API_KEY")
    if not api_key:
        raise ModelClientError(
            "ANTHROPIC_API_KEY environment variable is not set. "
            "Get a key at https://console.anthropic.com/ and run:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )
    return anthropic.Anthropic(api_key=api_key)


class AnthropicModelClient:
    """generate(prompt, model=None) -> text, with one retry on API errors."""

    def __init__(self, model=None, max_tokens=None, client=None, retry_delay=2):
        self.model = model or DEFAULTS["model"]
        self.max_tokens = max_tokens or DEFAULTS["max_tokens"]
        self._client = client
        self.retry_delay = retry_delay

    @property
    def client(self):
        if self._client is None:
            self._client = get_client()
        return self._client

    def generate(self, prompt, model=None):
        model = model or self.model
        last_error = None
        for attempt in range(2):
            try:
                # Use streaming to avoid SDK timeout for large max_tokens
                text = ""
                with self.client.messages.stream(
                    model=model,
                    max_tokens=self.max_tokens,
                    system=SYSTEM_PROMPT,
                    messages=[{"role": "user", "content": prompt}],
                ) as stream:
                    for chunk in stream.text_stream:
                        text += chunk
                    final = stream.get_final_message()

                if final.stop_reason == "max_tokens":
                    logger.warning("Response from %s hit the token limit and may be truncated", model)
                logger.debug("Model %s returned %d characters", model, len(text))
                return text

            except anthropic.APIError as e:
                last_error = e
                if attempt == 0:
                    logger.warning("Model call failed (%s), retrying", e)
                    time.sleep(self.retry_delay)
                    continue
                raise ModelClientError(f"Model call to {model} failed: {e}") from e

        raise ModelClientError(f"Model call to {model} failed: {last_error}")
