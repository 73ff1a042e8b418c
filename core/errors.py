"""Exception hierarchy for the orchestrator."""


class ForgeError(Exception):
    """Base class for all orchestrator errors."""


class ConfigurationError(ForgeError):
    """Raised when a config value is unknown or out of range."""


class ModelClientError(ForgeError):
    """Raised when the generative model cannot be reached or configured."""


class PipelineError(ForgeError):
    """Raised inside the multi-pass pipeline when a pass degenerates.

    Never escapes MultiPassGenerator.generate: it triggers the single-pass fallback.
    """


class OperationInFlightError(ForgeError):
    """Raised when a second operation is started while one is still running."""
