"""Default orchestrator settings and config loading."""

import os

from core.errors import ConfigurationError

DEFAULTS = {
    "model": "claude-sonnet-4-5-20250929",
    "max_tokens": 16384,
    "sandbox_timeout": 30,
    "allowed_commands": ["python3"],
    "max_repair_attempts": 5,
    "exploration_rate": 0.1,
    "learning_rate": 0.2,
    "decay_rate": 0.95,
    "min_component_split": 5,
    "integration_size_budget": 12000,
    "min_source_length": 100,
    "min_repair_length": 50,
    "memory_path": "",
    "selector_path": "",
    "build_root": "",
}

# Options registered with the adaptive selector at startup: task -> [(option, initial rate)]
MODEL_OPTIONS = {
    "planning": [
        ("claude-sonnet-4-5-20250929", 0.8),
        ("claude-haiku-4-5", 0.7),
    ],
    "code_generation:ui": [
        ("claude-sonnet-4-5-20250929", 0.8),
        ("claude-haiku-4-5", 0.6),
    ],
    "code_generation:logic": [
        ("claude-haiku-4-5", 0.7),
        ("claude-sonnet-4-5-20250929", 0.7),
    ],
    "code_generation:data": [
        ("claude-haiku-4-5", 0.7),
        ("claude-sonnet-4-5-20250929", 0.6),
    ],
    "integration": [
        ("claude-sonnet-4-5-20250929", 0.8),
    ],
    "repair": [
        ("claude-haiku-4-5", 0.8),
        ("claude-sonnet-4-5-20250929", 0.7),
    ],
    "testing": [
        ("claude-haiku-4-5", 0.8),
        ("claude-sonnet-4-5-20250929", 0.6),
    ],
}

PROMPT_STYLES = {
    "prompt:code_generation": [("standard", 0.7), ("detailed", 0.6), ("simple", 0.5)],
    "prompt:repair": [("standard", 0.7), ("focused", 0.6), ("detailed", 0.5)],
}

REPAIR_STRATEGIES = {
    "strategy:repair": [("standard", 0.7), ("conservative", 0.6), ("aggressive", 0.5)],
}

# Extra instructions appended to a prompt for each style / strategy
STYLE_NOTES = {
    "standard": "",
    "detailed": "Be thorough: implement every behaviour described, including edge cases and input validation.",
    "simple": "Keep the implementation as small and direct as possible.",
    "focused": "Change only what is needed to fix the listed problems.",
    "conservative": "Preserve the existing structure and names; make the smallest possible fix.",
    "aggressive": "Rewrite any part of the program that is needed to remove the problems entirely.",
}

_ENV_PREFIX = "FORGELOOP_"


def _coerce(key, value):
    default = DEFAULTS[key]
    try:
        if isinstance(default, bool):
            if isinstance(value, str):
                return value.lower() in ("1", "true", "yes")
            return bool(value)
        if isinstance(default, int):
            return int(value)
        if isinstance(default, float):
            return float(value)
        if isinstance(default, list):
            if isinstance(value, str):
                return [v.strip() for v in value.split(",") if v.strip()]
            return list(value)
        return str(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid value for {key}: {value!r}")


def _validate(config):
    for key in ("exploration_rate", "learning_rate", "decay_rate"):
        if not 0.0 <= config[key] <= 1.0:
            raise ConfigurationError(f"{key} must be in [0, 1], got {config[key]!r}")
    for key in ("max_repair_attempts", "min_component_split", "sandbox_timeout"):
        if config[key] < 0:
            raise ConfigurationError(f"{key} must not be negative, got {config[key]!r}")


def load_config(overrides=None, environ=None):
    """Return DEFAULTS merged with FORGELOOP_* environment values and overrides.

    Overrides win over the environment. Unknown keys raise ConfigurationError.
    """
    environ = os.environ if environ is None else environ
    config = dict(DEFAULTS)

    for name, value in environ.items():
        if not name.startswith(_ENV_PREFIX):
            continue
        key = name[len(_ENV_PREFIX):].lower()
        if key in DEFAULTS:
            config[key] = _coerce(key, value)

    for key, value in (overrides or {}).items():
        if key not in DEFAULTS:
            raise ConfigurationError(f"Unknown config key: {key}")
        if value is None:
            continue
        config[key] = _coerce(key, value)

    _validate(config)
    return config
