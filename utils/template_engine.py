"""Prompt template engine using string.Template for safe rendering."""

import os
from string import Template

from config.defaults import STYLE_NOTES


def get_prompts_dir():
    """Return the absolute path to the prompt templates directory."""
    return os.path.join(os.path.dirname(os.path.dirname(__file__)), "agents", "prompts")


def load_prompt(name):
    """Load a prompt template file and return its contents as a string."""
    prompts_dir = get_prompts_dir()
    path = os.path.join(prompts_dir, f"{name}.txt")
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(prompts_dir) + os.sep):
        raise ValueError(f"Prompt path escapes prompts directory: {name}")
    with open(resolved, "r") as f:
        return f.read()


def render_prompt(template_name, /, style=None, **variables):
    """Load and render a prompt with the given variables.

    Uses string.Template for safe substitution - unknown placeholders
    are left as-is rather than raising errors. The style note for `style`
    is exposed to the template as $style_note. The template name is
    positional-only so any placeholder name can be passed as a variable.
    """
    variables.setdefault("style_note", STYLE_NOTES.get(style or "standard", ""))
    tmpl = Template(load_prompt(template_name))
    return tmpl.safe_substitute(variables).strip() + "\n"


def render_stub(kind_config, description):
    """Render the minimal fallback program for an artifact kind."""
    return Template(kind_config["stub"]).safe_substitute(description=repr(description))
