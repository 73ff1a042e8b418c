"""Folder naming utilities: slugs, per-kind output dirs, build dirs."""

import os
import re
import tempfile

BASE_DIR = os.path.dirname(os.path.dirname(__file__))

KIND_DIRS = {
    "gui": "gui_apps",
    "console": "console_apps",
}


def slugify(text):
    """Convert text to a filesystem-safe slug."""
    text = text.lower().strip()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "_", text)
    return text.strip("_")


def extract_project_name(request):
    """Pull a short project name from the request text."""
    filler = {
        "build", "me", "a", "an", "the", "create", "make", "generate",
        "write", "for", "to", "with", "using", "that", "and", "app",
        "application", "tool", "script", "program", "please", "can",
        "you", "i", "want", "need", "some", "new", "gui", "tkinter",
        "desktop", "console", "simple",
    }
    words = re.sub(r"[^\w\s]", "", request.lower()).split()
    meaningful = [w for w in words if w not in filler]
    name = "_".join(meaningful[:3]) if meaningful else "project"
    return slugify(name)


MAX_DEDUP = 1000


def _check_containment(path, base_dir):
    """Verify the resolved path stays within base_dir."""
    resolved = os.path.realpath(path)
    if not resolved.startswith(os.path.realpath(base_dir) + os.sep):
        raise ValueError(f"Generated output path escapes base directory: {path}")
    return resolved


def get_output_dir(artifact_kind, request, base_dir=None):
    """Return a deduplicated output directory for the given artifact kind and request."""
    base_dir = base_dir or BASE_DIR
    kind_dir = KIND_DIRS.get(artifact_kind, "gui_apps")
    project_name = extract_project_name(request)
    base = os.path.join(base_dir, kind_dir, project_name)
    _check_containment(base, base_dir)

    if not os.path.exists(base):
        return base

    # Dedup with _2, _3, etc.
    for counter in range(2, MAX_DEDUP + 2):
        candidate = f"{base}_{counter}"
        if not os.path.exists(candidate):
            return candidate

    raise RuntimeError(f"Too many duplicate projects (>{MAX_DEDUP}) for: {project_name}")


def get_build_dir(root=None):
    """Create and return a fresh build directory (under root when given)."""
    if root:
        os.makedirs(root, exist_ok=True)
    return tempfile.mkdtemp(prefix="forgeloop_build_", dir=root or None)
