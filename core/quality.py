"""Structural gates applied to generated and repaired source."""

import re

from utils.pysource import primary_name


def has_entry_point(source, kind_config):
    """True when every entry marker of the artifact kind appears in source."""
    return all(marker.search(source or "") for marker in kind_config["entry_markers"])


def has_repair_markers(source, kind_config):
    return all(marker.search(source or "") for marker in kind_config["repair_markers"])


def references_all(source, components):
    """True when each component is mentioned by name or by its primary declaration."""
    source = source or ""
    for component in components:
        names = {component.name}
        declared = primary_name(component.source or "")
        if declared:
            names.add(declared)
        if not any(re.search(rf"\b{re.escape(n)}\b", source) for n in names):
            return False
    return True


def acceptable_repair(source, kind_config, min_length):
    """A repair is kept only when it is long enough and structurally complete."""
    return len((source or "").strip()) >= min_length and has_repair_markers(source, kind_config)
