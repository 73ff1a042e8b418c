"""Application memory: past applications and judge traces, kept as JSON."""

import json
import logging
import os
import re
import threading
import time

logger = logging.getLogger(__name__)

_WORD = re.compile(r"[a-z]{3,}")
_STOP = {
    "the", "and", "for", "with", "that", "this", "app", "application",
    "create", "build", "make", "simple", "program", "which", "into", "from",
}


def keywords(text):
    return {w for w in _WORD.findall((text or "").lower()) if w not in _STOP}


def similarity(a, b):
    """Jaccard overlap of the keyword sets of two texts."""
    ka, kb = keywords(a), keywords(b)
    if not ka or not kb:
        return 0.0
    return len(ka & kb) / len(ka | kb)


class JsonApplicationMemory:
    """Memory service backed by a JSON file, or purely in memory without a path."""

    def __init__(self, path=None, max_results=3, min_similarity=0.1):
        self.path = path
        self.max_results = max_results
        self.min_similarity = min_similarity
        self.applications = []
        self.traces = []
        self._lock = threading.Lock()
        if path and os.path.isfile(path):
            with open(path) as f:
                data = json.load(f)
            self.applications = data.get("applications", [])
            self.traces = data.get("traces", [])
            logger.info("Loaded %d application(s) from %s", len(self.applications), path)

    def find_similar(self, spec, limit=None):
        """Return [(score, application)] best first."""
        with self._lock:
            scored = [(similarity(spec, app.get("spec", "")), app) for app in self.applications]
        scored = [s for s in scored if s[0] >= self.min_similarity]
        scored.sort(key=lambda s: s[0], reverse=True)
        return scored[: limit or self.max_results]

    def get_relevant_context(self, spec):
        matches = self.find_similar(spec)
        if not matches:
            return ""
        lines = ["Previously built applications that look similar:"]
        for score, app in matches:
            components = ", ".join(app.get("components", [])) or "none"
            lines.append(
                f"- {app.get('spec', '')} (similarity {score:.0%}, "
                f"components: {components}, repairs: {app.get('repair_attempts', 0)})"
            )
        with self._lock:
            traces = [t for t in self.traces if similarity(spec, t.get("spec", "")) >= self.min_similarity]
        if traces:
            lines.append("Lessons from earlier tests:")
            lines.extend(f"- {t['text'][:300]}" for t in traces[-self.max_results:])
        return "\n".join(lines)

    def save_application(self, summary):
        with self._lock:
            self.applications.append(dict(summary, saved_at=time.time()))
        logger.info("Saved application %s to memory", summary.get("operation_id", "?"))
        self._persist()

    def save_trace(self, spec, artifact_kind, text):
        with self._lock:
            self.traces.append({
                "spec": spec,
                "artifact_kind": artifact_kind,
                "text": text,
                "saved_at": time.time(),
            })
        self._persist()

    def _persist(self):
        if not self.path:
            return
        with self._lock:
            data = {"applications": self.applications, "traces": self.traces}
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        tmp = self.path + ".tmp"
        with open(tmp, "w") as f:
            json.dump(data, f, indent=2)
        os.replace(tmp, self.path)
