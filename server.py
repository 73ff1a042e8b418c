#!/usr/bin/env python3
"""Forgeloop HTTP entry point: start an operation and watch its stages."""

import logging
import os
import threading

from flask import Flask, jsonify, request

from config.defaults import load_config
from core.errors import OperationInFlightError
from core.events import EventBus, EventLogger
from core.orchestrator import create_coordinator

logger = logging.getLogger(__name__)

app = Flask(__name__)

_coordinator = None
_coordinator_lock = threading.Lock()


def get_coordinator():
    """Return the process-wide coordinator, creating it on first use."""
    global _coordinator
    with _coordinator_lock:
        if _coordinator is None:
            bus = EventBus()
            EventLogger(bus)
            _coordinator = create_coordinator(load_config(), bus=bus)
        return _coordinator


def set_coordinator(coordinator):
    global _coordinator
    with _coordinator_lock:
        _coordinator = coordinator


def _run(coordinator):
    try:
        coordinator.run()
    except Exception:
        logger.exception("Operation runner crashed")


@app.route("/api/operations", methods=["POST"])
def api_start_operation():
    """Start an operation in a background thread. One at a time."""
    data = request.get_json(silent=True) or {}
    spec = (data.get("spec") or "").strip()
    if not spec:
        return jsonify({"error": "Missing spec"}), 400

    coordinator = get_coordinator()
    try:
        operation = coordinator.start(spec, data.get("kind"))
    except OperationInFlightError as e:
        return jsonify({"error": str(e)}), 409

    thread = threading.Thread(target=_run, args=(coordinator,), daemon=True)
    thread.start()
    return jsonify({
        "operation_id": operation.operation_id,
        "artifact_kind": operation.artifact_kind,
    }), 202


@app.route("/api/operations/current")
def api_current_operation():
    snapshot = get_coordinator().snapshot()
    if snapshot is None:
        return jsonify({"error": "No operation has been started"}), 404
    return jsonify(snapshot)


@app.route("/api/selector/<path:task>")
def api_selector(task):
    """Selection statistics for a task key, e.g. code_generation:ui."""
    coordinator = get_coordinator()
    selector = getattr(coordinator.generator, "selector", None)
    if selector is None:
        return jsonify({"error": "Selector not available"}), 404
    return jsonify({"task": task, "options": selector.statistics(task)})


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    port = int(os.environ.get("PORT", 5001))
    print(f"Forgeloop running at http://localhost:{port}")
    app.run(debug=False, port=port)
