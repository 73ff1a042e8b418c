"""Adaptive selector: success-rate tracking with exploration vs exploitation."""

from __future__ import annotations

import json
import logging
import os
import random
import time
from dataclasses import asdict

from core.events import ResultRecorded, SelectionMade
from core.state import SelectionRecord

logger = logging.getLogger(__name__)

SUCCESS_WEIGHT = 0.7
CONTEXT_WEIGHT = 0.3


def _clamp(value, lo=0.0, hi=1.0):
    return max(lo, min(hi, value))


class InMemorySelectionRepository:
    """Selection records keyed by task, kept in registration order."""

    def __init__(self):
        self._records: dict[str, dict[str, SelectionRecord]] = {}

    def get(self, task_key, option):
        return self._records.get(task_key, {}).get(option)

    def add(self, record: SelectionRecord):
        self._records.setdefault(record.task_key, {})[record.option] = record

    def for_task(self, task_key) -> list[SelectionRecord]:
        return list(self._records.get(task_key, {}).values())

    def tasks_for_option(self, option) -> list[str]:
        return [task for task, records in self._records.items() if option in records]

    def save(self):
        pass


class JsonSelectionRepository(InMemorySelectionRepository):
    """Repository that persists records to a JSON file on every save()."""

    def __init__(self, path):
        super().__init__()
        self.path = path
        if os.path.isfile(path):
            with open(path) as f:
                data = json.load(f)
            for item in data:
                self.add(SelectionRecord(**item))

    def save(self):
        directory = os.path.dirname(os.path.abspath(self.path))
        os.makedirs(directory, exist_ok=True)
        records = [asdict(r) for task in self._records.values() for r in task.values()]
        tmp = self.path + ".tmp"
        with open(tmp, "w") as f:
            json.dump(records, f, indent=2)
        os.replace(tmp, self.path)


class AdaptiveSelector:
    """Picks an option per task from historical success and context similarity.

    With probability exploration_rate an option is drawn uniformly at random;
    otherwise each option scores 0.7 * success_rate + 0.3 * similarity(option)
    and the best one wins (ties go to the first registered option).
    """

    def __init__(self, repository=None, exploration_rate=0.1, learning_rate=0.2,
                 decay_rate=0.95, rng=None, bus=None):
        self.repository = repository or InMemorySelectionRepository()
        self.exploration_rate = exploration_rate
        self.learning_rate = learning_rate
        self.decay_rate = decay_rate
        self.rng = rng or random.Random()
        self.bus = bus

    def register(self, task_key, option, initial_rate=0.5):
        """Register an option for a task. Re-registering keeps the learned record."""
        if self.repository.get(task_key, option) is not None:
            return
        self.repository.add(SelectionRecord(
            task_key=task_key,
            option=option,
            success_rate=_clamp(initial_rate),
        ))
        logger.debug("Registered %s for %s (initial rate %.2f)", option, task_key, initial_rate)

    def register_many(self, catalogue):
        """Register a {task_key: [(option, rate), ...]} catalogue."""
        for task_key, options in catalogue.items():
            for option, rate in options:
                self.register(task_key, option, rate)

    def select(self, task_key, similarity=None):
        """Return the chosen option, or None when the task has no options."""
        records = self.repository.for_task(task_key)
        if not records:
            logger.debug("No options registered for %s", task_key)
            return None

        if self.rng.random() < self.exploration_rate:
            choice = records[self.rng.randrange(len(records))]
            self._publish(SelectionMade(task_key, choice.option, "exploration", 0.0))
            logger.debug("Exploring %s for %s", choice.option, task_key)
            return choice.option

        best, best_score = None, None
        for record in records:
            context = _clamp(similarity(record.option)) if similarity else 0.0
            score = SUCCESS_WEIGHT * record.success_rate + CONTEXT_WEIGHT * context
            if best_score is None or score > best_score:
                best, best_score = record, score

        self._publish(SelectionMade(task_key, best.option, "exploitation", best_score))
        logger.debug("Selected %s for %s (score %.2f)", best.option, task_key, best_score)
        return best.option

    def record(self, option, success, confidence=1.0, task_key=None):
        """Update the chosen option's rate and decay the task's other options."""
        if not option:
            return
        tasks = [task_key] if task_key else self.repository.tasks_for_option(option)
        factor = self.learning_rate * _clamp(confidence)
        target = 1.0 if success else 0.0

        for task in tasks:
            for record in self.repository.for_task(task):
                if record.option == option:
                    record.success_rate = _clamp(record.success_rate * (1 - factor) + target * factor)
                    record.attempts += 1
                    if success:
                        record.successes += 1
                    record.last_success = success
                    record.last_confidence = confidence
                    record.updated_at = time.time()
                else:
                    record.success_rate = _clamp(record.success_rate * self.decay_rate)

        self.repository.save()
        self._publish(ResultRecorded(option, success, confidence))

    def statistics(self, task_key):
        """Return the task's records as plain dicts, best first."""
        records = sorted(self.repository.for_task(task_key),
                         key=lambda r: r.success_rate, reverse=True)
        return [asdict(r) for r in records]

    def _publish(self, event):
        if self.bus is not None:
            self.bus.publish(event)
