"""Tests for core.selector — exploitation, exploration, learning, persistence."""

import random
from unittest.mock import MagicMock

import pytest

from core.events import EventBus, ResultRecorded, SelectionMade
from core.selector import AdaptiveSelector, InMemorySelectionRepository, JsonSelectionRepository


def _selector(**kwargs):
    kwargs.setdefault("exploration_rate", 0.0)
    return AdaptiveSelector(**kwargs)


def test_exploitation_picks_best_rate():
    selector = _selector()
    selector.register("T", "A", 0.8)
    selector.register("T", "B", 0.5)
    for _ in range(20):
        assert selector.select("T", lambda option: 0.0) == "A"


def test_similarity_can_outweigh_rate():
    selector = _selector()
    selector.register("T", "A", 0.6)
    selector.register("T", "B", 0.5)
    # A: 0.42, B: 0.35 + 0.3
    assert selector.select("T", lambda option: 1.0 if option == "B" else 0.0) == "B"


def test_tie_goes_to_first_registered():
    selector = _selector()
    selector.register("T", "first", 0.5)
    selector.register("T", "second", 0.5)
    assert selector.select("T") == "first"


def test_no_options_returns_none():
    assert _selector().select("unknown") is None


def test_exploration_uses_rng():
    rng = MagicMock()
    rng.random.return_value = 0.0
    rng.randrange.return_value = 1
    selector = AdaptiveSelector(exploration_rate=0.5, rng=rng)
    selector.register("T", "A", 0.9)
    selector.register("T", "B", 0.1)

    assert selector.select("T") == "B"
    rng.randrange.assert_called_once_with(2)


def test_exploration_is_uniform_over_options():
    selector = AdaptiveSelector(exploration_rate=1.0, rng=random.Random(7))
    for option in ("A", "B", "C"):
        selector.register("T", option, 0.5)
    picks = {selector.select("T") for _ in range(100)}
    assert picks == {"A", "B", "C"}


def test_record_success_moves_toward_one():
    selector = _selector(learning_rate=0.2)
    selector.register("T", "A", 0.5)
    selector.record("A", True, confidence=1.0, task_key="T")
    stats = selector.statistics("T")[0]
    assert stats["success_rate"] == pytest.approx(0.6)
    assert stats["attempts"] == 1
    assert stats["successes"] == 1
    assert stats["last_success"] is True


def test_record_failure_scaled_by_confidence():
    selector = _selector(learning_rate=0.2)
    selector.register("T", "A", 0.5)
    selector.record("A", False, confidence=0.5, task_key="T")
    # f = 0.1 -> 0.5 * 0.9
    assert selector.statistics("T")[0]["success_rate"] == pytest.approx(0.45)


def test_record_decays_other_options_of_task_only():
    selector = _selector(decay_rate=0.95)
    selector.register("T", "A", 0.5)
    selector.register("T", "B", 0.8)
    selector.register("U", "C", 0.8)

    selector.record("A", True, task_key="T")

    rates = {s["option"]: s["success_rate"] for s in selector.statistics("T")}
    assert rates["B"] == pytest.approx(0.76)
    assert selector.statistics("U")[0]["success_rate"] == pytest.approx(0.8)


def test_record_without_task_updates_every_task_of_option():
    selector = _selector(learning_rate=0.5)
    selector.register("T", "A", 0.5)
    selector.register("U", "A", 0.5)
    selector.record("A", True)
    assert selector.statistics("T")[0]["success_rate"] == pytest.approx(0.75)
    assert selector.statistics("U")[0]["success_rate"] == pytest.approx(0.75)


def test_rates_stay_in_unit_interval():
    selector = _selector(learning_rate=1.0)
    selector.register("T", "A", 1.5)
    selector.register("T", "B", 0.5)
    for _ in range(10):
        selector.record("A", True, confidence=3.0, task_key="T")
        selector.record("B", False, confidence=3.0, task_key="T")
    for stats in selector.statistics("T"):
        assert 0.0 <= stats["success_rate"] <= 1.0


def test_reregister_keeps_learned_rate():
    selector = _selector()
    selector.register("T", "A", 0.5)
    selector.record("A", True, task_key="T")
    selector.register("T", "A", 0.1)
    assert selector.statistics("T")[0]["success_rate"] == pytest.approx(0.6)


def test_record_none_option_is_ignored():
    repo = MagicMock(wraps=InMemorySelectionRepository())
    selector = _selector(repository=repo)
    selector.record(None, True)
    repo.save.assert_not_called()


def test_repositories_are_isolated():
    one = _selector()
    two = _selector()
    one.register("T", "A", 0.8)
    assert two.select("T") is None


def test_events_published():
    bus = EventBus()
    seen = []
    bus.subscribe(SelectionMade, seen.append)
    bus.subscribe(ResultRecorded, seen.append)
    selector = _selector(bus=bus)
    selector.register("T", "A", 0.8)

    selector.select("T")
    selector.record("A", False, confidence=0.5, task_key="T")

    assert isinstance(seen[0], SelectionMade)
    assert seen[0].mode == "exploitation"
    assert seen[1] == ResultRecorded("A", False, 0.5)


def test_json_repository_round_trip(tmp_path):
    path = str(tmp_path / "selector" / "records.json")
    selector = _selector(repository=JsonSelectionRepository(path))
    selector.register("T", "A", 0.5)
    selector.register("T", "B", 0.5)
    selector.record("B", True, task_key="T")

    reloaded = _selector(repository=JsonSelectionRepository(path))
    assert reloaded.select("T") == "B"
    stats = {s["option"]: s for s in reloaded.statistics("T")}
    assert stats["B"]["attempts"] == 1
