from __future__ import annotations

import json
import logging
import math
from dataclasses import replace

import pytest

from cipherbench import MetricRecord, NormalizedScores, ScoreWeights, evaluate, load_weights, normalize, rank, score
from cipherbench.evaluator import DEFAULT_WEIGHTS, total_score


def _record(name, time_ms, mbps, avalanche, entropy, key_bits, mem_kb=None) -> MetricRecord:
    return MetricRecord(
        name=name,
        encryption_time_ms=time_ms,
        throughput_mbps=mbps,
        avalanche_distance=avalanche,
        entropy_bits=entropy,
        key_length_bits=key_bits,
        peak_memory_kb=mem_kb,
    )


ALGO_A = _record("AlgorithmA", 10.0, 100.0, 512, 7.999, 256)
ALGO_B = _record("AlgorithmB", 50.0, 20.0, 256, 7.5, 128)


def test_scenario_dominant_algorithm_wins_every_category() -> None:
    ranking = evaluate([ALGO_B, ALGO_A])
    assert [r.name for r in ranking.records] == ["AlgorithmA", "AlgorithmB"]
    assert ranking.winners() == {
        "overall": "AlgorithmA",
        "speed": "AlgorithmA",
        "security": "AlgorithmA",
        "small_files": "AlgorithmA",
        "large_files": "AlgorithmA",
    }
    a, b = ranking.records
    assert math.isclose(a.total_score, 0.3 * 10 + 0.5 * 10)
    assert math.isclose(b.total_score, 0.0)


def test_distinct_values_span_full_scale() -> None:
    records = [
        _record("x", 5.0, 30.0, 100, 7.2, 64),
        _record("y", 20.0, 90.0, 700, 7.9, 256),
        _record("z", 12.0, 45.0, 300, 7.5, 128),
    ]
    out = {r.name: r.normalized for r in normalize(records)}
    assert out["x"].time == 10.0 and out["y"].time == 0.0
    assert out["x"].throughput == 0.0 and out["y"].throughput == 10.0
    assert out["x"].avalanche == 0.0 and out["y"].avalanche == 10.0
    assert out["x"].entropy == 0.0 and out["y"].entropy == 10.0
    assert out["x"].key_length == 0.0 and out["y"].key_length == 10.0
    for field in ("time", "throughput", "avalanche", "entropy", "key_length"):
        assert 0.0 < getattr(out["z"], field) < 10.0


def test_single_participant_scores_midpoint() -> None:
    (only,) = normalize([ALGO_A])
    s = only.normalized
    assert (s.time, s.throughput, s.avalanche, s.entropy, s.key_length) == (5.0, 5.0, 5.0, 5.0, 5.0)
    assert s.resource_usage == 0.0
    (with_mem,) = normalize([_record("m", 1.0, 1.0, 1, 1.0, 1, mem_kb=512.0)])
    assert with_mem.normalized.resource_usage == 5.0


def test_resource_usage_needs_memory_for_every_participant() -> None:
    lean = _record("lean", 10.0, 10.0, 10, 7.0, 128, mem_kb=100.0)
    heavy = _record("heavy", 10.0, 10.0, 10, 7.0, 128, mem_kb=900.0)
    scored = {r.name: r.normalized.resource_usage for r in normalize([lean, heavy])}
    assert scored == {"lean": 10.0, "heavy": 0.0}
    unmeasured = _record("unmeasured", 10.0, 10.0, 10, 7.0, 128)
    assert all(r.normalized.resource_usage == 0.0 for r in normalize([lean, heavy, unmeasured]))


def test_ties_keep_first_encountered() -> None:
    first = _record("first", 10.0, 10.0, 10, 7.0, 128)
    second = _record("second", 10.0, 10.0, 10, 7.0, 128)
    ranking = evaluate([first, second])
    assert set(ranking.winners().values()) == {"first"}
    assert [r.name for r in ranking.records] == ["first", "second"]
    flipped = evaluate([second, first])
    assert set(flipped.winners().values()) == {"second"}


def test_category_winners_can_differ() -> None:
    fast = _record("fast", 1.0, 500.0, 10, 7.0, 64)
    strong = _record("strong", 100.0, 5.0, 900, 7.99, 2048)
    ranking = evaluate([fast, strong])
    assert ranking.best_for_speed.name == "fast"
    assert ranking.best_for_small_files.name == "fast"
    assert ranking.best_for_large_files.name == "fast"
    assert ranking.best_for_security.name == "strong"
    # security weighs 0.5 against speed's 0.3
    assert ranking.best_overall.name == "strong"


@pytest.mark.parametrize("field", ["time", "throughput", "avalanche", "entropy", "key_length", "resource_usage"])
def test_total_is_non_decreasing_in_each_sub_score(field: str) -> None:
    base = dict(time=4.0, throughput=4.0, avalanche=4.0, entropy=4.0, key_length=4.0, resource_usage=4.0)
    previous = total_score(NormalizedScores(**base))
    for bump in (5.0, 7.5, 10.0):
        current = total_score(NormalizedScores(**{**base, field: bump}))
        assert current >= previous
        previous = current


def test_rescoring_is_idempotent_and_records_are_not_mutated() -> None:
    first = evaluate([ALGO_A, ALGO_B])
    again = evaluate([ALGO_A, ALGO_B])
    assert [r.total_score for r in first.records] == [r.total_score for r in again.records]
    assert ALGO_A.normalized is None and ALGO_A.total_score is None


def test_new_participant_set_recomputes_scores() -> None:
    pair = evaluate([ALGO_A, ALGO_B])
    middle = _record("middle", 5.0, 60.0, 400, 7.8, 192)
    trio = evaluate([ALGO_A, ALGO_B, middle])
    pair_a = next(r for r in pair.records if r.name == "AlgorithmA")
    trio_a = next(r for r in trio.records if r.name == "AlgorithmA")
    assert pair_a.normalized.time == 10.0
    assert trio_a.normalized.time < 10.0
    # the earlier ranking still holds its own scores
    assert pair_a.normalized.time == 10.0
    renormalized = normalize(trio.records)
    assert all(r.total_score is None for r in renormalized)


def test_empty_set_is_nothing_to_rank(caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level(logging.WARNING, logger="cipherbench.evaluator"):
        ranking = evaluate([])
    assert ranking.is_empty
    assert ranking.best_overall is None
    assert set(ranking.winners().values()) == {None}
    assert "Nothing to rank" in caplog.text


def test_scoring_requires_normalization() -> None:
    with pytest.raises(ValueError):
        score([ALGO_A])
    with pytest.raises(ValueError):
        rank(normalize([ALGO_A]))


def test_custom_weights_change_the_winner() -> None:
    fast = _record("fast", 1.0, 500.0, 10, 7.0, 64)
    strong = _record("strong", 100.0, 5.0, 900, 7.99, 2048)
    speed_only = ScoreWeights(speed=1.0, security=0.0, efficiency=0.0)
    assert evaluate([fast, strong], speed_only).best_overall.name == "fast"


def test_negative_weight_rejected() -> None:
    with pytest.raises(ValueError):
        ScoreWeights(speed=-0.1)


def test_load_weights_from_file_and_env(tmp_path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CIPHERBENCH_WEIGHTS", raising=False)
    assert load_weights() == DEFAULT_WEIGHTS

    path = tmp_path / "weights.json"
    path.write_text(json.dumps({"speed": 0.6, "colour": "blue"}), encoding="utf-8")
    w = load_weights(path)
    assert w == ScoreWeights(speed=0.6, security=0.5, efficiency=0.2)

    monkeypatch.setenv("CIPHERBENCH_WEIGHTS", str(path))
    assert load_weights().speed == 0.6

    bad = tmp_path / "bad.json"
    bad.write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_weights(bad)
    with pytest.raises(ValueError):
        load_weights(tmp_path / "missing.json")


@pytest.mark.parametrize("body", ['{"speed": null}', '{"security": "abc"}', '{"efficiency": [1]}', '{"speed": NaN}'])
def test_load_weights_rejects_non_numeric_values(tmp_path, body: str) -> None:
    path = tmp_path / "weights.json"
    path.write_text(body, encoding="utf-8")
    with pytest.raises(ValueError, match="score weight"):
        load_weights(path)


def test_non_finite_weight_rejected() -> None:
    with pytest.raises(ValueError, match="finite"):
        ScoreWeights(speed=float("nan"))
    with pytest.raises(ValueError, match="finite"):
        ScoreWeights(security=float("inf"))


def test_rank_requires_normalized_scores() -> None:
    scored_only = _record("raw", 1.0, 1.0, 1, 1.0, 1)
    with pytest.raises(ValueError, match="normalize"):
        rank([replace(scored_only, total_score=1.0)])
