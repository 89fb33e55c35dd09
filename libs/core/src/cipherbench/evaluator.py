"""Normalization, scoring and ranking of benchmark records.

Raw metrics come in incompatible units (ms, MB/s, bits, bits/byte, key
bits). Each one is min/max scaled to 0-10 across the current participant
set, the scaled values are folded into one weighted total, and the set is
ranked overall and per usage profile.

Scores are relative: adding or removing a participant changes every other
participant's scores, so :func:`evaluate` always recomputes from the raw
fields and hands back fresh records.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace, asdict
import json
import logging
import math
import os
import pathlib
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from .metrics import MetricRecord, NormalizedScores

log = logging.getLogger(__name__)

SCALE_MAX = 10.0
MIDPOINT = SCALE_MAX / 2


@dataclass(frozen=True)
class ScoreWeights:
    """Weights of the speed, security and efficiency groups in the total."""

    speed: float = 0.3
    security: float = 0.5
    efficiency: float = 0.2

    def __post_init__(self) -> None:
        for key, value in asdict(self).items():
            if not math.isfinite(value):
                raise ValueError(f"score weight {key!r} must be a finite number (got {value})")
            if value < 0:
                raise ValueError(f"score weight {key!r} must be >= 0 (got {value})")


DEFAULT_WEIGHTS = ScoreWeights()


def load_weights(path: str | os.PathLike[str] | None = None) -> ScoreWeights:
    """Read weights from a JSON object such as ``{"speed": 0.5}``.

    Falls back to ``CIPHERBENCH_WEIGHTS`` when `path` is not given, and to
    the defaults when neither is set. Keys not present keep their default.
    """
    source = path or os.environ.get("CIPHERBENCH_WEIGHTS")
    if not source:
        return DEFAULT_WEIGHTS
    p = pathlib.Path(source)
    try:
        raw = json.loads(p.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise ValueError(f"cannot read score weights from {p}: {exc}") from exc
    if not isinstance(raw, Mapping):
        raise ValueError(f"score weights in {p} must be a JSON object")
    known: Dict[str, float] = {}
    for key, value in raw.items():
        if key not in ("speed", "security", "efficiency"):
            continue
        try:
            known[key] = float(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"score weight {key!r} in {p} must be a number (got {value!r})") from exc
    unknown = sorted(set(raw) - set(known))
    if unknown:
        log.warning("Ignoring unknown weight keys in %s: %s", p, ", ".join(unknown))
    return replace(DEFAULT_WEIGHTS, **known)


# ---------------- Normalizer ----------------

def _scale(value: float, lo: float, hi: float, *, invert: bool = False) -> float:
    span = hi - lo
    if span <= 0:
        return MIDPOINT
    frac = (value - lo) / span
    if invert:
        return SCALE_MAX * (1 - frac)
    return SCALE_MAX * frac


def _column(records: Sequence[MetricRecord], getter: Callable[[MetricRecord], float]) -> tuple[float, float]:
    values = [float(getter(r)) for r in records]
    return min(values), max(values)


def normalize(records: Sequence[MetricRecord]) -> List[MetricRecord]:
    """Return copies of `records` with `normalized` filled in.

    Encryption time and peak memory are lower-is-better and inverted.
    Resource usage is only scored when every participant measured memory;
    otherwise it is 0 for all of them.
    """
    if not records:
        return []
    t_lo, t_hi = _column(records, lambda r: r.encryption_time_ms)
    tp_lo, tp_hi = _column(records, lambda r: r.throughput_mbps)
    av_lo, av_hi = _column(records, lambda r: r.avalanche_distance)
    en_lo, en_hi = _column(records, lambda r: r.entropy_bits)
    kl_lo, kl_hi = _column(records, lambda r: r.key_length_bits)
    has_memory = all(r.peak_memory_kb is not None for r in records)
    if has_memory:
        mem_lo, mem_hi = _column(records, lambda r: r.peak_memory_kb)  # type: ignore[arg-type, return-value]

    out: List[MetricRecord] = []
    for r in records:
        scores = NormalizedScores(
            time=_scale(r.encryption_time_ms, t_lo, t_hi, invert=True),
            throughput=_scale(r.throughput_mbps, tp_lo, tp_hi),
            avalanche=_scale(r.avalanche_distance, av_lo, av_hi),
            entropy=_scale(r.entropy_bits, en_lo, en_hi),
            key_length=_scale(r.key_length_bits, kl_lo, kl_hi),
            resource_usage=(
                _scale(r.peak_memory_kb, mem_lo, mem_hi, invert=True)  # type: ignore[arg-type]
                if has_memory
                else 0.0
            ),
        )
        # Drop any total computed against a previous participant set
        out.append(replace(r, normalized=scores, total_score=None))
    return out


# ---------------- Scorer ----------------

def total_score(scores: NormalizedScores, weights: ScoreWeights = DEFAULT_WEIGHTS) -> float:
    return (
        weights.speed * scores.speed
        + weights.security * scores.security
        + weights.efficiency * scores.resource_usage
    )


def score(records: Iterable[MetricRecord], weights: ScoreWeights = DEFAULT_WEIGHTS) -> List[MetricRecord]:
    out: List[MetricRecord] = []
    for r in records:
        if r.normalized is None:
            raise ValueError(f"{r.name}: normalize the participant set before scoring")
        out.append(replace(r, total_score=total_score(r.normalized, weights)))
    return out


# ---------------- Ranker ----------------

def _best(records: Sequence[MetricRecord], key: Callable[[MetricRecord], float]) -> Optional[MetricRecord]:
    # Strictly greater only: the first record seen keeps a tie.
    best: Optional[MetricRecord] = None
    best_val = 0.0
    for r in records:
        val = key(r)
        if best is None or val > best_val:
            best, best_val = r, val
    return best


def _scores(r: MetricRecord) -> NormalizedScores:
    if r.normalized is None:
        raise ValueError(f"{r.name}: normalize the participant set before ranking")
    return r.normalized


@dataclass(frozen=True)
class Ranking:
    records: List[MetricRecord] = field(default_factory=list)
    best_overall: Optional[MetricRecord] = None
    best_for_speed: Optional[MetricRecord] = None
    best_for_security: Optional[MetricRecord] = None
    best_for_small_files: Optional[MetricRecord] = None
    best_for_large_files: Optional[MetricRecord] = None
    weights: ScoreWeights = DEFAULT_WEIGHTS

    @property
    def is_empty(self) -> bool:
        return not self.records

    def winners(self) -> Dict[str, Optional[str]]:
        return {
            "overall": self.best_overall.name if self.best_overall else None,
            "speed": self.best_for_speed.name if self.best_for_speed else None,
            "security": self.best_for_security.name if self.best_for_security else None,
            "small_files": self.best_for_small_files.name if self.best_for_small_files else None,
            "large_files": self.best_for_large_files.name if self.best_for_large_files else None,
        }


def rank(records: Sequence[MetricRecord], weights: ScoreWeights = DEFAULT_WEIGHTS) -> Ranking:
    """Order scored records and pick the category winners.

    `records` must already carry totals (see :func:`score`). Winners are
    picked in the caller's order so ties resolve to the earlier record; the
    returned list is a stable descending sort by total.
    """
    if not records:
        log.warning("Nothing to rank: no algorithm produced a usable measurement")
        return Ranking(weights=weights)
    for r in records:
        if not r.finalized:
            raise ValueError(f"{r.name}: normalize and score the participant set before ranking")
    ordered = sorted(records, key=lambda r: r.total_score, reverse=True)  # type: ignore[arg-type, return-value]
    return Ranking(
        records=ordered,
        best_overall=_best(records, lambda r: r.total_score),  # type: ignore[arg-type, return-value]
        best_for_speed=_best(records, lambda r: _scores(r).speed),
        best_for_security=_best(records, lambda r: _scores(r).security),
        best_for_small_files=_best(records, lambda r: _scores(r).time),
        best_for_large_files=_best(records, lambda r: _scores(r).throughput),
        weights=weights,
    )


def evaluate(records: Sequence[MetricRecord], weights: ScoreWeights = DEFAULT_WEIGHTS) -> Ranking:
    """Normalize, score and rank one participant set."""
    return rank(score(normalize(records), weights), weights)
