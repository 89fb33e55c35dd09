
from .interfaces import CipherCapability
from .registry import registry
from .metrics import MetricRecord, NormalizedScores, BenchmarkFailure, BenchmarkResult
from .errors import CipherBenchError, EmptyCorpusError, MeasurementError
from .evaluator import (
    DEFAULT_WEIGHTS,
    Ranking,
    ScoreWeights,
    evaluate,
    load_weights,
    normalize,
    rank,
    score,
)

__all__ = [
    "CipherCapability",
    "registry",
    "MetricRecord",
    "NormalizedScores",
    "BenchmarkFailure",
    "BenchmarkResult",
    "CipherBenchError",
    "EmptyCorpusError",
    "MeasurementError",
    "DEFAULT_WEIGHTS",
    "Ranking",
    "ScoreWeights",
    "evaluate",
    "load_weights",
    "normalize",
    "rank",
    "score",
]
