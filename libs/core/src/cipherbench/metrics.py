
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

"""Benchmark result containers.

`MetricRecord` is produced once per algorithm by the runner and finalized
by the evaluator. Records are frozen; finalisation returns a copy carrying
the normalized scores and the total.
"""

@dataclass(frozen=True)
class NormalizedScores:
    """Per-metric scores on the common 0-10 scale."""
    time: float
    throughput: float
    avalanche: float
    entropy: float
    key_length: float
    resource_usage: float = 0.0

    @property
    def speed(self) -> float:
        return (self.time + self.throughput) / 2

    @property
    def security(self) -> float:
        return (self.avalanche + self.entropy + self.key_length) / 3


@dataclass(frozen=True)
class MetricRecord:
    name: str
    encryption_time_ms: float
    throughput_mbps: float
    avalanche_distance: int
    entropy_bits: float
    key_length_bits: int
    peak_memory_kb: float | None = None
    corpus_len: int | None = None
    ciphertext_len: int | None = None
    mechanism: str | None = None
    normalized: Optional[NormalizedScores] = None
    total_score: float | None = None

    @property
    def finalized(self) -> bool:
        return self.normalized is not None and self.total_score is not None


@dataclass(frozen=True)
class BenchmarkFailure:
    name: str
    phase: str  # 'setup', 'encrypt', 'avalanche', 'key_length', 'verify'
    error: str


@dataclass
class BenchmarkResult:
    records: List[MetricRecord] = field(default_factory=list)
    failures: List[BenchmarkFailure] = field(default_factory=list)
    corpus_len: int = 0
    cancelled: bool = False
