
from __future__ import annotations
"""Shared benchmarking utilities for the CLI.

Includes adapter bootstrap, corpus loading, the per-algorithm measurement
protocol, the sequential batch driver with its progress channel, and JSON
export of a ranking.
"""

import gc
import json
import logging
import os
import pathlib
import queue
import sys
import threading
import time
import tracemalloc

from dataclasses import asdict, dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np
import psutil

from cipherbench import (
    BenchmarkFailure,
    BenchmarkResult,
    CipherCapability,
    EmptyCorpusError,
    MeasurementError,
    MetricRecord,
    Ranking,
    registry,
)
from cipherbench.bit_analysis import flip_first_bit, hamming_distance, shannon_entropy

from ..report import ReportSink, write_measurement

log = logging.getLogger(__name__)

_HERE = pathlib.Path(__file__).resolve()

try:
    _PROJECT_ROOT = next(p for p in _HERE.parents if (p / "libs").exists())
except StopIteration:
    _PROJECT_ROOT = _HERE.parents[0]

_ADAPTER_PATHS = {
    "cipherbench_crypto": _PROJECT_ROOT / "libs" / "adapters" / "cryptography" / "src",
}

# Floor for the timed encryption. A tiny corpus on a fast cipher can finish
# inside the clock resolution; throughput is then an upper bound, not a reading.
MIN_ELAPSED_S = 1e-9
BYTES_PER_MB = 1024.0 * 1024.0
SAMPLE_BYTES = 50
_clock = time.perf_counter

_ADAPTER_INSTANCE_CACHE: Dict[str, Any] = {}

Algorithm = Union[str, CipherCapability]
ProgressCallback = Callable[["ProgressEvent"], None]


def _load_adapters() -> None:
    import importlib, importlib.util
    for mod in _ADAPTER_PATHS:
        spec = importlib.util.find_spec(mod)
        if spec is None:
            candidate = _ADAPTER_PATHS.get(mod)
            if candidate and candidate.exists():
                if str(candidate) not in sys.path:
                    sys.path.append(str(candidate))
                spec = importlib.util.find_spec(mod)
        if spec is None:
            log.warning("Adapter package %s not installed; its ciphers are unavailable", mod)
            continue
        try:
            importlib.import_module(mod)
        except Exception:
            log.exception("Adapter import error: %s", mod)

_load_adapters()


def _get_adapter_instance(name: str):
    adapter = _ADAPTER_INSTANCE_CACHE.get(name)
    if adapter is not None:
        return adapter
    cls = registry.get(name)
    adapter = cls()
    _ADAPTER_INSTANCE_CACHE[name] = adapter
    return adapter


def reset_adapter_cache(name: Optional[str] = None) -> None:
    """Drop cached adapter instances so env-driven overrides take effect."""
    if name is None:
        _ADAPTER_INSTANCE_CACHE.clear()
        return
    _ADAPTER_INSTANCE_CACHE.pop(name, None)


# ---------------- Corpus ----------------

def load_corpus(path: str | os.PathLike[str]) -> bytes:
    p = pathlib.Path(path)
    data = p.read_bytes()
    if not data:
        raise EmptyCorpusError(str(p))
    return data


def random_corpus(size: int, seed: int | None = None) -> bytes:
    if size <= 0:
        raise EmptyCorpusError(f"random corpus of {size} bytes")
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=size, dtype=np.uint8).tobytes()


def _require_corpus(corpus: bytes) -> None:
    if not corpus:
        raise EmptyCorpusError()


# ---------------- Single-algorithm protocol ----------------

def _traced_call(fn: Callable[[], bytes]) -> Tuple[bytes, float]:
    """Run `fn` once, returning its output and the peak memory delta in KB.

    Merges the Python heap peak (tracemalloc) with the process RSS delta
    (psutil); whichever is larger wins.
    """
    gc.collect()
    proc = psutil.Process(os.getpid())
    baseline = proc.memory_info().rss
    tracemalloc.start()
    try:
        out = fn()
        _, py_peak = tracemalloc.get_traced_memory()
    finally:
        tracemalloc.stop()
    rss_delta = max(0, proc.memory_info().rss - baseline)
    return out, max(py_peak, rss_delta) / 1024.0


def _run_phase(name: str, phase: str, fn: Callable[[], Any]) -> Any:
    try:
        return fn()
    except MeasurementError:
        raise
    except Exception as exc:
        raise MeasurementError(name, phase, exc) from exc


@dataclass
class Measurement:
    """A finished record plus the ciphertext prefix kept for reporting."""
    record: MetricRecord
    sample: bytes


def measure_detailed(
    cipher: CipherCapability,
    corpus: bytes,
    *,
    capture_memory: bool = False,
    verify: bool = False,
) -> Measurement:
    """Drive one capability through the measurement protocol.

    1. encrypt the full corpus once under a monotonic timer
    2. optionally decrypt that ciphertext and compare with the corpus
    3. encrypt the corpus and a copy with bit 0 flipped; Hamming distance
       over the common prefix (memory is sampled around this encryption)
    4. Shannon entropy of the step-1 ciphertext
    5. key length as reported by the capability

    Any failure surfaces as :class:`MeasurementError` naming the phase.
    """
    _require_corpus(corpus)
    name = getattr(cipher, "name", None) or type(cipher).__name__

    def _timed() -> Tuple[bytes, float]:
        t0 = _clock()
        ct = cipher.encrypt(corpus)
        return ct, _clock() - t0

    ciphertext, elapsed = _run_phase(name, "encrypt", _timed)
    elapsed = max(elapsed, MIN_ELAPSED_S)

    if verify:
        def _roundtrip() -> None:
            if cipher.decrypt(ciphertext) != corpus:
                raise ValueError("decrypted output does not match the corpus")
        _run_phase(name, "verify", _roundtrip)

    peak_kb: float | None = None
    if capture_memory:
        original, peak_kb = _run_phase(name, "avalanche", lambda: _traced_call(lambda: cipher.encrypt(corpus)))
    else:
        original = _run_phase(name, "avalanche", lambda: cipher.encrypt(corpus))
    modified = _run_phase(name, "avalanche", lambda: cipher.encrypt(flip_first_bit(corpus)))
    distance = _run_phase(name, "avalanche", lambda: hamming_distance(original, modified))

    entropy = _run_phase(name, "entropy", lambda: shannon_entropy(ciphertext))
    key_bits = _run_phase(name, "key_length", lambda: int(cipher.key_length_bits()))

    record = MetricRecord(
        name=name,
        encryption_time_ms=elapsed * 1000.0,
        throughput_mbps=(len(corpus) / BYTES_PER_MB) / elapsed,
        avalanche_distance=distance,
        entropy_bits=entropy,
        key_length_bits=key_bits,
        peak_memory_kb=peak_kb,
        corpus_len=len(corpus),
        ciphertext_len=len(ciphertext),
        mechanism=getattr(cipher, "mech", None),
    )
    return Measurement(record=record, sample=bytes(ciphertext[:SAMPLE_BYTES]))


def measure(cipher: CipherCapability, corpus: bytes, **kwargs: Any) -> MetricRecord:
    return measure_detailed(cipher, corpus, **kwargs).record


# ---------------- Batch driver ----------------

@dataclass(frozen=True)
class ProgressEvent:
    percent: int
    name: str
    status: str  # 'ok' | 'failed' | 'cancelled'
    done: int
    total: int


def _resolve(algorithms: Optional[Sequence[Algorithm]]) -> List[Tuple[str, Callable[[], CipherCapability]]]:
    """Map names to constructors up front so an unknown name fails before any run."""
    if algorithms is None:
        algorithms = list(registry.list())
    out: List[Tuple[str, Callable[[], CipherCapability]]] = []
    for algo in algorithms:
        if isinstance(algo, str):
            registry.get(algo)  # KeyError for unknown names
            out.append((algo, lambda key=algo: _get_adapter_instance(key)))
        else:
            out.append((getattr(algo, "name", type(algo).__name__), lambda obj=algo: obj))
    return out


def _post(progress: Optional[ProgressCallback], event: ProgressEvent) -> None:
    if progress is None:
        return
    try:
        progress(event)
    except Exception:
        # Never let progress reporting break measurements
        log.debug("progress callback failed", exc_info=True)


def run_batch(
    algorithms: Optional[Sequence[Algorithm]],
    corpus: bytes,
    *,
    capture_memory: bool = False,
    verify: bool = False,
    progress: Optional[ProgressCallback] = None,
    cancel: Optional[threading.Event] = None,
    sink: Optional[ReportSink] = None,
    samples: Optional[Dict[str, bytes]] = None,
) -> BenchmarkResult:
    """Measure `algorithms` one at a time against `corpus`.

    `algorithms` holds registry keys or capability objects; None means every
    registered adapter. A failing algorithm is logged, recorded in
    `failures` and left out of `records`; the batch carries on. `cancel` is
    checked between algorithms only, never mid-measurement, and the records
    gathered so far are kept. `progress` receives one event per algorithm.
    """
    _require_corpus(corpus)
    plan = _resolve(algorithms)
    result = BenchmarkResult(corpus_len=len(corpus))
    seen: set[str] = set()
    total = len(plan)

    for idx, (label, factory) in enumerate(plan):
        if cancel is not None and cancel.is_set():
            log.info("Benchmark cancelled after %d of %d algorithms", idx, total)
            result.cancelled = True
            _post(progress, ProgressEvent(int(idx * 100 / total), label, "cancelled", idx, total))
            break

        status = "ok"
        try:
            cipher = _run_phase(label, "setup", factory)
            name = getattr(cipher, "name", None) or label
            if name in seen:
                raise MeasurementError(name, "setup", "duplicate algorithm name in this run")
            seen.add(name)
            m = measure_detailed(cipher, corpus, capture_memory=capture_memory, verify=verify)
        except MeasurementError as exc:
            log.error("%s excluded from ranking: %s failed: %s", exc.name, exc.phase, exc.cause)
            result.failures.append(BenchmarkFailure(name=exc.name, phase=exc.phase, error=str(exc.cause)))
            status = "failed"
        else:
            log.info(
                "%s: %.3f ms, %.2f MB/s, avalanche=%d, entropy=%.4f, key=%d bits",
                m.record.name,
                m.record.encryption_time_ms,
                m.record.throughput_mbps,
                m.record.avalanche_distance,
                m.record.entropy_bits,
                m.record.key_length_bits,
            )
            result.records.append(m.record)
            if samples is not None:
                samples[m.record.name] = m.sample
            if sink is not None:
                write_measurement(sink, m.record)

        done = idx + 1
        _post(progress, ProgressEvent(int(done * 100 / total), label, status, done, total))

    return result


class BackgroundBenchmark:
    """Run :func:`run_batch` on a worker thread.

    The only traffic between the worker and the caller is the one-way
    `events` queue of :class:`ProgressEvent` (terminated by ``None``) and the
    final :meth:`result`. No sink is handed to the worker; the caller renders
    once the run is over.
    """

    def __init__(
        self,
        algorithms: Optional[Sequence[Algorithm]],
        corpus: bytes,
        *,
        capture_memory: bool = False,
        verify: bool = False,
    ) -> None:
        _require_corpus(corpus)
        self.events: "queue.Queue[ProgressEvent | None]" = queue.Queue()
        self.samples: Dict[str, bytes] = {}
        self._algorithms = algorithms
        self._corpus = corpus
        self._opts = {"capture_memory": capture_memory, "verify": verify}
        self._cancel = threading.Event()
        self._result: BenchmarkResult | None = None
        self._error: BaseException | None = None
        self._thread = threading.Thread(target=self._run, name="cipherbench-runner", daemon=True)

    def start(self) -> "BackgroundBenchmark":
        self._thread.start()
        return self

    def cancel(self) -> None:
        self._cancel.set()

    def _run(self) -> None:
        try:
            self._result = run_batch(
                self._algorithms,
                self._corpus,
                progress=self.events.put,
                cancel=self._cancel,
                samples=self.samples,
                **self._opts,
            )
        except Exception as exc:
            self._error = exc
        finally:
            self.events.put(None)

    def iter_events(self) -> Iterator[ProgressEvent]:
        while True:
            event = self.events.get()
            if event is None:
                return
            yield event

    def result(self, timeout: float | None = None) -> BenchmarkResult:
        self._thread.join(timeout)
        if self._thread.is_alive():
            raise TimeoutError("benchmark still running")
        if self._error is not None:
            raise self._error
        if self._result is None:
            raise RuntimeError("benchmark worker exited without a result")
        return self._result


# ---------------- Export ----------------

def _build_export_payload(result: BenchmarkResult, ranking: Ranking) -> Dict[str, Any]:
    return {
        "corpus_len": result.corpus_len,
        "cancelled": result.cancelled,
        "weights": asdict(ranking.weights),
        "records": [asdict(r) for r in ranking.records],
        "failures": [asdict(f) for f in result.failures],
        "winners": ranking.winners(),
    }


def export_json(result: BenchmarkResult, ranking: Ranking, export_path: str | None) -> None:
    if not export_path:
        return
    # Normalize Windows-style separators on POSIX if users pass e.g. "results\file.json"
    if "\\" in export_path and ":" not in export_path:
        export_path = export_path.replace("\\", "/")
    path = pathlib.Path(export_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(_build_export_payload(result, ranking), f, indent=2)
