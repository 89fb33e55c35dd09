from __future__ import annotations

"""Plain-text report rendering.

Everything here writes through a :class:`ReportSink` handed in by the
caller; there is no module-level writer.
"""

import datetime as _dt
import pathlib
from typing import IO, List, Mapping, Optional, Protocol, Sequence

import typer

from cipherbench import BenchmarkFailure, MetricRecord, Ranking

_RULE = "=" * 51


class ReportSink(Protocol):
    def write(self, text: str = "") -> None: ...


class ConsoleSink:
    def __init__(self, err: bool = False) -> None:
        self._err = err

    def write(self, text: str = "") -> None:
        typer.echo(text, err=self._err)


class FileSink:
    """Line-oriented text file; opened eagerly, closed by :meth:`close`."""

    def __init__(self, path: str | pathlib.Path) -> None:
        self.path = pathlib.Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._fh: Optional[IO[str]] = self.path.open("w", encoding="utf-8")

    def write(self, text: str = "") -> None:
        if self._fh is None:
            raise ValueError(f"report file {self.path} is closed")
        self._fh.write(text + "\n")

    def close(self) -> None:
        if self._fh is not None:
            self._fh.close()
            self._fh = None

    def __enter__(self) -> "FileSink":
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()


class TeeSink:
    def __init__(self, *sinks: ReportSink) -> None:
        self.sinks: List[ReportSink] = list(sinks)

    def write(self, text: str = "") -> None:
        for sink in self.sinks:
            sink.write(text)


class ListSink:
    """Collects lines in memory."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def write(self, text: str = "") -> None:
        self.lines.extend(text.split("\n"))

    def text(self) -> str:
        return "\n".join(self.lines)


def _banner(sink: ReportSink, title: str) -> None:
    sink.write("")
    sink.write(_RULE)
    sink.write(title.center(len(_RULE)).rstrip())
    sink.write(_RULE)


def write_header(sink: ReportSink, source: str, corpus_len: int) -> None:
    sink.write("Encryption Algorithm Analysis Results")
    sink.write(f"Generated: {_dt.datetime.now().isoformat(timespec='seconds')}")
    sink.write("=" * 37)
    sink.write(f"Corpus: {source} ({corpus_len} bytes)")


def write_measurement(sink: ReportSink, record: MetricRecord) -> None:
    sink.write("")
    sink.write(f"=== Testing {record.name} ===")
    sink.write(f"{record.name} Encryption Time (ms): {record.encryption_time_ms:.4f}")
    sink.write(f"{record.name} Throughput (MB/s): {record.throughput_mbps:.4f}")
    sink.write(f"{record.name} Avalanche Effect Hamming Distance: {record.avalanche_distance}")
    sink.write(f"{record.name} Ciphertext Shannon Entropy: {record.entropy_bits:.6f}")
    sink.write(f"{record.name} Key Length (bits): {record.key_length_bits}")
    if record.mechanism:
        sink.write(f"{record.name} Mechanism: {record.mechanism}")
    if record.peak_memory_kb is not None:
        sink.write(f"{record.name} Peak Memory (KB): {record.peak_memory_kb:.1f}")


def hex_and_text(data: bytes, limit: int = 50) -> tuple[str, str]:
    """Hex and printable-ASCII views of `data[:limit]`, grouped by 8 bytes."""
    hex_parts: List[str] = []
    txt_parts: List[str] = []
    for i, b in enumerate(data[:limit]):
        hex_parts.append(f"{b:02X} ")
        txt_parts.append(chr(b) if 32 <= b < 127 else ".")
        if (i + 1) % 8 == 0:
            hex_parts.append(" ")
            txt_parts.append(" ")
    return "".join(hex_parts).rstrip(), "".join(txt_parts).rstrip()


def write_sample(sink: ReportSink, name: str, original: bytes, encrypted: bytes, limit: int = 50) -> None:
    size = min(limit, len(original))
    sink.write("")
    sink.write(f"=== Provided Data for {name} ===")
    for label, data in (("Original", original), ("Encrypted", encrypted)):
        hx, tx = hex_and_text(data, size)
        sink.write(f"{label} data (first {size} bytes):")
        sink.write(f"HEX: {hx}")
        sink.write(f"TXT: {tx}")


def write_comparison(sink: ReportSink, ranking: Ranking) -> None:
    _banner(sink, "ALGORITHM COMPARISON RESULTS")
    sink.write(f"{'Algorithm':<18}{'Encrypt ms':>14}{'MB/s':>14}{'Avalanche':>12}{'Entropy':>10}{'Key bits':>10}")
    sink.write("-" * 78)
    for r in ranking.records:
        sink.write(
            f"{r.name:<18}{r.encryption_time_ms:>14.2f}{r.throughput_mbps:>14.2f}"
            f"{r.avalanche_distance:>12d}{r.entropy_bits:>10.4f}{r.key_length_bits:>10d}"
        )

    _banner(sink, "ALGORITHM SCORES (0-10)")
    sink.write(f"{'Algorithm':<18}{'Speed':>9}{'Thruput':>9}{'Avalanche':>11}{'Entropy':>9}{'Key':>7}{'Resource':>10}{'Total':>8}")
    sink.write("-" * 81)
    for r in ranking.records:
        s = r.normalized
        if s is None:
            continue
        sink.write(
            f"{r.name:<18}{s.time:>9.2f}{s.throughput:>9.2f}{s.avalanche:>11.2f}"
            f"{s.entropy:>9.2f}{s.key_length:>7.2f}{s.resource_usage:>10.2f}{r.total_score or 0.0:>8.2f}"
        )


def write_recommendations(sink: ReportSink, ranking: Ranking) -> None:
    _banner(sink, "RECOMMENDATIONS")
    if ranking.is_empty or ranking.best_overall is None:
        sink.write("Nothing to rank: every algorithm failed or none were selected.")
        return
    best = ranking.best_overall
    sink.write(f"Best Overall Algorithm: {best.name} (Score: {best.total_score or 0.0:.2f})")
    labels: Mapping[str, Optional[MetricRecord]] = {
        "Best for Speed": ranking.best_for_speed,
        "Best for Security": ranking.best_for_security,
        "Best for Small Files": ranking.best_for_small_files,
        "Best for Large Files": ranking.best_for_large_files,
    }
    for label, rec in labels.items():
        sink.write(f"{label}: {rec.name if rec else '-'}")


def write_failures(sink: ReportSink, failures: Sequence[BenchmarkFailure]) -> None:
    if not failures:
        return
    _banner(sink, "EXCLUDED ALGORITHMS")
    for f in failures:
        sink.write(f"{f.name}: {f.phase} failed: {f.error}")
