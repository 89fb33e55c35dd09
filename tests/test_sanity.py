from cipherbench import MetricRecord, registry
from cipherbench_cli.runners.common import measure

from conftest import XorCipher


def test_registry_has_bundled_adapters():
    items = registry.list()
    for key in ("aes", "des", "3des", "blowfish", "chacha20", "rsa", "pbe-md5-des"):
        assert key in items


def test_measure_reports_raw_metrics():
    corpus = bytes(range(256)) * 4
    record = measure(XorCipher(), corpus)
    assert isinstance(record, MetricRecord)
    assert record.name == "xor"
    assert record.encryption_time_ms > 0.0
    assert record.throughput_mbps > 0.0
    assert record.avalanche_distance == 1
    assert abs(record.entropy_bits - 8.0) < 1e-9
    assert record.key_length_bits == 8
    assert record.corpus_len == record.ciphertext_len == len(corpus)
    assert record.peak_memory_kb is None
    assert record.normalized is None and record.total_score is None
