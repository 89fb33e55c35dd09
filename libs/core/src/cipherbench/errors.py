from __future__ import annotations

"""Exceptions raised by the measurement and evaluation layers."""


class CipherBenchError(Exception):
    """Base class for cipherbench failures."""


class EmptyCorpusError(CipherBenchError, ValueError):
    """The input corpus has no bytes; entropy and avalanche are undefined."""

    def __init__(self, source: str | None = None) -> None:
        where = f" ({source})" if source else ""
        super().__init__(f"corpus is empty{where}; nothing to encrypt")
        self.source = source


class MeasurementError(CipherBenchError):
    """A cipher capability failed during one phase of the protocol."""

    def __init__(self, name: str, phase: str, cause: BaseException | str) -> None:
        self.name = name
        self.phase = phase
        self.cause = cause
        super().__init__(f"{name}: {phase} failed: {cause}")
