from __future__ import annotations
import os
from typing import Optional, Sequence


def env_int(env_var: str, default: int, allowed: Optional[Sequence[int]] = None) -> int:
    """Integer override from the environment, validated against `allowed`."""
    override = os.getenv(env_var)
    if not override:
        return default
    try:
        value = int(override)
    except ValueError as exc:
        raise ValueError(f"{env_var} must be an integer") from exc
    if allowed is not None and value not in allowed:
        choices = ", ".join(str(a) for a in allowed)
        raise ValueError(f"{env_var} must be one of {choices} (got {value})")
    return value


def env_str(env_var: str, default: str) -> str:
    return os.getenv(env_var) or default
