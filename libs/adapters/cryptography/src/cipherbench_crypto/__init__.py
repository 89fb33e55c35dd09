"""Adapter package for `cryptography`-backed ciphers.

Importing submodules triggers registration of adapters.
"""

# Trigger registration side-effects
from . import symmetric as _symmetric  # noqa: F401
from . import rsa_adapter as _rsa_adapter  # noqa: F401
from . import pbe as _pbe  # noqa: F401

__all__: list[str] = []
