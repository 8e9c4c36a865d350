"""Public n64save API for MiSTer N64 save containers."""
from __future__ import annotations

from . import byteswap as _byteswap
from . import cart as _cart
from . import config as _config
from . import errors as _errors
from . import mempack as _mempack
from . import mister as _mister
from . import resize as _resize

_modules = [
    _errors,
    _byteswap,
    _cart,
    _mempack,
    _resize,
    _config,
    _mister,
]

__all__: list[str] = []
_seen: set[str] = set()
for _module in _modules:
    for _name in _module.__all__:
        if _name not in _seen:
            _seen.add(_name)
            __all__.append(_name)
        globals()[_name] = getattr(_module, _name)


def __dir__() -> list[str]:
    return sorted(__all__)
