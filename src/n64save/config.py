"""Load codec options from TOML files."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

import tomllib

from .errors import CodecConfigError

RESOLVE_AS_MEMPACK = "mempack"
RESOLVE_AS_CART = "cart"
AMBIGUOUS_RESOLUTIONS = (RESOLVE_AS_MEMPACK, RESOLVE_AS_CART)


@dataclass(frozen=True)
class CodecConfig:
    """Options steering how containers are decoded.

    ``ambiguous_resolution`` is the out-of-band hint for containers that are
    exactly the size of the mempack region: ``"mempack"`` trial-parses the
    slots and falls back to a cart, ``"cart"`` always treats them as a Flash
    RAM save. ``allow_empty`` accepts a zero-length container as an empty
    cart save.
    """

    ambiguous_resolution: str = RESOLVE_AS_MEMPACK
    allow_empty: bool = True

    def __post_init__(self) -> None:
        if self.ambiguous_resolution not in AMBIGUOUS_RESOLUTIONS:
            choices = ", ".join(AMBIGUOUS_RESOLUTIONS)
            raise CodecConfigError(
                f"ambiguous_resolution must be one of {choices}, "
                f"received {self.ambiguous_resolution!r}"
            )

    @classmethod
    def default(cls) -> "CodecConfig":
        return cls()


def load_codec_config(config_path: Path) -> CodecConfig:
    """Parse and validate the ``[codec]`` table stored at ``config_path``."""

    with config_path.open("rb") as stream:
        data = tomllib.load(stream)

    codec = _parse_codec_section(data)
    resolution = codec.get("ambiguous_resolution", RESOLVE_AS_MEMPACK)
    if not isinstance(resolution, str):
        raise CodecConfigError("codec.ambiguous_resolution must be a string")

    allow_empty = codec.get("allow_empty", True)
    if not isinstance(allow_empty, bool):
        raise CodecConfigError("codec.allow_empty must be a boolean")

    return CodecConfig(
        ambiguous_resolution=resolution.strip().lower(),
        allow_empty=allow_empty,
    )


def _parse_codec_section(data: Mapping[str, Any]) -> Mapping[str, Any]:
    codec = data.get("codec")
    if codec is None:
        return {}
    if not isinstance(codec, Mapping):
        raise CodecConfigError("[codec] section must be a mapping")
    return codec


__all__ = [
    "AMBIGUOUS_RESOLUTIONS",
    "CodecConfig",
    "RESOLVE_AS_CART",
    "RESOLVE_AS_MEMPACK",
    "load_codec_config",
]
