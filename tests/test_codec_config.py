from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from n64save.config import CodecConfig, load_codec_config
from n64save.errors import CodecConfigError


def write_config(tmp_path: Path, body: str) -> Path:
    config_path = tmp_path / "codec.toml"
    config_path.write_text(textwrap.dedent(body), encoding="utf-8")
    return config_path


def test_load_codec_config_defaults_without_codec_table(tmp_path: Path) -> None:
    config_path = write_config(tmp_path, "")

    assert load_codec_config(config_path) == CodecConfig.default()


def test_load_codec_config_reads_overrides(tmp_path: Path) -> None:
    config_path = write_config(
        tmp_path,
        """
        [codec]
        ambiguous_resolution = " CART "
        allow_empty = false
        """,
    )

    config = load_codec_config(config_path)

    assert config.ambiguous_resolution == "cart"
    assert config.allow_empty is False


def test_load_codec_config_rejects_unknown_resolution(tmp_path: Path) -> None:
    config_path = write_config(
        tmp_path,
        """
        [codec]
        ambiguous_resolution = "sram"
        """,
    )

    with pytest.raises(CodecConfigError, match="ambiguous_resolution"):
        load_codec_config(config_path)


def test_load_codec_config_rejects_non_boolean_flag(tmp_path: Path) -> None:
    config_path = write_config(
        tmp_path,
        """
        [codec]
        allow_empty = "yes"
        """,
    )

    with pytest.raises(CodecConfigError, match="allow_empty"):
        load_codec_config(config_path)


def test_load_codec_config_rejects_scalar_section(tmp_path: Path) -> None:
    config_path = write_config(tmp_path, 'codec = "mempack"\n')

    with pytest.raises(CodecConfigError, match="mapping"):
        load_codec_config(config_path)
