import logging

import pytest

from hexpunch.config import (
    DEFAULT_BYTES_PER_LINE,
    DEFAULT_GROWTH_CHUNK,
    DEFAULT_INITIAL_CAPACITY,
    EditorConfig,
    configure_logging,
)
from hexpunch.errors import ConfigError


def test_defaults_from_empty_environment() -> None:
    config = EditorConfig.from_env({})

    assert config.initial_capacity == DEFAULT_INITIAL_CAPACITY
    assert config.growth_chunk == DEFAULT_GROWTH_CHUNK
    assert config.bytes_per_line == DEFAULT_BYTES_PER_LINE
    assert config.log_level == "WARNING"


def test_values_from_environment() -> None:
    config = EditorConfig.from_env({
        "HEXPUNCH_INITIAL_CAPACITY": "0x1000",
        "HEXPUNCH_GROWTH_CHUNK": "256",
        "HEXPUNCH_BYTES_PER_LINE": "16",
        "HEXPUNCH_LOG_LEVEL": "debug",
        "UNRELATED": "ignored",
    })

    assert config.initial_capacity == 4096
    assert config.growth_chunk == 256
    assert config.bytes_per_line == 16
    assert config.log_level == "DEBUG"


def test_reads_process_environment(monkeypatch) -> None:
    monkeypatch.setenv("HEXPUNCH_BYTES_PER_LINE", "8")

    assert EditorConfig.from_env().bytes_per_line == 8


@pytest.mark.parametrize("name, value", [
    ("HEXPUNCH_INITIAL_CAPACITY", "lots"),
    ("HEXPUNCH_GROWTH_CHUNK", "0"),
    ("HEXPUNCH_BYTES_PER_LINE", "-8"),
    ("HEXPUNCH_BYTES_PER_LINE", "30"),
    ("HEXPUNCH_LOG_LEVEL", "chatty"),
])
def test_invalid_environment(name: str, value: str) -> None:
    with pytest.raises(ConfigError):
        EditorConfig.from_env({name: value})


def test_blank_variable_uses_default() -> None:
    assert EditorConfig.from_env({"HEXPUNCH_GROWTH_CHUNK": " "}).growth_chunk == DEFAULT_GROWTH_CHUNK


def test_configure_logging_is_idempotent() -> None:
    logger = configure_logging("info")
    configure_logging("info")

    stream_handlers = [h for h in logger.handlers if isinstance(h, logging.StreamHandler)]

    assert logger.level == logging.INFO
    assert len(stream_handlers) == 1
