import pytest

from bytepatch.config import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_MAX_EDIT_DISTANCE,
    DEFAULT_MAX_INPUT_SIZE,
    PatchSettings,
)


def test_defaults():
    settings = PatchSettings()
    assert settings.max_input_size == DEFAULT_MAX_INPUT_SIZE
    assert settings.max_edit_distance == DEFAULT_MAX_EDIT_DISTANCE
    assert settings.compression_level == DEFAULT_COMPRESSION_LEVEL


def test_from_env():
    settings = PatchSettings.from_env({
        "BYTEPATCH_MAX_INPUT_SIZE": "1024",
        "BYTEPATCH_MAX_EDIT_DISTANCE": "16",
        "BYTEPATCH_COMPRESSION_LEVEL": "9",
    })
    assert settings.max_input_size == 1024
    assert settings.max_edit_distance == 16
    assert settings.compression_level == 9


def test_from_env_blank_values_use_defaults():
    settings = PatchSettings.from_env({"BYTEPATCH_MAX_INPUT_SIZE": "  "})
    assert settings.max_input_size == DEFAULT_MAX_INPUT_SIZE


def test_from_process_environment(monkeypatch):
    monkeypatch.setenv("BYTEPATCH_MAX_EDIT_DISTANCE", "42")
    assert PatchSettings.from_env().max_edit_distance == 42


def test_from_env_rejects_non_integer():
    with pytest.raises(ValueError, match="BYTEPATCH_MAX_INPUT_SIZE"):
        PatchSettings.from_env({"BYTEPATCH_MAX_INPUT_SIZE": "lots"})


@pytest.mark.parametrize("kwargs", [
    {"max_input_size": 0},
    {"max_edit_distance": -5},
    {"compression_level": 10},
    {"compression_level": -2},
])
def test_invalid_values(kwargs):
    with pytest.raises(ValueError):
        PatchSettings(**kwargs)
