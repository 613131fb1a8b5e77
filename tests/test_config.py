"""Tests for configuration loading and validation."""

import pytest

from keyload.config import LoadGeneratorConfig, default_key_prefix
from keyload.exceptions import ConfigurationError, InvalidKeyRangeError


def test_defaults():
    config = LoadGeneratorConfig()
    assert config.start_key == 0
    assert config.max_read_attempts == 64
    assert config.tracker_thread_name == "Written Keys Tracker"
    assert config.resolved_prefix() == default_key_prefix()


def test_default_prefix_is_stable():
    assert default_key_prefix() == default_key_prefix()
    assert len(default_key_prefix()) == 36


@pytest.mark.parametrize("start_key,end_key", [(0, 0), (-1, 5), (5, 5), (6, 5)])
def test_invalid_ranges(start_key, end_key):
    with pytest.raises(InvalidKeyRangeError) as exc_info:
        LoadGeneratorConfig(start_key=start_key, end_key=end_key)
    assert exc_info.value.start_key == start_key


def test_invalid_read_attempts():
    with pytest.raises(ConfigurationError, match="max_read_attempts"):
        LoadGeneratorConfig(max_read_attempts=0)


def test_with_overrides_revalidates():
    config = LoadGeneratorConfig(end_key=10)
    assert config.with_overrides(key_prefix="x").key_prefix == "x"
    with pytest.raises(InvalidKeyRangeError):
        config.with_overrides(end_key=0)


def test_from_env():
    env = {
        "KEYLOAD_START_KEY": "3",
        "KEYLOAD_END_KEY": "50",
        "KEYLOAD_KEY_PREFIX": "env-",
        "KEYLOAD_MAX_READ_ATTEMPTS": "8",
        "KEYLOAD_SEED": "",
    }
    config = LoadGeneratorConfig.from_env(env)
    assert config.start_key == 3
    assert config.end_key == 50
    assert config.key_prefix == "env-"
    assert config.max_read_attempts == 8
    assert config.seed is None


def test_from_env_rejects_non_integer():
    with pytest.raises(ConfigurationError) as exc_info:
        LoadGeneratorConfig.from_env({"KEYLOAD_END_KEY": "lots"})
    assert exc_info.value.field == "end_key"
