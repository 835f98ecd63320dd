from __future__ import annotations

import pytest

from rangeframe.config import ExecutionConfig, execution_config_ctx, get_execution_config, set_execution_config


def test_defaults_from_environment(monkeypatch):
    monkeypatch.setenv("RANGEFRAME_NUM_WORKERS", "8")
    monkeypatch.setenv("RANGEFRAME_PARALLEL_MIN_GROUPS", "16")

    config = ExecutionConfig()

    assert config.num_workers == 8
    assert config.parallel_min_groups == 16


def test_defaults_without_environment(monkeypatch):
    monkeypatch.delenv("RANGEFRAME_NUM_WORKERS", raising=False)
    monkeypatch.delenv("RANGEFRAME_PARALLEL_MIN_GROUPS", raising=False)

    config = ExecutionConfig()

    assert config.num_workers == 1
    assert config.parallel_min_groups == 2


@pytest.mark.parametrize("raw", ["many", "0", "-3"])
def test_invalid_environment_value(monkeypatch, raw):
    monkeypatch.setenv("RANGEFRAME_NUM_WORKERS", raw)

    with pytest.raises(ValueError, match="RANGEFRAME_NUM_WORKERS"):
        ExecutionConfig()


def test_invalid_explicit_value():
    with pytest.raises(ValueError, match="num_workers"):
        ExecutionConfig(num_workers=0)


def test_use_thread_pool():
    assert not ExecutionConfig(num_workers=1, parallel_min_groups=1).use_thread_pool(100)
    assert not ExecutionConfig(num_workers=4, parallel_min_groups=10).use_thread_pool(9)
    assert ExecutionConfig(num_workers=4, parallel_min_groups=10).use_thread_pool(10)


def test_execution_config_ctx_restores_previous():
    original = get_execution_config()

    with execution_config_ctx(num_workers=3):
        assert get_execution_config().num_workers == 3
        assert get_execution_config().parallel_min_groups == original.parallel_min_groups

    assert get_execution_config() == original


def test_execution_config_ctx_restores_on_error():
    original = get_execution_config()

    with pytest.raises(RuntimeError):
        with execution_config_ctx(num_workers=5):
            raise RuntimeError("boom")

    assert get_execution_config() == original


def test_set_execution_config_from_base():
    original = get_execution_config()
    try:
        base = ExecutionConfig(num_workers=2, parallel_min_groups=7)
        config = set_execution_config(config=base, num_workers=6)
        assert config == ExecutionConfig(num_workers=6, parallel_min_groups=7)
        assert get_execution_config() == config
    finally:
        set_execution_config(config=original)
