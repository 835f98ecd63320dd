from __future__ import annotations

import contextlib
import dataclasses
import logging
import os
import threading
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Generator

logger = logging.getLogger(__name__)


def _int_from_env(name: str, default: int) -> int:
    if name not in os.environ:
        return default
    raw = os.environ[name]
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"Unsupported {name} variable: {raw!r}, expected an integer")
    if value < 1:
        raise ValueError(f"Unsupported {name} variable: {raw!r}, expected a positive integer")
    return value


@dataclasses.dataclass(frozen=True)
class ExecutionConfig:
    """Controls how window resolution is fanned out across groups.

    To configure through the environment:

    1. RANGEFRAME_NUM_WORKERS=<n> resolves groups on a pool of ``n`` threads
    2. RANGEFRAME_PARALLEL_MIN_GROUPS=<n> keeps inputs with fewer than ``n`` groups on the calling thread
    """

    num_workers: int = dataclasses.field(default_factory=lambda: _int_from_env("RANGEFRAME_NUM_WORKERS", 1))
    parallel_min_groups: int = dataclasses.field(
        default_factory=lambda: _int_from_env("RANGEFRAME_PARALLEL_MIN_GROUPS", 2)
    )

    def __post_init__(self) -> None:
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be at least 1, got {self.num_workers}")
        if self.parallel_min_groups < 1:
            raise ValueError(f"parallel_min_groups must be at least 1, got {self.parallel_min_groups}")

    def use_thread_pool(self, num_groups: int) -> bool:
        return self.num_workers > 1 and num_groups >= self.parallel_min_groups


_lock = threading.Lock()
_GlobalExecutionConfig: ExecutionConfig | None = None


def get_execution_config() -> ExecutionConfig:
    """Returns the process-wide execution config, reading the environment on first use."""
    global _GlobalExecutionConfig
    with _lock:
        if _GlobalExecutionConfig is None:
            _GlobalExecutionConfig = ExecutionConfig()
        return _GlobalExecutionConfig


def set_execution_config(
    config: ExecutionConfig | None = None,
    num_workers: int | None = None,
    parallel_min_groups: int | None = None,
) -> ExecutionConfig:
    """Globally sets the parameters which control how windows are evaluated.

    Args:
        config: An ExecutionConfig to set the config to, before applying other kwargs. Defaults to None which indicates
            that the old (current) config should be used.
        num_workers: Number of threads used to resolve groups concurrently. Defaults to 1 (no thread pool).
        parallel_min_groups: Minimum number of groups before a thread pool is used. Defaults to 2.

    Returns:
        ExecutionConfig: The config now in effect.
    """
    global _GlobalExecutionConfig
    old_config = config if config is not None else get_execution_config()
    overrides = {
        k: v
        for k, v in {"num_workers": num_workers, "parallel_min_groups": parallel_min_groups}.items()
        if v is not None
    }
    new_config = dataclasses.replace(old_config, **overrides)
    with _lock:
        _GlobalExecutionConfig = new_config
    logger.debug("Execution config set to %s", new_config)
    return new_config


@contextlib.contextmanager
def execution_config_ctx(**kwargs: Any) -> Generator[None, None, None]:
    """Context manager that wraps set_execution_config to reset the config to its original setting afterwards."""
    original_config = get_execution_config()
    try:
        set_execution_config(**kwargs)
        yield
    finally:
        set_execution_config(config=original_config)
