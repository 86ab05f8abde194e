"""Jump execution."""

from ringtrader.execution.executor import ExecutorConfig, JumpExecutor


__all__ = [
    "ExecutorConfig",
    "JumpExecutor",
]
