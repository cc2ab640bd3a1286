from .execution_coordinator import (
    BaseExecutionBackend,
    ExecutionCoordinator,
    ScriptedExecutionBackend,
    execution_stats,
)

__all__ = ["BaseExecutionBackend", "ExecutionCoordinator", "ScriptedExecutionBackend", "execution_stats"]
