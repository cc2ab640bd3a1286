import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Mapping, Optional

from webqa_forge.data import ExecutionResult, ExecutionStatus, TestSpecification
from webqa_forge.utils.id_generator import Clock, IdGenerator, IndexIdGenerator, utc_now
from webqa_forge.utils.log_icon import icon


class BaseExecutionBackend(ABC):
    """Runs one specification body with its framework's own runner."""

    @abstractmethod
    async def execute(self, specification: TestSpecification) -> ExecutionResult:
        """Run the specification and return its outcome."""
        pass


class ScriptedExecutionBackend(BaseExecutionBackend):
    """Replays predetermined outcomes keyed by specification id.

    ``outcomes`` maps a specification id to an error string; ids that are
    missing pass. ``None`` as a value fails with no error text.
    """

    def __init__(
        self,
        outcomes: Optional[Mapping[str, Optional[str]]] = None,
        skipped: Iterable[str] = (),
        duration_ms: int = 1000,
        clock: Clock = utc_now,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.outcomes = dict(outcomes or {})
        self.skipped = set(skipped)
        self.duration_ms = duration_ms
        self.clock = clock
        self.id_generator = id_generator or IndexIdGenerator()

    async def execute(self, specification: TestSpecification) -> ExecutionResult:
        if specification.id in self.skipped:
            status, error = ExecutionStatus.SKIPPED, None
        elif specification.id in self.outcomes:
            status, error = ExecutionStatus.FAILED, self.outcomes[specification.id]
        else:
            status, error = ExecutionStatus.PASSED, None
        return ExecutionResult(
            id=self.id_generator("exec", specification.id),
            specification_id=specification.id,
            status=status,
            duration_ms=0 if status == ExecutionStatus.SKIPPED else self.duration_ms,
            error=error,
            timestamp=self.clock(),
        )


class ExecutionCoordinator:
    """Runs specifications concurrently through a backend.

    Specifications are independent, so they run in any order under a
    concurrency bound. Results are returned in completion order.
    """

    def __init__(
        self,
        backend: BaseExecutionBackend,
        max_concurrent: int = 4,
        clock: Clock = utc_now,
        id_generator: Optional[IdGenerator] = None,
    ):
        if max_concurrent < 1:
            raise ValueError("max_concurrent must be at least 1")
        self.backend = backend
        self.max_concurrent = max_concurrent
        self.clock = clock
        self.id_generator = id_generator or IndexIdGenerator()

    async def execute_all(self, specifications: Iterable[TestSpecification]) -> List[ExecutionResult]:
        specifications = list(specifications)
        if not specifications:
            logging.warning("No specifications to execute")
            return []

        logging.info(
            f"{icon['running']} Executing {len(specifications)} specifications (concurrency {self.max_concurrent})"
        )
        semaphore = asyncio.Semaphore(min(self.max_concurrent, len(specifications)))
        completed: List[ExecutionResult] = []

        async def run_one(specification: TestSpecification) -> None:
            async with semaphore:
                try:
                    result = await self.backend.execute(specification)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    # Collaborator failure becomes a failed result rather than vanishing
                    logging.error(f"Execution of {specification.id} failed with exception: {e}")
                    result = self._failed_result(specification, f"{type(e).__name__}: {e}")
                completed.append(result)

        outcomes = await asyncio.gather(*(run_one(spec) for spec in specifications), return_exceptions=True)
        for specification, outcome in zip(specifications, outcomes):
            if isinstance(outcome, asyncio.CancelledError):
                logging.warning(f"Execution of {specification.id} was cancelled")
                completed.append(self._failed_result(specification, "Execution was cancelled"))

        stats = execution_stats(completed)
        logging.info(
            f"{icon['check']} Execution finished: {stats['passed']} passed, "
            f"{stats['failed']} failed, {stats['skipped']} skipped"
        )
        return completed

    def _failed_result(self, specification: TestSpecification, error: str) -> ExecutionResult:
        return ExecutionResult(
            id=self.id_generator("exec-error", specification.id),
            specification_id=specification.id,
            status=ExecutionStatus.FAILED,
            duration_ms=0,
            error=error,
            timestamp=self.clock(),
        )


def execution_stats(results: Iterable[ExecutionResult]) -> Dict[str, int]:
    results = list(results)
    return {
        "total": len(results),
        "passed": sum(1 for r in results if r.status == ExecutionStatus.PASSED),
        "failed": sum(1 for r in results if r.status == ExecutionStatus.FAILED),
        "skipped": sum(1 for r in results if r.status == ExecutionStatus.SKIPPED),
    }
