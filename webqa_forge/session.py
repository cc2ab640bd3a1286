import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from webqa_forge.classification import BaseProbeSource, DefectClassifier
from webqa_forge.data import (
    Anomaly,
    ClassificationConfig,
    Defect,
    DefectStatus,
    Element,
    ExecutionResult,
    ProbeKind,
    SynthesisConfig,
    TestSpecification,
    Ticket,
)
from webqa_forge.executor import BaseExecutionBackend, ExecutionCoordinator, execution_stats
from webqa_forge.reporting import ResultAggregator, RunSummary
from webqa_forge.synthesis import TestSynthesizer
from webqa_forge.triage import DefectStore, TicketMapper
from webqa_forge.utils.id_generator import Clock, utc_now


class QARunSession:
    """One run's elements, specifications, results, defects and tickets.

    The collections form a single generation: replacing an upstream
    collection drops everything derived from it.
    """

    def __init__(self, session_id: str, clock: Clock = utc_now):
        self.session_id = session_id
        self.clock = clock
        self.aggregator = ResultAggregator()
        self.reset()

    def reset(self) -> None:
        self.elements: List[Element] = []
        self.specifications: List[TestSpecification] = []
        self.results: List[ExecutionResult] = []
        self.defects = DefectStore()
        self.tickets: List[Ticket] = []
        self.anomalies: List[Anomaly] = []
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None

    def start_session(self) -> None:
        self.start_time = self.clock()

    def complete_session(self) -> None:
        self.end_time = self.clock()

    def synthesize(self, elements: Iterable[Element], config: SynthesisConfig, id_generator=None) -> List[TestSpecification]:
        self.reset()
        self.start_session()
        self.elements = list(elements)
        outcome = TestSynthesizer(config, id_generator=id_generator).run(self.elements)
        self.specifications = outcome.specifications
        self.anomalies.extend(outcome.anomalies)
        return self.specifications

    def record_results(self, results: Iterable[ExecutionResult]) -> None:
        self.results = list(results)
        self.defects.clear()
        self.tickets = []

    async def execute(self, backend: BaseExecutionBackend, max_concurrent: int = 4) -> List[ExecutionResult]:
        coordinator = ExecutionCoordinator(backend, max_concurrent=max_concurrent, clock=self.clock)
        self.record_results(await coordinator.execute_all(self.specifications))
        return self.results

    def classify(
        self,
        config: ClassificationConfig,
        probe_sources: Optional[Mapping[ProbeKind, BaseProbeSource]] = None,
    ) -> List[Defect]:
        outcome = DefectClassifier(config, probe_sources=probe_sources).run(self.results, self.specifications)
        self.defects.clear()
        self.defects.add_all(outcome.defects)
        self.anomalies.extend(outcome.anomalies)
        return outcome.defects

    def create_tickets(self, mapper: TicketMapper, defect_ids: Optional[Iterable[str]] = None) -> List[Ticket]:
        tickets, anomalies = mapper.create_tickets(self.defects, defect_ids)
        self.tickets.extend(tickets)
        self.anomalies.extend(anomalies)
        return tickets

    def transition_defect(self, defect_id: str, status: DefectStatus) -> Defect:
        return self.defects.transition(defect_id, status, self.clock())

    def summarize(self) -> RunSummary:
        return self.aggregator.summarize(self.defects, self.specifications)

    def export(self) -> Dict[str, Any]:
        return self.aggregator.build_export(self.defects, self.specifications, generated_at=self.clock())

    def get_summary_stats(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "elements": len(self.elements),
            "specifications": len(self.specifications),
            "executions": execution_stats(self.results),
            "defects": len(self.defects),
            "tickets": len(self.tickets),
            "anomalies": len(self.anomalies),
        }

    def log_summary(self) -> None:
        for key, value in self.get_summary_stats().items():
            logging.info(f"{key}: {value}")
