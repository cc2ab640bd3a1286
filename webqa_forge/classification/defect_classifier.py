import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from webqa_forge.classification.probes import BaseProbeSource, simulated_probe_sources
from webqa_forge.data import (
    Anomaly,
    AnomalyKind,
    ClassificationConfig,
    Defect,
    DefectCategory,
    ExecutionResult,
    ExecutionStatus,
    Priority,
    ProbeFinding,
    ProbeKind,
    Severity,
    TestCategory,
    TestSpecification,
)
from webqa_forge.data.records import FrozenRecord
from webqa_forge.exceptions import UnknownReferenceError
from webqa_forge.utils.id_generator import ContentHashIdGenerator, IdGenerator
from webqa_forge.utils.log_icon import icon

FAILURE_REPRO_STEPS = (
    "Navigate to the test page",
    "Execute the automated test case",
    "Observe the failure",
)
FAILURE_EXPECTED = "Test should pass without errors"
UNKNOWN_FAILURE = "Test failed with unknown error"
SIMULATION_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

CATEGORY_MAP = {
    TestCategory.FUNCTIONAL: DefectCategory.FUNCTIONAL,
    TestCategory.UI: DefectCategory.UI,
    # Integration failures are reported as functional defects
    TestCategory.INTEGRATION: DefectCategory.FUNCTIONAL,
}

PROBE_REPORTERS = {
    ProbeKind.VISUAL: "Visual Testing Tool",
    ProbeKind.PERFORMANCE: "Performance Testing Tool",
    ProbeKind.ACCESSIBILITY: "Accessibility Testing Tool",
}


def severity_from_error(error: Optional[str], priority: Priority) -> Severity:
    """Severity of a failed test, from its error text and the test's priority."""
    lowered = (error or "").lower()
    if "timeout" in lowered or "not found" in lowered:
        return Severity.CRITICAL
    if "assertion" in lowered or "expected" in lowered:
        return Severity.MAJOR if Priority(priority) == Priority.HIGH else Severity.MINOR
    return Severity.MINOR


def category_from_test_category(category: TestCategory) -> DefectCategory:
    return CATEGORY_MAP[TestCategory(category)]


class ClassificationOutcome(FrozenRecord):
    defects: List[Defect]
    anomalies: List[Anomaly]


class DefectClassifier:
    """Turns failed execution results and probe findings into defects.

    Output depends only on the inputs: identifiers are content hashes and
    timestamps come from the results and findings themselves.
    """

    def __init__(
        self,
        config: ClassificationConfig,
        probe_sources: Optional[Mapping[ProbeKind, BaseProbeSource]] = None,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.config = config
        self.probe_sources = dict(probe_sources) if probe_sources is not None else None
        self.id_generator = id_generator or ContentHashIdGenerator()

    def run(
        self, results: Iterable[ExecutionResult], specifications: Iterable[TestSpecification]
    ) -> ClassificationOutcome:
        results = list(results)
        by_id: Dict[str, TestSpecification] = {spec.id: spec for spec in specifications}
        defects: List[Defect] = []
        anomalies: List[Anomaly] = []

        for result in results:
            if result.status != ExecutionStatus.FAILED:
                continue
            specification = by_id.get(result.specification_id)
            if specification is None:
                error = UnknownReferenceError("specification", result.specification_id)
                logging.warning(f"{icon['warning']} Skipped result {result.id}: {error}")
                anomalies.append(Anomaly(kind=AnomalyKind.UNKNOWN_REFERENCE, subject_id=result.id, message=str(error)))
                continue
            defects.append(self._defect_from_failure(result, specification))

        failure_count = len(defects)
        probe_sources = self.probe_sources
        if probe_sources is None:
            probe_sources = simulated_probe_sources(self.probe_observed_at(results))
        for kind in self.enabled_probes():
            source = probe_sources.get(kind)
            if source is None:
                logging.warning(f"{icon['warning']} {kind.value} probe enabled but no source configured")
                continue
            for position, finding in enumerate(source.collect(self.config.source_url)):
                defect = self._defect_from_finding(finding, position)
                if defect is not None:
                    defects.append(defect)

        logging.info(
            f"{icon['bug']} Classified {len(defects)} defects "
            f"({failure_count} from failed tests, {len(defects) - failure_count} from probes)"
        )
        return ClassificationOutcome(defects=defects, anomalies=anomalies)

    def probe_observed_at(self, results: List[ExecutionResult]) -> datetime:
        """Observation time stamped on simulated findings: the configured
        time, else the latest result in the batch, else a fixed epoch."""
        if self.config.observed_at is not None:
            return self.config.observed_at
        return max((r.timestamp for r in results), default=SIMULATION_EPOCH)

    def enabled_probes(self) -> List[ProbeKind]:
        flags = {
            ProbeKind.VISUAL: self.config.enable_visual,
            ProbeKind.PERFORMANCE: self.config.enable_performance,
            ProbeKind.ACCESSIBILITY: self.config.enable_accessibility,
        }
        return [kind for kind, enabled in flags.items() if enabled]

    def _defect_from_failure(self, result: ExecutionResult, specification: TestSpecification) -> Defect:
        return Defect(
            id=self.id_generator("bug", result.id),
            title=f"Test Failure: {specification.name}",
            description=f'Automated test "{specification.name}" failed during execution.',
            severity=severity_from_error(result.error, specification.priority),
            category=category_from_test_category(specification.category),
            source_url=self.config.source_url,
            element_ref=specification.covered_element_ids[0],
            artifact_ref=result.artifact_ref,
            repro_steps=FAILURE_REPRO_STEPS,
            expected=FAILURE_EXPECTED,
            actual=result.error or UNKNOWN_FAILURE,
            specification_id=specification.id,
            created_at=result.timestamp,
            updated_at=result.timestamp,
            reporter=self.config.reporter,
        )

    def _defect_from_finding(self, finding: ProbeFinding, position: int) -> Optional[Defect]:
        """Apply the probe's threshold; findings within bounds yield nothing."""
        thresholds = self.config.thresholds
        if finding.probe == ProbeKind.VISUAL:
            if finding.metric <= thresholds.visual_diff_ratio:
                return None
            severity, category = Severity.MINOR, DefectCategory.UI
        elif finding.probe == ProbeKind.PERFORMANCE:
            if finding.metric <= thresholds.load_time_ms:
                return None
            severity, category = Severity.MAJOR, DefectCategory.PERFORMANCE
        else:
            if finding.metric >= thresholds.a11y_score_min:
                return None
            severity, category = Severity.MAJOR, DefectCategory.USABILITY

        return Defect(
            id=self.id_generator(f"{finding.probe.value}-bug", f"{position}|{finding.source_url}|{finding.title}"),
            title=finding.title,
            description=finding.description,
            severity=severity,
            category=category,
            source_url=finding.source_url,
            element_ref=finding.element_ref,
            artifact_ref=finding.artifact_ref,
            repro_steps=finding.repro_steps,
            expected=finding.expected,
            actual=finding.actual,
            created_at=finding.observed_at,
            updated_at=finding.observed_at,
            reporter=PROBE_REPORTERS[finding.probe],
        )


def classify(
    results: Iterable[ExecutionResult],
    specifications: Iterable[TestSpecification],
    config: Union[ClassificationConfig, Dict[str, Any]],
    probe_sources: Optional[Mapping[ProbeKind, BaseProbeSource]] = None,
    id_generator: Optional[IdGenerator] = None,
) -> List[Defect]:
    """Classify failed results and enabled probe findings into defects.

    Failure-derived and probe-derived defects are returned together without
    deduplication.
    """
    if not isinstance(config, ClassificationConfig):
        config = ClassificationConfig.from_dict(config)
    classifier = DefectClassifier(config, probe_sources=probe_sources, id_generator=id_generator)
    return classifier.run(results, specifications).defects
