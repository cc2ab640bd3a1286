from datetime import datetime, timezone

import pytest

from webqa_forge.classification import (
    DefectClassifier,
    SimulatedProbeSource,
    StaticProbeSource,
    category_from_test_category,
    classify,
    severity_from_error,
)
from webqa_forge.data import (
    AnomalyKind,
    ClassificationConfig,
    DefectCategory,
    ExecutionStatus,
    Priority,
    ProbeFinding,
    ProbeKind,
    Severity,
    TestCategory,
)

OBSERVED = datetime(2024, 5, 1, 9, 30, tzinfo=timezone.utc)


def finding(probe, metric, **extra):
    values = dict(
        probe=probe,
        source_url='https://example.com/page',
        metric=metric,
        title=f'{probe} finding',
        description='measured',
        expected='within bounds',
        actual=f'metric {metric}',
        observed_at=OBSERVED,
    )
    values.update(extra)
    return ProbeFinding(**values)


def static_sources(*findings):
    return {kind: StaticProbeSource(kind, findings) for kind in ProbeKind}


@pytest.mark.parametrize(
    'error, priority, expected',
    [
        ('Timeout waiting for element', Priority.HIGH, Severity.CRITICAL),
        ('Element NOT FOUND: #x', Priority.LOW, Severity.CRITICAL),
        ('Assertion failed: expected X', Priority.HIGH, Severity.MAJOR),
        ('Assertion failed: expected X', Priority.MEDIUM, Severity.MINOR),
        ('Expected "Success" but got "Error"', Priority.LOW, Severity.MINOR),
        ('Network request failed with status 500', Priority.HIGH, Severity.MINOR),
        (None, Priority.HIGH, Severity.MINOR),
    ],
)
def test_severity_from_error(error, priority, expected):
    assert severity_from_error(error, priority) == expected


def test_integration_failures_are_functional_defects():
    assert category_from_test_category(TestCategory.FUNCTIONAL) == DefectCategory.FUNCTIONAL
    assert category_from_test_category(TestCategory.UI) == DefectCategory.UI
    assert category_from_test_category(TestCategory.INTEGRATION) == DefectCategory.FUNCTIONAL


def test_timeout_against_high_priority_spec_is_critical(classification_config, spec_factory, result_factory):
    spec = spec_factory('input-test-0', priority=Priority.HIGH, covered=('2',))
    result = result_factory('input-test-0', error='Timeout waiting for element')

    defects = classify([result], [spec], classification_config)

    assert len(defects) == 1
    defect = defects[0]
    assert defect.severity == Severity.CRITICAL
    assert defect.category == DefectCategory.FUNCTIONAL
    assert defect.specification_id == 'input-test-0'
    assert defect.element_ref == '2'
    assert defect.status.value == 'open'
    assert defect.actual == 'Timeout waiting for element'
    assert len(defect.repro_steps) == 3
    assert defect.created_at == result.timestamp


def test_assertion_against_medium_priority_spec_is_minor(classification_config, spec_factory, result_factory):
    spec = spec_factory('input-test-0', priority=Priority.MEDIUM)
    result = result_factory('input-test-0', error='Assertion failed: expected X')

    assert classify([result], [spec], classification_config)[0].severity == Severity.MINOR


def test_missing_error_is_unknown_failure(classification_config, spec_factory, result_factory):
    spec = spec_factory()
    defect = classify([result_factory(error=None, artifact='shots/fail.png')], [spec], classification_config)[0]

    assert defect.severity == Severity.MINOR
    assert defect.actual == 'Test failed with unknown error'
    assert defect.artifact_ref == 'shots/fail.png'


def test_only_failed_results_become_defects(classification_config, spec_factory, result_factory):
    specs = [spec_factory('a'), spec_factory('b'), spec_factory('c')]
    results = [
        result_factory('a', status=ExecutionStatus.PASSED),
        result_factory('b', status=ExecutionStatus.SKIPPED),
        result_factory('c', error='Timeout'),
    ]
    defects = classify(results, specs, classification_config)
    assert [d.specification_id for d in defects] == ['c']


def test_unknown_specification_is_skipped_as_anomaly(classification_config, spec_factory, result_factory):
    classifier = DefectClassifier(classification_config, probe_sources={})
    outcome = classifier.run(
        [result_factory('ghost', error='Timeout'), result_factory('a', error='Timeout')],
        [spec_factory('a')],
    )

    assert [d.specification_id for d in outcome.defects] == ['a']
    assert len(outcome.anomalies) == 1
    assert outcome.anomalies[0].kind == AnomalyKind.UNKNOWN_REFERENCE
    assert outcome.anomalies[0].subject_id == 'exec-ghost'


def test_results_out_of_creation_order(classification_config, spec_factory, result_factory):
    specs = [spec_factory('a'), spec_factory('b')]
    results = [result_factory('b', error='x'), result_factory('a', error='y')]
    assert [d.specification_id for d in classify(results, specs, classification_config)] == ['b', 'a']


def test_classification_is_idempotent(spec_factory, result_factory):
    config = ClassificationConfig(
        source_url='https://example.com', enable_visual=True, enable_performance=True, enable_accessibility=True
    )
    sources = {kind: SimulatedProbeSource(kind, observed_at=OBSERVED) for kind in ProbeKind}
    specs = [spec_factory('a'), spec_factory('b', priority=Priority.LOW)]
    results = [result_factory('a', error='Timeout'), result_factory('b', error='expected 1 got 2')]

    first = classify(results, specs, config, probe_sources=sources)
    second = classify(results, specs, config, probe_sources=sources)

    assert first == second
    assert len(first) == 5


def test_probes_are_ignored_when_disabled(classification_config):
    sources = static_sources(finding(ProbeKind.PERFORMANCE, 9000))
    assert classify([], [], classification_config, probe_sources=sources) == []


def test_probe_thresholds_and_mapping():
    config = ClassificationConfig(
        enable_visual=True,
        enable_performance=True,
        enable_accessibility=True,
        thresholds={'load_time_ms': 3000, 'visual_diff_ratio': 0.05, 'a11y_score_min': 90},
    )
    sources = static_sources(
        finding(ProbeKind.VISUAL, 0.2, element_ref='#hero'),
        finding(ProbeKind.VISUAL, 0.01),
        finding(ProbeKind.PERFORMANCE, 4500),
        finding(ProbeKind.PERFORMANCE, 3000),
        finding(ProbeKind.ACCESSIBILITY, 72),
        finding(ProbeKind.ACCESSIBILITY, 95),
    )

    defects = classify([], [], config, probe_sources=sources)

    assert [(d.category, d.severity) for d in defects] == [
        (DefectCategory.UI, Severity.MINOR),
        (DefectCategory.PERFORMANCE, Severity.MAJOR),
        (DefectCategory.USABILITY, Severity.MAJOR),
    ]
    assert all(d.specification_id is None for d in defects)
    assert defects[0].element_ref == '#hero'
    assert defects[0].reporter == 'Visual Testing Tool'


def test_probe_and_failure_defects_are_not_deduplicated(spec_factory, result_factory):
    config = ClassificationConfig(source_url='https://example.com/page', enable_visual=True)
    spec = spec_factory('a', category=TestCategory.UI, covered=('#hero',))
    result = result_factory('a', error='layout broken')
    sources = static_sources(finding(ProbeKind.VISUAL, 0.3, element_ref='#hero'))

    defects = classify([result], [spec], config, probe_sources=sources)

    assert len(defects) == 2
    assert defects[0].dedupe_key == defects[1].dedupe_key


def test_simulated_probes_exceed_default_thresholds():
    config = ClassificationConfig(
        source_url='https://shop.example.com', enable_visual=True, enable_performance=True, enable_accessibility=True
    )
    defects = DefectClassifier(config).run([], []).defects

    assert {d.category for d in defects} == {DefectCategory.UI, DefectCategory.PERFORMANCE, DefectCategory.USABILITY}
    assert all(d.source_url.startswith('https://shop.example.com') for d in defects)


def test_defect_ids_do_not_depend_on_result_order(classification_config, spec_factory, result_factory):
    specs = [spec_factory('a'), spec_factory('b')]
    forward = classify([result_factory('a', error='x'), result_factory('b', error='y')], specs, classification_config)
    backward = classify([result_factory('b', error='y'), result_factory('a', error='x')], specs, classification_config)
    assert {d.id for d in forward} == {d.id for d in backward}


def test_default_probes_are_reproducible(spec_factory, result_factory):
    config = ClassificationConfig(
        source_url='https://example.com', enable_visual=True, enable_performance=True, enable_accessibility=True
    )
    specs = [spec_factory('a')]
    results = [result_factory('a', error='Timeout')]

    first = classify(results, specs, config)
    second = classify(results, specs, config)

    assert len(first) == 4
    assert first == second
    assert all(d.created_at == results[0].timestamp for d in first)


def test_default_probe_time_follows_config(spec_factory, result_factory):
    config = ClassificationConfig(enable_performance=True, observed_at=OBSERVED)
    defects = classify([result_factory('a', status=ExecutionStatus.PASSED)], [spec_factory('a')], config)

    assert [d.category for d in defects] == [DefectCategory.PERFORMANCE]
    assert defects[0].created_at == OBSERVED
    assert defects[0].updated_at == OBSERVED
