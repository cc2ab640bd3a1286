from datetime import datetime, timezone

import pytest

from webqa_forge.data import Defect, DefectStatus, Severity
from webqa_forge.exceptions import InvalidTransitionError, UnknownReferenceError
from webqa_forge.triage import DefectStore, dedupe_defects

CREATED = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)
LATER = datetime(2024, 5, 2, 8, 0, tzinfo=timezone.utc)


def make_defect(defect_id, severity=Severity.MINOR, element_ref='#a', category='functional'):
    return Defect(
        id=defect_id,
        title=defect_id,
        description='d',
        severity=severity,
        category=category,
        source_url='https://example.com',
        element_ref=element_ref,
        expected='ok',
        actual='broken',
        created_at=CREATED,
        updated_at=CREATED,
        reporter='QA Automation Tool',
    )


@pytest.fixture
def store():
    return DefectStore([
        make_defect('bug-1', Severity.CRITICAL),
        make_defect('bug-2', Severity.MINOR, element_ref='#b'),
        make_defect('bug-3', Severity.MINOR, element_ref='#c'),
    ])


@pytest.mark.parametrize(
    'path',
    [
        ['in-progress', 'resolved', 'closed'],
        ['resolved', 'open'],
        ['closed', 'open', 'in-progress', 'open'],
    ],
)
def test_allowed_transition_paths(store, path):
    for status in path:
        store.transition('bug-1', status, LATER)
    assert store.get('bug-1').status == DefectStatus(path[-1])
    assert store.get('bug-1').updated_at == LATER


@pytest.mark.parametrize(
    'setup, target',
    [
        (['resolved'], 'in-progress'),
        (['closed'], 'resolved'),
        (['closed'], 'in-progress'),
    ],
)
def test_rejected_transitions_leave_defect_unchanged(store, setup, target):
    for status in setup:
        store.transition('bug-1', status, CREATED)
    before = store.get('bug-1')

    with pytest.raises(InvalidTransitionError):
        store.transition('bug-1', target, LATER)

    assert store.get('bug-1') == before


def test_same_status_is_a_no_op(store):
    before = store.get('bug-1')
    assert store.transition('bug-1', DefectStatus.OPEN, LATER) == before


def test_transition_returns_new_value():
    defect = make_defect('bug-9')
    moved = defect.with_status(DefectStatus.IN_PROGRESS, LATER)
    assert defect.status == DefectStatus.OPEN
    assert moved.status == DefectStatus.IN_PROGRESS


def test_tracker_reference_is_set_once(store):
    store.set_tracker_reference('bug-2', 'QA-1', LATER)
    store.set_tracker_reference('bug-2', 'QA-2', LATER)
    assert store.get('bug-2').tracker_ref == 'QA-1'
    assert [d.id for d in store.without_tracker_ref()] == ['bug-1', 'bug-3']


def test_unknown_defect(store):
    with pytest.raises(UnknownReferenceError):
        store.get('bug-404')
    with pytest.raises(UnknownReferenceError):
        store.transition('bug-404', 'closed', LATER)


def test_filter_by_severity_and_status(store):
    store.transition('bug-3', 'resolved', LATER)

    assert [d.id for d in store.filter(severity='minor')] == ['bug-2', 'bug-3']
    assert [d.id for d in store.filter(status=DefectStatus.OPEN)] == ['bug-1', 'bug-2']
    assert [d.id for d in store.filter(severity=Severity.MINOR, status='resolved')] == ['bug-3']


def test_container_protocol(store):
    assert len(store) == 3
    assert 'bug-2' in store
    assert [d.id for d in store] == ['bug-1', 'bug-2', 'bug-3']
    store.clear()
    assert len(store) == 0


def test_dedupe_keeps_first_per_location_and_category():
    defects = [
        make_defect('bug-1', element_ref='#a'),
        make_defect('bug-2', element_ref='#a'),
        make_defect('bug-3', element_ref='#a', category='ui'),
        make_defect('bug-4', element_ref='#b'),
    ]
    assert [d.id for d in dedupe_defects(defects)] == ['bug-1', 'bug-3', 'bug-4']
