from datetime import datetime
from enum import Enum
from typing import Dict, FrozenSet, List, Optional, Tuple

from pydantic import Field

from webqa_forge.data.records import FrozenRecord
from webqa_forge.exceptions import InvalidTransitionError


class Severity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"
    TRIVIAL = "trivial"


class DefectStatus(str, Enum):
    OPEN = "open"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"
    CLOSED = "closed"


class DefectCategory(str, Enum):
    FUNCTIONAL = "functional"
    UI = "ui"
    PERFORMANCE = "performance"
    SECURITY = "security"
    USABILITY = "usability"


ALLOWED_TRANSITIONS: Dict[DefectStatus, FrozenSet[DefectStatus]] = {
    DefectStatus.OPEN: frozenset({DefectStatus.IN_PROGRESS, DefectStatus.RESOLVED, DefectStatus.CLOSED}),
    DefectStatus.IN_PROGRESS: frozenset({DefectStatus.OPEN, DefectStatus.RESOLVED, DefectStatus.CLOSED}),
    DefectStatus.RESOLVED: frozenset({DefectStatus.OPEN, DefectStatus.CLOSED}),
    DefectStatus.CLOSED: frozenset({DefectStatus.OPEN}),
}


class Defect(FrozenRecord):
    """A classified issue. Only ``status`` and ``tracker_ref`` ever change,
    and only through :meth:`with_status` / :meth:`with_tracker_ref`, which
    return a new value."""

    id: str
    title: str
    description: str
    severity: Severity
    status: DefectStatus = DefectStatus.OPEN
    category: DefectCategory
    source_url: str
    element_ref: Optional[str] = None
    artifact_ref: Optional[str] = None
    repro_steps: Tuple[str, ...] = ()
    expected: str
    actual: str
    specification_id: Optional[str] = None
    tracker_ref: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    reporter: str

    def with_status(self, status: DefectStatus, at: datetime) -> "Defect":
        status = DefectStatus(status)
        if status == self.status:
            return self
        if status not in ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTransitionError(self.status.value, status.value)
        return self.model_copy(update={"status": status, "updated_at": at})

    def with_tracker_ref(self, tracker_ref: str, at: datetime) -> "Defect":
        # A defect is linked to at most one ticket
        if self.tracker_ref:
            return self
        return self.model_copy(update={"tracker_ref": tracker_ref, "updated_at": at})

    @property
    def dedupe_key(self) -> Tuple[str, Optional[str], DefectCategory]:
        return self.source_url, self.element_ref, self.category


class Ticket(FrozenRecord):
    id: str
    external_key: str
    summary: str
    body: str
    priority: str
    status: str
    reporter: str
    created_at: datetime
    external_url: str


class TicketRequest(FrozenRecord):
    """Payload handed to the issue tracker."""

    summary: str
    body: str
    priority: str
    issue_type: str
    project_key: str
    labels: List[str] = Field(default_factory=list)


class TrackerResponse(FrozenRecord):
    external_key: str
    status: str
    created_at: datetime
    url: str
