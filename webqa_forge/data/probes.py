from datetime import datetime
from enum import Enum
from typing import Optional, Tuple

from webqa_forge.data.records import FrozenRecord


class ProbeKind(str, Enum):
    VISUAL = "visual"
    PERFORMANCE = "performance"
    ACCESSIBILITY = "accessibility"


class ProbeFinding(FrozenRecord):
    """A measurement reported by a visual, performance or accessibility probe.

    ``metric`` is the visual diff ratio, the load time in milliseconds or the
    accessibility score, depending on ``probe``.
    """

    probe: ProbeKind
    source_url: str
    metric: float
    title: str
    description: str
    expected: str
    actual: str
    element_ref: Optional[str] = None
    repro_steps: Tuple[str, ...] = ()
    artifact_ref: Optional[str] = None
    observed_at: datetime


class AnomalyKind(str, Enum):
    UNSUPPORTED_ELEMENT = "unsupported-element"
    UNKNOWN_REFERENCE = "unknown-reference"
    EXTERNAL_CALL = "external-call"


class Anomaly(FrozenRecord):
    """A per-item problem reported next to a batch's valid output."""

    kind: AnomalyKind
    subject_id: str
    message: str
