from .configs import ClassificationConfig, SynthesisConfig, Thresholds, TrackerConfig
from .defects import (
    Defect,
    DefectCategory,
    DefectStatus,
    Severity,
    Ticket,
    TicketRequest,
    TrackerResponse,
)
from .elements import Element, ElementKind, Position
from .probes import Anomaly, AnomalyKind, ProbeFinding, ProbeKind
from .test_structures import (
    ExecutionResult,
    ExecutionStatus,
    Framework,
    Priority,
    TestCategory,
    TestSpecification,
)

__all__ = [
    "Element",
    "ElementKind",
    "Position",
    "Framework",
    "Priority",
    "TestCategory",
    "TestSpecification",
    "ExecutionStatus",
    "ExecutionResult",
    "Severity",
    "DefectStatus",
    "DefectCategory",
    "Defect",
    "Ticket",
    "TicketRequest",
    "TrackerResponse",
    "ProbeKind",
    "ProbeFinding",
    "Anomaly",
    "AnomalyKind",
    "SynthesisConfig",
    "ClassificationConfig",
    "Thresholds",
    "TrackerConfig",
]
