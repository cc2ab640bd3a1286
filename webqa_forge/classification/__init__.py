from .defect_classifier import (
    ClassificationOutcome,
    DefectClassifier,
    category_from_test_category,
    classify,
    severity_from_error,
)
from .probes import BaseProbeSource, SimulatedProbeSource, StaticProbeSource, simulated_probe_sources

__all__ = [
    "DefectClassifier",
    "ClassificationOutcome",
    "classify",
    "severity_from_error",
    "category_from_test_category",
    "BaseProbeSource",
    "StaticProbeSource",
    "SimulatedProbeSource",
    "simulated_probe_sources",
]
