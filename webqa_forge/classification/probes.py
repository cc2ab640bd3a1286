from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, Iterable, List, Optional

from webqa_forge.data import ProbeFinding, ProbeKind
from webqa_forge.utils.id_generator import Clock, utc_now


class BaseProbeSource(ABC):
    """Supplies findings of one probe kind (visual, performance, accessibility)."""

    def __init__(self, kind: ProbeKind):
        self.kind = ProbeKind(kind)

    @abstractmethod
    def collect(self, source_url: str) -> List[ProbeFinding]:
        """Return the findings measured for ``source_url``."""
        pass


class StaticProbeSource(BaseProbeSource):
    """Findings gathered elsewhere (e.g. loaded from an audit export)."""

    def __init__(self, kind: ProbeKind, findings: Iterable[ProbeFinding]):
        super().__init__(kind)
        self.findings = [f for f in findings if f.probe == self.kind]

    def collect(self, source_url: str) -> List[ProbeFinding]:
        return list(self.findings)


class SimulatedProbeSource(BaseProbeSource):
    """Stand-in for a real auditing tool; always reports the same finding.

    The observation time is fixed when the source is created, so repeated
    classification over the same source is reproducible.
    """

    def __init__(self, kind: ProbeKind, observed_at: Optional[datetime] = None, clock: Clock = utc_now):
        super().__init__(kind)
        self.observed_at = observed_at or clock()

    def collect(self, source_url: str) -> List[ProbeFinding]:
        base = source_url.rstrip("/") or "https://example.com"
        if self.kind == ProbeKind.VISUAL:
            finding = ProbeFinding(
                probe=self.kind,
                source_url=f"{base}/login",
                metric=0.12,
                element_ref="#login-btn",
                title="Button alignment issue on mobile",
                description="Login button is misaligned on mobile devices",
                expected="Button should be centered and properly aligned",
                actual="Button appears off-center and overlaps with other elements",
                repro_steps=(
                    "Open the login page on mobile device",
                    "Observe the button alignment",
                    "Compare with desktop version",
                ),
                observed_at=self.observed_at,
            )
        elif self.kind == ProbeKind.PERFORMANCE:
            finding = ProbeFinding(
                probe=self.kind,
                source_url=base,
                metric=6200,
                title="Slow page load time",
                description="Homepage takes more than the allowed time to load",
                expected="Page should load within the configured threshold",
                actual="Page loads in 6.2 seconds",
                repro_steps=("Navigate to homepage", "Measure load time", "Compare with performance threshold"),
                observed_at=self.observed_at,
            )
        else:
            finding = ProbeFinding(
                probe=self.kind,
                source_url=f"{base}/products",
                metric=62,
                element_ref="img.product-image",
                title="Missing alt text for images",
                description="Product images are missing alternative text for screen readers",
                expected="All images should have descriptive alt text",
                actual="15 images are missing alt attributes",
                repro_steps=("Navigate to products page", "Run accessibility audit", "Check image alt attributes"),
                observed_at=self.observed_at,
            )
        return [finding]


def simulated_probe_sources(observed_at: datetime) -> Dict[ProbeKind, BaseProbeSource]:
    return {kind: SimulatedProbeSource(kind, observed_at=observed_at) for kind in ProbeKind}
