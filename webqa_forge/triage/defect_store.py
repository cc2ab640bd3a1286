from datetime import datetime
from typing import Dict, Iterable, List, Optional

from webqa_forge.data import Defect, DefectStatus, Severity
from webqa_forge.exceptions import UnknownReferenceError


def dedupe_defects(defects: Iterable[Defect]) -> List[Defect]:
    """Keep the first defect per (source URL, element, category)."""
    seen = set()
    unique = []
    for defect in defects:
        if defect.dedupe_key in seen:
            continue
        seen.add(defect.dedupe_key)
        unique.append(defect)
    return unique


class DefectStore:
    """Run-scoped owner of defects. Updates replace the stored value with the
    new one returned by the Defect's transition functions."""

    def __init__(self, defects: Iterable[Defect] = ()):
        self._defects: Dict[str, Defect] = {}
        self.add_all(defects)

    def __len__(self) -> int:
        return len(self._defects)

    def __iter__(self):
        return iter(list(self._defects.values()))

    def __contains__(self, defect_id: str) -> bool:
        return defect_id in self._defects

    def add_all(self, defects: Iterable[Defect]) -> None:
        for defect in defects:
            self._defects[defect.id] = defect

    def get(self, defect_id: str) -> Defect:
        try:
            return self._defects[defect_id]
        except KeyError:
            raise UnknownReferenceError("defect", defect_id) from None

    def all(self) -> List[Defect]:
        return list(self._defects.values())

    def set_tracker_reference(self, defect_id: str, tracker_ref: str, at: datetime) -> Defect:
        updated = self.get(defect_id).with_tracker_ref(tracker_ref, at)
        self._defects[defect_id] = updated
        return updated

    def transition(self, defect_id: str, status: DefectStatus, at: datetime) -> Defect:
        updated = self.get(defect_id).with_status(status, at)
        self._defects[defect_id] = updated
        return updated

    def filter(self, severity: Optional[Severity] = None, status: Optional[DefectStatus] = None) -> List[Defect]:
        return [
            d
            for d in self._defects.values()
            if (severity is None or d.severity == Severity(severity))
            and (status is None or d.status == DefectStatus(status))
        ]

    def without_tracker_ref(self) -> List[Defect]:
        return [d for d in self._defects.values() if not d.tracker_ref]

    def clear(self) -> None:
        self._defects.clear()
