import json
import logging
import os
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from webqa_forge.data import Defect, DefectCategory, DefectStatus, Severity, TestSpecification
from webqa_forge.data.records import FrozenRecord
from webqa_forge.utils.id_generator import utc_now
from webqa_forge.utils.log_icon import icon


class RunSummary(FrozenRecord):
    total_specifications: int
    total_defects: int
    pass_rate_estimate: float
    by_severity: Dict[str, int]
    by_category: Dict[str, int]
    open_count: int
    resolved_count: int


def pass_rate_estimate(total_defects: int, total_specifications: int) -> float:
    if total_specifications <= 0:
        return 0.0
    return round(max(0.0, 100 - (total_defects * 100) / total_specifications), 2)


class ResultAggregator:
    """Aggregates defects and specifications into counts and export documents.

    Everything here is derived: nothing is cached, so the summary can be
    recomputed at any time from the current collections.
    """

    def __init__(self, report_dir: Optional[str] = None):
        self.report_dir = report_dir
        self.env = Environment(
            loader=PackageLoader("webqa_forge.reporting", "templates"),
            autoescape=select_autoescape(["html", "j2"]),
        )

    def summarize(self, defects: Iterable[Defect], specifications: Iterable[TestSpecification]) -> RunSummary:
        defects = list(defects)
        total_specifications = len(list(specifications))
        by_severity = {severity.value: 0 for severity in Severity}
        by_category = {category.value: 0 for category in DefectCategory}
        for defect in defects:
            by_severity[defect.severity.value] += 1
            by_category[defect.category.value] += 1

        return RunSummary(
            total_specifications=total_specifications,
            total_defects=len(defects),
            pass_rate_estimate=pass_rate_estimate(len(defects), total_specifications),
            by_severity=by_severity,
            by_category=by_category,
            open_count=sum(1 for d in defects if d.status == DefectStatus.OPEN),
            resolved_count=sum(1 for d in defects if d.status == DefectStatus.RESOLVED),
        )

    def build_export(
        self,
        defects: Iterable[Defect],
        specifications: Iterable[TestSpecification],
        generated_at: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Build the ``{summary, bugs, testCases, generatedAt}`` export document."""
        defects = list(defects)
        specifications = list(specifications)
        summary = self.summarize(defects, specifications)

        summary_dict = summary.to_dict()
        # Dashboard-compatible names alongside the summary fields
        summary_dict["passRate"] = round(summary.pass_rate_estimate)
        summary_dict["totalTests"] = summary.total_specifications
        summary_dict["totalBugs"] = summary.total_defects
        summary_dict["openBugs"] = summary.open_count
        summary_dict["resolvedBugs"] = summary.resolved_count
        for severity in Severity:
            summary_dict[f"{severity.value}Bugs"] = summary.by_severity[severity.value]

        return {
            "summary": summary_dict,
            "bugs": [defect.to_dict() for defect in defects],
            "testCases": [
                spec.model_dump(
                    by_alias=True,
                    mode="json",
                    include={"id", "name", "framework", "priority", "category", "covered_element_ids"},
                )
                for spec in specifications
            ],
            "generatedAt": (generated_at or utc_now()).isoformat(),
        }

    def _resolve_report_dir(self, report_dir: Optional[str]) -> str:
        report_dir = report_dir or self.report_dir
        if report_dir is None:
            timestamp = os.getenv("WEBQA_FORGE_TIMESTAMP") or utc_now().strftime("%Y-%m-%d_%H-%M-%S")
            report_dir = f"./reports/run_{timestamp}"
        os.makedirs(report_dir, exist_ok=True)
        return report_dir

    def generate_json_report(self, export: Dict[str, Any], report_dir: Optional[str] = None) -> str:
        """Write the export document and return its absolute path."""
        json_path = os.path.join(self._resolve_report_dir(report_dir), "test_results.json")
        try:
            with open(json_path, "w", encoding="utf-8") as f:
                json.dump(export, f, indent=2, ensure_ascii=False, default=str)
        except OSError as e:
            logging.error(f"Failed to generate JSON report: {e}")
            raise
        absolute_path = os.path.abspath(json_path)
        logging.info(f"{icon['report']} JSON report generated: {absolute_path}")
        return absolute_path

    def generate_html_report(self, export: Dict[str, Any], report_dir: Optional[str] = None) -> str:
        html_path = os.path.join(self._resolve_report_dir(report_dir), "test_report.html")
        html_out = self.env.get_template("report.html.j2").render(
            summary=export["summary"], bugs=export["bugs"], test_cases=export["testCases"],
            generated_at=export["generatedAt"],
        )
        try:
            with open(html_path, "w", encoding="utf-8") as f:
                f.write(html_out)
        except OSError as e:
            logging.error(f"Failed to generate HTML report: {e}")
            raise
        absolute_path = os.path.abspath(html_path)
        logging.info(f"{icon['report']} HTML report generated: {absolute_path}")
        return absolute_path


def summarize(defects: Iterable[Defect], specifications: Iterable[TestSpecification]) -> RunSummary:
    return ResultAggregator().summarize(defects, specifications)


def write_specifications(specifications: Iterable[TestSpecification], output_dir: str) -> List[str]:
    """Write each specification body to its own file, unmodified."""
    os.makedirs(output_dir, exist_ok=True)
    paths = []
    used = set()
    for spec in specifications:
        file_name = spec.file_name
        if file_name in used:
            stem, _, suffix = file_name.partition(".")
            file_name = f"{stem}_{spec.id.replace('-', '_')}.{suffix}"
        used.add(file_name)
        path = os.path.join(output_dir, file_name)
        with open(path, "w", encoding="utf-8") as f:
            f.write(spec.body)
        paths.append(os.path.abspath(path))
    logging.info(f"Wrote {len(paths)} specification files to {output_dir}")
    return paths
