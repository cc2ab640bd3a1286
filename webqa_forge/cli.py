import argparse
import asyncio
import json
import logging
import os
import sys
import traceback
import uuid
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from webqa_forge.classification import StaticProbeSource
from webqa_forge.data import Element, ExecutionResult, ProbeFinding, ProbeKind
from webqa_forge.exceptions import ConfigurationError
from webqa_forge.executor import ScriptedExecutionBackend, execution_stats
from webqa_forge.reporting import write_specifications
from webqa_forge.session import QARunSession
from webqa_forge.triage import TicketMapper, build_tracker_client
from webqa_forge.utils.config_loader import (
    build_classification_config,
    build_synthesis_config,
    build_tracker_config,
    load_config,
)
from webqa_forge.utils.get_log import GetLog


def read_json_list(path: str) -> List[Dict[str, Any]]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        # Discovery exports wrap the list, e.g. {"elements": [...]}
        data = next((v for v in data.values() if isinstance(v, list)), [])
    return data


def load_records(path: str, model, label: str) -> list:
    records = []
    for index, raw in enumerate(read_json_list(path)):
        try:
            records.append(model.model_validate(raw))
        except ValidationError as e:
            logging.warning(f"Skipping invalid {label} #{index}: {e.errors()[0]['msg']}")
    return records


def build_probe_sources(findings_path: Optional[str]):
    if not findings_path:
        # Classifier falls back to simulated probes
        return None
    findings = load_records(findings_path, ProbeFinding, "probe finding")
    return {kind: StaticProbeSource(kind, findings) for kind in ProbeKind}


def run_pipeline(cfg: Dict[str, Any], args) -> QARunSession:
    synthesis_config = build_synthesis_config(cfg)
    classification_config = build_classification_config(cfg)

    session = QARunSession(session_id=args.session_id or uuid.uuid4().hex[:8])

    # 1. Elements -> specifications
    elements = load_records(args.elements, Element, "element")
    specifications = session.synthesize(elements, synthesis_config)
    print(f"✅ Generated {len(specifications)} {synthesis_config.framework.value} specifications")

    report_dir = args.output or (cfg.get("report") or {}).get("output_dir") or None
    if report_dir:
        write_specifications(specifications, os.path.join(report_dir, "specs"))

    # 2. Execution results: from the runner's export, or replayed from config
    if args.results:
        session.record_results(load_records(args.results, ExecutionResult, "execution result"))
    else:
        execution_cfg = cfg.get("execution", {}) or {}
        backend = ScriptedExecutionBackend(outcomes=execution_cfg.get("failures", {}))
        asyncio.run(session.execute(backend, max_concurrent=int(execution_cfg.get("max_concurrent", 4))))
    stats = execution_stats(session.results)
    print(f"🔢 Executions: {stats['total']} (✅ {stats['passed']} / ❌ {stats['failed']} / ⏭ {stats['skipped']})")

    # 3. Classification
    defects = session.classify(classification_config, probe_sources=build_probe_sources(args.findings))
    print(f"🐞 Defects: {len(defects)}")

    # 4. Tracker
    tracker_config = build_tracker_config(cfg)
    if tracker_config.auto_create_tickets:
        client = build_tracker_client(tracker_config, offline=args.offline_tracker)
        tickets = session.create_tickets(TicketMapper(tracker_config, client))
        print(f"🎫 Tickets created: {len(tickets)}")

    # 5. Reports
    export = session.export()
    json_path = session.aggregator.generate_json_report(export, report_dir)
    html_path = session.aggregator.generate_html_report(export, os.path.dirname(json_path))
    session.complete_session()

    for anomaly in session.anomalies:
        print(f"⚠️  {anomaly.kind.value}: {anomaly.message}")
    print(f"📊 Pass rate estimate: {export['summary']['passRate']}%")
    print("JSON report path: ", json_path)
    print("HTML report path: ", html_path)
    return session


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="WebQA Forge: test synthesis and defect triage")
    parser.add_argument("--config", "-c", help="YAML configuration file path (optional, default auto-search config/config.yaml)")
    parser.add_argument("--elements", "-e", required=True, help="JSON file with the discovered elements")
    parser.add_argument("--results", "-r", help="JSON file with execution results (default: replay config execution.failures)")
    parser.add_argument("--findings", "-f", help="JSON file with probe findings (default: simulated probes)")
    parser.add_argument("--output", "-o", help="Report output directory")
    parser.add_argument("--session-id", help="Run identifier used in logs")
    parser.add_argument("--offline-tracker", action="store_true", help="Use the in-memory tracker instead of Jira")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        cfg = load_config(args.config)
    except FileNotFoundError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        sys.exit(1)

    GetLog.get_log(level=(cfg.get("log") or {}).get("level", "info"))

    try:
        run_pipeline(cfg, args)
    except ConfigurationError as e:
        print("❌ Configuration invalid:", file=sys.stderr)
        for error in e.errors:
            print(f"   - {error}", file=sys.stderr)
        sys.exit(1)
    except Exception:
        print("Pipeline failed, stack trace:", file=sys.stderr)
        traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
