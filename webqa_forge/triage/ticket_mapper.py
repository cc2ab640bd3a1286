import logging
from typing import Iterable, List, Optional, Tuple

from webqa_forge.data import Anomaly, AnomalyKind, Defect, Severity, Ticket, TicketRequest, TrackerConfig
from webqa_forge.data.records import FrozenRecord
from webqa_forge.exceptions import ConfigurationError, ExternalCallError, UnknownReferenceError
from webqa_forge.triage.defect_store import DefectStore
from webqa_forge.triage.tracker_client import BaseTrackerClient
from webqa_forge.triage.validation import validate_tracker_config
from webqa_forge.utils.id_generator import Clock, ContentHashIdGenerator, IdGenerator, utc_now
from webqa_forge.utils.log_icon import icon

PRIORITY_MAP = {
    Severity.CRITICAL: "Blocker",
    Severity.MAJOR: "High",
    Severity.MINOR: "Medium",
    Severity.TRIVIAL: "Low",
}

TICKET_LABELS = ("automation", "qa-tool")


def map_priority(severity: Severity) -> str:
    return PRIORITY_MAP[Severity(severity)]


def build_ticket_body(defect: Defect) -> str:
    """Render the ticket description in Jira wiki markup.

    Sections always appear in this order: description, repro steps,
    expected, actual, metadata, then the artifact when there is one.
    """
    steps = "\n".join(f"{number}. {step}" for number, step in enumerate(defect.repro_steps, start=1))
    sections = [
        f"*Bug Description:*\n{defect.description}",
        f"*Steps to Reproduce:*\n{steps or 'N/A'}",
        f"*Expected Result:*\n{defect.expected}",
        f"*Actual Result:*\n{defect.actual}",
        "*Additional Information:*\n"
        f"- URL: {defect.source_url or 'N/A'}\n"
        f"- Element: {defect.element_ref or 'N/A'}\n"
        f"- Category: {defect.category.value}\n"
        f"- Test Case ID: {defect.specification_id or 'N/A'}\n"
        f"- Reporter: {defect.reporter}\n"
        f"- Created: {defect.created_at.isoformat()}",
    ]
    if defect.artifact_ref:
        sections.append(f"*Screenshot:* {defect.artifact_ref}")
    return "\n\n".join(sections)


def build_ticket_request(defect: Defect, config: TrackerConfig) -> TicketRequest:
    return TicketRequest(
        summary=defect.title,
        body=build_ticket_body(defect),
        priority=map_priority(defect.severity),
        issue_type=config.issue_type,
        project_key=config.project_key,
        labels=[*TICKET_LABELS, defect.category.value],
    )


class TicketOutcome(FrozenRecord):
    defect: Defect
    tracker_ref: str
    ticket: Optional[Ticket] = None


class TicketMapper:
    """Files defects with the issue tracker, at most one ticket per defect."""

    def __init__(
        self,
        config: TrackerConfig,
        client: BaseTrackerClient,
        clock: Clock = utc_now,
        id_generator: Optional[IdGenerator] = None,
    ):
        self.config = config
        self.client = client
        self.clock = clock
        self.id_generator = id_generator or ContentHashIdGenerator()

    def create_ticket(self, defect: Defect) -> TicketOutcome:
        """Create the ticket for ``defect``.

        Returns:
            The linked defect (a new value), its tracker reference and the
            ticket. A defect that is already linked comes back unchanged,
            with no ticket and without contacting the tracker.

        Raises:
            ConfigurationError: Tracker settings are incomplete; all problems listed.
            ExternalCallError: The tracker call failed; the defect stays unlinked.
        """
        if defect.tracker_ref:
            logging.debug(f"Defect {defect.id} already linked to {defect.tracker_ref}")
            return TicketOutcome(defect=defect, tracker_ref=defect.tracker_ref)

        errors = validate_tracker_config(self.config)
        if errors:
            raise ConfigurationError(errors)

        request = build_ticket_request(defect, self.config)
        try:
            response = self.client.create_issue(request)
        except ExternalCallError:
            logging.error(f"{icon['cross']} Tracker rejected defect {defect.id}")
            raise
        except Exception as e:
            logging.error(f"{icon['cross']} Tracker call failed for defect {defect.id}: {e}")
            raise ExternalCallError(f"Failed to create ticket for defect {defect.id}: {e}", cause=e) from e

        ticket = Ticket(
            id=self.id_generator("ticket", defect.id),
            external_key=response.external_key,
            summary=request.summary,
            body=request.body,
            priority=request.priority,
            status=response.status,
            reporter=self.config.email,
            created_at=response.created_at,
            external_url=response.url,
        )
        linked = defect.with_tracker_ref(ticket.external_key, self.clock())
        logging.info(f"{icon['ticket']} Created {ticket.external_key} ({ticket.priority}) for defect {defect.id}")
        return TicketOutcome(defect=linked, tracker_ref=ticket.external_key, ticket=ticket)

    def create_tickets(
        self, store: DefectStore, defect_ids: Optional[Iterable[str]] = None
    ) -> Tuple[List[Ticket], List[Anomaly]]:
        """File tickets for ``defect_ids`` (default: every unlinked defect),
        updating ``store`` as each one succeeds.

        Unknown ids and failed tracker calls are reported as anomalies and do
        not stop the batch. Configuration errors do.
        """
        errors = validate_tracker_config(self.config)
        if errors:
            raise ConfigurationError(errors)

        if defect_ids is None:
            defect_ids = [d.id for d in store.without_tracker_ref()]

        tickets: List[Ticket] = []
        anomalies: List[Anomaly] = []
        for defect_id in defect_ids:
            try:
                outcome = self.create_ticket(store.get(defect_id))
            except UnknownReferenceError as e:
                logging.warning(f"{icon['warning']} Skipped ticket request: {e}")
                anomalies.append(Anomaly(kind=AnomalyKind.UNKNOWN_REFERENCE, subject_id=defect_id, message=str(e)))
                continue
            except ExternalCallError as e:
                anomalies.append(Anomaly(kind=AnomalyKind.EXTERNAL_CALL, subject_id=defect_id, message=str(e)))
                continue
            if outcome.ticket is not None:
                store.set_tracker_reference(defect_id, outcome.tracker_ref, outcome.defect.updated_at)
                tickets.append(outcome.ticket)
        return tickets, anomalies


def create_ticket(
    defect: Defect, tracker_config: TrackerConfig, client: BaseTrackerClient, clock: Clock = utc_now
) -> TicketOutcome:
    return TicketMapper(tracker_config, client, clock=clock).create_ticket(defect)
