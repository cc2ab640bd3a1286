from .defect_store import DefectStore, dedupe_defects
from .ticket_mapper import (
    PRIORITY_MAP,
    TicketMapper,
    TicketOutcome,
    build_ticket_body,
    build_ticket_request,
    create_ticket,
    map_priority,
)
from .tracker_client import BaseTrackerClient, InMemoryTrackerClient, JiraTrackerClient, build_tracker_client
from .validation import validate_tracker_config

__all__ = [
    "DefectStore",
    "dedupe_defects",
    "PRIORITY_MAP",
    "TicketMapper",
    "TicketOutcome",
    "build_ticket_body",
    "build_ticket_request",
    "create_ticket",
    "map_priority",
    "validate_tracker_config",
    "BaseTrackerClient",
    "JiraTrackerClient",
    "InMemoryTrackerClient",
    "build_tracker_client",
]
