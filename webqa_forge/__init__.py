from .classification import classify
from .reporting import summarize
from .session import QARunSession
from .synthesis import synthesize
from .triage import build_ticket_body, create_ticket, map_priority

__version__ = "0.1.0"

__all__ = ["synthesize", "classify", "map_priority", "build_ticket_body", "create_ticket", "summarize", "QARunSession"]
