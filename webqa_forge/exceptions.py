from typing import Iterable, List, Optional


class WebQAForgeError(Exception):
    """Base class for every error raised by webqa_forge."""


class ConfigurationError(WebQAForgeError):
    """Invalid or missing synthesis/tracker configuration.

    All violations found are carried in ``errors`` so a caller can fix the
    configuration in one pass.
    """

    def __init__(self, errors: Iterable[str]):
        self.errors: List[str] = list(errors)
        super().__init__("; ".join(self.errors) or "invalid configuration")


class UnknownReferenceError(WebQAForgeError):
    """A record points at a specification or defect that does not exist."""

    def __init__(self, kind: str, reference: str):
        self.kind = kind
        self.reference = reference
        super().__init__(f"Unknown {kind} reference: {reference}")


class ExternalCallError(WebQAForgeError):
    """The execution or tracker collaborator failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class UnsupportedElementError(WebQAForgeError):
    """No synthesis rule exists for this element kind."""

    def __init__(self, kind: str, element_id: str):
        self.kind = kind
        self.element_id = element_id
        super().__init__(f"No test synthesis rule for element kind '{kind}' (element {element_id})")


class InvalidTransitionError(WebQAForgeError):
    """A defect status change that the workflow does not allow."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Cannot move defect from '{current}' to '{target}'")
