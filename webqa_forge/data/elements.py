from enum import Enum
from typing import Dict, Optional

from pydantic import AliasChoices, Field, field_validator

from webqa_forge.data.records import FrozenRecord


class ElementKind(str, Enum):
    BUTTON = "button"
    INPUT = "input"
    LINK = "link"
    FORM = "form"
    SELECT = "select"
    TEXTAREA = "textarea"


class Position(FrozenRecord):
    x: float = 0
    y: float = 0


class Element(FrozenRecord):
    """An interactive control reported by the discovery step.

    ``type``/``text``/``xpath`` are accepted as input names as well, which is
    how crawlers usually label them.
    """

    id: str
    kind: ElementKind = Field(validation_alias=AliasChoices("kind", "type"))
    selector: str
    display_text: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("displayText", "display_text", "text")
    )
    attributes: Dict[str, str] = Field(default_factory=dict)
    locator_path: str = Field(default="", validation_alias=AliasChoices("locatorPath", "locator_path", "xpath"))
    position: Position = Field(default_factory=Position)

    @field_validator("id", "selector")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("must not be empty")
        return value

    def label(self, default: str) -> str:
        """Human readable name: visible text first, then the ``name`` attribute."""
        return self.display_text or self.attributes.get("name") or default
