from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class FrozenRecord(BaseModel):
    """Immutable record whose wire names are the camelCase of its fields."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    def to_dict(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")
