"""
Base Schema Classes for Pydantic Models

Records are persisted as JSON with camelCase keys (the format the mobile
client has always written). Python code uses snake_case attributes; the
alias generator bridges the two.

RULE: Every persisted record and every input payload rejects unknown fields.
Partial objects from callers are never trusted.
"""
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RecordSchema(BaseModel):
    """
    Base class for records stored in the record store.

    Features:
    - camelCase aliases for the stored JSON
    - population by field name or alias
    - unknown fields rejected
    - assignments re-validated
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
        validate_assignment=True,
    )

    def to_json_bytes(self) -> bytes:
        return self.model_dump_json(by_alias=True).encode("utf-8")

    @classmethod
    def from_json_bytes(cls, raw: bytes):
        return cls.model_validate_json(raw)


class BaseCreateSchema(BaseModel):
    """
    Base class for create/action payloads.

    Same aliasing as records so HTTP clients can send camelCase.
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra='forbid',
    )
