from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class NamedRef(CamelModel):
    """Minimal embedded reference used for receipts and report rows."""
    name: str


# Largest id a 64-bit integer column can hold
MAX_ID = 2**63 - 1
