"""Shared schema base classes and field types."""

from typing import Annotated

from pydantic import BaseModel, StringConstraints
from pydantic.alias_generators import to_camel


PUBKEY_PATTERN = r"^[0-9a-f]{66}$"

Pubkey = Annotated[str, StringConstraints(pattern=PUBKEY_PATTERN)]


class CamelModel(BaseModel):
    """Snake-case attributes, camelCase on the wire (both accepted on input)."""

    model_config = {
        "alias_generator": to_camel,
        "populate_by_name": True,
        "from_attributes": True,
    }
