"""
hub2 instances available to the signed-in user.

The identity provider lists them in the ``hub2_instances`` claim as a JSON
array encoded in the claim's string value.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import MalformedInputError, NotFoundError

INSTANCES_CLAIM = "hub2_instances"


class InstanceDescriptor(BaseModel):
    """A tenant specific deployment of the hub2 API"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: str = Field(validation_alias=AliasChoices("name", "Name"))
    url: Optional[str] = Field(default=None, validation_alias=AliasChoices("url", "Url"))
    description: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("description", "Description")
    )
    last_accessed: Optional[datetime] = Field(
        default=None, validation_alias=AliasChoices("lastAccessed", "LastAccessed", "last_accessed")
    )


_instances_adapter = TypeAdapter(List[InstanceDescriptor])


def parse_instances(raw):
    """
    Parse the instances claim value.

    Args:
        raw: JSON text (str or bytes) or an already decoded list

    Raises:
        MalformedInputError: if raw is not valid JSON or not a list of instances
    """
    try:
        if isinstance(raw, (str, bytes, bytearray)):
            return _instances_adapter.validate_json(raw)
        return _instances_adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid {INSTANCES_CLAIM} value: {e}") from e


def select_instance(raw, match):
    """
    Pick the first instance whose name contains ``match`` (case-sensitive).

    Raises:
        MalformedInputError: if raw cannot be parsed
        NotFoundError: if no instance name contains match
    """
    for instance in parse_instances(raw):
        if match in instance.name:
            return instance
    raise NotFoundError(f"No instance with a name containing '{match}'")
