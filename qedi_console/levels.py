"""
Level hierarchy returned by the hub2 API.

Levels form a shallow tree (Level A down to Level E). Only the terminal
levels, the ones without children, can be selected as the working level
for discipline queries.
"""

import uuid
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from .errors import MalformedInputError, NotFoundError


class LevelNode(BaseModel):
    """A node in the level tree"""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: uuid.UUID = Field(validation_alias=AliasChoices("id", "Id"))
    name: str = Field(default="", validation_alias=AliasChoices("name", "Name"))
    children: Optional[List["LevelNode"]] = Field(
        default=None, validation_alias=AliasChoices("children", "Children")
    )

    @property
    def is_leaf(self):
        return not self.children


LevelNode.model_rebuild()

_levels_adapter = TypeAdapter(List[LevelNode])


def parse_levels(raw):
    """
    Parse the levels payload into LevelNode objects.

    Args:
        raw: JSON text (str or bytes) or an already decoded list

    Raises:
        MalformedInputError: if raw is not valid JSON or not a list of levels
    """
    try:
        if isinstance(raw, (str, bytes, bytearray)):
            return _levels_adapter.validate_json(raw)
        return _levels_adapter.validate_python(raw)
    except ValidationError as e:
        raise MalformedInputError(f"Invalid levels payload: {e}") from e


def find_leaves(nodes):
    """
    Collect the terminal levels below the given top-level nodes.

    Children are visited depth-first, left to right, and every child without
    children of its own is collected in the order it is met. The top-level
    nodes themselves are never collected, even when they have no children.
    """
    leaves = []
    # (node, is_top_level), reversed so the leftmost node is popped first
    stack = [(node, True) for node in reversed(list(nodes or ()))]
    while stack:
        node, top_level = stack.pop()
        if node.is_leaf:
            if not top_level:
                leaves.append(node)
            continue
        stack.extend((child, False) for child in reversed(node.children))
    return leaves


def first_leaf(nodes):
    """Return the first terminal level, raising NotFoundError if there is none"""
    leaves = find_leaves(nodes)
    if not leaves:
        raise NotFoundError("No terminal levels (Level E) available for this user")
    return leaves[0]
