"""
qedi console client: OIDC sign-in through the system browser and
access to the hub2 levels and disciplines API.
"""

from .errors import (
    ApiError,
    ConfigurationError,
    MalformedInputError,
    MissingClaimError,
    NotFoundError,
    QediClientError,
)
from .instances import InstanceDescriptor, select_instance
from .levels import LevelNode, find_leaves, first_leaf

__version__ = "0.1.0"

__all__ = [
    "ApiError",
    "ConfigurationError",
    "InstanceDescriptor",
    "LevelNode",
    "MalformedInputError",
    "MissingClaimError",
    "NotFoundError",
    "QediClientError",
    "find_leaves",
    "first_leaf",
    "select_instance",
]
