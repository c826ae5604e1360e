"""Typed access to the identity claims of the signed-in user."""

from collections.abc import Mapping

from .errors import MissingClaimError

EMAIL = "email"
GIVEN_NAME = "given_name"
FAMILY_NAME = "family_name"
DATE_LOCALE = "date_locale"


class Claims(Mapping):
    """Read-only view of the claims returned by the userinfo endpoint"""

    def __init__(self, claims=None):
        self._claims = dict(claims or {})

    def __getitem__(self, claim_type):
        return self._claims[claim_type]

    def __iter__(self):
        return iter(self._claims)

    def __len__(self):
        return len(self._claims)

    def __repr__(self):
        return f"Claims({sorted(self._claims)})"

    def require(self, claim_type):
        """Return the claim value, raising MissingClaimError if it is absent"""
        try:
            return self._claims[claim_type]
        except KeyError:
            raise MissingClaimError(claim_type) from None
