"""Exceptions raised by the qedi console client."""


class QediClientError(Exception):
    """Base class for all client errors"""


class NotFoundError(QediClientError):
    """Raised when a requested item (instance, level, claim) does not exist"""


class MissingClaimError(NotFoundError):
    """Raised when a required identity claim is absent"""

    def __init__(self, claim_type):
        super().__init__(f"Claim '{claim_type}' not found in identity")
        self.claim_type = claim_type


class MalformedInputError(QediClientError):
    """Raised when a JSON payload cannot be parsed or has the wrong shape"""


class ConfigurationError(QediClientError, ValueError):
    """Raised when configuration.json is missing or incomplete"""


class ApiError(QediClientError):
    """Raised when the hub2 API is unreachable or answers with a non-success status"""

    def __init__(self, status_code, reason, url=None):
        message = f"{status_code} {reason}" if status_code is not None else str(reason)
        super().__init__(message.strip())
        self.status_code = status_code
        self.reason = reason
        self.url = url
