"""
Client for the hub2 REST API.

Every call takes an explicit ApiSession carrying the instance base URL, the
bearer token and the selected level, so nothing is kept on the client
between calls.
"""

import logging
import uuid
from urllib.parse import urljoin

import requests

from .errors import ApiError, MalformedInputError
from .levels import parse_levels

logger = logging.getLogger(__name__)

LEVEL_HEADER = "X-GoTechnology-Level"
LEVELS_PATH = "api/Level/User"
DISCIPLINES_PATH = "api/Discipline"

NO_LEVEL = uuid.UUID(int=0)


class ApiSession:
    """Per-user context for API calls"""

    def __init__(self, base_url, access_token, level_id=NO_LEVEL):
        self.base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.access_token = access_token
        self.level_id = level_id

    def with_token(self, access_token):
        return ApiSession(self.base_url, access_token, self.level_id)

    def with_level(self, level_id):
        return ApiSession(self.base_url, self.access_token, level_id)

    def url(self, path):
        return urljoin(self.base_url, path.lstrip('/'))

    def __repr__(self):
        return f"ApiSession(base_url={self.base_url!r}, level_id={self.level_id!r})"


class ApiClient:

    def __init__(self, http_session=None, timeout=30):
        self.http = http_session or requests.Session()
        self.timeout = timeout

    def get(self, session, path, headers=None):
        """
        GET a path relative to the session's base URL

        Raises:
            ApiError: if the API cannot be reached or does not answer with a success status
        """
        request_headers = {
            'Authorization': f"Bearer {session.access_token}",
            'Accept': 'application/json',
        }
        request_headers.update(headers or {})

        url = session.url(path)
        logger.debug("GET %s", url)
        try:
            response = self.http.get(url, headers=request_headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("GET %s failed: %s", url, e)
            raise ApiError(None, f"Request to {url} failed: {e}", url=url) from e

        if not response.ok:
            logger.error("GET %s failed: %s %s", url, response.status_code, response.reason)
            raise ApiError(response.status_code, response.reason, url=url)
        return response

    def _json_array(self, response):
        try:
            payload = response.json()
        except ValueError as e:
            raise MalformedInputError(f"Response from {response.url} is not JSON: {e}") from e
        if not isinstance(payload, list):
            raise MalformedInputError(f"Expected a JSON array from {response.url}")
        return payload

    def get_levels(self, session):
        """
        Fetch the levels the user has access to

        Returns:
            (payload, nodes) where payload is the decoded JSON and nodes the parsed LevelNode tree
        """
        payload = self._json_array(self.get(session, LEVELS_PATH))
        return payload, parse_levels(payload)

    def query_disciplines(self, session):
        """Query disciplines for the session's selected level"""
        response = self.get(session, DISCIPLINES_PATH, headers={LEVEL_HEADER: str(session.level_id)})
        return self._json_array(response)
