"""
/***************************************************************************
OIDC/OAuth2 Client for the qedi console client
Handles sign-in with the qedi identity provider using the authorization
code flow with PKCE and a loopback browser redirect.
 ***************************************************************************/

"""

import logging
import threading
import webbrowser
from datetime import datetime, timezone
from http.server import BaseHTTPRequestHandler, HTTPServer
from urllib.parse import parse_qs, urlparse

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.common.security import generate_token
from authlib.integrations.requests_client import OAuth2Session

from .claims import Claims

logger = logging.getLogger(__name__)

SUCCESS_PAGE = (
    "<html><head><title>Login OK</title></head>"
    "<body style=\"font-family: Arial; text-align: center; padding: 50px;\">"
    "<h1>Login Success!</h1>"
    "<p>You can close this window and return to the console.</p>"
    "</body></html>"
)

FAILURE_PAGE = (
    "<html><head><title>Login failed</title></head>"
    "<body style=\"font-family: Arial; text-align: center; padding: 50px;\">"
    "<h1>Login Failed</h1>"
    "<p>{error}</p>"
    "</body></html>"
)


class RedirectListener:
    """Listens for the OAuth redirect callback on the loopback address"""

    def __init__(self, port, host="127.0.0.1"):
        self.callback_url = None
        self._received = threading.Event()
        self._thread = None

        listener = self

        class CallbackHandler(BaseHTTPRequestHandler):

            def log_message(self, format, *args):
                logger.debug("Redirect listener: " + format, *args)

            def do_GET(self):
                parsed = urlparse(self.path)

                # Ignore favicon requests
                if parsed.path == '/favicon.ico':
                    self.send_response(404)
                    self.end_headers()
                    return

                params = parse_qs(parsed.query)
                if 'code' in params:
                    status, page = 200, SUCCESS_PAGE
                else:
                    error = params.get('error', ['No authorization code received.'])[0]
                    status, page = 400, FAILURE_PAGE.format(error=error)

                self.send_response(status)
                self.send_header('Content-Type', 'text/html; charset=utf-8')
                self.end_headers()
                self.wfile.write(page.encode('utf-8'))

                # Stray requests (prefetch, bare root) keep the listener waiting
                if 'code' in params or 'error' in params:
                    listener._capture(f"http://{self.headers.get('Host', listener.address)}{self.path}")

        self.server = HTTPServer((host, port), CallbackHandler)

    @property
    def port(self):
        return self.server.server_address[1]

    @property
    def address(self):
        host, port = self.server.server_address[:2]
        return f"{host}:{port}"

    def _capture(self, url):
        if not self._received.is_set():
            self.callback_url = url
            self._received.set()

    def start(self):
        """Start serving on a background thread"""
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()
        logger.info("Listening on %s", self.address)

    def wait(self, timeout=None):
        """
        Block until the callback arrives

        Returns:
            The full callback URL, or None if the timeout expired
        """
        if not self._received.wait(timeout):
            return None
        return self.callback_url

    def stop(self):
        """Stop listening"""
        if self._thread is not None:
            self.server.shutdown()
            self._thread.join()
            self._thread = None
        self.server.server_close()


def _expiry(token):
    expires_at = token.get('expires_at')
    if expires_at is None:
        return None
    return datetime.fromtimestamp(expires_at, tz=timezone.utc)


class LoginResult:
    """Outcome of an interactive sign-in"""

    def __init__(self, access_token=None, refresh_token=None, identity_token=None, claims=None,
                 expires_at=None, error=None):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.identity_token = identity_token
        self.claims = claims if claims is not None else Claims()
        self.expires_at = expires_at
        self.error = error

    @property
    def is_error(self):
        return self.error is not None

    @classmethod
    def failed(cls, error):
        return cls(error=error)


class RefreshResult:
    """Outcome of a refresh token grant"""

    def __init__(self, access_token=None, refresh_token=None, expires_at=None, error=None):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.expires_at = expires_at
        self.error = error

    @property
    def is_error(self):
        return self.error is not None


class OidcClient:
    """OIDC client with PKCE support"""

    def __init__(self, config, session_factory=OAuth2Session, browser=webbrowser.open, http=requests,
                 listener_factory=RedirectListener):
        """
        Args:
            config: OidcConfig for the identity environment
            session_factory: Builds the authlib OAuth2 session
            browser: Callable that opens a URL in the system browser
            http: Module or session used for discovery requests
            listener_factory: Builds the loopback redirect listener from a port
        """
        self.config = config
        self._session_factory = session_factory
        self._browser = browser
        self._http = http
        self._listener_factory = listener_factory
        self._metadata = None

    def _new_session(self):
        return self._session_factory(
            client_id=self.config.client_id,
            scope=self.config.scope,
            redirect_uri=self.config.redirect_uri,
            code_challenge_method='S256',
        )

    def discover(self):
        """Fetch and cache the provider's discovery document"""
        if self._metadata is None:
            discovery_url = f"{self.config.authority}/.well-known/openid-configuration"
            logger.info("Loading discovery document from %s", discovery_url)
            response = self._http.get(discovery_url, timeout=10)
            response.raise_for_status()
            metadata = response.json()
            for key in ('authorization_endpoint', 'token_endpoint'):
                if key not in metadata:
                    raise ValueError(f"Discovery document has no {key}")
            self._metadata = metadata
        return self._metadata

    def login(self):
        """
        Sign in through the system browser

        Returns:
            LoginResult; on failure ``error`` holds a readable message
        """
        try:
            metadata = self.discover()
        except (requests.RequestException, ValueError) as e:
            logger.error("Discovery failed: %s", e)
            return LoginResult.failed(f"Error loading discovery document: {e}")

        session = self._new_session()
        code_verifier = generate_token(48)
        auth_url, state = session.create_authorization_url(
            metadata['authorization_endpoint'], code_verifier=code_verifier
        )

        try:
            listener = self._listener_factory(self.config.port)
        except OSError as e:
            logger.error("Failed to start redirect listener on port %s: %s", self.config.port, e)
            return LoginResult.failed(f"Failed to start redirect listener on port {self.config.port}: {e}")

        listener.start()
        try:
            logger.info("Opening browser for login")
            self._browser(auth_url)
            callback_url = listener.wait(self.config.login_timeout)
        finally:
            listener.stop()

        if callback_url is None:
            logger.error("No redirect received within %s seconds", self.config.login_timeout)
            return LoginResult.failed("Timed out waiting for the browser redirect")

        params = parse_qs(urlparse(callback_url).query)
        if 'error' in params:
            error = params['error'][0]
            if 'error_description' in params:
                error += f": {params['error_description'][0]}"
            logger.error("OAuth error: %s", error)
            return LoginResult.failed(error)
        if 'code' not in params:
            logger.error("Redirect carried no authorization code: %s", callback_url)
            return LoginResult.failed("No authorization code received")

        logger.info("Exchanging code for token")
        try:
            token = session.fetch_token(
                metadata['token_endpoint'],
                authorization_response=callback_url,
                state=state,
                code_verifier=code_verifier,
            )
            claims = self._load_claims(session, metadata)
        except (AuthlibBaseError, requests.RequestException, ValueError) as e:
            logger.error("Token exchange error: %s", e)
            return LoginResult.failed(f"Token exchange error: {e}")

        logger.info("Login successful")
        return LoginResult(
            access_token=token.get('access_token'),
            refresh_token=token.get('refresh_token'),
            identity_token=token.get('id_token'),
            claims=claims,
            expires_at=_expiry(token),
        )

    def _load_claims(self, session, metadata):
        userinfo_endpoint = metadata.get('userinfo_endpoint')
        if not userinfo_endpoint:
            logger.warning("Provider has no userinfo endpoint, no claims loaded")
            return Claims()
        response = session.get(userinfo_endpoint, timeout=10)
        response.raise_for_status()
        return Claims(response.json())

    def refresh_token(self, refresh_token):
        """
        Exchange a refresh token for a new access token

        Returns:
            RefreshResult; the previous refresh token is kept when the provider does not rotate it
        """
        if not refresh_token:
            logger.warning("No refresh token available")
            return RefreshResult(error="No refresh token available")

        try:
            metadata = self.discover()
            session = self._new_session()
            token = session.refresh_token(metadata['token_endpoint'], refresh_token=refresh_token)
        except (AuthlibBaseError, requests.RequestException, ValueError) as e:
            logger.error("Token refresh error: %s", e)
            return RefreshResult(error=f"Token refresh error: {e}")

        logger.info("Token refreshed successfully")
        return RefreshResult(
            access_token=token.get('access_token'),
            refresh_token=token.get('refresh_token', refresh_token),
            expires_at=_expiry(token),
        )
