"""
Console front end: sign in to qedi, then list levels, query disciplines
and refresh the access token from a simple menu.
"""

import argparse
import json
import logging
import sys

from . import claims as claim_types
from .api_client import ApiClient, ApiSession
from .configuration import DEFAULT_CONFIG_NAME, load_config
from .errors import ApiError, ConfigurationError, MalformedInputError, NotFoundError
from .instances import INSTANCES_CLAIM, select_instance
from .levels import first_leaf
from .oidc_client import OidcClient

logger = logging.getLogger(__name__)

LOG_FORMAT = "[%(asctime)s %(levelname)s] %(name)s\n%(message)s\n"
LOG_DATE_FORMAT = "%H:%M:%S"
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

BANNER = (
    "+-------------------------------+\n"
    "|  Sign in to qedi with OIDC    |\n"
    "+-------------------------------+\n"
)


def configure_logging(level):
    level_no = logging.getLevelName(str(level).upper())
    if not isinstance(level_no, int):
        level_no = logging.ERROR
    logging.basicConfig(level=level_no,
                        format=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)


class ConsoleApp:

    def __init__(self, oidc_client, api_client, instance_match, input_fn=input, output=print):
        self.oidc_client = oidc_client
        self.api_client = api_client
        self.instance_match = instance_match
        self.input = input_fn
        self.output = output

    def run(self):
        """Sign in and run the menu loop. Returns a process exit code."""
        self.output(BANNER)
        try:
            self.input("Press Enter to sign in...")
        except EOFError:
            return 0

        result = self.oidc_client.login()
        session = self.show_result(result)
        if result.is_error:
            return 1
        if session is None:
            return 2

        self.next_steps(result, session)
        return 0

    def show_result(self, result):
        """
        Print the sign-in outcome and pick the hub2 instance

        Returns:
            ApiSession for the selected instance, or None when sign-in failed
            or no instance could be selected
        """
        if result.is_error:
            self.output(f"\n\nError:\n{result.error}")
            return None

        self.output("\n\nClaims:")
        for claim_type, value in result.claims.items():
            self.output(f"{claim_type}: {value}")

        email = result.claims.get(claim_types.EMAIL)
        first_name = result.claims.get(claim_types.GIVEN_NAME)
        last_name = result.claims.get(claim_types.FAMILY_NAME)
        if email or first_name or last_name:
            self.output(f"\nSigned in as {first_name or ''} {last_name or ''} <{email or 'no email'}>")
        date_locale = result.claims.get(claim_types.DATE_LOCALE)
        if date_locale:
            self.output(f"date locale:    {date_locale}")

        session = None
        try:
            instance = select_instance(result.claims.require(INSTANCES_CLAIM), self.instance_match)
            if not instance.url:
                raise MalformedInputError(f"Instance '{instance.name}' has no url")
            session = ApiSession(instance.url, result.access_token)
            self.output(f"\ninstance:       {instance.name} ({instance.url})")
        except (NotFoundError, MalformedInputError) as e:
            self.output(f"\nError: {e}")

        self.output(f"\nidentity token: {result.identity_token}")
        self.output(f"access token:   {result.access_token}")
        self.output(f"refresh token:  {result.refresh_token or 'none'}")
        return session

    def menu(self, refresh_token):
        menu = "  x...exit  l...get levels  d...query disciplines  "
        if refresh_token is not None:
            menu += "r...refresh token   "
        return menu

    def next_steps(self, result, session):
        refresh_token = result.refresh_token
        menu = self.menu(refresh_token)

        while True:
            self.output("\n\n")
            try:
                key = self.input(menu).strip().lower()[:1]
            except EOFError:
                return

            if key == 'x':
                return
            if key == 'l':
                session = self.get_levels(session)
            elif key == 'd':
                self.query_disciplines(session)
            elif key == 'r' and refresh_token is not None:
                refresh_result = self.oidc_client.refresh_token(refresh_token)
                if refresh_result.is_error:
                    self.output(f"Error: {refresh_result.error}")
                else:
                    refresh_token = refresh_result.refresh_token
                    session = session.with_token(refresh_result.access_token)

                    self.output("\n\n")
                    self.output(f"access token:   {refresh_result.access_token}")
                    self.output(f"refresh token:  {refresh_token or 'none'}")

    def get_levels(self, session):
        """Fetch levels, print them and select the first terminal level"""
        try:
            payload, levels = self.api_client.get_levels(session)
            self.output("\n\n")
            self.output(json.dumps(payload, indent=2))

            # Demo behaviour: the first Level E becomes the selected level
            level = first_leaf(levels)
        except (ApiError, MalformedInputError, NotFoundError) as e:
            self.output(f"Error: {e}")
            return session

        self.output(f"\nselected level: {level.name} ({level.id})")
        return session.with_level(level.id)

    def query_disciplines(self, session):
        try:
            payload = self.api_client.query_disciplines(session)
        except (ApiError, MalformedInputError) as e:
            self.output(f"Error: {e}")
            return
        self.output("\n\n")
        self.output(json.dumps(payload, indent=2))


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog="qedi-console", description="Sign in to qedi with OIDC and call the hub2 API")
    parser.add_argument("--config-name", default=DEFAULT_CONFIG_NAME,
                        help="Entry in the Access section of configuration.json")
    parser.add_argument("--config-file", default=None, help="Path to configuration.json")
    parser.add_argument("--instance", default=None, help="Substring of the hub2 instance name to use")
    parser.add_argument("--log-level", default=None, type=str.upper, choices=LOG_LEVELS,
                        help="Logging level (default from configuration)")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    try:
        config = load_config(args.config_name, args.config_file)
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    configure_logging(args.log_level or config.log_level)
    logger.debug("Using %r", config)

    app = ConsoleApp(
        OidcClient(config),
        ApiClient(),
        args.instance or config.instance,
    )
    return app.run()
