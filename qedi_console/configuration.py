"""
Configuration for the qedi console client.

Settings are read from configuration.json. The ``Access`` section holds one
entry per identity environment; the ``Logging`` section holds the log level.
"""

import json
import logging
import os

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILE = os.path.join(os.path.dirname(__file__), "configuration.json")
DEFAULT_CONFIG_NAME = "qedi"
DEFAULT_SCOPE = "openid profile email extended_profile hub2_api offline_access"
DEFAULT_PORT = 33488
DEFAULT_INSTANCE = "Alpha"
DEFAULT_LOGIN_TIMEOUT = 300
DEFAULT_LOG_LEVEL = "ERROR"


class OidcConfig:
    """Settings for one identity environment"""

    def __init__(self, name, authority, client_id, redirect_uri=None, scope=DEFAULT_SCOPE,
                 port=DEFAULT_PORT, instance=DEFAULT_INSTANCE, login_timeout=DEFAULT_LOGIN_TIMEOUT,
                 log_level=DEFAULT_LOG_LEVEL):
        self.name = name
        self.authority = authority.rstrip("/")
        self.client_id = client_id
        self.port = port
        self.redirect_uri = redirect_uri or f"http://127.0.0.1:{port}"
        self.scope = scope
        self.instance = instance
        self.login_timeout = login_timeout
        self.log_level = log_level

    def __repr__(self):
        return f"OidcConfig(name={self.name!r}, authority={self.authority!r}, client_id={self.client_id!r})"


def load_config(config_name=DEFAULT_CONFIG_NAME, config_file=None):
    """
    Read one environment from configuration.json

    Args:
        config_name: Key under the ``Access`` section (e.g. "qedi")
        config_file: Path to configuration.json (defaults to the file shipped with the package)

    Raises:
        ConfigurationError: if the file cannot be read or the entry is incomplete
    """
    if config_file is None:
        config_file = DEFAULT_CONFIG_FILE

    try:
        with open(config_file, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Could not read configuration %s: %s", config_file, e)
        raise ConfigurationError(f"Could not read configuration '{config_file}': {e}") from e

    access = data.get('Access') or {}
    if config_name not in access:
        available = ', '.join(access.keys()) or 'none'
        raise ConfigurationError(f"Config '{config_name}' not found. Available: {available}")

    access_config = access[config_name]
    missing = [key for key in ('authority', 'clientId') if not access_config.get(key)]
    if missing:
        raise ConfigurationError(f"Config '{config_name}' is missing {', '.join(missing)}")

    logging_config = data.get('Logging') or {}

    return OidcConfig(
        name=access_config.get('Name', config_name),
        authority=access_config['authority'],
        client_id=access_config['clientId'],
        redirect_uri=access_config.get('redirectUri'),
        scope=access_config.get('scope', DEFAULT_SCOPE),
        port=access_config.get('port', DEFAULT_PORT),
        instance=access_config.get('instance', DEFAULT_INSTANCE),
        login_timeout=access_config.get('loginTimeout', DEFAULT_LOGIN_TIMEOUT),
        log_level=logging_config.get('level', DEFAULT_LOG_LEVEL),
    )
