import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union
from dotenv import load_dotenv

from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

QUERIES_DIR = Path(__file__).parent / "queries"


@dataclass
class AuthorizationConfig:
    """Startup configuration of the authorization engine."""
    # Query templates
    auth_query_path: Path = QUERIES_DIR / "auth.rq"              # end-user applications
    owner_auth_query_path: Path = QUERIES_DIR / "owner_auth.rq"  # admin applications

    # Backend transport
    sparql_timeout: float = 30.0  # seconds

    # Federation
    loopback_host: str = "localhost"  # replaces the end-user endpoint host when it matches the admin host

    @classmethod
    def from_env(cls, dotenv_path: Optional[Union[str, Path]] = None) -> 'AuthorizationConfig':
        """
        Build configuration from environment variables (optionally loaded from a .env file).

        Recognized variables: AUTH_QUERY_PATH, OWNER_AUTH_QUERY_PATH, SPARQL_TIMEOUT, LOOPBACK_HOST.
        """
        load_dotenv(dotenv_path)
        config = cls()

        if os.getenv("AUTH_QUERY_PATH"):
            config.auth_query_path = Path(os.environ["AUTH_QUERY_PATH"])
        if os.getenv("OWNER_AUTH_QUERY_PATH"):
            config.owner_auth_query_path = Path(os.environ["OWNER_AUTH_QUERY_PATH"])
        if os.getenv("LOOPBACK_HOST"):
            config.loopback_host = os.environ["LOOPBACK_HOST"]

        timeout = os.getenv("SPARQL_TIMEOUT")
        if timeout:
            try:
                config.sparql_timeout = float(timeout)
            except ValueError:
                raise ConfigurationError(f"SPARQL_TIMEOUT must be a number of seconds, got: {timeout}")
            if config.sparql_timeout <= 0:
                raise ConfigurationError(f"SPARQL_TIMEOUT must be positive, got: {timeout}")

        logger.debug(f"Loaded authorization config: {config}")
        return config
