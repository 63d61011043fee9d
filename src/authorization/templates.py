"""
Parameterized SPARQL query templates.

Two templates are loaded once at startup and shared read-only by all requests:
- auth: used for end-user applications; federates with the end-user store via SERVICE ?endpoint
- owner_auth: used for admin applications

A template is never bound directly. Each evaluation takes its own ParameterizedQuery copy,
so concurrent requests never observe each other's bindings.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Mapping, Optional, Union
from rdflib.plugins.sparql import prepareQuery
from rdflib.term import Node

from .bindings import ENDPOINT_VAR, MODE_VAR, THIS_VAR
from .config import AuthorizationConfig
from .domain import Application, ApplicationKind
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)

# Query forms that return a graph
GRAPH_QUERY_FORMS = ("ConstructQuery", "DescribeQuery")

# Variables each template must declare to be bound per request
AUTH_QUERY_VARIABLES = frozenset({THIS_VAR, MODE_VAR, ENDPOINT_VAR})
OWNER_AUTH_QUERY_VARIABLES = frozenset({THIS_VAR, MODE_VAR})

# IRIs, string literals and comments are matched first so that variables are only
# substituted where they are actual query variables
_TOKEN = re.compile(r'''
    (?P<iri><[^<>"{}|^`\\\s]*>)
  | (?P<string>"""(?:[^"\\]|\\.|"(?!""))*"""|\'\'\'(?:[^'\\]|\\.|'(?!''))*\'\'\'|"(?:[^"\\\n]|\\.)*"|'(?:[^'\\\n]|\\.)*')
  | (?P<comment>\#[^\n]*)
  | (?P<var>[?$][A-Za-z0-9_·À-￿]+)
''', re.VERBOSE)


def substitute_bindings(text: str, bindings: Mapping[str, Node]) -> str:
    """Replace bound variables (?name or $name) in query text with their N-Triples form."""
    def replace(match: re.Match) -> str:
        var = match.group("var")
        if var is None:
            return match.group(0)
        value = bindings.get(var[1:])
        return value.n3() if value is not None else var

    return _TOKEN.sub(replace, text)


def query_variables(text: str) -> FrozenSet[str]:
    """Names of all variables appearing in query text."""
    return frozenset(match.group("var")[1:] for match in _TOKEN.finditer(text) if match.group("var"))


@dataclass(frozen=True)
class QueryTemplate:
    """Immutable, validated query text with named variable slots."""
    name: str
    text: str

    @classmethod
    def parse(cls, name: str, text: str) -> 'QueryTemplate':
        """
        Validate query text and create a template.

        Raises:
            ConfigurationError: If the text is not a valid SPARQL CONSTRUCT/DESCRIBE query
        """
        try:
            prepared = prepareQuery(text)
        except Exception as e:
            raise ConfigurationError(f"Could not parse query template '{name}': {e}") from e

        if prepared.algebra.name not in GRAPH_QUERY_FORMS:
            raise ConfigurationError(f"Query template '{name}' must be a CONSTRUCT or DESCRIBE query, "
                                     f"got {prepared.algebra.name}")
        return cls(name=name, text=text)

    @classmethod
    def from_file(cls, name: str, path: Union[str, Path]) -> 'QueryTemplate':
        try:
            text = Path(path).read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigurationError(f"Could not read query template '{name}' from {path}: {e}") from e
        return cls.parse(name, text)

    @property
    def variables(self) -> FrozenSet[str]:
        return query_variables(self.text)

    def copy(self) -> 'ParameterizedQuery':
        return ParameterizedQuery(self)


class ParameterizedQuery:
    """A per-request copy of a QueryTemplate that accumulates variable bindings."""

    def __init__(self, template: QueryTemplate):
        self.template = template
        self._bindings: Dict[str, Node] = {}

    def set_param(self, name: str, value: Node) -> None:
        self._bindings[name] = value

    def set_params(self, params: Mapping[str, Node]) -> None:
        for name, value in params.items():
            self.set_param(name, value)

    @property
    def bindings(self) -> Dict[str, Node]:
        return dict(self._bindings)

    def to_string(self) -> str:
        """Query text with all current bindings substituted."""
        return substitute_bindings(self.template.text, self._bindings)

    def __str__(self) -> str:
        return self.to_string()


class QueryTemplateStore:
    """Holds the two authorization query templates for the lifetime of the process."""

    def __init__(self, auth_query: QueryTemplate, owner_auth_query: QueryTemplate):
        """
        Args:
            auth_query: Template for end-user applications
            owner_auth_query: Template for admin applications

        Raises:
            ConfigurationError: If a template does not declare the variables bound to it
        """
        _check_variables(auth_query, AUTH_QUERY_VARIABLES)
        _check_variables(owner_auth_query, OWNER_AUTH_QUERY_VARIABLES)
        self.auth_query = auth_query
        self.owner_auth_query = owner_auth_query

    @classmethod
    def from_files(cls, auth_query_path: Union[str, Path],
                   owner_auth_query_path: Union[str, Path]) -> 'QueryTemplateStore':
        store = cls(
            auth_query=QueryTemplate.from_file("auth", auth_query_path),
            owner_auth_query=QueryTemplate.from_file("owner_auth", owner_auth_query_path),
        )
        logger.info(f"Loaded authorization query templates from {auth_query_path} and {owner_auth_query_path}")
        return store

    @classmethod
    def from_config(cls, config: Optional[AuthorizationConfig] = None) -> 'QueryTemplateStore':
        config = config or AuthorizationConfig()
        return cls.from_files(config.auth_query_path, config.owner_auth_query_path)

    def get_auth_query(self) -> ParameterizedQuery:
        return self.auth_query.copy()

    def get_owner_auth_query(self) -> ParameterizedQuery:
        return self.owner_auth_query.copy()

    def for_application(self, application: Application) -> ParameterizedQuery:
        """Fresh query copy for the application's kind."""
        if application.kind == ApplicationKind.END_USER:
            return self.get_auth_query()
        elif application.kind == ApplicationKind.ADMIN:
            return self.get_owner_auth_query()
        else:
            raise ConfigurationError(f"Unknown application kind: {application.kind}")


def _check_variables(template: QueryTemplate, required: FrozenSet[str]) -> None:
    missing = required - template.variables
    if missing:
        raise ConfigurationError(f"Query template '{template.name}' does not use variables: "
                                 f"{', '.join(sorted(missing))}")
