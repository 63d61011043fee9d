import logging
from typing import Dict, Iterator, Mapping, Optional
from rdflib import URIRef
from rdflib.term import Node

from .domain import AccessMode, Agent, Application, check_absolute_iri
from .exceptions import ConfigurationError
from .vocabulary import ACL, RDFS

logger = logging.getLogger(__name__)

# Query variable names shared by both authorization query templates
THIS_VAR = "this"
MODE_VAR = "Mode"
ONTOLOGY_VAR = "Ontology"
ENDPOINT_VAR = "endpoint"
AUTHENTICATED_AGENT_CLASS_VAR = "AuthenticatedAgentClass"
AGENT_VAR = "agent"

# Bound in place of the agent and its class for public access. It never appears as an agent
# in policy data, so the authenticated branches of the query cannot match.
UNMATCHABLE_AGENT = RDFS.Resource


class ParameterSet(Mapping[str, Node]):
    """Immutable variable bindings for one query evaluation."""

    def __init__(self, bindings: Optional[Mapping[str, Node]] = None):
        self._bindings: Dict[str, Node] = dict(bindings or {})

    def __getitem__(self, name: str) -> Node:
        return self._bindings[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._bindings)

    def __len__(self) -> int:
        return len(self._bindings)

    def with_binding(self, name: str, value: Node) -> 'ParameterSet':
        """Copy of this set with one binding added or replaced."""
        bindings = dict(self._bindings)
        bindings[name] = value
        return ParameterSet(bindings)

    def __repr__(self) -> str:
        pairs = ", ".join(f"{name}={value.n3()}" for name, value in self._bindings.items())
        return f"ParameterSet({pairs})"


def bind_parameters(application: Application, resource: URIRef, agent: Optional[Agent],
                    mode: AccessMode) -> ParameterSet:
    """
    Build the variable bindings for one authorization query evaluation.

    Args:
        application: Application serving the request
        resource: Absolute URI of the requested resource
        agent: Authenticated agent, or None for public access
        mode: Access mode required by the request

    Returns:
        ParameterSet with this, Mode, Ontology, AuthenticatedAgentClass and agent bound,
        plus endpoint for end-user applications

    Raises:
        ValueError: If the resource is not a valid absolute IRI
        ConfigurationError: If an end-user application has no service
    """
    if resource is None:
        raise ValueError("Resource cannot be None")
    check_absolute_iri(str(resource))

    bindings: Dict[str, Node] = {
        THIS_VAR: URIRef(str(resource)),
        MODE_VAR: mode.term,
        ONTOLOGY_VAR: URIRef(application.ontology),
    }

    # needed for federation with the end-user endpoint
    if application.is_end_user:
        if application.service is None:
            raise ConfigurationError(f"End-user application {application.iri} has no service")
        bindings[ENDPOINT_VAR] = URIRef(application.service.sparql_endpoint)

    if agent is not None:
        bindings[AUTHENTICATED_AGENT_CLASS_VAR] = ACL.AuthenticatedAgent
        bindings[AGENT_VAR] = agent.term
    else:
        bindings[AUTHENTICATED_AGENT_CLASS_VAR] = UNMATCHABLE_AGENT
        bindings[AGENT_VAR] = UNMATCHABLE_AGENT

    params = ParameterSet(bindings)
    logger.debug(f"Authorization query bindings: {params}")
    return params
