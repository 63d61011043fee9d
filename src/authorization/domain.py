"""
Domain models for the authorization module.

Applications and services are resolved by an external collaborator and handed to the
engine as validated pydantic models. Runtime carriers that hold rdflib graphs
(agent contexts, requests, grants) are plain classes and dataclasses.
"""

import re
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional
from urllib.parse import urlsplit, urlunsplit
from pydantic import BaseModel, Field, field_validator, model_validator
from rdflib import Graph, URIRef
from rdflib.term import Node


class AccessMode(str, Enum):
    """ACL access modes; the value is the mode IRI."""
    READ = "http://www.w3.org/ns/auth/acl#Read"
    APPEND = "http://www.w3.org/ns/auth/acl#Append"
    WRITE = "http://www.w3.org/ns/auth/acl#Write"

    @property
    def term(self) -> URIRef:
        return URIRef(self.value)


class ApplicationKind(str, Enum):
    """Operating mode of an application."""
    END_USER = "end-user"   # public frontend, policies federated with the end-user store
    ADMIN = "admin"         # owner/admin frontend, policies evaluated on its own store


class ServiceAddressing(str, Enum):
    """How the backend store is addressed."""
    ENDPOINT = "endpoint"       # declared SPARQL endpoint
    REPOSITORY = "repository"   # remote repository descriptor with a canonical URI


class ServiceProtocol(str, Enum):
    """Protocol capability of the backend store."""
    GENERIC = "generic"                       # bindings substituted into the query text
    SEPARATE_BINDINGS = "separate-bindings"   # bindings sent as protocol parameters


class GrantKind(str, Enum):
    MODE = "mode"          # ACL authorization with acl:mode
    CREATOR = "creator"    # ownership authorization with lacl:accessProperty


class Decision(str, Enum):
    NOT_APPLICABLE = "not-applicable"
    GRANTED = "granted"
    DENIED = "denied"


# Characters that may not appear in an IRI (RFC 3987), whitespace included
_INVALID_IRI_CHARS = re.compile(r'[\s<>"{}|\\^`]')


def check_absolute_iri(value: Optional[str]) -> Optional[str]:
    """
    Validate an absolute IRI.

    Raises:
        ValueError: If the value has no scheme or contains characters not allowed in IRIs
    """
    if value is None:
        return value
    if not urlsplit(value).scheme:
        raise ValueError(f"Expected an absolute IRI, got: {value}")
    if _INVALID_IRI_CHARS.search(value):
        raise ValueError(f"Invalid character in IRI: {value!r}")
    return value


class Service(BaseModel):
    # A backend SPARQL service holding (part of) the policy graph.
    iri: str = Field(..., description="Identifier of the service as IRI")
    sparql_endpoint: str = Field(..., description="SPARQL query endpoint URL")
    protocol: ServiceProtocol = Field(default=ServiceProtocol.GENERIC, description="Protocol capability of the endpoint")
    addressing: ServiceAddressing = Field(default=ServiceAddressing.ENDPOINT, description="How the store is addressed")
    repository: Optional[str] = Field(None, description="Canonical repository URI, required for repository addressing")
    auth_user: Optional[str] = Field(None, description="HTTP basic auth user for the endpoint")
    auth_password: Optional[str] = Field(None, description="HTTP basic auth password for the endpoint")

    @field_validator("iri", "sparql_endpoint", "repository")
    @classmethod
    def check_absolute(cls, value: Optional[str]) -> Optional[str]:
        return check_absolute_iri(value)

    @model_validator(mode="after")
    def check_repository(self) -> "Service":
        if self.addressing == ServiceAddressing.REPOSITORY and not self.repository:
            raise ValueError("Repository-addressed service requires a repository URI")
        return self


class Application(BaseModel):
    # An application (end-user or admin) served by the frontend.
    iri: str = Field(..., description="Identifier of the application as IRI")
    kind: ApplicationKind = Field(..., description="Operating mode of the application")
    ontology: str = Field(..., description="IRI of the application's ontology")
    service: Service = Field(..., description="Backend service of the application")
    admin_application: Optional["Application"] = Field(None, description="Parent admin application of an end-user application")

    @field_validator("iri", "ontology")
    @classmethod
    def check_absolute(cls, value: str) -> str:
        return check_absolute_iri(value)

    @property
    def is_end_user(self) -> bool:
        return self.kind == ApplicationKind.END_USER


# Rebuild model to handle forward references
Application.model_rebuild()


@dataclass(frozen=True)
class Agent:
    """An authenticated caller."""
    iri: str

    def __post_init__(self):
        if not self.iri:
            raise ValueError("Agent IRI cannot be empty")
        check_absolute_iri(self.iri)

    @property
    def term(self) -> URIRef:
        return URIRef(self.iri)


class AgentContext:
    """
    Session-scoped security context of an authenticated agent.

    Statements of successful authorizations are accumulated in `graph`, which outlives
    the request; merging is guarded because requests of one session may run in parallel.
    """

    def __init__(self, agent: Agent, graph: Optional[Graph] = None):
        self.agent = agent
        self.graph = graph if graph is not None else Graph()
        self._lock = threading.Lock()

    def merge(self, graph: Graph) -> None:
        with self._lock:
            self.graph += graph


@dataclass
class RequestContext:
    """The parts of an incoming request the engine consumes."""
    method: str
    uri: str
    agent_context: Optional[AgentContext] = None

    @property
    def agent(self) -> Optional[Agent]:
        return self.agent_context.agent if self.agent_context is not None else None

    @property
    def resource(self) -> URIRef:
        """
        Absolute request URI without query string and fragment.

        Raises:
            ValueError: If the request URI is missing, relative or not a valid IRI
        """
        if not self.uri:
            raise ValueError("Request URI cannot be empty")
        parts = urlsplit(self.uri)
        return URIRef(check_absolute_iri(urlunsplit((parts.scheme, parts.netloc, parts.path, "", ""))))


@dataclass
class Grant:
    """An authorization resource from the result graph that grants the requested access."""
    subject: Node
    kind: GrantKind
    graph: Graph = field(repr=False)


@dataclass
class AuthorizationResult:
    decision: Decision
    mode: Optional[AccessMode] = None
    grant: Optional[Grant] = None

    @classmethod
    def not_applicable(cls, mode: Optional[AccessMode] = None) -> "AuthorizationResult":
        return cls(decision=Decision.NOT_APPLICABLE, mode=mode)

    @property
    def granted(self) -> bool:
        return self.decision == Decision.GRANTED
