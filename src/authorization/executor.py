"""
Execution of bound authorization queries against the admin service.

The transport strategy follows the service's protocol capability:
- SEPARATE_BINDINGS: the unbound query text is sent together with the bindings as protocol
  parameters, so the text stays identical across requests
- GENERIC: the bindings are substituted into the query text before it is sent

Both strategies evaluate the same query for the same bindings.
"""

import logging
from typing import Callable, Optional
import httpx
from rdflib import Graph

from sparql import SPARQLClient, SPARQLProtocolClient, SPARQLQueryError, SesameProtocolClient

from .bindings import ParameterSet
from .domain import Service, ServiceProtocol
from .exceptions import BackendQueryFailure, ConfigurationError
from .templates import ParameterizedQuery

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Service], SPARQLClient]


class SPARQLClientFactory:
    """Creates HTTP SPARQL clients for services, sharing one connection pool."""

    def __init__(self, http: Optional[httpx.Client] = None, timeout: float = 30.0):
        self._owns_http = http is None
        self.http = http if http is not None else httpx.Client(timeout=timeout)

    def __call__(self, service: Service) -> SPARQLClient:
        auth = (service.auth_user, service.auth_password or "") if service.auth_user else None

        if service.protocol == ServiceProtocol.SEPARATE_BINDINGS:
            return SesameProtocolClient(service.sparql_endpoint, http=self.http, auth=auth)
        elif service.protocol == ServiceProtocol.GENERIC:
            return SPARQLProtocolClient(service.sparql_endpoint, http=self.http, auth=auth)
        else:
            raise ConfigurationError(f"Unknown protocol of service {service.iri}: {service.protocol}")

    def close(self) -> None:
        if self._owns_http:
            self.http.close()


class PolicyQueryExecutor:
    """Runs authorization queries and returns the result graph."""

    def __init__(self, client_factory: Optional[ClientFactory] = None):
        """
        Args:
            client_factory: Callable returning a SPARQLClient for a Service.
                            Defaults to HTTP clients created by SPARQLClientFactory.
                            Each returned client is closed after its query; clients that
                            share connections must not own them.
        """
        self.client_factory = client_factory if client_factory is not None else SPARQLClientFactory()

    def execute(self, query: ParameterizedQuery, params: ParameterSet, service: Service) -> Graph:
        """
        Evaluate the query with the given bindings on the service.

        Args:
            query: Per-request query copy (not yet bound)
            params: Variable bindings
            service: Service to query

        Returns:
            Result graph; an empty graph means no authorization matched

        Raises:
            BackendQueryFailure: If the service could not complete the query
            ConfigurationError: If the service or its client cannot be used
        """
        if query is None:
            raise ValueError("Query cannot be None")
        if params is None:
            raise ValueError("ParameterSet cannot be None")
        if service is None:
            raise ConfigurationError("Service cannot be None")

        client = self.client_factory(service)
        try:
            if service.protocol == ServiceProtocol.SEPARATE_BINDINGS:
                if not client.supports_bindings:
                    raise ConfigurationError(f"Client for service {service.iri} cannot send separate bindings")
                graph = client.construct(query.to_string(), bindings=params)
            else:
                query.set_params(params)
                graph = client.construct(query.to_string())
        except SPARQLQueryError as e:
            raise BackendQueryFailure(e.endpoint, f"Authorization query failed on service {service.iri}: {e}") from e
        finally:
            client.close()

        logger.debug(f"Authorization query on {service.sparql_endpoint} returned {len(graph)} triples")
        return graph

    def close(self) -> None:
        """Close the client factory, if it holds resources."""
        close = getattr(self.client_factory, "close", None)
        if callable(close):
            close()
