"""
HTTP clients for remote SPARQL services.

Two protocol flavours are supported:
- SPARQLProtocolClient sends the query text as-is (SPARQL 1.1 Protocol, POST form encoding).
  Any variable bindings must already be substituted into the query text.
- SesameProtocolClient additionally sends variable bindings as `$name=<term>` request
  parameters (RDF4J/Sesame REST protocol), so the query text stays stable across bindings.
"""

import logging
from typing import Dict, Mapping, Optional, Tuple
import httpx
from rdflib import Graph
from rdflib.term import Node

from .client import SPARQLClient, SPARQLQueryError

logger = logging.getLogger(__name__)

RDF_ACCEPT = "text/turtle, application/n-triples;q=0.9, application/rdf+xml;q=0.8, application/ld+json;q=0.7"

# media type -> rdflib parser format
RDF_FORMATS = {
    "text/turtle": "turtle",
    "application/x-turtle": "turtle",
    "application/n-triples": "nt",
    "text/plain": "nt",
    "application/rdf+xml": "xml",
    "application/ld+json": "json-ld",
}


class SPARQLProtocolClient(SPARQLClient):
    """Client for a SPARQL 1.1 Protocol query endpoint."""

    def __init__(self, endpoint: str, http: Optional[httpx.Client] = None,
                 timeout: float = 30.0, auth: Optional[Tuple[str, str]] = None):
        """
        Initialize the client.

        Args:
            endpoint: SPARQL query endpoint URL
            http: Shared httpx client; a private one is created (and owned) if None
            timeout: Request timeout in seconds, used only for a private httpx client
            auth: Optional (user, password) pair for HTTP basic authentication
        """
        self.endpoint = str(endpoint)
        self.auth = auth
        self._owns_http = http is None
        self.http = http if http is not None else httpx.Client(timeout=timeout)

    def construct(self, query: str, bindings: Optional[Mapping[str, Node]] = None) -> Graph:
        if bindings:
            raise ValueError(f"{type(self).__name__} cannot send variable bindings separately from the query")
        return self._post({"query": query})

    def close(self) -> None:
        if self._owns_http:
            self.http.close()

    def _post(self, form: Dict[str, str]) -> Graph:
        logger.debug(f"Sending SPARQL query to {self.endpoint}")

        kwargs = {}
        if self.auth is not None:
            kwargs["auth"] = self.auth

        try:
            response = self.http.post(self.endpoint, data=form, headers={"Accept": RDF_ACCEPT}, **kwargs)
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise SPARQLQueryError(self.endpoint, f"SPARQL request failed: {e}") from e

        return self._parse(response)

    def _parse(self, response: httpx.Response) -> Graph:
        graph = Graph()
        if not response.content.strip():
            return graph

        media_type = response.headers.get("content-type", "text/turtle").split(";")[0].strip().lower()
        rdf_format = RDF_FORMATS.get(media_type)
        if rdf_format is None:
            raise SPARQLQueryError(self.endpoint, f"Unsupported response media type: {media_type}")

        try:
            graph.parse(data=response.text, format=rdf_format, publicID=self.endpoint)
        except Exception as e:
            raise SPARQLQueryError(self.endpoint, f"Could not parse {media_type} response: {e}") from e

        logger.debug(f"Received {len(graph)} triples from {self.endpoint}")
        return graph


class SesameProtocolClient(SPARQLProtocolClient):
    """Client for RDF4J/Sesame repositories, which accept variable bindings as request parameters."""

    supports_bindings = True

    def construct(self, query: str, bindings: Optional[Mapping[str, Node]] = None) -> Graph:
        form = {"query": query}
        for name, value in (bindings or {}).items():
            # values are N-Triples encoded, e.g. $this=<https://example.org/doc>
            form[f"${name}"] = value.n3()
        return self._post(form)
