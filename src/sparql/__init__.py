"""
SPARQL client module for evaluating graph queries against policy stores.

This module provides the transport strategies used to send a query to a
SPARQL service and read the resulting RDF graph back.

Public Interface:
- SPARQLClient: Abstract client interface
- SPARQLProtocolClient: SPARQL 1.1 protocol over HTTP, bindings substituted into the query text
- SesameProtocolClient: RDF4J/Sesame protocol over HTTP, bindings sent as request parameters
- GraphSPARQLClient: In-process evaluation over an rdflib Graph
- SPARQLQueryError: Raised when a query cannot be completed
"""

from .client import SPARQLClient, SPARQLQueryError
from .protocol import SPARQLProtocolClient, SesameProtocolClient
from .local import GraphSPARQLClient

__all__ = [
    "SPARQLClient",
    "SPARQLQueryError",
    "SPARQLProtocolClient",
    "SesameProtocolClient",
    "GraphSPARQLClient",
]
