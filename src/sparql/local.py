from typing import Mapping, Optional
from rdflib import Graph
from rdflib.term import Node

from .client import SPARQLClient, SPARQLQueryError


class GraphSPARQLClient(SPARQLClient):
    """
    In-process SPARQL client evaluating queries with rdflib over a local graph.

    Bindings are passed to rdflib as initial bindings, so the query text is never rewritten.
    Useful for policy graphs loaded from files and for tests.
    """

    supports_bindings = True

    def __init__(self, graph: Graph, name: str = "urn:x-local:graph"):
        self.graph = graph
        self.name = name

    def construct(self, query: str, bindings: Optional[Mapping[str, Node]] = None) -> Graph:
        try:
            result = self.graph.query(query, initBindings=dict(bindings) if bindings else None)
        except Exception as e:
            raise SPARQLQueryError(self.name, f"Local query evaluation failed: {e}") from e

        if result.graph is None:
            raise SPARQLQueryError(self.name, f"Expected a graph result, got {result.type}")
        return result.graph
