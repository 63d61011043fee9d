from abc import ABC, abstractmethod
from typing import Mapping, Optional
from rdflib import Graph
from rdflib.term import Node


class SPARQLQueryError(RuntimeError):
    """Raised when a SPARQL query could not be completed by the service."""

    def __init__(self, endpoint: str, message: str):
        super().__init__(f"{message} (endpoint: {endpoint})")
        self.endpoint = endpoint


class SPARQLClient(ABC):
    """
    This class serves as an interface for evaluating graph queries (CONSTRUCT/DESCRIBE) against a SPARQL service.
    """

    # True if variable bindings can be sent separately from the query text
    supports_bindings: bool = False

    @abstractmethod
    def construct(self, query: str, bindings: Optional[Mapping[str, Node]] = None) -> Graph:
        """
        Evaluate a graph query and return the resulting graph.

        :param query: SPARQL query string
        :param bindings: Optional variable bindings sent alongside the query, only if supports_bindings is True
        :return: Result graph (can be empty)
        :raises SPARQLQueryError: If the query could not be completed
        """
        pass

    def close(self) -> None:
        """Release any resources held by the client."""
        pass
