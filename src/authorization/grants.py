from typing import Optional
from rdflib import BNode, Graph, URIRef
from rdflib.term import Node

from .domain import Grant, GrantKind
from .vocabulary import ACL, LACL

# Checked in order; an ACL mode authorization is preferred over a creator authorization.
# Type checks would not see subclasses of acl:Authorization without inference, so
# authorizations are recognized by their properties.
GRANT_PREDICATES = (
    (ACL.mode, GrantKind.MODE),
    (LACL.accessProperty, GrantKind.CREATOR),
)


def subject_with_property(graph: Graph, predicate: URIRef) -> Optional[Node]:
    """First subject having the property, IRIs before blank nodes, in lexical order."""
    subjects = set(graph.subjects(predicate, None))
    if not subjects:
        return None
    return min(subjects, key=lambda subject: (isinstance(subject, BNode), str(subject)))


def extract_grant(graph: Graph) -> Optional[Grant]:
    """
    Find the authorization granting access in a result graph.

    :param graph: Result graph of an authorization query
    :return: Grant, or None if the graph contains no authorization
    """
    if graph is None:
        raise ValueError("Graph cannot be None")

    for predicate, kind in GRANT_PREDICATES:
        subject = subject_with_property(graph, predicate)
        if subject is not None:
            return Grant(subject=subject, kind=kind, graph=graph)
    return None
