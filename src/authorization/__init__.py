"""
Authorization module deciding access to resources from a policy graph.

Requests are mapped to ACL access modes and checked by evaluating a parameterized
SPARQL query against the admin service's policy graph (federated with the end-user
store for end-user applications).

Public Interface:
- AuthorizationService: Evaluates requests and returns grants or raises denials

Private Components:
- Access mode mapping, parameter binding, federation resolution,
  query execution and grant extraction
- Domain models: Application, Service, RequestContext, Grant, etc.
"""

from .service import AuthorizationService

__all__ = ["AuthorizationService"]
