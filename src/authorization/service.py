"""
High-level authorization service providing the public interface of the authorization module.

Decision flow for one request:
    1. No application, or a method without an access mode -> NOT_APPLICABLE (request proceeds unaffected)
    2. Bind query variables for (resource, agent, mode, application)
    3. Resolve the admin service and the federation endpoint
    4. Run the end-user or owner query on the admin service
    5. Extract the grant from the result graph
       - found: merge the authorization graph into the agent's context -> GRANTED
       - not found: raise AuthorizationDenied(resource, mode)

ConfigurationError and BackendQueryFailure are not handled here and reach the caller unchanged.
A malformed request URI is rejected with ValueError before any backend call.
"""

import logging
from typing import Optional

from .bindings import ENDPOINT_VAR, ParameterSet, bind_parameters
from .config import AuthorizationConfig
from .domain import Application, AuthorizationResult, Decision, Grant, RequestContext, Service
from .exceptions import AuthorizationDenied
from .executor import PolicyQueryExecutor, SPARQLClientFactory
from .federation import FederationResolver
from .grants import extract_grant
from .modes import access_mode_for
from .templates import QueryTemplateStore

logger = logging.getLogger(__name__)


class AuthorizationService:
    """Decides whether requests are authorized by the policy graph of the admin service."""

    def __init__(self, templates: QueryTemplateStore,
                 executor: Optional[PolicyQueryExecutor] = None,
                 resolver: Optional[FederationResolver] = None):
        """
        Initialize the authorization service.

        Args:
            templates: Authorization query templates, loaded at startup
            executor: Query executor. If None, one with HTTP clients is created.
            resolver: Federation resolver. If None, one rewriting to "localhost" is created.
        """
        if templates is None:
            raise ValueError("QueryTemplateStore cannot be None")
        self.templates = templates
        self.executor = executor if executor is not None else PolicyQueryExecutor()
        self.resolver = resolver if resolver is not None else FederationResolver()

    @classmethod
    def from_config(cls, config: Optional[AuthorizationConfig] = None) -> 'AuthorizationService':
        """Create a service with templates and HTTP transport set up from configuration."""
        config = config or AuthorizationConfig.from_env()
        return cls(
            templates=QueryTemplateStore.from_config(config),
            executor=PolicyQueryExecutor(SPARQLClientFactory(timeout=config.sparql_timeout)),
            resolver=FederationResolver(loopback_host=config.loopback_host),
        )

    def authorize(self, application: Optional[Application], request: RequestContext) -> AuthorizationResult:
        """
        Authorize a request.

        Args:
            application: Application that matched the request, or None
            request: Method, absolute URI and (optional) agent context of the request

        Returns:
            AuthorizationResult with decision NOT_APPLICABLE or GRANTED

        Raises:
            ValueError: If the request URI or agent IRI is not a valid absolute IRI
            AuthorizationDenied: If no authorization grants the access mode
            ConfigurationError: If application or service metadata is invalid
            BackendQueryFailure: If the policy query could not be completed
        """
        if request is None:
            raise ValueError("RequestContext cannot be None")
        logger.debug(f"Authorizing request URI: {request.uri}")

        # skip if no application has matched
        if application is None:
            return AuthorizationResult.not_applicable()

        mode = access_mode_for(request.method)
        logger.debug(f"Request method: {request.method} ACL access mode: {mode.value if mode else None}")
        if mode is None:
            logger.warning(f"Skipping authorization, request method not recognized: {request.method}")
            return AuthorizationResult.not_applicable()

        resource = request.resource
        params = bind_parameters(application, resource, request.agent, mode)
        grant = self.authorize_parameters(application, params)
        if grant is None:
            logger.debug(f"Access not authorized for request URI: {resource} and access mode: {mode.value}")
            raise AuthorizationDenied(str(resource), mode)

        if request.agent_context is not None:
            request.agent_context.merge(grant.graph)
        logger.info(f"Access to {resource} ({mode.value}) granted by {grant.subject}")
        return AuthorizationResult(decision=Decision.GRANTED, mode=mode, grant=grant)

    def authorize_parameters(self, application: Application, params: ParameterSet) -> Optional[Grant]:
        """
        Evaluate the application's authorization query for already bound parameters.

        Returns:
            Grant, or None if no authorization matched
        """
        query = self.templates.for_application(application)
        target = self.resolver.resolve(application)
        if target.endpoint is not None:
            params = params.with_binding(ENDPOINT_VAR, target.endpoint)

        graph = self.executor.execute(query, params, target.service)
        return extract_grant(graph)

    def admin_service(self, application: Application) -> Service:
        """The service authorization queries for the application are run on."""
        return self.resolver.admin_service(application)

    def close(self) -> None:
        """Release the HTTP connections held by the executor."""
        self.executor.close()

    def __enter__(self) -> 'AuthorizationService':
        return self

    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()
