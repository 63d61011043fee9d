"""
Selection of the backend service that holds the policy graph.

Authorization queries always run on the admin service, which is the source of truth
for policies. End-user applications additionally need the end-user store's endpoint so
that the query can federate (SERVICE ?endpoint) into the end-user data.

When both stores are repository-addressed and live on the same host, the end-user
endpoint host is replaced with a loopback host so that federation does not make an
external round-trip back to the same machine.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlsplit, urlunsplit
from rdflib import URIRef

from .domain import Application, ApplicationKind, Service, ServiceAddressing
from .exceptions import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FederationTarget:
    """The service to query and, for end-user applications, the federation endpoint."""
    service: Service
    endpoint: Optional[URIRef] = None


class FederationResolver:
    """Resolves which service to query and the endpoint to federate with."""

    def __init__(self, loopback_host: str = "localhost"):
        """
        Args:
            loopback_host: Host name or IP literal replacing the end-user repository host

        Raises:
            ConfigurationError: If the loopback host is empty or not a plain host
        """
        if not loopback_host or any(char in loopback_host for char in "/@?#") or \
                any(char.isspace() for char in loopback_host):
            raise ConfigurationError(f"Invalid loopback host: {loopback_host!r}")
        # IPv6 literals are bracketed in a netloc
        if ":" in loopback_host and not loopback_host.startswith("["):
            loopback_host = f"[{loopback_host}]"
        self.loopback_host = loopback_host

    def resolve(self, application: Application) -> FederationTarget:
        """
        Resolve the federation target for an application.

        Raises:
            ConfigurationError: If required application or service metadata is missing
        """
        if application is None:
            raise ConfigurationError("Application cannot be None")

        admin_service = self.admin_service(application)
        if application.kind == ApplicationKind.END_USER:
            return FederationTarget(service=admin_service,
                                    endpoint=URIRef(self.federation_endpoint(application.service, admin_service)))
        elif application.kind == ApplicationKind.ADMIN:
            return FederationTarget(service=admin_service)
        else:
            raise ConfigurationError(f"Unknown application kind: {application.kind}")

    def admin_service(self, application: Application) -> Service:
        """The admin service, on which authorization queries are always run."""
        if application.kind == ApplicationKind.END_USER:
            if application.admin_application is None:
                raise ConfigurationError(f"End-user application {application.iri} has no admin application")
            service = application.admin_application.service
        elif application.kind == ApplicationKind.ADMIN:
            service = application.service
        else:
            raise ConfigurationError(f"Unknown application kind: {application.kind}")

        if service is None:
            raise ConfigurationError(f"No admin service for application {application.iri}")
        return service

    def federation_endpoint(self, end_user_service: Service, admin_service: Service) -> str:
        """Endpoint of the end-user store as seen from the admin store."""
        if end_user_service is None:
            raise ConfigurationError("End-user application has no service")

        if end_user_service.addressing == ServiceAddressing.ENDPOINT:
            return end_user_service.sparql_endpoint
        elif end_user_service.addressing == ServiceAddressing.REPOSITORY:
            endpoint = self._repository_uri(end_user_service)
            if admin_service.addressing == ServiceAddressing.REPOSITORY and \
                    _same_host(endpoint, self._repository_uri(admin_service)):
                try:
                    return self.rewrite_host(endpoint)
                except ValueError as e:
                    logger.warning(f"Could not rewrite federation endpoint {endpoint} to {self.loopback_host}, "
                                   f"using it unchanged: {e}")
            return endpoint
        else:
            raise ConfigurationError(f"Unknown service addressing: {end_user_service.addressing}")

    def rewrite_host(self, uri: str) -> str:
        """
        Replace the host of a URI with the loopback host; everything else is kept.

        Raises:
            ValueError: If the URI has no host or an invalid port
        """
        parts = urlsplit(uri)
        if not parts.hostname:
            raise ValueError(f"URI has no host: {uri}")

        userinfo, _, _ = parts.netloc.rpartition("@")
        netloc = self.loopback_host
        if parts.port is not None:
            netloc = f"{netloc}:{parts.port}"
        if userinfo:
            netloc = f"{userinfo}@{netloc}"

        return urlunsplit(parts._replace(netloc=netloc))

    @staticmethod
    def _repository_uri(service: Service) -> str:
        if not service.repository:
            raise ConfigurationError(f"Repository-addressed service {service.iri} has no repository URI")
        return service.repository


def _same_host(uri: str, other: str) -> bool:
    host = urlsplit(uri).hostname
    return host is not None and host == urlsplit(other).hostname
