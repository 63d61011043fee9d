#!/usr/bin/env python3
"""
Command-line script to check whether a request would be authorized.

HOW TO RUN:
The virtual environment .venv should be activated before running the script.

From the src directory, run:
    python authorize_request.py --policy <policy.ttl> --method <METHOD> --uri <request_uri> [--agent <agent_iri>]

Examples:
    # Evaluate against a local Turtle policy graph
    python authorize_request.py --policy policy.ttl --method GET --uri https://example.org/docs/1

    # Evaluate against a remote admin SPARQL endpoint with separate bindings
    python authorize_request.py --endpoint https://admin.example.org/sparql --separate-bindings \\
        --method PUT --uri https://example.org/docs/1 --agent https://example.org/agents/alice

The request is evaluated as if served by an admin application. Exit codes:
0 granted or not applicable, 2 denied, 1 error.
"""

import argparse
import logging
import os
import sys
from rdflib import Graph

# Add src to the path so we can import modules
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from authorization.config import AuthorizationConfig
from authorization.domain import (
    Agent, AgentContext, Application, ApplicationKind, Decision, RequestContext, Service, ServiceProtocol,
)
from authorization.exceptions import AuthorizationDenied, AuthorizationError
from authorization.executor import PolicyQueryExecutor, SPARQLClientFactory
from authorization.service import AuthorizationService
from authorization.templates import QueryTemplateStore
from sparql import GraphSPARQLClient

LOCAL_ENDPOINT = "urn:x-local:policy"


def build_service(args, config: AuthorizationConfig) -> AuthorizationService:
    """Create the authorization service for a local policy file or a remote endpoint."""
    templates = QueryTemplateStore.from_config(config)

    if args.policy:
        graph = Graph()
        graph.parse(args.policy)
        print(f"Loaded policy graph with {len(graph)} triples from {args.policy}")
        client = GraphSPARQLClient(graph, name=LOCAL_ENDPOINT)
        executor = PolicyQueryExecutor(lambda service: client)
    else:
        executor = PolicyQueryExecutor(SPARQLClientFactory(timeout=config.sparql_timeout))

    return AuthorizationService(templates, executor=executor)


def build_application(args) -> Application:
    service = Service(
        iri=f"{args.endpoint or LOCAL_ENDPOINT}#service",
        sparql_endpoint=args.endpoint or LOCAL_ENDPOINT,
        protocol=ServiceProtocol.SEPARATE_BINDINGS if args.separate_bindings else ServiceProtocol.GENERIC,
        auth_user=args.user,
        auth_password=args.password,
    )
    return Application(iri=args.application, kind=ApplicationKind.ADMIN, ontology=args.ontology, service=service)


def main():
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Check whether a request is authorized by an ACL policy graph",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--policy", help="Policy graph file (any RDF format rdflib can guess)")
    source.add_argument("--endpoint", help="SPARQL endpoint of the admin service")

    parser.add_argument("--method", required=True, help="HTTP method of the request")
    parser.add_argument("--uri", required=True, help="Absolute request URI")
    parser.add_argument("--agent", help="IRI of the authenticated agent (omit for public access)")
    parser.add_argument("--application", default="https://admin.example.org/", help="IRI of the application")
    parser.add_argument("--ontology", default="https://example.org/ns#", help="IRI of the application ontology")
    parser.add_argument("--separate-bindings", action="store_true",
                        help="Send bindings as protocol parameters (Sesame/RDF4J endpoints)")
    parser.add_argument("--user", help="HTTP basic auth user for the endpoint")
    parser.add_argument("--password", help="HTTP basic auth password for the endpoint")
    parser.add_argument("--env-file", help="Path to .env file with authorization settings")
    parser.add_argument("--verbose", action="store_true", help="Log query bindings and results")

    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s: %(message)s')

    try:
        config = AuthorizationConfig.from_env(args.env_file)
        application = build_application(args)
        agent_context = AgentContext(Agent(args.agent)) if args.agent else None
        request = RequestContext(method=args.method, uri=args.uri, agent_context=agent_context)

        print(f"Authorizing {args.method} {args.uri} for {args.agent or 'public access'}")
        print("=" * 60)

        with build_service(args, config) as service:
            result = service.authorize(application, request)

        if result.decision == Decision.NOT_APPLICABLE:
            print("✓ Not applicable, the request is not subject to authorization")
        else:
            print("✓ Access granted")
            print(f"  Mode: {result.mode.value}")
            print(f"  Authorization: {result.grant.subject}")
            print(f"  Kind: {result.grant.kind.value}")
        return 0

    except AuthorizationDenied as e:
        print(f"✗ {e}")
        return 2
    except AuthorizationError as e:
        print(f"✗ Error authorizing request: {e}")
        return 1
    except (ValueError, OSError) as e:
        print(f"✗ Invalid input: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
