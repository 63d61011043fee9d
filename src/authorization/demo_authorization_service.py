"""
Demo script for the Authorization Service module.

This script walks through the decisions the authorization module makes for a small
policy graph held in memory: public access, agent-specific access, group and class
based access, creator access, and requests the engine does not apply to.

HOW TO RUN:
The virtual environment .venv should be activated before running.

From the src directory, run:
    python -m authorization.demo_authorization_service

Or from the project root:
    cd src; python -m authorization.demo_authorization_service
"""

import logging
from rdflib import Graph

from sparql import GraphSPARQLClient

from .domain import Agent, AgentContext, Application, ApplicationKind, Decision, RequestContext, Service
from .exceptions import AuthorizationDenied
from .executor import PolicyQueryExecutor
from .service import AuthorizationService
from .templates import QueryTemplateStore

logging.basicConfig(level=logging.INFO, format='%(levelname)s: %(message)s')

POLICY = """
@prefix acl: <http://www.w3.org/ns/auth/acl#> .
@prefix lacl: <https://w3id.org/atomgraph/linkeddatahub/admin/acl/domain#> .
@prefix foaf: <http://xmlns.com/foaf/0.1/> .
@prefix rdfs: <http://www.w3.org/2000/01/rdf-schema#> .
@prefix ex: <https://example.org/ns#> .

<https://admin.example.org/acl/public-read> a acl:Authorization ;
    acl:mode acl:Read ;
    acl:accessTo <https://example.org/> ;
    acl:agentClass foaf:Agent .

<https://admin.example.org/acl/alice-write> a acl:Authorization ;
    acl:mode acl:Read, acl:Write ;
    acl:accessTo <https://example.org/docs/1> ;
    acl:agent <https://example.org/agents/alice> .

<https://admin.example.org/acl/editors-append> a acl:Authorization ;
    acl:mode acl:Append ;
    acl:accessToClass ex:Note ;
    acl:agentGroup <https://admin.example.org/groups/editors> .

<https://admin.example.org/groups/editors> foaf:member <https://example.org/agents/alice> .

<https://admin.example.org/acl/creator> a lacl:CreatorAuthorization ;
    lacl:accessProperty foaf:maker .

ex:Note rdfs:isDefinedBy <https://example.org/ns#> .
<https://example.org/notes/1> a ex:Note .
<https://example.org/docs/draft> foaf:maker <https://example.org/agents/bob> .
"""

ALICE = Agent("https://example.org/agents/alice")
BOB = Agent("https://example.org/agents/bob")


def create_service() -> AuthorizationService:
    graph = Graph()
    graph.parse(data=POLICY, format="turtle")
    print(f"✓ Policy graph loaded ({len(graph)} triples)")

    client = GraphSPARQLClient(graph)
    return AuthorizationService(QueryTemplateStore.from_config(), executor=PolicyQueryExecutor(lambda service: client))


def create_application() -> Application:
    return Application(
        iri="https://admin.example.org/",
        kind=ApplicationKind.ADMIN,
        ontology="https://example.org/ns#",
        service=Service(iri="https://admin.example.org/service", sparql_endpoint="https://admin.example.org/sparql"),
    )


def show_decision(service: AuthorizationService, application: Application, method: str, uri: str, agent: Agent = None):
    who = agent.iri.rsplit("/", 1)[-1] if agent else "anonymous"
    request = RequestContext(method=method, uri=uri, agent_context=AgentContext(agent) if agent else None)
    try:
        result = service.authorize(application, request)
        if result.decision == Decision.NOT_APPLICABLE:
            print(f"  ○ {method:6} {uri} ({who}): not applicable")
        else:
            print(f"  ✓ {method:6} {uri} ({who}): granted by {result.grant.subject} [{result.grant.kind.value}]")
    except AuthorizationDenied as e:
        print(f"  ✗ {method:6} {uri} ({who}): denied ({e.mode.value})")


def demo_decisions():
    print("=" * 70)
    print("AUTHORIZATION DECISIONS")
    print("=" * 70)

    service = create_service()
    application = create_application()

    print("\n📝 Public access...")
    show_decision(service, application, "GET", "https://example.org/")
    show_decision(service, application, "PUT", "https://example.org/")

    print("\n📝 Agent-specific access...")
    show_decision(service, application, "PUT", "https://example.org/docs/1", ALICE)
    show_decision(service, application, "DELETE", "https://example.org/docs/1", BOB)

    print("\n📝 Group and class based access...")
    show_decision(service, application, "POST", "https://example.org/notes/1", ALICE)
    show_decision(service, application, "POST", "https://example.org/notes/1", BOB)

    print("\n📝 Creator access...")
    show_decision(service, application, "PATCH", "https://example.org/docs/draft", BOB)

    print("\n📝 Requests the engine does not apply to...")
    show_decision(service, application, "OPTIONS", "https://example.org/docs/1", ALICE)
    show_decision(service, None, "GET", "https://example.org/docs/1")


def demo_agent_context():
    print("\n" + "=" * 70)
    print("AGENT CONTEXT")
    print("=" * 70)

    service = create_service()
    context = AgentContext(ALICE)

    for method, uri in [("GET", "https://example.org/docs/1"), ("POST", "https://example.org/notes/1")]:
        service.authorize(create_application(), RequestContext(method=method, uri=uri, agent_context=context))

    print(f"✓ Alice's context holds {len(context.graph)} statements from granted authorizations")


def main():
    print("🔐 AUTHORIZATION SERVICE DEMO")
    demo_decisions()
    demo_agent_context()
    print("\n✅ Demo completed")


if __name__ == "__main__":
    main()
