"""
Unit test for the authorization query templates.

HOW TO RUN:
The virtual environment .venv should be activated before running the tests.

From the src directory, run:
    python -m authorization.test_templates

Or from the project root:
    cd src; python -m authorization.test_templates
"""

import tempfile
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from rdflib import Literal, URIRef

from .config import AuthorizationConfig, QUERIES_DIR
from .domain import Application, ApplicationKind, Service
from .exceptions import ConfigurationError
from .templates import QueryTemplate, QueryTemplateStore, substitute_bindings, query_variables


SIMPLE_QUERY = """
PREFIX acl: <http://www.w3.org/ns/auth/acl#>

CONSTRUCT { ?auth acl:mode ?Mode }
WHERE { ?auth acl:accessTo ?this ; acl:mode ?Mode }
"""


def _service(name: str) -> Service:
    return Service(iri=f"https://{name}.example.org/service", sparql_endpoint=f"https://{name}.example.org/sparql")


def test_default_templates_load():
    """Test that the packaged templates parse and declare the expected variables."""
    print("Testing default template loading...")

    store = QueryTemplateStore.from_config(AuthorizationConfig())

    assert store.auth_query.name == "auth"
    assert store.owner_auth_query.name == "owner_auth"
    for variable in ["this", "Mode", "Ontology", "agent", "AuthenticatedAgentClass"]:
        assert variable in store.auth_query.variables
        assert variable in store.owner_auth_query.variables

    # only the end-user query federates
    assert "endpoint" in store.auth_query.variables
    assert "endpoint" not in store.owner_auth_query.variables

    print("✓ Default templates loaded")


def test_invalid_templates_rejected():
    """Test that unparsable and non-graph queries raise ConfigurationError."""
    print("Testing invalid templates...")

    for text in ["CONSTRUCT WHERE {", "SELECT ?s WHERE { ?s ?p ?o }", "not a query"]:
        try:
            QueryTemplate.parse("broken", text)
            assert False, f"Expected ConfigurationError for {text!r}"
        except ConfigurationError:
            pass

    print("✓ Invalid templates rejected")


def test_missing_template_file():
    """Test that a missing template file raises ConfigurationError."""
    print("Testing missing template file...")

    with tempfile.TemporaryDirectory() as temp_dir:
        missing = Path(temp_dir) / "missing.rq"
        try:
            QueryTemplateStore.from_files(missing, QUERIES_DIR / "owner_auth.rq")
            assert False, "Expected ConfigurationError"
        except ConfigurationError as e:
            assert "missing.rq" in str(e)

    print("✓ Missing template file rejected")


def test_substitution_skips_iris_strings_and_comments():
    """Test that only real variables are substituted."""
    print("Testing variable substitution...")

    text = ('# ?this in a comment\n'
            'SELECT * WHERE { <urn:x?this> ?p "?this" . ?this ?agentGroup $agent . '
            "?s ?p '''?agent''' }")
    result = substitute_bindings(text, {
        "this": URIRef("https://example.org/doc"),
        "agent": URIRef("https://example.org/alice"),
    })

    assert "# ?this in a comment" in result
    assert "<urn:x?this>" in result
    assert '"?this"' in result
    assert "'''?agent'''" in result
    assert "<https://example.org/doc> ?agentGroup <https://example.org/alice>" in result

    print("✓ Variable substitution working correctly")


def test_literal_substitution():
    """Test that literals are substituted in N-Triples form."""
    print("Testing literal substitution...")

    result = substitute_bindings("ASK { ?s ?p ?label }", {"label": Literal("it's")})
    assert "?label" not in result
    assert Literal("it's").n3() in result

    print("✓ Literal substitution working correctly")


def test_query_variables():
    """Test variable discovery."""
    print("Testing query variables...")

    assert query_variables(SIMPLE_QUERY) == frozenset({"auth", "Mode", "this"})

    print("✓ Query variables discovered")


def test_copies_are_isolated():
    """Test that binding a copy never changes the template or other copies."""
    print("Testing template copies...")

    template = QueryTemplate.parse("simple", SIMPLE_QUERY)
    first = template.copy()
    second = template.copy()

    first.set_param("this", URIRef("https://example.org/first"))
    second.set_param("this", URIRef("https://example.org/second"))

    assert "<https://example.org/first>" in first.to_string()
    assert "<https://example.org/second>" not in first.to_string()
    assert "<https://example.org/second>" in second.to_string()
    assert template.text == SIMPLE_QUERY
    assert "?this" in template.copy().to_string()

    print("✓ Template copies isolated")


def test_concurrent_binding():
    """Test that concurrent evaluations never see each other's bindings."""
    print("Testing concurrent binding...")

    store = QueryTemplateStore.from_config()

    def bind(index: int) -> str:
        query = store.get_owner_auth_query()
        query.set_param("this", URIRef(f"https://example.org/docs/{index}"))
        query.set_param("agent", URIRef(f"https://example.org/agents/{index}"))
        return query.to_string()

    with ThreadPoolExecutor(max_workers=8) as pool:
        results = list(pool.map(bind, range(200)))

    for index, text in enumerate(results):
        assert f"<https://example.org/docs/{index}>" in text
        assert f"<https://example.org/agents/{index}>" in text
        assert text.count("<https://example.org/docs/") == text.count(f"<https://example.org/docs/{index}>")

    assert "?this" in store.owner_auth_query.text

    print("✓ Concurrent binding isolated")


def test_template_for_application():
    """Test that end-user applications use the auth query and admin ones the owner query."""
    print("Testing template selection...")

    store = QueryTemplateStore.from_config()
    admin = Application(iri="https://admin.example.org/", kind=ApplicationKind.ADMIN,
                        ontology="https://example.org/ns#", service=_service("admin"))
    end_user = Application(iri="https://example.org/", kind=ApplicationKind.END_USER,
                           ontology="https://example.org/ns#", service=_service("www"),
                           admin_application=admin)

    assert store.for_application(end_user).template is store.auth_query
    assert store.for_application(admin).template is store.owner_auth_query
    assert store.for_application(admin) is not store.for_application(admin)

    print("✓ Template selection working correctly")


def test_templates_must_use_bound_variables():
    """Test that templates not using the per-request variables are rejected at load time."""
    print("Testing template variable check...")

    owner_auth = QueryTemplate.from_file("owner_auth", QUERIES_DIR / "owner_auth.rq")
    without_this = QueryTemplate.parse("no_this", "CONSTRUCT { ?auth ?p ?Mode } WHERE { ?auth ?p ?Mode }")

    # the end-user query must federate with ?endpoint
    try:
        QueryTemplateStore(auth_query=owner_auth, owner_auth_query=owner_auth)
        assert False, "Expected ConfigurationError"
    except ConfigurationError as e:
        assert "endpoint" in str(e)

    try:
        QueryTemplateStore(auth_query=QueryTemplate.from_file("auth", QUERIES_DIR / "auth.rq"),
                           owner_auth_query=without_this)
        assert False, "Expected ConfigurationError"
    except ConfigurationError as e:
        assert "this" in str(e)

    print("✓ Templates without bound variables rejected")


def run_all_tests():
    """Run all template tests."""
    print("=" * 50)
    print("Running Query Template Tests")
    print("=" * 50)

    test_functions = [
        test_default_templates_load,
        test_invalid_templates_rejected,
        test_missing_template_file,
        test_substitution_skips_iris_strings_and_comments,
        test_literal_substitution,
        test_query_variables,
        test_copies_are_isolated,
        test_concurrent_binding,
        test_template_for_application,
        test_templates_must_use_bound_variables,
    ]

    passed = 0
    failed = 0

    for test_func in test_functions:
        try:
            test_func()
            passed += 1
        except Exception as e:
            print(f"✗ {test_func.__name__} FAILED: {e}")
            failed += 1

    print("=" * 50)
    print(f"Test Results: {passed} passed, {failed} failed")
    print("=" * 50)

    return failed == 0


if __name__ == "__main__":
    exit(0 if run_all_tests() else 1)
