"""
Unit test for grant extraction.

HOW TO RUN:
The virtual environment .venv should be activated before running the tests.

From the src directory, run:
    python -m authorization.test_grants

Or from the project root:
    cd src; python -m authorization.test_grants
"""

from rdflib import BNode, Graph, URIRef
from rdflib.namespace import FOAF

from .domain import GrantKind
from .grants import extract_grant, subject_with_property
from .vocabulary import ACL, LACL

MODE_AUTH = URIRef("https://admin.example.org/acl/read")
CREATOR_AUTH = URIRef("https://admin.example.org/acl/creator")


def test_mode_grant():
    """Test that a subject with acl:mode is returned as a mode grant."""
    print("Testing mode grant...")

    graph = Graph()
    graph.add((MODE_AUTH, ACL.mode, ACL.Read))

    grant = extract_grant(graph)

    assert grant is not None
    assert grant.subject == MODE_AUTH
    assert grant.kind == GrantKind.MODE
    assert grant.graph is graph

    print("✓ Mode grant extracted")


def test_creator_grant():
    """Test that a subject with lacl:accessProperty is returned when no mode grant exists."""
    print("Testing creator grant...")

    graph = Graph()
    graph.add((CREATOR_AUTH, LACL.accessProperty, FOAF.maker))

    grant = extract_grant(graph)

    assert grant.subject == CREATOR_AUTH
    assert grant.kind == GrantKind.CREATOR

    print("✓ Creator grant extracted")


def test_mode_grant_preferred():
    """Test that mode grants win over creator grants on distinct subjects."""
    print("Testing mode grant preference...")

    graph = Graph()
    graph.add((CREATOR_AUTH, LACL.accessProperty, FOAF.maker))
    graph.add((MODE_AUTH, ACL.mode, ACL.Write))

    grant = extract_grant(graph)

    assert grant.subject == MODE_AUTH
    assert grant.kind == GrantKind.MODE

    print("✓ Mode grant preferred")


def test_no_grant():
    """Test that graphs without authorizations yield no grant."""
    print("Testing no grant...")

    assert extract_grant(Graph()) is None

    graph = Graph()
    graph.add((MODE_AUTH, ACL.accessTo, URIRef("https://example.org/docs/1")))
    assert extract_grant(graph) is None

    print("✓ No grant found")


def test_deterministic_selection():
    """Test that the same subject is selected regardless of insertion order."""
    print("Testing deterministic selection...")

    subjects = [URIRef("https://admin.example.org/acl/b"), URIRef("https://admin.example.org/acl/a"), BNode()]

    forward = Graph()
    for subject in subjects:
        forward.add((subject, ACL.mode, ACL.Read))
    backward = Graph()
    for subject in reversed(subjects):
        backward.add((subject, ACL.mode, ACL.Read))

    assert subject_with_property(forward, ACL.mode) == URIRef("https://admin.example.org/acl/a")
    assert subject_with_property(backward, ACL.mode) == URIRef("https://admin.example.org/acl/a")

    print("✓ Selection deterministic")


def run_all_tests():
    """Run all grant extraction tests."""
    print("=" * 50)
    print("Running Grant Extraction Tests")
    print("=" * 50)

    test_functions = [
        test_mode_grant,
        test_creator_grant,
        test_mode_grant_preferred,
        test_no_grant,
        test_deterministic_selection,
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
