from rdflib import Namespace
from rdflib.namespace import RDFS

# W3C Web Access Control
ACL = Namespace("http://www.w3.org/ns/auth/acl#")

# Admin ACL extensions (creator/ownership authorizations)
LACL = Namespace("https://w3id.org/atomgraph/linkeddatahub/admin/acl/domain#")

__all__ = ["ACL", "LACL", "RDFS"]
