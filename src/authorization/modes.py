from typing import Dict, Optional

from .domain import AccessMode

# HTTP method -> ACL access mode
METHOD_ACCESS_MODES: Dict[str, AccessMode] = {
    "GET": AccessMode.READ,
    "HEAD": AccessMode.READ,
    "POST": AccessMode.APPEND,
    "PUT": AccessMode.WRITE,
    "DELETE": AccessMode.WRITE,
    "PATCH": AccessMode.WRITE,
}


def access_mode_for(method: Optional[str]) -> Optional[AccessMode]:
    """
    Map an HTTP method to the ACL access mode it requires.

    :param method: HTTP method, case-insensitive
    :return: AccessMode, or None if authorization does not apply to the method
    """
    if not method:
        return None
    return METHOD_ACCESS_MODES.get(method.upper())
