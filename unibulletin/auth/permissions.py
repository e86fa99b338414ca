"""
Ownership checks for mutating announcement operations.

Authorization is an equality check between the caller identity and the
announcement's author_id; it does not depend on how the identity was
transported (token, body field or header).
"""

from typing import Optional, Union

from unibulletin.errors import AuthorizationError

Identity = Union[str, int, None]


def authorize(caller_id: Identity, owner_id: Identity) -> bool:
    """Return True if caller_id identifies the resource owner."""
    if caller_id is None or owner_id is None:
        return False
    caller = str(caller_id).strip()
    if not caller:
        return False
    return caller == str(owner_id).strip()


def ensure_author(caller_id: Identity, owner_id: Identity, message: Optional[str] = None) -> None:
    """Raise AuthorizationError unless the caller owns the resource."""
    if not authorize(caller_id, owner_id):
        raise AuthorizationError(message)
