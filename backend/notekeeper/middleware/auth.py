"""
NoteKeeper Backend — Bearer Identity Guard
============================================

What:  Resolves the caller's identity from the Authorization header.
How:   A FastAPI dependency attached to the protected router, so it runs
       before every protected handler and not at all for /signup, /login
       and /health. It uses only the TokenService; it never reads the
       database.

Per-request states:
    no header                         → MissingTokenError          (401)
    not exactly "Bearer <token>"      → MalformedTokenHeaderError  (401)
    token fails verification          → InvalidTokenError          (401)
    token verifies                    → identity id returned and stored on
                                        request.state.user_id

The scheme word is matched case-insensitively; any scheme other than
"Bearer" is rejected.
"""

import uuid

from fastapi import Request

from notekeeper.exceptions import MalformedTokenHeaderError, MissingTokenError
from notekeeper.services.token_service import TokenService

BEARER_SCHEME = "bearer"


def extract_bearer_token(header_value: str) -> str:
    """
    Return the token part of an Authorization header value.

    Raises:
        MalformedTokenHeaderError: not two whitespace-separated parts, or the
            first part is not "Bearer"
    """
    parts = header_value.split()
    if len(parts) != 2 or parts[0].lower() != BEARER_SCHEME:
        raise MalformedTokenHeaderError()
    return parts[1]


async def require_identity(request: Request) -> uuid.UUID:
    """Dependency: the verified identity id of the caller."""
    header_value = request.headers.get("Authorization")
    if not header_value:
        raise MissingTokenError()

    token = extract_bearer_token(header_value)

    token_service: TokenService = request.app.state.token_service
    user_id = token_service.verify(token)

    # Read back by the access log
    request.state.user_id = user_id
    return user_id
