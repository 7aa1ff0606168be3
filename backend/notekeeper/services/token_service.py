"""
NoteKeeper Backend — Token Service
====================================

What:  Issues and verifies the signed bearer tokens that prove identity.
How:   JSON Web Tokens signed with a symmetric HMAC secret (HS256 by default)
       via python-jose. The token binds the identity id in a `userId` claim.
Who:   TokenService.issue() is called by POST /login; TokenService.verify()
       is called by the identity dependency on every protected request.

Statelessness:
    There is no session table. Verifying a token needs only the signing
    secret and the token itself, so any number of workers can verify tokens
    without sharing state.

Expiration (known limitation):
    By default tokens carry no `exp` claim and stay valid until JWT_SECRET is
    rotated. Setting JWT_EXPIRE_MINUTES adds an `exp` claim, which
    `verify()` then enforces. There is no revocation or refresh.
"""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from notekeeper.exceptions import InvalidTokenError

logger = logging.getLogger(__name__)

# Claim that carries the identity id
USER_ID_CLAIM = "userId"


class TokenService:
    """
    Signs and verifies identity tokens.

    Args:
        secret:          Server-held signing secret (JWT_SECRET)
        algorithm:       HMAC algorithm name
        expire_minutes:  Token lifetime; None issues tokens without `exp`
    """

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expire_minutes: Optional[int] = None,
    ):
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret")
        self._secret = secret
        self.algorithm = algorithm
        self.expire_minutes = expire_minutes

    def issue(self, identity: Any) -> str:
        """
        Produce a signed token for an identity.

        Args:
            identity: Any object with an `id` attribute (User, UserPublic)

        Returns:
            Compact JWT string
        """
        now = datetime.now(timezone.utc)
        claims = {
            USER_ID_CLAIM: str(identity.id),
            "iat": now,
        }
        if self.expire_minutes is not None:
            claims["exp"] = now + timedelta(minutes=self.expire_minutes)

        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> uuid.UUID:
        """
        Verify a token and return the identity id it binds.

        Raises:
            InvalidTokenError: bad signature (or rotated secret), malformed
                encoding, expired token, or missing/unusable `userId` claim
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise InvalidTokenError(reason="expired")
        except JWTError as e:
            logger.debug("Token rejected: %s", str(e))
            raise InvalidTokenError(reason="signature")

        raw_id = claims.get(USER_ID_CLAIM)
        if not isinstance(raw_id, str):
            raise InvalidTokenError(reason="missing_claim")
        try:
            return uuid.UUID(raw_id)
        except ValueError:
            raise InvalidTokenError(reason="bad_claim")
