"""JWT Identity Provider — resolves a bearer token to the caller's user id.

Invariants:
    - Only signature-valid, unexpired tokens resolve
    - Identity comes from the `sub` claim, falling back to `userId` (tokens minted by
      the legacy auth service)
    - Every failure raises AuthenticationError; the token is never logged
    - Identities longer than MAX_USER_ID_LENGTH are refused: they could not be
      stored as author_id / helper_id

Design Decisions:
    - HS256 shared secret from settings: the auth service owns issuance, this
      service only verifies
    - No user lookup: help posts only need a stable identity, not a profile
"""

import logging

import jwt

from helpboard.core.domain_types import MAX_USER_ID_LENGTH, UserId
from helpboard.core.errors import AuthenticationError

logger = logging.getLogger(__name__)

IDENTITY_CLAIMS = ("sub", "userId")


class JWTIdentityProvider:
    """IdentityProvider backed by PyJWT."""

    def __init__(self, secret: str, algorithm: str = "HS256"):
        self.secret = secret
        self.algorithm = algorithm

    def resolve_caller(self, credential: str) -> UserId:
        token = (credential or "").strip()
        if token.lower().startswith("bearer "):
            token = token[7:].strip()
        if not token:
            raise AuthenticationError("No token, authorization denied")
        try:
            payload = jwt.decode(token, self.secret, algorithms=[self.algorithm])
        except jwt.ExpiredSignatureError as e:
            raise AuthenticationError("Token expired") from e
        except jwt.ImmatureSignatureError as e:
            raise AuthenticationError("Token not active") from e
        except jwt.InvalidTokenError as e:
            logger.info(f"Rejected bearer token: {type(e).__name__}")
            raise AuthenticationError("Invalid token") from e

        for claim in IDENTITY_CLAIMS:
            value = payload.get(claim)
            if value is None or not str(value).strip():
                continue
            if len(str(value)) > MAX_USER_ID_LENGTH:
                logger.info(f"Rejected identity longer than {MAX_USER_ID_LENGTH} chars")
                raise AuthenticationError("Invalid token payload")
            return UserId(str(value))
        raise AuthenticationError("Invalid token payload")

    def issue(self, user_id: str, **claims: object) -> str:
        """Mint a token for user_id. Used by tests and local tooling."""
        return jwt.encode(
            {"sub": user_id, **claims}, self.secret, algorithm=self.algorithm,
        )
