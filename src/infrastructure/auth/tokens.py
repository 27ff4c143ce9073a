"""
Bearer token validation using PyJWT.

Access tokens are HS256 JWTs whose `sub` claim is the user id. Issuing
tokens belongs to the login flow, which lives outside this service;
issue_access_token exists for scripts and tests.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from src.core.videos.errors import Unauthenticated

logger = logging.getLogger(__name__)

DEFAULT_ISSUER = "reelhouse-access"


def get_bearer_token(authorization: Optional[str]) -> str:
    """
    Extract the token from an Authorization header value.

    Raises:
        Unauthenticated: Header missing or not of the form "Bearer <token>"
    """
    if not authorization:
        raise Unauthenticated("Couldn't find JWT")

    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Malformed authorization header")

    return token.strip()


class JWTAuthenticator:
    """Validates bearer tokens and returns the authenticated user id."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        issuer: str = DEFAULT_ISSUER,
    ) -> None:
        self._secret = secret
        self._algorithm = algorithm
        self._issuer = issuer

    def authenticate(self, authorization: Optional[str]) -> str:
        token = get_bearer_token(authorization)

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"require": ["sub", "exp", "iss"]},
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Rejected expired token")
            raise Unauthenticated("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning("Rejected invalid token", extra={"error": str(e)})
            raise Unauthenticated("Couldn't validate JWT")
        except jwt.PyJWTError as e:
            # key problems (e.g. JWT_SECRET unset) leave nothing to validate against
            logger.error("Token validation misconfigured", extra={"error": str(e)})
            raise Unauthenticated("Couldn't validate JWT")

        user_id = claims["sub"]
        if not isinstance(user_id, str) or not user_id:
            raise Unauthenticated("Token has no subject")

        return user_id


def issue_access_token(
    user_id: str,
    secret: str,
    expires_in: timedelta = timedelta(hours=1),
    algorithm: str = "HS256",
    issuer: str = DEFAULT_ISSUER,
) -> str:
    """Create a signed access token for user_id."""
    now = datetime.now(timezone.utc)
    payload = {
        "iss": issuer,
        "sub": user_id,
        "iat": now,
        "exp": now + expires_in,
    }
    return jwt.encode(payload, secret, algorithm=algorithm)
