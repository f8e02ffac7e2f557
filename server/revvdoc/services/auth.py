"""Bearer token verification.

Tokens are issued by the identity provider; this module only verifies the
signature and expiry and yields the subject id.
"""

import logging
from typing import Optional

from fastapi import Header
from jose import JWTError, jwt
from revvdoc.config import settings
from revvdoc.errors import UnauthenticatedError

logger = logging.getLogger(__name__)


def verify_token(token: str) -> str:
    """
    Verify a signed bearer token.

    Args:
        token: Encoded JWT

    Returns:
        The token's subject id (``sub`` claim)

    Raises:
        UnauthenticatedError: If the token is malformed, expired, or unsigned
    """
    options = {"verify_aud": settings.AUTH_JWT_AUDIENCE is not None}
    try:
        claims = jwt.decode(
            token,
            settings.AUTH_JWT_SECRET,
            algorithms=[settings.AUTH_JWT_ALGORITHM],
            audience=settings.AUTH_JWT_AUDIENCE,
            options=options,
        )
    except JWTError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise UnauthenticatedError("Invalid token") from e

    subject = claims.get("sub")
    if not subject:
        raise UnauthenticatedError("Invalid token")
    return subject


async def get_current_user_id(authorization: Optional[str] = Header(default=None)) -> str:
    """FastAPI dependency resolving the verified caller id."""
    if not authorization or not authorization.startswith("Bearer "):
        raise UnauthenticatedError("Missing Authorization header")

    token = authorization[len("Bearer "):].strip()
    if not token:
        raise UnauthenticatedError("Missing Authorization header")

    return verify_token(token)
