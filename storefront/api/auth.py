"""Route guards.

`protect` resolves the caller identity from a bearer JWT; `admin` further
requires the admin role. Tokens are issued by the user service; this
service only verifies them.
"""

from dataclasses import dataclass, field
from typing import Annotated, Any

import jwt
import structlog
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.infrastructure.config import settings

logger = structlog.get_logger()

security = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class Identity:
    """Authenticated caller.

    Attributes:
        subject: User id from the `sub` claim.
        role: Role claim, if any.
        claims: All decoded claims.
    """

    subject: str
    role: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def protect(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """Resolve the caller identity from the Authorization header.

    Raises:
        HTTPException: 401 if the token is missing or invalid.
    """
    if credentials is None:
        logger.warning("Missing bearer token")
        raise _unauthorized("Not authorized, no token")

    try:
        payload = jwt.decode(
            credentials.credentials,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
        )
    except jwt.PyJWTError as exc:
        logger.warning("Invalid bearer token", error=str(exc))
        raise _unauthorized("Not authorized, token failed") from exc

    subject = payload.get("sub")
    if not subject:
        logger.warning("Bearer token without subject")
        raise _unauthorized("Not authorized, token failed")

    return Identity(subject=str(subject), role=payload.get("role"), claims=payload)


async def admin(identity: Annotated[Identity, Depends(protect)]) -> Identity:
    """Require the resolved identity to hold the admin role.

    Raises:
        HTTPException: 403 if the caller is not an admin.
    """
    if not identity.is_admin:
        logger.warning("Admin role required", subject=identity.subject)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized as an admin",
        )
    return identity


AdminDep = Annotated[Identity, Depends(admin)]
