"""
FastAPI dependencies for JWT authentication.
A request is authenticated only when its token is valid and the account it
names still exists; the username is then the owner id of the caller's drugs.
"""
import jwt
from fastapi import Depends, Header, HTTPException, status
from typing import Optional
from src.core import config
from src.core.dependencies import get_user_repository
from src.core.logger import get_logger
from src.repositories.user_repository import UserRepository

logger = get_logger(__name__)

BEARER_PREFIX = 'Bearer '


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"}
    )


def decode_owner(authorization: Optional[str]) -> str:
    """
    Extract the owner id from a bearer Authorization header.

    Raises:
        HTTPException: 401 if the header is missing or malformed, or the
            token is expired, badly signed or has no subject
    """
    if not authorization:
        raise _unauthorized("Missing authorization header")
    if not authorization.startswith(BEARER_PREFIX):
        raise _unauthorized("Invalid authorization header format")

    try:
        payload = jwt.decode(
            authorization[len(BEARER_PREFIX):],
            config.settings.jwt_secret,
            algorithms=[config.settings.jwt_algorithm]
        )
    except jwt.ExpiredSignatureError:
        raise _unauthorized("Token has expired")
    except jwt.InvalidTokenError:
        raise _unauthorized("Invalid token")

    owner_id = payload.get('sub')
    if not owner_id:
        raise _unauthorized("Invalid token payload")
    return owner_id


def verify_token(
    authorization: Optional[str] = Header(None),
    user_repository: UserRepository = Depends(get_user_repository)
) -> str:
    """
    Authenticate the caller of a protected route.

    Returns:
        Username of an existing account

    Raises:
        HTTPException: 401 if the token is rejected or its account is gone
        RepositoryException: If the account lookup fails
    """
    owner_id = decode_owner(authorization)

    if user_repository.get_by_username(owner_id) is None:
        logger.warning("Rejected token for missing account %s", owner_id)
        raise _unauthorized("Account no longer exists")

    return owner_id
