"""FastAPI dependencies for authentication."""

from typing import Annotated

from fastapi import Depends, Header

from docrag.auth.schemas import User
from docrag.auth.supabase_client import get_supabase_client
from docrag.core.exceptions import AuthenticationError

BEARER_PREFIX = "bearer "


def bearer_token(authorization: Annotated[str | None, Header()] = None) -> str:
    """Extract the access token from an ``Authorization: Bearer`` header."""
    if not authorization:
        raise AuthenticationError("Missing Authorization header")
    if not authorization.lower().startswith(BEARER_PREFIX):
        raise AuthenticationError('Authorization header must start with "Bearer "')

    token = authorization[len(BEARER_PREFIX) :].strip()
    if not token:
        raise AuthenticationError("Token is empty")
    return token


async def get_current_user(token: Annotated[str, Depends(bearer_token)]) -> User:
    """Resolve the signed-in user; auth errors render through the AppError handler."""
    return await get_supabase_client().verify_token(token)


CurrentUser = Annotated[User, Depends(get_current_user)]
