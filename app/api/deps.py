"""API dependencies: auth, db session.

Protected routes resolve ``get_current_user`` before anything else runs; a
missing, invalid or expired token, or a token whose user no longer exists,
stops the request with AuthenticationError.
"""
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import AuthenticationError
from app.core.security import verify_access_token
from app.db.session import get_db
from app.schemas.user import UserIdentity
from app.services.auth_service import get_user_by_id, user_to_identity

security = HTTPBearer(auto_error=False)

__all__ = ["get_db", "get_current_user"]


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> UserIdentity:
    user_id = verify_access_token(credentials.credentials if credentials else None)
    user = await get_user_by_id(db, user_id)
    if user is None:
        raise AuthenticationError("User not found")
    identity = user_to_identity(user)
    request.state.user = identity
    return identity
