from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.database import get_db
from ulingo.exceptions import AuthenticationError, PermissionDeniedError
from ulingo.models.user import User
from ulingo.services import auth_service


def _token_from_request(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, credentials = header.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return request.cookies.get("access_token")


async def get_current_user(request: Request, db: AsyncSession = Depends(get_db)) -> User:
    token = _token_from_request(request)
    if not token:
        raise AuthenticationError("Not authenticated")

    user = await auth_service.get_current_user_from_token(token, db)
    if not user:
        raise AuthenticationError("Not authenticated")
    return user


async def get_current_admin(user: User = Depends(get_current_user)) -> User:
    if not user.is_admin:
        raise PermissionDeniedError("Admins only")
    return user
