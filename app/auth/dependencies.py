from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.schemas import Actor, CurrentUser
from app.auth.security import decode_access_token
from app.auth.services import resolve_actor
from app.core.enums import UserRole
from app.db.session import get_db


# Tokens are issued by the identity service; tokenUrl is only used by the docs UI.
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")


async def get_current_user(token: str = Depends(oauth2_scheme)) -> CurrentUser:
    """Resolve the authenticated user from the access token."""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("user_id") or payload.get("sub")
    role_name = payload.get("role")
    if not user_id_str or not role_name:
        raise credentials_exception

    try:
        user_id = int(user_id_str)
        role = UserRole(role_name)
    except ValueError:
        raise credentials_exception

    return CurrentUser(id=user_id, role=role)


async def get_actor(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> Actor:
    """Actor used by services for scoping. SECTION/TEACHER users need a matching section/teacher row."""
    actor = await resolve_actor(db, current_user)
    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"No {current_user.role.value.lower()} profile linked to this user",
        )
    return actor
