import logging
from datetime import datetime, timedelta
from typing import Optional
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ulingo.models.user import User
from ulingo.schemas.user import UserCreate
from ulingo.config import get_settings
from ulingo.exceptions import DuplicateUserError, StoreError
from ulingo.services import progression
from ulingo.services.progress_service import get_user, progress_columns

settings = get_settings()
logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


async def _find_user(db: AsyncSession, username: str) -> Optional[User]:
    result = await db.execute(select(User).where(User.username == username))
    return result.scalar_one_or_none()


async def authenticate_user(db: AsyncSession, username: str, password: str) -> Optional[User]:
    """Проверка логина и пароля; None если не совпало"""
    user = await _find_user(db, username)
    if not user or not verify_password(password, user.password_hash):
        logger.info("Failed login for %r", username)
        return None
    return user


async def create_user(db: AsyncSession, user_create: UserCreate, is_admin: bool = False) -> User:
    """Create a new user together with a fresh progress record"""
    if await _find_user(db, user_create.username):
        raise DuplicateUserError("Username already exists")

    hashed_password = get_password_hash(user_create.password)
    new_user = User(
        username=user_create.username,
        password_hash=hashed_password,
        name=user_create.name.strip() or "Student",
        selected_language=user_create.selected_language,
        is_admin=is_admin,
        version=0,
        **progress_columns(progression.initial_progress(datetime.utcnow())),
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info("Registered %s%s", new_user.username, " (admin)" if is_admin else "")
    return new_user


async def get_current_user_from_token(token: str, db: AsyncSession) -> Optional[User]:
    """Get current user from JWT token"""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        username: str = payload.get("sub")
        if username is None:
            return None
    except JWTError:
        return None

    return await _find_user(db, username)


async def update_language(db: AsyncSession, user_id: int, selected_language: str) -> User:
    """Сменить изучаемый язык; прогресс и серия не меняются"""
    user = await get_user(db, user_id)
    if user.selected_language == selected_language:
        return user

    previous = user.selected_language
    user.selected_language = selected_language
    try:
        await db.commit()
        await db.refresh(user)
    except SQLAlchemyError as e:
        await db.rollback()
        raise StoreError("Could not change the language, please try again") from e

    logger.info("User %s switched language %s -> %s", user.username, previous, selected_language)
    return user
