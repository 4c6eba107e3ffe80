from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from datetime import timedelta

from ulingo.database import get_db
from ulingo.exceptions import AuthenticationError
from ulingo.models.user import User
from ulingo.routes.deps import get_current_user
from ulingo.schemas.progress import ProgressResponse
from ulingo.schemas.user import LanguageUpdate, ProfileResponse, Token, UserCreate, UserLogin, UserResponse
from ulingo.services import auth_service, progress_service
from ulingo.config import get_settings

settings = get_settings()

router = APIRouter(prefix="/auth", tags=["auth"])


def _token_response(username: str, status_code: int = 200) -> JSONResponse:
    access_token_expires = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    access_token = auth_service.create_access_token(
        data={"sub": username}, expires_delta=access_token_expires
    )

    response = JSONResponse(
        Token(access_token=access_token, token_type="bearer").model_dump(),
        status_code=status_code,
    )
    response.set_cookie(key="access_token", value=access_token, httponly=True)
    return response


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(user_create: UserCreate, db: AsyncSession = Depends(get_db)):
    """Регистрация: аккаунт и пустой прогресс (уровень 1, без серии)"""
    user = await auth_service.create_user(db, user_create)
    return user


@router.post("/login")
async def login(user_login: UserLogin, db: AsyncSession = Depends(get_db)):
    """Вход пользователя"""
    user = await auth_service.authenticate_user(db, user_login.username, user_login.password)
    if not user:
        raise AuthenticationError("Incorrect username or password")

    return _token_response(user.username)


@router.post("/logout")
async def logout():
    """Выход - удаление cookie"""
    response = JSONResponse({"status": "ok"})
    response.delete_cookie("access_token")
    return response


async def _profile(db: AsyncSession, user: User) -> ProfileResponse:
    progress = await progress_service.get_user_progress(db, user.id)
    return ProfileResponse(
        **UserResponse.model_validate(user).model_dump(),
        progress=ProgressResponse.from_progress(progress),
    )


@router.get("/me", response_model=ProfileResponse)
async def me(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Профиль: имя, язык и прогресс"""
    return await _profile(db, user)


@router.put("/me/language", response_model=ProfileResponse)
async def change_language(
    language_update: LanguageUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    user = await auth_service.update_language(db, user.id, language_update.selected_language)
    return await _profile(db, user)
