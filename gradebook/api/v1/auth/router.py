from typing import List, Optional

from fastapi import APIRouter, Depends, status as http_status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from gradebook.auth.dependencies import get_current_user
from gradebook.auth.schemas import (
    ClassInfo,
    CurrentUser,
    DeleteAccountRequest,
    LoginRequest,
    LoginResponse,
    MeResponse,
    MessageResponse,
    RegisterRequest,
    RegisterResponse,
)
from gradebook.auth.services import (
    delete_account,
    get_user_info,
    list_classes,
    login_user,
    register_teacher,
)
from gradebook.core.exceptions import ServiceError, to_http_exception
from gradebook.db.session import get_db

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: RegisterRequest,
    db: AsyncSession = Depends(get_db),
) -> RegisterResponse:
    """Register a teacher for one of the fixed classes."""
    try:
        return await register_teacher(db, payload)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
) -> LoginResponse:
    try:
        return await login_user(db, payload)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
):
    """OAuth2 password flow for the interactive API docs."""
    payload = LoginRequest(username=form_data.username.strip(), password=form_data.password)
    try:
        result = await login_user(db, payload)
    except ServiceError as e:
        raise to_http_exception(e)
    return {
        "access_token": result.token,
        "token_type": "bearer",
    }


@router.get("/me", response_model=MeResponse)
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MeResponse:
    try:
        user = await get_user_info(db, current_user.id)
    except ServiceError as e:
        raise to_http_exception(e)
    return MeResponse(user=user)


@router.get("/classes", response_model=List[ClassInfo])
async def classes(db: AsyncSession = Depends(get_db)) -> List[ClassInfo]:
    """Public list of classes, used by the registration form."""
    return await list_classes(db)


@router.delete("/account", response_model=MessageResponse)
async def delete_my_account(
    payload: Optional[DeleteAccountRequest] = None,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> MessageResponse:
    """Delete the caller's account. Requires the account password; removes the class data unless
    another teacher still uses the class."""
    try:
        await delete_account(db, current_user.id, payload.password if payload else None)
    except ServiceError as e:
        raise to_http_exception(e)
    return MessageResponse(message="Akun dan semua data berhasil dihapus")
