"""Auth API router: register, login, refresh.

All endpoints return ApiResponse. request_id is read from request.state
(injected by RequestLogMiddleware).
"""

from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.cb_common.database import get_db_session
from src.cb_common.response import ApiResponse, wrap
from src.cb_gateway.user.schemas import (
    LoginRequest,
    LoginResponse,
    RefreshRequest,
    RefreshResponse,
    RegisterRequest,
    RegisterResponse,
    UserInfo,
)
from src.cb_gateway.user.service import UserService

router = APIRouter(prefix="/auth", tags=["auth"])
_service = UserService()


@router.post(
    "/register",
    status_code=status.HTTP_201_CREATED,
    response_model=ApiResponse,
    summary="User registration",
)
async def register(
    request: Request,
    body: RegisterRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    async with db.begin():
        user = await _service.register(
            body.username,
            body.email,
            body.password,
            body.name,
            body.user_type,
            db,
            store_name=body.store_name,
            referral_code=body.referral_code,
        )

    data = RegisterResponse(
        user_id=str(user.id),
        username=user.username,
        email=user.email,
        user_type=user.user_type,
        invitation_code=user.invitation_code,
        referred_by=str(user.referred_by) if user.referred_by else None,
        created_at=user.created_at.isoformat(),
    )
    return wrap(request, data.model_dump(), "User registered successfully")


@router.post(
    "/login",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="User login",
)
async def login(
    request: Request,
    body: LoginRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    user, access_token, refresh_token = await _service.login(body.username, body.password, db)

    data = LoginResponse(
        access_token=access_token,
        refresh_token=refresh_token,
        token_type="Bearer",
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
        user=UserInfo(
            user_id=str(user.id),
            username=user.username,
            email=user.email,
            name=user.name,
            user_type=user.user_type,
            invitation_code=user.invitation_code,
        ),
    )
    return wrap(request, data.model_dump(), "Login successful")


@router.post(
    "/refresh",
    status_code=status.HTTP_200_OK,
    response_model=ApiResponse,
    summary="Refresh access token",
)
async def refresh_token(
    request: Request,
    body: RefreshRequest,
    db: AsyncSession = Depends(get_db_session),
) -> ApiResponse:
    new_access_token = await _service.refresh(body.refresh_token, db)

    data = RefreshResponse(
        access_token=new_access_token,
        expires_in=settings.JWT_EXPIRE_MINUTES * 60,
    )
    return wrap(request, data.model_dump(), "Token refreshed")
