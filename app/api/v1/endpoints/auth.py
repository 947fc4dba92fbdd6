"""Auth endpoints: signup, login, current user."""
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, get_db
from app.schemas.common import ApiResponse
from app.schemas.user import AuthResponse, LoginRequest, UserCreate, UserIdentity
from app.services.auth_service import authenticate_user, create_user, user_to_auth_response

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=ApiResponse[AuthResponse], status_code=status.HTTP_201_CREATED)
async def signup(
    data: UserCreate,
    db: AsyncSession = Depends(get_db),
):
    user = await create_user(db, data)
    return ApiResponse(message="User registered successfully", data=user_to_auth_response(user))


@router.post("/login", response_model=ApiResponse[AuthResponse])
async def login(
    data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    user = await authenticate_user(db, data.email, data.password)
    return ApiResponse(message="Login successful", data=user_to_auth_response(user))


@router.get("/me", response_model=ApiResponse[UserIdentity])
async def me(current_user: UserIdentity = Depends(get_current_user)):
    return ApiResponse(data=current_user)
