from fastapi import APIRouter, Depends
import logging

from ..models.schemas import (
    Envelope,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RoleUpdateRequest,
    TokenUser,
    UserResponse,
)
from ..services.auth_service import auth_service
from .deps import get_current_user, require_roles

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/register", response_model=Envelope[UserResponse], status_code=201)
async def register(request: RegisterRequest):
    user = await auth_service.create_user(request.username, request.password, request.role)
    return Envelope(data=user, message="User created successfully")


@router.post("/login", response_model=Envelope[LoginResponse])
async def login(request: LoginRequest):
    result = await auth_service.login(request.username, request.password)
    return Envelope(data=result, message="Login successful")


@router.get("/profile", response_model=Envelope[UserResponse])
async def profile(user: TokenUser = Depends(get_current_user)):
    return Envelope(data=await auth_service.get_profile(user.user_id))


@router.get("/verify", response_model=Envelope[TokenUser])
async def verify(user: TokenUser = Depends(get_current_user)):
    return Envelope(data=user, message="Token is valid")


@router.put("/users/{user_id}/role", response_model=Envelope[UserResponse])
async def update_role(
    user_id: int,
    request: RoleUpdateRequest,
    admin: TokenUser = Depends(require_roles("admin")),
):
    user = await auth_service.update_user_role(user_id, request.role)
    logger.info(f"{admin.username} changed role of user {user_id} to {request.role}")
    return Envelope(data=user, message="User role updated successfully")
