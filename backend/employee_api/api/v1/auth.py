from typing import Any

from fastapi import APIRouter, Depends, status

from employee_api.api.deps import get_auth_service, get_current_claims
from employee_api.core.tokens import TokenClaims
from employee_api.schemas.response import APIResponse, success_response
from employee_api.schemas.token import LoginRequest, LoginResponse
from employee_api.schemas.user import UserCreate, UserInfo
from employee_api.services.auth_service import AuthService

router = APIRouter()


@router.post("/register", response_model=APIResponse[UserInfo], status_code=status.HTTP_201_CREATED)
async def register(
    user_in: UserCreate,
    auth_service: AuthService = Depends(get_auth_service),
) -> Any:
    """
    Create a new user account.
    """
    user = await auth_service.register(user_in.username, user_in.email, user_in.password)
    return success_response(
        "User registered successfully",
        UserInfo.model_validate(user),
        status_code=status.HTTP_201_CREATED,
    )


@router.post("/login", response_model=APIResponse[LoginResponse])
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service),
) -> Any:
    """
    Exchange username and password for a bearer token.

    Unknown users and wrong passwords get the same 401 response.
    """
    result = await auth_service.login(login_data.username, login_data.password)
    return success_response(
        "Login successful",
        LoginResponse(
            token=result.token,
            user=UserInfo.model_validate(result.user),
            expires_at=result.expires_at,
        ),
    )


@router.get("/profile", response_model=APIResponse[UserInfo])
async def read_profile(
    claims: TokenClaims = Depends(get_current_claims),
    auth_service: AuthService = Depends(get_auth_service),
) -> Any:
    """
    Get the profile of the authenticated user.
    """
    user = await auth_service.get_profile(claims)
    return success_response("Profile retrieved successfully", UserInfo.model_validate(user))
