"""
Authentication API routes.
"""
from fastapi import APIRouter, Depends, HTTPException, Response, status
from src.core.auth_dependencies import verify_token
from src.core.dependencies import get_auth_service
from src.models.dto.auth_dto import (
    DeleteAccountRequest,
    LoginRequest,
    LoginResponse,
    ProfileResponse,
    RegisterRequest,
    UpdateProfileRequest
)
from src.services.auth_service import AuthService, create_access_token

router = APIRouter(prefix="/v1/api/auth", tags=["Authentication"])


@router.post("/register", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Create a new account.

    - **username**: 3-50 characters, letters, digits, `_`, `.` or `-`
    - **email**: Address that receives expiry alerts
    - **password**: At least 8 characters
    """
    return auth_service.register_user(request)


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
async def login(request: LoginRequest, auth_service: AuthService = Depends(get_auth_service)):
    """
    Authenticate user and return JWT access token.

    - **username**: User's username
    - **password**: User's password

    Returns JWT token for accessing protected endpoints.
    """
    user = auth_service.authenticate_user(request.username, request.password)

    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password"
        )

    access_token = create_access_token(user.username)

    return LoginResponse(
        access_token=access_token,
        token_type="bearer",
        username=user.username
    )


@router.get("/me", response_model=ProfileResponse)
async def get_profile(
    auth_service: AuthService = Depends(get_auth_service),
    username: str = Depends(verify_token)
):
    return auth_service.get_profile(username)


@router.put("/me", response_model=ProfileResponse)
async def update_profile(
    request: UpdateProfileRequest,
    auth_service: AuthService = Depends(get_auth_service),
    username: str = Depends(verify_token)
):
    """Change the alert email address or switch expiry alerts on or off."""
    return auth_service.update_profile(username, request)


@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(
    request: DeleteAccountRequest,
    auth_service: AuthService = Depends(get_auth_service),
    username: str = Depends(verify_token)
):
    """Delete the account and every drug it owns; requires the password."""
    auth_service.delete_account(username, request.password)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
