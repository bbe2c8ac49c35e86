"""
Authentication Endpoints

Registration and password login. No token is issued; the admin screens
only need to know the credentials were accepted and who the user is.
"""

import logging

from fastapi import APIRouter, Depends

from qr_ordering.core.exceptions import AppError, InternalError
from qr_ordering.dependencies import get_account_service
from qr_ordering.schemas import ApiResponse, ErrorResponse, LoginRequest, RegisterRequest, UserResponse
from qr_ordering.services.accounts import AccountService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    responses={400: {"model": ErrorResponse}},
)
async def register(
    body: RegisterRequest,
    service: AccountService = Depends(get_account_service),
) -> ApiResponse[UserResponse]:
    try:
        user = await service.register(body)
    except AppError:
        raise
    except Exception as e:
        logger.exception(f"Error registering user: {e}")
        raise InternalError("Failed to register user", str(e))

    return ApiResponse(
        message="User registered successfully",
        data=UserResponse.model_validate(user),
    )


@router.post(
    "/login",
    response_model=ApiResponse[UserResponse],
    responses={401: {"model": ErrorResponse}},
)
async def login(
    body: LoginRequest,
    service: AccountService = Depends(get_account_service),
) -> ApiResponse[UserResponse]:
    user = await service.login(body)
    return ApiResponse(
        message="Login successful",
        data=UserResponse.model_validate(user),
    )
