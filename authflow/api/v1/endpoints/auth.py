"""
Authentication endpoints - registration and the password step
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from authflow.api.dependencies import get_auth_service
from authflow.exceptions import AuthError, EmailTaken, StoreError, UserNotFound, ValidationError
from authflow.schemas.auth import (
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    UserSummaryResponse,
)
from authflow.services.auth_service import AuthService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/register",
    response_model=RegisterResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid request body"},
        500: {"model": ErrorResponse, "description": "Registration failed"},
    },
)
def register(
    request_data: RegisterRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Register a new user account

    **Request Body:**
    - email: Valid email address
    - password: User password

    **Returns:**
    - message: "User registered"
    - user: {id, email}

    **Errors:**
    - 400: Validation failed
    - 500: Registration failed (including an already registered email)
    """
    try:
        user = auth_service.register(request_data.email, request_data.password)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except EmailTaken:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )
    except StoreError:
        logger.exception("Registration failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Registration failed"
        )

    return RegisterResponse(user=UserSummaryResponse(id=user.id, email=user.email))


@router.post(
    "/login",
    response_model=LoginResponse,
    response_model_exclude_none=True,
    responses={
        401: {"model": ErrorResponse, "description": "Unknown user or bad password"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
)
def login(
    request_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Authenticate user with email and password

    **Request Body:**
    - email: User email
    - password: User password

    **Returns:**
    - If 2FA is enabled:
      - tempToken: Short-lived token for `/2fa/verify`
      - twofa_enabled: true
    - Otherwise:
      - accessToken: Authenticated token
      - twofa_enabled: false
    - message, expires_in

    **Errors:**
    - 401: Unknown user or incorrect password
    """
    try:
        result = auth_service.login(request_data.email, request_data.password)
    except ValidationError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=e.message)
    except (UserNotFound, AuthError) as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except StoreError:
        logger.exception("Login failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error"
        )

    if result.requires_second_factor:
        return LoginResponse(
            tempToken=result.token.token,
            twofa_enabled=True,
            message="Enter your 2FA code",
            expires_in=result.token.expires_in
        )

    return LoginResponse(
        accessToken=result.token.token,
        twofa_enabled=False,
        message="Login successful",
        expires_in=result.token.expires_in
    )
