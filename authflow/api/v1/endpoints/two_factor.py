"""
Two-factor (TOTP) endpoints - enrollment and the second login step
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from authflow.api.dependencies import get_auth_service
from authflow.exceptions import BadTwoFactorCode, StoreError, TokenError, UserNotFound
from authflow.schemas.auth import (
    ErrorResponse,
    TwoFactorSetupRequest,
    TwoFactorSetupResponse,
    TwoFactorVerifyRequest,
    TwoFactorVerifyResponse,
)
from authflow.services.auth_service import AuthService


logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/setup",
    response_model=TwoFactorSetupResponse,
    responses={
        500: {"model": ErrorResponse, "description": "Invalid token or provisioning failure"},
    },
)
def setup_two_factor(
    request_data: TwoFactorSetupRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Enable TOTP for the token's user

    Generates a new secret (replacing any previous one), stores it, and
    returns the enrollment QR code. Scan it with an authenticator app
    (Google Authenticator, Authy, etc.).

    **Request Body:**
    - tempToken: Any valid token from `/login` or `/2fa/verify`

    **Returns:**
    - message: Instructions
    - qr: QR code as data URI (embed in <img> tag)
    - otpauth_url: otpauth:// enrollment URI
    - secret: Base32 secret for manual entry

    **Errors:**
    - 500: Invalid or expired token, unknown user, or storage failure
    """
    try:
        enrollment = auth_service.setup_two_factor(request_data.tempToken)
    except (TokenError, UserNotFound) as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=e.message)
    except StoreError:
        logger.exception("2FA setup failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="2FA setup failed"
        )

    return TwoFactorSetupResponse(
        qr=enrollment.qr,
        otpauth_url=enrollment.otpauth_url,
        secret=enrollment.secret
    )


@router.post(
    "/verify",
    response_model=TwoFactorVerifyResponse,
    responses={
        400: {"model": ErrorResponse, "description": "Unknown user"},
        401: {"model": ErrorResponse, "description": "Bad code or invalid token"},
        500: {"model": ErrorResponse, "description": "Internal error"},
    },
)
def verify_two_factor(
    request_data: TwoFactorVerifyRequest,
    auth_service: AuthService = Depends(get_auth_service)
):
    """
    Verify a TOTP code and complete login

    **Request Body:**
    - tempToken: Token from `/login` (2FA pending)
    - token: 6-digit TOTP code

    **Returns:**
    - message: "Access granted"
    - accessToken: Authenticated token
    - expires_in: Token lifetime in seconds

    **Errors:**
    - 400: User not found
    - 401: Incorrect code, or invalid / expired / wrong-stage token
    """
    try:
        issued = auth_service.verify_two_factor(request_data.tempToken, request_data.token)
    except UserNotFound:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User not found")
    except (BadTwoFactorCode, TokenError) as e:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=e.message)
    except StoreError:
        logger.exception("2FA verification failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal error"
        )

    return TwoFactorVerifyResponse(accessToken=issued.token, expires_in=issued.expires_in)
