"""
Error taxonomy for authflow.

Every error carries a message that is safe to show to the client.
"""


class AuthFlowError(Exception):
    """Base exception for all authflow errors."""

    message = "Request failed"

    def __init__(self, message: str = None):
        super().__init__(message or self.message)
        self.message = message or self.message


class ValidationError(AuthFlowError):
    """Raised when request input is missing or malformed."""

    message = "Invalid request"


class AuthError(AuthFlowError):
    """Raised when a credential check fails."""

    message = "Authentication failed"


class BadCredentials(AuthError):
    """Raised when the password does not match."""

    message = "Incorrect password"


class BadTwoFactorCode(AuthError):
    """Raised when a TOTP code does not verify."""

    message = "Incorrect 2FA code"


class TokenError(AuthFlowError):
    """Raised when a step token is expired, forged or presented at the wrong stage."""

    message = "Invalid or expired token"


class InvalidStepToken(TokenError):
    """Raised when the bearer token for a 2FA step fails signature or expiry checks."""


class NotFound(AuthFlowError):
    """Raised when a subject cannot be found."""

    message = "Not found"


class UserNotFound(NotFound):
    """Raised when the user does not exist."""

    message = "User does not exist"


class EmailTaken(AuthFlowError):
    """Raised when registering an email that already has an account."""

    message = "Email already registered"


class StoreError(AuthFlowError):
    """Raised when the credential store fails."""

    message = "Internal error"

    def __init__(self, message: str = None, operation: str = None):
        super().__init__(message)
        self.operation = operation
