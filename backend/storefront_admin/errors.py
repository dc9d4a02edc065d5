"""Error taxonomy for admin authentication and account management.

Every :class:`AdminAuthError` is terminal for the request that raised it and is
rendered by the handler in ``main.py`` as ``{success: false, message, code}``.
``CredentialsUpdatedError`` carries its own code so clients can tell "your
credentials changed" apart from an ordinary expired or missing session.
"""
from typing import Any, Dict, Optional

from storefront_admin.utils.timestamps import utcnow


class AdminAuthError(Exception):
    """Base class for admin authentication failures."""

    status_code: int = 401
    code: str = "NOT_AUTHORIZED"
    default_message: str = "Not authorized"

    def __init__(self, message: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"success": False, "message": self.message, "code": self.code}
        if self.details is not None:
            body["details"] = self.details
        return body


class NoTokenError(AdminAuthError):
    code = "NO_TOKEN"
    default_message = "Not authorized, no token provided"


class InvalidTokenError(AdminAuthError):
    code = "INVALID_TOKEN"
    default_message = "Invalid token. Please log in again."


class NotAdminError(AdminAuthError):
    status_code = 403
    code = "NOT_ADMIN"
    default_message = "Not authorized as admin"


class AdminNotFoundError(AdminAuthError):
    code = "ADMIN_NOT_FOUND"
    default_message = "Admin not found"


class AuthenticationFailedError(AdminAuthError):
    code = "AUTHENTICATION_FAILED"
    default_message = "Not authorized, token failed"


class InvalidCredentialsError(AdminAuthError):
    code = "INVALID_CREDENTIALS"
    default_message = "Invalid email or password"


class MissingCredentialsError(AdminAuthError):
    status_code = 400
    code = "MISSING_CREDENTIALS"
    default_message = "Please provide email and password"


class CredentialsUpdatedError(AdminAuthError):
    code = "CREDENTIALS_UPDATED"
    default_message = "Your admin credentials have been updated. Please log in again."

    def __init__(self, reason: str, message: Optional[str] = None):
        self.reason = reason
        super().__init__(
            message,
            details={"reason": reason, "timestamp": utcnow().isoformat() + "Z"},
        )


# ---------------------------------------------------------------------------
# Account management
# ---------------------------------------------------------------------------

class AccountError(ValueError):
    """Raised by account operations for operator-facing failures."""


class AccountNotFoundError(AccountError):
    pass


class EmailInUseError(AccountError):
    pass


class LastAdminError(AccountError):
    pass


class InvalidAccountDataError(AccountError):
    pass
