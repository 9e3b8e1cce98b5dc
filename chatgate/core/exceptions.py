"""
Domain errors for admission control.

Every error carries a machine-readable ``code``, the HTTP status it maps to
and whether the caller may retry. Handlers in ``chatgate.api.middleware``
render them uniformly.
"""

from datetime import datetime
from typing import Optional, Dict, Any


class AdmissionError(Exception):
    """Base class for admission control errors."""

    code: str = "admission_error"
    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_response_dict(self) -> Dict[str, Any]:
        """Convert to an HTTP error body."""
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "retryable": self.retryable,
            **self.details,
        }


class UnauthenticatedError(AdmissionError):
    """No credential, or the credential could not be verified.

    The message never says why verification failed.
    """

    code = "unauthenticated"
    status_code = 401

    def __init__(self, message: str = "Authentication required"):
        super().__init__(message=message)


class QuotaExceededError(AdmissionError):
    """
    Raised when an identity has no interactions left today.

    ``reason`` is ``daily_limit_reached`` for an exhausted counter and
    ``no_active_plan`` when neither a paid plan nor a trial applies.
    """

    code = "quota_exceeded"
    status_code = 403

    def __init__(
        self,
        user_id: str,
        daily_limit: int,
        used: int,
        resets_at: Optional[datetime] = None,
        reason: str = "daily_limit_reached",
    ):
        self.user_id = user_id
        self.daily_limit = daily_limit
        self.used = used
        self.resets_at = resets_at
        self.reason = reason

        if reason == "no_active_plan":
            message = "No active plan or trial. Choose a plan to continue."
        else:
            message = f"Daily interaction limit reached. Used: {used:,} / {daily_limit:,}"

        super().__init__(
            message=message,
            details={
                "reason": reason,
                "daily_limit": daily_limit,
                "used": used,
                "resets_at": resets_at.isoformat() if resets_at else None,
            },
        )


class SubscriptionNotFoundError(AdmissionError):
    """The identity has no subscription record at all."""

    code = "subscription_not_found"
    status_code = 404

    def __init__(self, user_id: str):
        self.user_id = user_id
        super().__init__(
            message="No subscription found. Choose a plan to start chatting.",
            details={"prompt": "choose_plan"},
        )


class TransientStorageError(AdmissionError):
    """Storage or provider unreachable; safe to retry with backoff."""

    code = "temporarily_unavailable"
    status_code = 503
    retryable = True

    def __init__(self, operation: str, cause: Optional[BaseException] = None):
        self.operation = operation
        self.cause = cause
        super().__init__(
            message="Service temporarily unavailable, please retry",
            details={"operation": operation},
        )


class ConfigurationError(AdmissionError):
    """Required external configuration is absent."""

    code = "configuration_error"
    status_code = 500

    def __init__(self, setting: str, message: Optional[str] = None):
        self.setting = setting
        super().__init__(
            message=message or f"Required setting is not configured: {setting}",
            details={"setting": setting},
        )


__all__ = [
    "AdmissionError",
    "UnauthenticatedError",
    "QuotaExceededError",
    "SubscriptionNotFoundError",
    "TransientStorageError",
    "ConfigurationError",
]
