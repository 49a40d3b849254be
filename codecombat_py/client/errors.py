"""Error taxonomy for CodeCombat API and session failures."""

from typing import Optional


class CodeCombatError(Exception):
    """Base class for all client errors."""


class NotFound(CodeCombatError):
    """The requested resource does not exist (HTTP 404)."""


class TransientFetchError(CodeCombatError):
    """Network or server failure; the next attempt may succeed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class AuthError(CodeCombatError):
    """Token missing, expired or account disabled (HTTP 401/403)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ClampRefusal(CodeCombatError):
    """
    Action refused locally because the contest is deactivated or deleted.
    The request never reaches the backend.
    """

    def __init__(self, status, action: str = ""):
        self.status = status
        self.action = action
        self.reason = "DELETED" if not status.exists else "DEACTIVATED"
        if self.reason == "DELETED":
            message = "Contest has been removed by the administrator"
        else:
            message = f'Contest "{status.contest_name or ""}" has been deactivated'
        if action:
            message = f"{action} refused: {message}"
        super().__init__(message)
