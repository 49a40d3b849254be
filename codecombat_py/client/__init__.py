"""Client module for CodeCombat interaction."""

from .client import CodeCombatClient
from .errors import (
    AuthError,
    ClampRefusal,
    CodeCombatError,
    NotFound,
    TransientFetchError,
)
from .models import (
    CodeSnippet,
    ContestStatus,
    Language,
    Problem,
    Submission,
    TestCaseOutcome,
    Verdict,
    VerdictStatus,
)

__all__ = [
    "CodeCombatClient",
    "AuthError",
    "ClampRefusal",
    "CodeCombatError",
    "NotFound",
    "TransientFetchError",
    "CodeSnippet",
    "ContestStatus",
    "Language",
    "Problem",
    "Submission",
    "TestCaseOutcome",
    "Verdict",
    "VerdictStatus",
]
