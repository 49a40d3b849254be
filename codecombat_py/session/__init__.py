"""Contest-aware problem-solving session."""

from .controller import SessionController
from .countdown import CountdownClock, format_time_remaining
from .dispatcher import SubmissionDispatcher
from .liveness import LivenessMonitor, ensure_live
from .navigation import NavigationSequencer
from .resolvers import ProblemResolver, SubmissionResolver
from .state import LockReason, Notice, NoticeLevel, SessionPhase, SessionState

__all__ = [
    "SessionController",
    "CountdownClock",
    "format_time_remaining",
    "SubmissionDispatcher",
    "LivenessMonitor",
    "ensure_live",
    "NavigationSequencer",
    "ProblemResolver",
    "SubmissionResolver",
    "LockReason",
    "Notice",
    "NoticeLevel",
    "SessionPhase",
    "SessionState",
]
