"""In-memory view state of a problem-solving session."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union

from ..client.models import (
    DEFAULT_LANGUAGE,
    ContestStatus,
    Language,
    Problem,
    SnippetSet,
    Submission,
    Verdict,
)


CONTESTS_PATH = "/contests"


class SessionPhase(str, Enum):
    INITIALIZING = "INITIALIZING"
    READY = "READY"
    LOCKED = "LOCKED"


class LockReason(str, Enum):
    DEACTIVATED = "DEACTIVATED"
    DELETED = "DELETED"


class NoticeLevel(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notice:
    """A plain message shown in the output area instead of a verdict."""

    text: str
    level: NoticeLevel = NoticeLevel.INFO


@dataclass
class SessionState:
    """
    Everything the session view shows for one problem.
    Replaced wholesale when the problem id changes.
    """

    problem_id: Optional[int] = None
    problem: Optional[Problem] = None
    code: str = ""
    language: Language = DEFAULT_LANGUAGE
    snippets: SnippetSet = field(default_factory=dict)
    has_prior_submission: bool = False
    prior_submission: Optional[Submission] = None
    output: Optional[Union[Verdict, Notice]] = None
    busy: Optional[str] = None
    contest_status: Optional[ContestStatus] = None
    time_remaining: str = ""
    problem_ids: List[int] = field(default_factory=list)
    index: int = -1
    phase: SessionPhase = SessionPhase.INITIALIZING
    lock_reason: Optional[LockReason] = None
    not_found: bool = False
    show_banner: bool = False
    redirect_to: Optional[str] = None
    load_error: Optional[str] = None

    @property
    def liveness(self) -> Optional[ContestStatus]:
        """Latest liveness sample; a vanished problem counts as deleted."""
        if self.not_found:
            return ContestStatus.deleted()
        return self.contest_status

    @property
    def can_go_prev(self) -> bool:
        return self.index > 0

    @property
    def can_go_next(self) -> bool:
        return 0 <= self.index < len(self.problem_ids) - 1

    @property
    def banner_text(self) -> str:
        if not self.show_banner:
            return ""
        if self.lock_reason is LockReason.DELETED:
            return (
                "Contest Deleted! This contest has been removed by the "
                "administrator. Your submissions will not be accepted."
            )
        name = self.contest_status.contest_name if self.contest_status else ""
        return (
            f'Contest Deactivated! The contest "{name or ""}" has been deactivated '
            "by the administrator. Submissions are no longer allowed."
        )
