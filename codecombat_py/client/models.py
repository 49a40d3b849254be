"""Data models for CodeCombat entities."""

import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


class Language(str, Enum):
    """Programming languages accepted by the judge."""

    JAVA = "JAVA"
    CPP = "CPP"
    PYTHON = "PYTHON"
    JAVASCRIPT = "JAVASCRIPT"
    C = "C"

    @classmethod
    def parse(cls, value) -> Optional["Language"]:
        """Return the matching language, or None for unknown names."""
        if isinstance(value, cls):
            return value
        if not value:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


DEFAULT_LANGUAGE = Language.JAVA


class VerdictStatus(str, Enum):
    """Judge verdicts."""

    AC = "AC"
    WA = "WA"
    TLE = "TLE"
    MLE = "MLE"
    RE = "RE"
    CE = "CE"
    JUDGING = "JUDGING"
    PENDING = "PENDING"


def parse_datetime(value) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp as sent by the backend."""
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass
class Problem:
    """Represents a problem in a contest."""

    id: int
    title: str
    contest_id: Optional[int] = None
    description: str = ""
    input_format: str = ""
    output_format: str = ""
    constraints: str = ""
    example1: Optional[str] = None
    example2: Optional[str] = None
    example3: Optional[str] = None
    images: Optional[str] = None
    time_limit: Optional[float] = None
    memory_limit: Optional[int] = None
    active: bool = True

    @classmethod
    def from_json(cls, data: dict) -> "Problem":
        return cls(
            id=int(data["id"]),
            title=data.get("title") or "",
            contest_id=data.get("contestId"),
            description=data.get("description") or "",
            input_format=data.get("inputFormat") or "",
            output_format=data.get("outputFormat") or "",
            constraints=data.get("constraints") or "",
            example1=data.get("example1") or None,
            example2=data.get("example2") or None,
            example3=data.get("example3") or None,
            images=data.get("images") or None,
            time_limit=data.get("timeLimit"),
            memory_limit=data.get("memoryLimit"),
            active=data.get("active", True) is not False,
        )

    @property
    def examples(self) -> List[str]:
        """Examples that are actually present, in order."""
        return [e for e in (self.example1, self.example2, self.example3) if e]

    @property
    def image_urls(self) -> List[str]:
        if not self.images:
            return []
        return [url.strip() for url in self.images.split(",") if url.strip()]


@dataclass
class CodeSnippet:
    """Starter code and solution template for one language."""

    language: Language
    starter_code: str = ""
    solution_template: str = ""


SnippetSet = Dict[Language, CodeSnippet]


def snippet_set_from_json(items: list) -> SnippetSet:
    """Build a snippet map, skipping languages the judge does not know."""
    snippets: SnippetSet = {}
    for item in items or []:
        language = Language.parse(item.get("language"))
        if language is None:
            continue
        snippets[language] = CodeSnippet(
            language=language,
            starter_code=item.get("starterCode") or "",
            solution_template=item.get("solutionTemplate") or "",
        )
    return snippets


@dataclass
class TestCaseOutcome:
    """Result of a single test case inside a verdict."""

    __test__ = False

    test_case: int
    passed: bool
    hidden: bool = False


def parse_test_case_details(raw) -> List[TestCaseOutcome]:
    """
    Normalize testCaseDetails into outcome records.
    The backend stores it as a JSON-encoded string; an already decoded
    list is accepted too. Malformed input gives an empty list.
    """
    if not raw:
        return []
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except ValueError:
            return []
    if not isinstance(raw, list):
        return []

    outcomes = []
    for position, item in enumerate(raw, start=1):
        if not isinstance(item, dict):
            continue
        try:
            test_case = int(item.get("testCase") or position)
        except (TypeError, ValueError):
            continue
        outcomes.append(
            TestCaseOutcome(
                test_case=test_case,
                passed=str(item.get("status", "")).upper() == "PASS",
                hidden=item.get("hidden") is True,
            )
        )
    return outcomes


@dataclass
class Verdict:
    """Outcome of a test run or a submission."""

    status: VerdictStatus
    test_cases_passed: int = 0
    total_test_cases: int = 0
    time_consumed: Optional[float] = None
    score: Optional[int] = None
    error_message: Optional[str] = None
    test_cases: List[TestCaseOutcome] = field(default_factory=list)
    persisted: bool = False

    @classmethod
    def from_json(cls, data: dict, persisted: bool = False) -> "Verdict":
        try:
            status = VerdictStatus(str(data.get("status") or "PENDING").upper())
        except ValueError:
            status = VerdictStatus.PENDING
        return cls(
            status=status,
            test_cases_passed=data.get("testCasesPassed") or 0,
            total_test_cases=data.get("totalTestCases") or 0,
            time_consumed=data.get("timeConsumed"),
            score=data.get("score"),
            error_message=data.get("errorMessage"),
            test_cases=parse_test_case_details(data.get("testCaseDetails")),
            persisted=persisted,
        )

    @property
    def is_error(self) -> bool:
        """Compilation and runtime errors carry a message, not test detail."""
        return self.status in (VerdictStatus.CE, VerdictStatus.RE)

    @property
    def is_final(self) -> bool:
        return self.status not in (VerdictStatus.JUDGING, VerdictStatus.PENDING)

    @property
    def visible_test_cases(self) -> List[TestCaseOutcome]:
        return [tc for tc in self.test_cases if not tc.hidden]

    @property
    def hidden_count(self) -> int:
        return len(self.test_cases) - len(self.visible_test_cases)


@dataclass
class Submission:
    """The competitor's stored submission for a problem."""

    id: Optional[int]
    problem_id: Optional[int]
    code: str
    language: Language
    status: Optional[VerdictStatus] = None
    score: Optional[int] = None
    test_cases_passed: int = 0
    total_test_cases: int = 0
    error_message: Optional[str] = None
    test_cases: List[TestCaseOutcome] = field(default_factory=list)
    submitted_at: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: dict) -> "Submission":
        verdict = Verdict.from_json(data, persisted=True)
        return cls(
            id=data.get("id"),
            problem_id=data.get("problemId"),
            code=data.get("code") or "",
            language=Language.parse(data.get("language")) or DEFAULT_LANGUAGE,
            status=verdict.status if data.get("status") else None,
            score=verdict.score,
            test_cases_passed=verdict.test_cases_passed,
            total_test_cases=verdict.total_test_cases,
            error_message=verdict.error_message,
            test_cases=verdict.test_cases,
            submitted_at=parse_datetime(data.get("submittedAt")),
        )


@dataclass
class ContestStatus:
    """Liveness of the contest owning a problem."""

    exists: bool
    active: bool
    contest_name: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None

    @classmethod
    def from_json(cls, data: dict) -> "ContestStatus":
        return cls(
            exists=bool(data.get("exists")),
            active=bool(data.get("active")),
            contest_name=data.get("contestName"),
            start_time=parse_datetime(data.get("startTime")),
            end_time=parse_datetime(data.get("endTime")),
        )

    @classmethod
    def deleted(cls) -> "ContestStatus":
        return cls(exists=False, active=False)

    @property
    def allows_actions(self) -> bool:
        return self.exists and self.active
