"""Main CodeCombat HTTP client for the contest REST API."""

from typing import Callable, List, Optional

import requests

from .errors import AuthError, NotFound, TransientFetchError
from .models import (
    ContestStatus,
    Language,
    Problem,
    SnippetSet,
    Submission,
    Verdict,
    snippet_set_from_json,
)


CredentialProvider = Callable[[], Optional[str]]


class CodeCombatClient:
    """HTTP client for interacting with the CodeCombat contest platform."""

    BASE_URL = "http://localhost:8080/api"
    TIMEOUT = 30

    def __init__(
        self,
        base_url: Optional[str] = None,
        credentials: Optional[CredentialProvider] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client."""
        self.base_url = (base_url or self.BASE_URL).rstrip("/")
        self.credentials = credentials or (lambda: None)
        self.session = session or requests.Session()
        self.session.headers.update({"Content-Type": "application/json"})

    def _headers(self) -> dict:
        """Attach the bearer token, read fresh on every request."""
        token = self.credentials()
        if token:
            return {"Authorization": f"Bearer {token}"}
        return {}

    def _request(self, method: str, path: str, **kwargs):
        """Make a request and decode the JSON body, mapping failures to errors."""
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method, url, headers=self._headers(), timeout=self.TIMEOUT, **kwargs
            )
        except requests.RequestException as e:
            raise TransientFetchError(f"{method} {path} failed: {e}") from e

        if response.status_code == 404:
            raise NotFound(f"{path} not found")
        if response.status_code in (401, 403):
            raise AuthError(
                f"{method} {path} rejected: {_error_message(response)}",
                status_code=response.status_code,
            )
        if response.status_code >= 400:
            raise TransientFetchError(
                f"{method} {path} returned {response.status_code}: "
                f"{_error_message(response)}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise TransientFetchError(f"{method} {path} returned invalid JSON") from e

    def _get(self, path: str, **kwargs):
        return self._request("GET", path, **kwargs)

    def _post(self, path: str, data: dict = None, **kwargs):
        return self._request("POST", path, json=data, **kwargs)

    def get_problem(self, problem_id: int) -> Problem:
        """Fetch problem metadata."""
        data = self._get(f"/problems/{problem_id}")
        if not data:
            raise NotFound(f"/problems/{problem_id} not found")
        return Problem.from_json(data)

    def get_problems(self) -> List[Problem]:
        """Fetch the flat, ordered list of problems."""
        data = self._get("/problems") or []
        return [Problem.from_json(item) for item in data]

    def get_snippets(self, problem_id: int) -> SnippetSet:
        """Fetch starter code for every language of a problem."""
        data = self._get(f"/problems/{problem_id}/snippets") or []
        return snippet_set_from_json(data)

    def get_contest_status(self, problem_id: int) -> ContestStatus:
        """Fetch liveness of the contest owning a problem."""
        data = self._get(f"/problems/{problem_id}/contest-status")
        if not data:
            return ContestStatus.deleted()
        return ContestStatus.from_json(data)

    def get_user_submission(self, problem_id: int) -> Submission:
        """
        Fetch the competitor's latest submission for a problem.
        Raises NotFound when there is none.
        """
        data = self._get(f"/submissions/user/{problem_id}")
        if not data:
            raise NotFound(f"No submission for problem {problem_id}")
        return Submission.from_json(data)

    def test_solution(self, problem_id: int, code: str, language: Language) -> Verdict:
        """Evaluate code against the problem without storing anything."""
        data = self._post(
            "/submissions/test",
            data={"problemId": problem_id, "code": code, "language": language.value},
        )
        return Verdict.from_json(data or {}, persisted=False)

    def submit(self, problem_id: int, code: str, language: Language) -> Verdict:
        """Submit a solution; replaces any earlier submission for the problem."""
        data = self._post(
            "/submissions",
            data={"problemId": problem_id, "code": code, "language": language.value},
        )
        return Verdict.from_json(data or {}, persisted=True)


def _error_message(response) -> str:
    """Extract a readable error message from an error response."""
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or response.reason or ""
    if isinstance(data, dict):
        return str(data.get("message") or data.get("error") or data)
    return str(data)
