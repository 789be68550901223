"""
HTTP client for the candidate endpoints.

Every failure, whether an error response or a network problem, is raised as
TestLinkClientError carrying the server's message when there is one. The
client never retries; the candidate flow treats any failure as final for
the attempt.
"""
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, TypeVar
from urllib.parse import urlsplit

import httpx

from app.candidate.engine import LoadedTest, Question, SubmissionResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_API_PREFIX = "/api"
DEFAULT_TIMEOUT_SECONDS = 10.0

NETWORK_ERROR_MESSAGE = "Network error. Please check your connection and reload the link."
UNEXPECTED_RESPONSE_MESSAGE = "Unexpected response from server. Please reload the link."


class TestLinkClientError(Exception):
    """A candidate endpoint call failed."""

    __test__ = False

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


def parse_test_link(link: str) -> Tuple[str, str]:
    """
    Split a candidate link `{origin}/test/{token}` into origin and token.

    Raises:
        ValueError: If the link does not have that shape
    """
    parts = urlsplit(link.strip())
    segments = [s for s in parts.path.split("/") if s]
    if not parts.scheme or not parts.netloc or len(segments) < 2 or segments[-2] != "test":
        raise ValueError(f"Not a test link: {link!r}")
    return f"{parts.scheme}://{parts.netloc}", segments[-1]


def _parse_loaded_test(data: Dict[str, Any]) -> LoadedTest:
    test = data["test"]
    return LoadedTest(
        name=test["name"],
        version=test["version"],
        questions=tuple(
            Question(id=q["id"], question=q["question"], options=tuple(q["options"]))
            for q in test["questions"]
        ),
        session_id=data["sessionId"],
        question_time_limit=data["questionTimeLimit"],
    )


def _parse_submission_result(data: Dict[str, Any]) -> SubmissionResult:
    result = data["result"]
    return SubmissionResult(
        id=result["id"],
        score=result["score"],
        total_questions=result["totalQuestions"],
        percentage=result["percentage"],
        completed_at=result["completedAt"],
    )


def _decode(parser: Callable[[Dict[str, Any]], T], data: Dict[str, Any]) -> T:
    """Apply a response parser; a body of the wrong shape is a client error."""
    try:
        return parser(data)
    except (KeyError, TypeError, ValueError) as e:
        logger.error(f"Malformed response body: {e!r}")
        raise TestLinkClientError(UNEXPECTED_RESPONSE_MESSAGE) from e


class TestSessionClient:
    """
    Async client for fetch, start and submit.

    Usage:
        async with TestSessionClient("https://tests.example.com") as client:
            test = await client.fetch_test(token)
    """

    __test__ = False

    def __init__(
        self,
        base_url: str,
        api_prefix: str = DEFAULT_API_PREFIX,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._http = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}{api_prefix}",
            timeout=timeout,
            transport=transport,
        )

    async def __aenter__(self) -> "TestSessionClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    async def fetch_test(self, token: str) -> LoadedTest:
        """Fetch the test behind a link without consuming it."""
        data = await self._request("GET", f"/test-session/{token}")
        return _decode(_parse_loaded_test, data)

    async def start_test(self, token: str, user_name: str) -> None:
        """Start the test, consuming the link."""
        await self._request("POST", f"/test-session/{token}", {"userName": user_name})

    async def submit(
        self, token: str, user_name: str, answers: Mapping[str, Optional[int]]
    ) -> SubmissionResult:
        """Submit answers and return the score summary."""
        data = await self._request(
            "POST",
            f"/test-session/{token}/submit",
            {"userName": user_name, "answers": dict(answers)},
        )
        return _decode(_parse_submission_result, data)

    async def _request(
        self, method: str, path: str, payload: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        try:
            response = await self._http.request(method, path, json=payload)
        except httpx.HTTPError as e:
            logger.error(f"Network error calling {method} {path.split('/')[1]}: {e}")
            raise TestLinkClientError(NETWORK_ERROR_MESSAGE) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("error") if isinstance(data, dict) else None
            raise TestLinkClientError(
                message or f"Request failed with status {response.status_code}",
                status_code=response.status_code,
            )
        if not isinstance(data, dict):
            logger.error(f"Response to {method} {path.split('/')[1]} is not a JSON object")
            raise TestLinkClientError(
                UNEXPECTED_RESPONSE_MESSAGE, status_code=response.status_code
            )
        return data
