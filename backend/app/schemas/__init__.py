"""
Pydantic schemas for request/response validation.
"""
from .test_content import (
    CamelModel,
    TestQuestion,
    TestContent,
    PublicQuestion,
    PublicTestContent,
)
from .test_sessions import (
    StartTestRequest,
    SubmitTestRequest,
    FetchTestResponse,
    StartTestResponse,
    SubmittedResult,
    SubmitTestResponse,
)
from .tests import (
    CreateTestRequest,
    TestSummary,
    TestListResponse,
    CreateTestResponse,
    TestDetailResponse,
    DeleteTestResponse,
    GenerateLinkResponse,
)
from .results import ResultListItem
from .auth import AdminLogin, AdminResponse, AdminSessionResponse, LogoutResponse

__all__ = [
    "CamelModel",
    "TestQuestion",
    "TestContent",
    "PublicQuestion",
    "PublicTestContent",
    "StartTestRequest",
    "SubmitTestRequest",
    "FetchTestResponse",
    "StartTestResponse",
    "SubmittedResult",
    "SubmitTestResponse",
    "CreateTestRequest",
    "TestSummary",
    "TestListResponse",
    "CreateTestResponse",
    "TestDetailResponse",
    "DeleteTestResponse",
    "GenerateLinkResponse",
    "ResultListItem",
    "AdminLogin",
    "AdminResponse",
    "AdminSessionResponse",
    "LogoutResponse",
]
