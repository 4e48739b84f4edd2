"""
Pydantic schemas for API request and response models.
"""

from datetime import datetime
from typing import Annotated, Any, Literal, Optional, Union

from pydantic import BaseModel, Field


# Base response wrapper
class APIResponse(BaseModel):
    """Standard API response wrapper."""

    success: bool = Field(..., description="Operation success status")
    data: Optional[dict[str, Any]] = Field(
        default=None,
        description="Response data"
    )
    error: Optional[str] = Field(
        default=None,
        description="Error message if success=False"
    )


# Health check schemas
class HealthData(BaseModel):
    """Health check response data."""

    status: str = Field(..., description="Service health status")
    cache: str = Field(..., description="Redis problem cache: ok, unreachable or disabled")
    catalog_loaded: bool = Field(..., description="Whether the catalog is in memory")
    active_sessions: int = Field(..., description="Sprint sessions held in memory")


# Problem schemas
class ProblemExample(BaseModel):
    """Worked example attached to a problem."""

    input: Any = Field(default="", description="Example input")
    expected_output: Any = Field(default="", description="Expected output")
    explanation: Optional[str] = Field(
        default=None,
        description="Why the output is correct"
    )


class ProblemData(BaseModel):
    """Problem row as stored by the hosted database."""

    id: int = Field(..., description="Storage identifier")
    question_no: int = Field(..., description="Ordinal display/sort number")
    title: str = Field(..., description="Display title")
    difficulty: str = Field(..., description="Easy, Medium or Hard")
    description: Optional[str] = Field(default=None)
    acceptance_rate: Optional[str] = Field(default=None)
    is_premium: Optional[bool] = Field(default=None)
    question_link: Optional[str] = Field(default=None)
    title_slug: Optional[str] = Field(default=None)
    tags: list[str] = Field(default_factory=list)
    company_tags: list[str] = Field(default_factory=list)
    hints: list[str] = Field(default_factory=list)
    test_cases: list[ProblemExample] = Field(default_factory=list)
    starter_code: Optional[str] = Field(default=None)
    likes: Optional[int] = Field(default=None)
    dislikes: Optional[int] = Field(default=None)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ProblemData":
        """Build from a row, treating null collections as empty."""
        cleaned = {
            key: value for key, value in row.items()
            if not (value is None and key in _LIST_FIELDS)
        }
        return cls.model_validate(cleaned)


_LIST_FIELDS = {"tags", "company_tags", "hints", "test_cases"}


class ProblemSummary(BaseModel):
    """Compact problem entry for catalog listings."""

    id: int
    question_no: int
    title: str
    difficulty: str
    acceptance_rate: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    is_premium: Optional[bool] = None


class ProblemDetailData(ProblemData):
    """Problem detail with the starter code resolved."""

    starter_code: str = Field(..., description="Code shown in the editor")


class CatalogPageData(BaseModel):
    """One page of the filtered catalog."""

    items: list[ProblemSummary]
    page: int = Field(..., description="1-based page number")
    page_size: int
    page_count: int
    filtered_count: int
    total_count: int
    search: str = ""
    difficulty: str = "All"
    tag: str = "All"


class CatalogFiltersData(BaseModel):
    """Vocabularies offered by the catalog filters."""

    difficulties: list[str]
    tags: list[str]


# Sprint schemas
class SprintStartRequest(BaseModel):
    """Request body for starting a sprint."""

    problem_id: int = Field(..., description="Problem to sprint on")


class SubmitRequest(BaseModel):
    """Request body for submitting a solution."""

    code: str = Field(..., description="Solution source text")
    language: str = Field(default="python", description="Solution language")


class NoticeData(BaseModel):
    """Transient user-visible notice."""

    level: Literal["info", "success", "warning", "error"]
    message: str
    created_at: datetime


class SprintSnapshot(BaseModel):
    """Current state of a user's sprint session."""

    state: str = Field(..., description="idle/running/paused/terminated")
    outcome: Optional[str] = Field(
        default=None,
        description="stopped/expired/submitted"
    )
    sprint_id: Optional[int] = None
    problem_id: Optional[int] = None
    submission_id: Optional[int] = None
    remaining_seconds: int
    duration_seconds: int
    display: str = Field(..., description="Remaining time as MM:SS")
    progress: float = Field(..., description="Elapsed fraction (0-1)")
    urgency: str = Field(..., description="safe/warning/critical")
    timer_running: bool
    notices: list[NoticeData] = Field(default_factory=list)


# Dashboard schemas
class UserStatsData(BaseModel):
    """Aggregate statistics computed by the backend."""

    user_id: str
    total_submissions: int = 0
    accepted_submissions: int = 0
    current_streak: int = 0
    max_streak: int = 0
    easy_solved: int = 0
    medium_solved: int = 0
    hard_solved: int = 0
    total_runtime_minutes: int = 0
    last_active: Optional[datetime] = None


class ProblemRef(BaseModel):
    """Problem fields joined onto activity rows."""

    title: str
    difficulty: str


class RecentSubmissionData(BaseModel):
    id: int
    problem_id: int
    language: str = "python"
    status: str
    submitted_at: datetime
    problem: Optional[ProblemRef] = None


class RecentSprintData(BaseModel):
    id: int
    problem_id: int
    duration_minutes: int
    started_at: datetime
    finished_at: Optional[datetime] = None
    completed: bool = False
    submission_id: Optional[int] = None
    problem: Optional[ProblemRef] = None


class DifficultyProgress(BaseModel):
    name: str
    solved: int
    total: int


class DashboardData(BaseModel):
    """Dashboard view of a user's progress."""

    stats: Optional[UserStatsData] = None
    success_rate: int = Field(..., description="Accepted percentage (0-100)")
    total_time: str = Field(..., description="Cumulative time, e.g. 1h 5m")
    progress: list[DifficultyProgress] = Field(default_factory=list)
    recent_submissions: list[RecentSubmissionData] = Field(
        default_factory=list
    )
    recent_sprints: list[RecentSprintData] = Field(default_factory=list)


# Navigation schemas
class NavLink(BaseModel):
    """Navigation entry that links straight to a target."""

    kind: Literal["link"] = "link"
    name: str
    target: str


class NavAuthGated(BaseModel):
    """Navigation entry that requires signing in first."""

    kind: Literal["authGated"] = "authGated"
    name: str
    action: Literal["signin", "signup"] = "signin"


NavItem = Annotated[Union[NavLink, NavAuthGated], Field(discriminator="kind")]


class NavigationData(BaseModel):
    authenticated: bool
    items: list[NavItem]
