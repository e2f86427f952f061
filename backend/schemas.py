"""Pydantic schemas for API request/response."""

from pydantic import BaseModel, ConfigDict, Field, field_validator


class AnalyzeRequest(BaseModel):
    """Request body for POST /api/analyze."""

    url: str = ""

    @field_validator("url", mode="before")
    @classmethod
    def normalize_text_fields(cls, value: object) -> str:
        return str(value or "").strip()


class AnalysisReport(BaseModel):
    """Complete result of one page analysis. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    url: str
    domain: str
    signals: dict
    category_scores: dict[str, int]
    overall_score: int = Field(ge=0, le=100)
    grade: str
    strengths: list[str]
    weaknesses: list[str]
    recommendations: list[str]
    cached: bool = False
    timestamp: str


class ErrorResponse(BaseModel):
    """Body returned for every failed request."""

    success: bool = False
    error: str
    message: str


class AnalysisHistoryItem(BaseModel):
    """Summary row for the recent analyses list."""

    id: int
    url: str
    domain: str
    overall_score: int
    grade: str
    created_at: str
