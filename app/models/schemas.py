"""
Pydantic schemas for API request/response validation.

These schemas define the API contract separate from database models
for clean separation of concerns.
"""
from datetime import date as date_type
from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, ValidationError, field_validator

from app.exceptions import PayloadValidationError


# Response Schemas

class DailySummarySchema(BaseModel):
    """One stored day of counts for a branch."""
    model_config = ConfigDict(from_attributes=True)

    date: date_type
    repo: str
    branch: str
    total_tests: int
    skipped_count: int


class TrendSummarySchema(BaseModel):
    """Headline numbers for the dashboard."""
    model_config = ConfigDict(from_attributes=True)

    today_skipped: Optional[int] = None
    today_total: Optional[int] = None
    avg_7d: Optional[float] = None
    trend: str = Field(..., description="up, down or flat")


class FetchResponse(BaseModel):
    """Result of an on-demand fetch."""
    ok: bool = True
    date: date_type
    branch: str
    totalTests: int
    skippedCount: int


class WebhookResponse(BaseModel):
    ok: bool = True
    message: str


# Request Schemas

class FetchRequest(BaseModel):
    """Body of POST /fetch-now."""
    branch: Optional[str] = Field(None, max_length=255)


FIELD_ERROR_MESSAGES = {
    "date": "date is required (YYYY-MM-DD)",
    "branch": "branch is required",
    "total_tests": "total_tests must be a non-negative number",
    "skipped_count": "skipped_count must be a non-negative number",
}


class WebhookPayload(BaseModel):
    """
    Externally computed daily summary pushed to the webhook.

    Counts must be JSON numbers; booleans and numeric strings are rejected.
    Whole-valued floats (e.g. 12.0) are accepted and stored as integers.
    """
    date: StrictStr = Field(..., pattern=r"^\d{4}-\d{2}-\d{2}$")
    branch: StrictStr = Field(..., min_length=1, max_length=255)
    total_tests: Union[StrictInt, StrictFloat]
    skipped_count: Union[StrictInt, StrictFloat]
    repo: Optional[StrictStr] = None

    @field_validator('date')
    @classmethod
    def validate_calendar_date(cls, v: str) -> str:
        """Reject well-formed but impossible dates such as 2024-02-30."""
        date_type.fromisoformat(v)
        return v

    @field_validator('total_tests', 'skipped_count')
    @classmethod
    def validate_count(cls, v: Union[int, float]) -> int:
        if v < 0:
            raise ValueError('must be non-negative')
        if isinstance(v, float) and not v.is_integer():
            raise ValueError('must be a whole number')
        return int(v)

    @property
    def day(self) -> date_type:
        return date_type.fromisoformat(self.date)


def parse_webhook_payload(body: object) -> WebhookPayload:
    """
    Validate a webhook body.

    Raises:
        PayloadValidationError: With one message per failing field
    """
    if not isinstance(body, dict):
        raise PayloadValidationError(["request body must be a JSON object"])

    try:
        return WebhookPayload.model_validate(body)
    except ValidationError as e:
        errors: List[str] = []
        for error in e.errors():
            field = error["loc"][0] if error["loc"] else None
            message = FIELD_ERROR_MESSAGES.get(field, f"{field}: {error['msg']}")
            if message not in errors:
                errors.append(message)
        raise PayloadValidationError(errors)
