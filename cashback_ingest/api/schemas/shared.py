from typing import Optional

from pydantic import BaseModel, Field, field_validator


class DateParams(BaseModel):
    """Month/year query parameters that select the destination schema."""
    month: str
    year: str

    @field_validator("month", "year")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value


class IngestSummary(BaseModel):
    schema_name: str
    rows_read: int
    rows_skipped: int
    jobs_queued: int
    inserted: int
    failed: int
    cancelled: int
    timed_out: bool
    stopped_at_sentinel: bool
    stopped_at_error: bool
    elapsed_seconds: float


class UploadResponse(BaseModel):
    message: str
    summary: Optional[IngestSummary] = Field(default=None)


class ErrorResponse(BaseModel):
    message: str
