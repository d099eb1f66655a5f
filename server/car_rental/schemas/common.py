"""Common Pydantic schemas."""

from typing import Any, Optional

from pydantic import BaseModel, Field


class Problem(BaseModel):
    """RFC 9457 Problem Details response."""

    type: Optional[str] = Field(None, description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    code: Optional[str] = Field(None, description="Application-specific error code")
    retryable: Optional[bool] = Field(None, description="Whether the operation can be retried")
    redirect_to: Optional[str] = Field(None, description="Booking step to show instead")
    errors: Optional[dict[str, Any]] = Field(None, description="Field-level details")


def problem_responses(*status_codes: int) -> dict[int, dict]:
    """OpenAPI ``responses`` entries documenting Problem Details bodies."""
    return {code: {"model": Problem} for code in status_codes}
