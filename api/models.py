"""Shared API response models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pod.records import SubmissionRecord


class PostRecordResponse(BaseModel):
    """Response payload for a stored submission record."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "topic": "food",
                    "key": "2v4q1m8d0xk3a",
                    "raw_id": "CxYz12AbC",
                    "mode": "normal",
                    "last_modified": 1718000000.0,
                }
            ]
        }
    )
    topic: str = Field(..., description="Topic the post was published under")
    key: str = Field(..., description="Key derived from the post id")
    raw_id: str = Field(..., description="Post id as submitted")
    mode: str = Field(..., description="Publish mode")
    last_modified: float = Field(..., description="Last upsert time, epoch seconds UTC")

    @classmethod
    def from_record(cls, record: SubmissionRecord) -> PostRecordResponse:
        return cls(**record.to_dict())


class QuotaResponse(BaseModel):
    """Response payload for an identity's daily quota."""

    model_config = ConfigDict(
        json_schema_extra={
            "examples": [
                {
                    "identity": "grace.hopper",
                    "count": 2,
                    "remaining": 3,
                    "daily_cap": 5,
                    "opened_at": 1718000000.0,
                }
            ]
        }
    )
    identity: str = Field(..., description="Resolved account handle")
    count: int = Field(..., description="Submissions admitted in the active window")
    remaining: int = Field(..., description="Submissions still allowed in the window")
    daily_cap: int = Field(..., description="Submissions allowed per window")
    # None when the identity has no active window.
    opened_at: float | None = Field(None, description="Window start, epoch seconds UTC")


class HealthResponse(BaseModel):
    healthy: bool = Field(..., description="Whether the database answered")
    latency_ms: int = Field(..., description="Time taken by the check")
