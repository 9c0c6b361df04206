"""CF Monitor — Snapshot Models (Append-only)."""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel
from sqlmodel import SQLModel, Field

from cfmonitor.models.analytics_models import AnalyticsPayload


class AnalyticsSnapshot(SQLModel, table=True):
    """One refresh cycle's payload, stored as a JSON blob.

    Rows are never updated or deleted. Latest = highest id.
    """

    __tablename__ = "analytics_snapshots"

    id: Optional[int] = Field(default=None, primary_key=True)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc), index=True
    )
    payload_json: str = Field(description="Full AnalyticsPayload as JSON")


class Snapshot(BaseModel):
    """Read-side view of a stored snapshot."""

    id: int
    created_at: datetime
    payload: AnalyticsPayload

    @classmethod
    def from_row(cls, row: AnalyticsSnapshot) -> "Snapshot":
        created_at = row.created_at
        # SQLite drops tzinfo on the way back
        if created_at.tzinfo is None:
            created_at = created_at.replace(tzinfo=timezone.utc)
        return cls(
            id=row.id,
            created_at=created_at,
            payload=AnalyticsPayload.model_validate_json(row.payload_json),
        )
