"""CF Monitor — Snapshot Store.

Append-only log of refresh payloads. Each append is a single INSERT, so ids
come from the database's own autoincrement and are strictly increasing.
"""

from typing import Optional

from sqlalchemy import func
from sqlmodel import Session, select

from cfmonitor.core.logging import get_logger
from cfmonitor.models.analytics_models import AnalyticsPayload
from cfmonitor.models.snapshot_models import AnalyticsSnapshot, Snapshot

logger = get_logger("storage.snapshots")


class SnapshotStore:
    """Persist and read analytics snapshots."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, payload: AnalyticsPayload) -> Snapshot:
        row = AnalyticsSnapshot(payload_json=payload.to_json())
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        logger.info(
            f"Stored snapshot id {row.id} ({len(payload.accounts)} accounts)"
        )
        return Snapshot.from_row(row)

    def latest(self) -> Optional[Snapshot]:
        row = self.session.exec(
            select(AnalyticsSnapshot)
            .order_by(AnalyticsSnapshot.id.desc())  # type: ignore
            .limit(1)
        ).first()
        if row is None:
            return None
        return Snapshot.from_row(row)

    def count(self) -> int:
        return self.session.exec(
            select(func.count()).select_from(AnalyticsSnapshot)
        ).one()
