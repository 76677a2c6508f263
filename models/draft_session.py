"""
Draft session model

Lifecycle: scheduled -> active -> [paused <-> active] -> completed.
"""
from enum import Enum
from typing import Optional
from datetime import datetime, timedelta, timezone
from pydantic import Field

from models.base import DraftBaseModel


class DraftSessionStatus(str, Enum):
    """Draft session lifecycle states."""
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"


# Statuses that block creating another session for the same season
OPEN_SESSION_STATUSES = (
    DraftSessionStatus.SCHEDULED.value,
    DraftSessionStatus.ACTIVE.value,
    DraftSessionStatus.PAUSED.value,
)


def utcnow() -> datetime:
    """Timezone-aware current time; store timestamps are timestamptz."""
    return datetime.now(timezone.utc)


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class DraftSession(DraftBaseModel):
    """Draft session configuration and timer state."""

    season_id: str = Field(..., description="Season being drafted")
    status: DraftSessionStatus = Field(DraftSessionStatus.SCHEDULED, description="Lifecycle state")
    total_rounds: int = Field(..., ge=1, description="Rounds each team drafts")
    hours_per_pick: float = Field(..., gt=0, description="Hours each team has on the clock")
    start_time: datetime = Field(..., description="When the draft opens")
    end_time: Optional[datetime] = Field(None, description="Hard stop for the draft")
    current_pick_deadline: Optional[datetime] = Field(None, description="Deadline for the current pick")
    current_on_clock_team_id: Optional[str] = Field(None, description="Team currently picking")
    consecutive_skipped_picks: int = Field(0, ge=0, description="Skips since the last real pick")
    started_by: Optional[str] = Field(None, description="Admin user that created the session")

    @property
    def pick_window(self) -> timedelta:
        return timedelta(hours=self.hours_per_pick)

    @property
    def is_active(self) -> bool:
        return self.status == DraftSessionStatus.ACTIVE.value

    @property
    def is_scheduled(self) -> bool:
        return self.status == DraftSessionStatus.SCHEDULED.value

    def has_started(self, now: Optional[datetime] = None) -> bool:
        """Check if the scheduled start time has arrived."""
        return _aware(self.start_time) <= (now or utcnow())

    def is_past_end_time(self, now: Optional[datetime] = None) -> bool:
        """Check if the hard end time (if any) has arrived."""
        if not self.end_time:
            return False
        return (now or utcnow()) >= _aware(self.end_time)

    def is_pick_expired(self, now: Optional[datetime] = None) -> bool:
        """Check if the current pick deadline has passed."""
        if not self.current_pick_deadline:
            return False
        return _aware(self.current_pick_deadline) <= (now or utcnow())

    def next_deadline(self, now: Optional[datetime] = None) -> datetime:
        """Deadline for a pick starting now."""
        return (now or utcnow()) + self.pick_window

    def __str__(self):
        return f"Draft {self.status}: {self.total_rounds} rounds ({self.hours_per_pick}h per pick)"
