from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Iterable, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from qc_api.db.models import Couple
from qc_api.domain.entities import CheckInSession
from qc_api.repositories.base import committing
from qc_api.repositories.checkin_repo import SqlAlchemyCheckInRepository
from qc_api.repositories.milestone_repo import SqlAlchemyMilestoneRepository
from qc_api.services.milestones import detect_milestones
from qc_api.utils.time import utc_day, utcnow

logger = logging.getLogger(__name__)

# Business defaults for statistics windows
STREAK_WINDOW = 365
AVERAGE_DURATION_WINDOW = 50


@dataclass(slots=True)
class CoupleStatistics:
    total_sessions: int
    completed_sessions: int
    abandoned_sessions: int
    in_progress_sessions: int
    current_streak: int
    average_duration_seconds: int
    last_check_in_at: Optional[datetime]


def streak_from_days(days: Iterable[date], *, today: Optional[date] = None) -> int:
    """
    Consecutive-day streak counting back from `today`.
    - `days` are completion days in any order; several on one day count once
    - the run may end today or yesterday, after that each day must follow the last
    """
    cursor = today or utcnow().date()
    streak = 0
    for d in sorted(set(days), reverse=True):
        gap = (cursor - d).days
        if gap in (0, 1):
            streak += 1
            cursor = d
        elif gap < 0:
            # future timestamps (clock skew) don't break the run
            continue
        else:
            break
    return streak


def current_streak(sessions: Iterable[CheckInSession], *, today: Optional[date] = None) -> int:
    days = [utc_day(s.completed_at) for s in sessions if s.completed_at is not None]
    return streak_from_days(days, today=today)


def average_duration(sessions: Iterable[CheckInSession]) -> int:
    durations = [s.duration_seconds or 0 for s in sessions]
    if not durations:
        return 0
    return sum(durations) // len(durations)


def couple_statistics(repo: SqlAlchemyCheckInRepository, couple_id: UUID, *, today: Optional[date] = None) -> CoupleStatistics:
    counts = repo.count_by_status(couple_id)
    recent = repo.recent_completed(couple_id, limit=STREAK_WINDOW)
    return CoupleStatistics(
        total_sessions=sum(counts.values()),
        completed_sessions=counts["completed"],
        abandoned_sessions=counts["abandoned"],
        in_progress_sessions=counts["in_progress"],
        current_streak=current_streak(recent, today=today),
        average_duration_seconds=average_duration(recent[:AVERAGE_DURATION_WINDOW]),
        last_check_in_at=recent[0].completed_at if recent else None,
    )


class CoupleStatsObserver:
    """
    Keeps the denormalised counters on the couple row in step with
    completed sessions and awards any count or streak milestones they reach.
    """

    def __init__(self, db: Session):
        self.db = db

    def on_complete(self, session: CheckInSession) -> None:
        repo = SqlAlchemyCheckInRepository(self.db)
        stats = couple_statistics(repo, session.couple_id)
        with committing(self.db, "update couple statistics"):
            couple = self.db.get(Couple, session.couple_id)
            if couple is None:
                logger.warning("Completed session %s references missing couple %s", session.id, session.couple_id)
                return
            couple.total_check_ins = stats.completed_sessions
            couple.current_streak = stats.current_streak
            couple.last_check_in_at = stats.last_check_in_at
        logger.info(
            "Couple %s now has %s check-ins (streak %s)",
            session.couple_id, stats.completed_sessions, stats.current_streak,
        )
        detect_milestones(
            SqlAlchemyMilestoneRepository(self.db),
            session.couple_id,
            completed_check_ins=stats.completed_sessions,
            streak=stats.current_streak,
        )

    def on_cancel(self, session: CheckInSession) -> None:
        logger.info("Check-in session %s for couple %s was cancelled", session.id, session.couple_id)
