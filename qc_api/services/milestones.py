"""
Couple milestones: hand-made goals plus the check-in count and streak
achievements recorded automatically when a session completes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import NamedTuple, Optional
from uuid import UUID

from sqlalchemy.orm import Session

from qc_api.domain.entities import Milestone
from qc_api.domain.errors import NotFoundError, ValidationError
from qc_api.repositories import couple_repo
from qc_api.repositories.milestone_repo import SqlAlchemyMilestoneRepository
from qc_api.utils.time import ensure_aware, utcnow

logger = logging.getLogger(__name__)

TITLE_MAX = 100
EDITABLE_FIELDS = {"title", "description", "category", "target_date", "points", "icon"}
RECENT_ACHIEVEMENTS = 5


class Rule(NamedTuple):
    threshold: int
    key: str
    title: str
    description: str


FREQUENCY_RULES = (
    Rule(1, "first_checkin", "First Step", "Your journey begins!"),
    Rule(10, "checkin_10", "Getting Started", "10 check-ins completed!"),
    Rule(25, "checkin_25", "Quarter Century", "25 meaningful conversations!"),
    Rule(50, "checkin_50", "Halfway to 100", "50 check-ins achieved!"),
    Rule(100, "checkin_100", "Century", "100 check-ins - Amazing commitment!"),
    Rule(200, "checkin_200", "Double Century", "200 check-ins and growing strong!"),
    Rule(365, "checkin_365", "Daily for a Year", "A full year of check-ins!"),
    Rule(500, "checkin_500", "Half Thousand", "500 relationship investments!"),
    Rule(1000, "checkin_1000", "Thousand Strong", "Four-digit commitment!"),
)

STREAK_RULES = (
    Rule(3, "streak_3", "Getting Consistent", "3-day streak started!"),
    Rule(7, "streak_7", "Week Warrior", "Full week of daily check-ins!"),
    Rule(14, "streak_14", "Fortnight Focus", "Two weeks straight!"),
    Rule(21, "streak_21", "Habit Forming", "21 days to build a habit!"),
    Rule(30, "streak_30", "Monthly Master", "30-day streak achieved!"),
    Rule(60, "streak_60", "Two Month Momentum", "60 consecutive days!"),
    Rule(90, "streak_90", "Quarter Champion", "90-day transformation!"),
    Rule(180, "streak_180", "Half Year Hero", "Six months of consistency!"),
    Rule(365, "streak_365", "Year of Connection", "Daily connection for a full year!"),
)


@dataclass(slots=True)
class MilestoneStatistics:
    total: int
    achieved: int
    pending: int
    achievement_rate: float
    recent_achievements: list[Milestone] = field(default_factory=list)
    categories: dict[str, int] = field(default_factory=dict)


def detect_milestones(
    repo: SqlAlchemyMilestoneRepository,
    couple_id: UUID,
    *,
    completed_check_ins: int,
    streak: int,
    now: Optional[datetime] = None,
) -> list[Milestone]:
    """
    Record every count or streak milestone the couple has reached but not yet
    been given. Each key is awarded at most once per couple.
    """
    now = now or utcnow()
    have = repo.keys_for_couple(couple_id)
    earned = [("frequency", r) for r in FREQUENCY_RULES if completed_check_ins >= r.threshold]
    earned += [("consistency", r) for r in STREAK_RULES if streak >= r.threshold]
    created = []
    for category, rule in earned:
        if rule.key in have:
            continue
        milestone = Milestone(
            couple_id=couple_id,
            key=rule.key,
            title=rule.title,
            description=rule.description,
            category=category,
            achieved_at=now,
            created_at=now,
            updated_at=now,
        )
        created.append(repo.create(milestone))
        logger.info("Couple %s reached milestone %s", couple_id, rule.key)
    return created


def _clean_title(title: Optional[str]) -> str:
    title = (title or "").strip()
    if not title or len(title) > TITLE_MAX:
        raise ValidationError(f"Milestone title must be 1 to {TITLE_MAX} characters")
    return title


class MilestoneService:
    """
    Membership is checked by the caller (routes use require_member); every
    lookup here is scoped to the couple.
    """

    def __init__(self, db: Session):
        self.db = db
        self.repo = SqlAlchemyMilestoneRepository(db)

    def get(self, couple_id: UUID, milestone_id: UUID) -> Milestone:
        milestone = self.repo.find(milestone_id)
        if milestone.couple_id != couple_id:
            raise NotFoundError("Milestone", milestone_id)
        return milestone

    def list_for_couple(
        self,
        couple_id: UUID,
        *,
        achieved: Optional[bool] = None,
        category: Optional[str] = None,
    ) -> list[Milestone]:
        milestones = self.repo.list_for_couple(couple_id, achieved=achieved, category=category)
        if achieved:
            milestones.sort(key=lambda m: m.achieved_at, reverse=True)
        elif achieved is False:
            milestones.sort(key=lambda m: (m.target_date or date.max, m.created_at))
        return milestones

    def create(
        self,
        couple_id: UUID,
        title: str,
        *,
        description: Optional[str] = None,
        category: str = "custom",
        target_date: Optional[date] = None,
        points: int = 0,
        icon: Optional[str] = None,
    ) -> Milestone:
        couple_repo.get_couple(self.db, couple_id)
        if points < 0:
            raise ValidationError("Milestone points cannot be negative")
        now = utcnow()
        milestone = Milestone(
            couple_id=couple_id,
            title=_clean_title(title),
            description=description,
            category=(category or "custom").strip(),
            target_date=target_date,
            points=points,
            icon=icon,
            created_at=now,
            updated_at=now,
        )
        return self.repo.create(milestone)

    def update(self, couple_id: UUID, milestone_id: UUID, **changes) -> Milestone:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update milestone fields: {', '.join(sorted(unknown))}")
        milestone = self.get(couple_id, milestone_id)
        if "title" in changes:
            milestone.title = _clean_title(changes["title"])
        if "description" in changes:
            milestone.description = changes["description"]
        if changes.get("category") is not None:
            milestone.category = changes["category"].strip()
        if "target_date" in changes:
            milestone.target_date = changes["target_date"]
        if changes.get("points") is not None:
            if changes["points"] < 0:
                raise ValidationError("Milestone points cannot be negative")
            milestone.points = changes["points"]
        if "icon" in changes:
            milestone.icon = changes["icon"]
        milestone.updated_at = utcnow()
        return self.repo.save(milestone)

    def delete(self, couple_id: UUID, milestone_id: UUID) -> None:
        self.get(couple_id, milestone_id)
        self.repo.delete(milestone_id)

    def achieve(
        self,
        couple_id: UUID,
        milestone_id: UUID,
        user_id: UUID,
        *,
        notes: Optional[str] = None,
        achieved_at: Optional[datetime] = None,
    ) -> Milestone:
        milestone = self.get(couple_id, milestone_id)
        milestone.achieve(user_id, notes=notes, now=ensure_aware(achieved_at) if achieved_at else None)
        saved = self.repo.save(milestone)
        logger.info("Milestone %s achieved by %s", milestone_id, user_id)
        return saved

    def unachieve(self, couple_id: UUID, milestone_id: UUID) -> Milestone:
        milestone = self.get(couple_id, milestone_id)
        if not milestone.is_achieved:
            return milestone
        milestone.unachieve()
        return self.repo.save(milestone)

    def statistics(self, couple_id: UUID) -> MilestoneStatistics:
        milestones = self.repo.list_for_couple(couple_id)
        achieved = sorted((m for m in milestones if m.is_achieved), key=lambda m: m.achieved_at, reverse=True)
        categories: dict[str, int] = {}
        for m in milestones:
            categories[m.category] = categories.get(m.category, 0) + 1
        total = len(milestones)
        return MilestoneStatistics(
            total=total,
            achieved=len(achieved),
            pending=total - len(achieved),
            achievement_rate=round(len(achieved) * 100 / total, 2) if total else 0.0,
            recent_achievements=achieved[:RECENT_ACHIEVEMENTS],
            categories=categories,
        )
