from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from qc_api.db.models import Milestone as MilestoneRow
from qc_api.domain.entities import Milestone
from qc_api.domain.errors import NotFoundError
from qc_api.repositories.base import committing, reading
from qc_api.utils.time import as_utc


def _to_entity(row: MilestoneRow) -> Milestone:
    return Milestone(
        id=row.id,
        couple_id=row.couple_id,
        key=row.key,
        title=row.title,
        description=row.description,
        category=row.category,
        icon=row.icon,
        points=row.points or 0,
        target_date=row.target_date,
        achieved_at=as_utc(row.achieved_at),
        achieved_by_id=row.achieved_by_id,
        achievement_notes=row.achievement_notes,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _apply(row: MilestoneRow, milestone: Milestone) -> None:
    row.couple_id = milestone.couple_id
    row.key = milestone.key
    row.title = milestone.title
    row.description = milestone.description
    row.category = milestone.category
    row.icon = milestone.icon
    row.points = milestone.points
    row.target_date = milestone.target_date
    row.achieved_at = milestone.achieved_at
    row.achieved_by_id = milestone.achieved_by_id
    row.achievement_notes = milestone.achievement_notes
    row.created_at = milestone.created_at
    row.updated_at = milestone.updated_at


class SqlAlchemyMilestoneRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, milestone: Milestone) -> Milestone:
        row = MilestoneRow(id=milestone.id)
        _apply(row, milestone)
        with committing(self.db, "create milestone"):
            self.db.add(row)
        return self.find(milestone.id)

    def save(self, milestone: Milestone) -> Milestone:
        with committing(self.db, "save milestone"):
            row = self.db.get(MilestoneRow, milestone.id)
            if row is None:
                raise NotFoundError("Milestone", milestone.id)
            _apply(row, milestone)
        return self.find(milestone.id)

    def find(self, milestone_id: UUID) -> Milestone:
        with reading(self.db, "load milestone"):
            row = self.db.get(MilestoneRow, milestone_id, populate_existing=True)
        if row is None:
            raise NotFoundError("Milestone", milestone_id)
        return _to_entity(row)

    def delete(self, milestone_id: UUID) -> None:
        with committing(self.db, "delete milestone"):
            row = self.db.get(MilestoneRow, milestone_id)
            if row is None:
                raise NotFoundError("Milestone", milestone_id)
            self.db.delete(row)

    def list_for_couple(
        self,
        couple_id: UUID,
        *,
        achieved: Optional[bool] = None,
        category: Optional[str] = None,
    ) -> list[Milestone]:
        q = select(MilestoneRow).where(MilestoneRow.couple_id == couple_id)
        if achieved is True:
            q = q.where(MilestoneRow.achieved_at.is_not(None))
        elif achieved is False:
            q = q.where(MilestoneRow.achieved_at.is_(None))
        if category is not None:
            q = q.where(MilestoneRow.category == category)
        q = q.order_by(MilestoneRow.created_at)
        with reading(self.db, "list milestones"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]

    def keys_for_couple(self, couple_id: UUID) -> set[str]:
        q = select(MilestoneRow.key).where(MilestoneRow.couple_id == couple_id, MilestoneRow.key.is_not(None))
        with reading(self.db, "list milestone keys"):
            return set(self.db.execute(q).scalars().all())
