from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from qc_api.db.models import ActionItem as ActionItemRow
from qc_api.domain.entities import ActionItem, Priority
from qc_api.domain.errors import NotFoundError
from qc_api.repositories.base import committing, reading
from qc_api.utils.time import as_utc


def _to_entity(row: ActionItemRow) -> ActionItem:
    return ActionItem(
        id=row.id,
        session_id=row.check_in_id,
        title=row.title,
        description=row.description,
        assignee_id=row.assigned_to_id,
        due_date=row.due_date,
        priority=Priority(row.priority),
        completed=bool(row.completed),
        completed_at=as_utc(row.completed_at),
        completed_by_id=row.completed_by_id,
        created_by_id=row.created_by_id,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _apply(row: ActionItemRow, item: ActionItem) -> None:
    row.check_in_id = item.session_id
    row.title = item.title
    row.description = item.description
    row.assigned_to_id = item.assignee_id
    row.due_date = item.due_date
    row.priority = Priority(item.priority).value
    row.completed = item.completed
    row.completed_at = item.completed_at
    row.completed_by_id = item.completed_by_id
    row.created_by_id = item.created_by_id
    row.created_at = item.created_at
    row.updated_at = item.updated_at


class SqlAlchemyActionItemRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, item: ActionItem) -> ActionItem:
        row = ActionItemRow(id=item.id)
        _apply(row, item)
        with committing(self.db, "create action item"):
            self.db.add(row)
        return self.find(item.id)

    def save(self, item: ActionItem) -> ActionItem:
        with committing(self.db, "save action item"):
            row = self.db.get(ActionItemRow, item.id)
            if row is None:
                raise NotFoundError("ActionItem", item.id)
            _apply(row, item)
        return self.find(item.id)

    def find(self, item_id: UUID) -> ActionItem:
        with reading(self.db, "load action item"):
            row = self.db.get(ActionItemRow, item_id, populate_existing=True)
        if row is None:
            raise NotFoundError("ActionItem", item_id)
        return _to_entity(row)

    def list_for_session(self, session_id: UUID) -> list[ActionItem]:
        q = (
            select(ActionItemRow)
            .where(ActionItemRow.check_in_id == session_id)
            .order_by(ActionItemRow.created_at)
        )
        with reading(self.db, "list action items"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]
