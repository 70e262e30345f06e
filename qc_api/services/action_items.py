from __future__ import annotations

import logging
from datetime import date
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from qc_api.domain.entities import ActionItem, Priority
from qc_api.domain.errors import AuthorizationError, ValidationError
from qc_api.repositories import couple_repo
from qc_api.repositories.action_item_repo import SqlAlchemyActionItemRepository
from qc_api.services.checkin import SessionLifecycleManager
from qc_api.utils.time import utcnow

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = {"title", "description", "assignee_id", "due_date", "priority"}


class ActionItemService:
    def __init__(self, db: Session, manager: SessionLifecycleManager):
        self.db = db
        self.manager = manager
        self.repo = SqlAlchemyActionItemRepository(db)

    def _members_for_session(self, session_id: UUID) -> set[UUID]:
        session = self.manager.repo.find(session_id)
        return couple_repo.member_ids(self.db, session.couple_id)

    def _require_member(self, session_id: UUID, user_id: UUID) -> set[UUID]:
        members = self._members_for_session(session_id)
        if user_id not in members:
            raise AuthorizationError("Only members of the couple can manage these action items")
        return members

    def create(
        self,
        session_id: UUID,
        user_id: UUID,
        title: str,
        *,
        description: Optional[str] = None,
        assignee_id: Optional[UUID] = None,
        due_date: Optional[date] = None,
        priority: Priority = Priority.MEDIUM,
    ) -> ActionItem:
        if not title or not title.strip():
            raise ValidationError("Action item title cannot be empty")
        members = self._require_member(session_id, user_id)
        if assignee_id is not None and assignee_id not in members:
            raise ValidationError("Action items can only be assigned to a member of the couple")
        session = self.manager.repo.find(session_id)
        now = utcnow()
        item = ActionItem(
            session_id=session_id,
            title=title.strip(),
            description=description,
            assignee_id=assignee_id,
            due_date=due_date,
            priority=Priority(priority),
            created_by_id=user_id,
            created_at=now,
            updated_at=now,
        )
        saved = self.manager.add_action_item(session, item)
        logger.info("Action item %s (%s) added to session %s", saved.id, saved.priority.value, session_id)
        return saved

    def list_for_session(self, session_id: UUID, user_id: UUID) -> list[ActionItem]:
        self._require_member(session_id, user_id)
        return self.repo.list_for_session(session_id)

    def complete(self, item_id: UUID, user_id: UUID) -> ActionItem:
        item = self.repo.find(item_id)
        self._require_member(item.session_id, user_id)
        if item.completed:
            return item
        item.mark_complete(user_id)
        return self.repo.save(item)

    def reopen(self, item_id: UUID, user_id: UUID) -> ActionItem:
        item = self.repo.find(item_id)
        self._require_member(item.session_id, user_id)
        if not item.completed:
            return item
        item.reopen()
        return self.repo.save(item)

    def update(self, item_id: UUID, user_id: UUID, **changes) -> ActionItem:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update action item fields: {', '.join(sorted(unknown))}")
        item = self.repo.find(item_id)
        members = self._require_member(item.session_id, user_id)
        if "title" in changes:
            title = changes["title"]
            if not title or not title.strip():
                raise ValidationError("Action item title cannot be empty")
            item.title = title.strip()
        if "description" in changes:
            item.description = changes["description"]
        if "assignee_id" in changes:
            assignee = changes["assignee_id"]
            if assignee is not None and assignee not in members:
                raise ValidationError("Action items can only be assigned to a member of the couple")
            item.assignee_id = assignee
        if "due_date" in changes:
            item.due_date = changes["due_date"]
        if "priority" in changes and changes["priority"] is not None:
            item.priority = Priority(changes["priority"])
        item.updated_at = utcnow()
        return self.repo.save(item)
