from __future__ import annotations

import logging
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session

from qc_api.domain.entities import Note, PrivacyLevel
from qc_api.domain.errors import AuthorizationError, NotFoundError, ValidationError
from qc_api.domain.privacy import NoteView, can_edit, visible_note
from qc_api.repositories import couple_repo
from qc_api.repositories.note_repo import SqlAlchemyNoteRepository
from qc_api.services.checkin import SessionLifecycleManager
from qc_api.utils.time import utcnow

logger = logging.getLogger(__name__)

MAX_TAGS = 20
EDITABLE_FIELDS = {"content", "privacy", "tags", "category_id", "is_favorite"}


def _clean_tags(tags: Optional[list[str]]) -> list[str]:
    seen: list[str] = []
    for t in tags or []:
        t = t.strip()
        if t and t not in seen:
            seen.append(t)
    if len(seen) > MAX_TAGS:
        raise ValidationError(f"A note can carry at most {MAX_TAGS} tags")
    return seen


class NoteService:
    """
    Note authoring and privacy-aware reads. Callers pass the acting user
    explicitly on every call.
    """

    def __init__(self, db: Session, manager: SessionLifecycleManager, *, outside_policy: str = "show"):
        self.db = db
        self.manager = manager
        self.repo = SqlAlchemyNoteRepository(db)
        self.outside_policy = outside_policy

    def create(
        self,
        author_id: UUID,
        content: str,
        *,
        privacy: PrivacyLevel = PrivacyLevel.DRAFT,
        tags: Optional[list[str]] = None,
        category_id: Optional[UUID] = None,
        session_id: Optional[UUID] = None,
        is_favorite: bool = False,
    ) -> Note:
        if not content or not content.strip():
            raise ValidationError("Note content cannot be empty")
        now = utcnow()
        note = Note(
            content=content,
            author_id=author_id,
            tags=_clean_tags(tags),
            category_id=category_id,
            is_favorite=is_favorite,
            created_at=now,
            updated_at=now,
        )
        note.change_privacy(privacy, now=now)

        if session_id is None:
            saved = self.repo.create(note)
        else:
            session = self.manager.repo.find(session_id)
            if author_id not in couple_repo.member_ids(self.db, session.couple_id):
                raise AuthorizationError("Only members of the couple can add notes to this check-in")
            saved = self.manager.attach_note(session, note)
        logger.info("User %s created %s note %s", author_id, saved.privacy.value, saved.id)
        return saved

    def update(self, note_id: UUID, user_id: UUID, **changes) -> Note:
        unknown = set(changes) - EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot update note fields: {', '.join(sorted(unknown))}")
        note = self.repo.find(note_id)
        self._require_author(note, user_id)
        now = utcnow()
        if "content" in changes:
            content = changes["content"]
            if not content or not content.strip():
                raise ValidationError("Note content cannot be empty")
            note.content = content
        if "tags" in changes:
            note.tags = _clean_tags(changes["tags"])
        if "category_id" in changes:
            note.category_id = changes["category_id"]
        if "is_favorite" in changes and changes["is_favorite"] is not None:
            note.is_favorite = bool(changes["is_favorite"])
        if "privacy" in changes and changes["privacy"] is not None:
            note.change_privacy(changes["privacy"], now=now)
        note.updated_at = now
        return self.repo.save(note)

    def delete(self, note_id: UUID, user_id: UUID) -> None:
        note = self.repo.find(note_id)
        self._require_author(note, user_id)
        self.repo.delete(note_id)
        logger.info("User %s deleted note %s", user_id, note_id)

    def get(self, note_id: UUID) -> Note:
        return self.repo.find(note_id)

    def view(self, note: Note, viewer_id: Optional[UUID]) -> NoteView:
        members = couple_repo.partner_member_ids(self.db, note.author_id)
        try:
            author_name = couple_repo.get_user(self.db, note.author_id).name
        except NotFoundError:
            author_name = None
        return visible_note(
            note,
            viewer_id,
            members,
            author_name=author_name,
            outside_policy=self.outside_policy,
        )

    def views_for_session(self, session_id: UUID, viewer_id: UUID) -> list[NoteView]:
        return [self.view(n, viewer_id) for n in self.repo.list_for_session(session_id)]

    def views_for_author(self, author_id: UUID, viewer_id: UUID) -> list[NoteView]:
        return [self.view(n, viewer_id) for n in self.repo.list_by_author(author_id)]

    def _require_author(self, note: Note, user_id: UUID) -> None:
        if not can_edit(note, user_id):
            logger.warning("User %s tried to modify note %s owned by %s", user_id, note.id, note.author_id)
            raise AuthorizationError("Only the author can modify this note")
