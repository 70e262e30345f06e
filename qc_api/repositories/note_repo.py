from __future__ import annotations

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from qc_api.db.models import Note as NoteRow
from qc_api.domain.entities import Note, PrivacyLevel
from qc_api.domain.errors import NotFoundError
from qc_api.repositories.base import committing, reading
from qc_api.utils.time import as_utc


def _to_entity(row: NoteRow) -> Note:
    return Note(
        id=row.id,
        content=row.content,
        author_id=row.author_id,
        privacy=PrivacyLevel(row.privacy),
        category_id=row.category_id,
        session_id=row.check_in_id,
        tags=list(row.tags or []),
        is_favorite=bool(row.is_favorite),
        published_at=as_utc(row.published_at),
        first_shared_at=as_utc(row.first_shared_at),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def _apply(row: NoteRow, note: Note) -> None:
    row.content = note.content
    row.author_id = note.author_id
    row.privacy = PrivacyLevel(note.privacy).value
    row.category_id = note.category_id
    row.check_in_id = note.session_id
    row.tags = list(note.tags)
    row.is_favorite = note.is_favorite
    row.published_at = note.published_at
    row.first_shared_at = note.first_shared_at
    row.created_at = note.created_at
    row.updated_at = note.updated_at


class SqlAlchemyNoteRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, note: Note) -> Note:
        row = NoteRow(id=note.id)
        _apply(row, note)
        with committing(self.db, "create note"):
            self.db.add(row)
        return self.find(note.id)

    def save(self, note: Note) -> Note:
        with committing(self.db, "save note"):
            row = self.db.get(NoteRow, note.id)
            if row is None:
                raise NotFoundError("Note", note.id)
            _apply(row, note)
        return self.find(note.id)

    def find(self, note_id: UUID) -> Note:
        with reading(self.db, "load note"):
            row = self.db.get(NoteRow, note_id, populate_existing=True)
        if row is None:
            raise NotFoundError("Note", note_id)
        return _to_entity(row)

    def delete(self, note_id: UUID) -> None:
        with committing(self.db, "delete note"):
            row = self.db.get(NoteRow, note_id)
            if row is None:
                raise NotFoundError("Note", note_id)
            self.db.delete(row)

    def list_for_session(self, session_id: UUID) -> list[Note]:
        q = select(NoteRow).where(NoteRow.check_in_id == session_id).order_by(NoteRow.created_at)
        with reading(self.db, "list session notes"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]

    def list_by_author(self, author_id: UUID, *, privacy: Optional[PrivacyLevel] = None) -> list[Note]:
        q = select(NoteRow).where(NoteRow.author_id == author_id)
        if privacy is not None:
            q = q.where(NoteRow.privacy == PrivacyLevel(privacy).value)
        q = q.order_by(NoteRow.updated_at.desc())
        with reading(self.db, "list notes by author"):
            rows = self.db.execute(q).scalars().all()
        return [_to_entity(r) for r in rows]
