"""
Note visibility.

Decides what a given viewer may see of a note. Rules are checked in order:

1. the author sees everything and may edit;
2. a partner in the author's couple sees shared notes in full, read-only;
3. private and draft notes are masked for everyone else;
4. shared notes seen from outside the couple follow ``outside_policy``
   (``show``: content without tags, ``mask``: treated like rule 3).

Write access never depends on privacy: only the author may edit.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Collection, Optional
from uuid import UUID

from qc_api.domain.entities import Note, PrivacyLevel

MASKED_CONTENT = {
    PrivacyLevel.PRIVATE: "[Private Note]",
    PrivacyLevel.DRAFT: "[Draft]",
    # used only when shared notes are masked outside the couple
    PrivacyLevel.SHARED: "[Private Note]",
}
ANONYMOUS_AUTHOR = "Anonymous"

OUTSIDE_SHOW = "show"
OUTSIDE_MASK = "mask"


class Visibility(str, Enum):
    AUTHOR = "author"
    COUPLE = "couple"
    OUTSIDE = "outside"
    MASKED = "masked"


@dataclass(frozen=True, slots=True)
class NoteView:
    id: UUID
    privacy: PrivacyLevel
    created_at: datetime
    updated_at: datetime
    author_id: UUID
    category_id: Optional[UUID]
    session_id: Optional[UUID]
    author_name: str
    content: str
    can_edit: bool
    can_view: bool
    tags: list[str] = field(default_factory=list)
    is_favorite: Optional[bool] = None
    word_count: Optional[int] = None
    published_at: Optional[datetime] = None
    first_shared_at: Optional[datetime] = None

    @property
    def is_private(self) -> bool:
        return self.privacy is PrivacyLevel.PRIVATE

    @property
    def is_shared(self) -> bool:
        return self.privacy is PrivacyLevel.SHARED

    @property
    def is_draft(self) -> bool:
        return self.privacy is PrivacyLevel.DRAFT


def classify(
    note: Note,
    viewer_id: Optional[UUID],
    author_couple_member_ids: Collection[UUID] = (),
    *,
    outside_policy: str = OUTSIDE_SHOW,
) -> Visibility:
    if viewer_id is not None and viewer_id == note.author_id:
        return Visibility.AUTHOR
    privacy = PrivacyLevel(note.privacy)
    in_couple = viewer_id is not None and viewer_id in author_couple_member_ids
    if privacy is PrivacyLevel.SHARED and in_couple:
        return Visibility.COUPLE
    if privacy in (PrivacyLevel.PRIVATE, PrivacyLevel.DRAFT):
        return Visibility.MASKED
    if outside_policy == OUTSIDE_MASK:
        return Visibility.MASKED
    return Visibility.OUTSIDE


def can_edit(note: Note, user_id: Optional[UUID]) -> bool:
    return user_id is not None and user_id == note.author_id


def visible_note(
    note: Note,
    viewer_id: Optional[UUID],
    author_couple_member_ids: Collection[UUID] = (),
    *,
    author_name: Optional[str] = None,
    outside_policy: str = OUTSIDE_SHOW,
) -> NoteView:
    """
    Project ``note`` for ``viewer_id`` (None for an anonymous caller).
    ``author_couple_member_ids`` holds the members of the author's couple.
    """
    if outside_policy not in (OUTSIDE_SHOW, OUTSIDE_MASK):
        raise ValueError(f"Unknown outside policy: {outside_policy}")

    privacy = PrivacyLevel(note.privacy)
    visibility = classify(note, viewer_id, author_couple_member_ids, outside_policy=outside_policy)
    base = dict(
        id=note.id,
        privacy=privacy,
        created_at=note.created_at,
        updated_at=note.updated_at,
        author_id=note.author_id,
        category_id=note.category_id,
        session_id=note.session_id,
        author_name=ANONYMOUS_AUTHOR if viewer_id is None else (author_name or ANONYMOUS_AUTHOR),
    )

    if visibility is Visibility.AUTHOR:
        return NoteView(
            **base,
            content=note.content,
            can_edit=True,
            can_view=True,
            tags=list(note.tags),
            is_favorite=note.is_favorite,
            word_count=note.word_count,
            published_at=note.published_at,
            first_shared_at=note.first_shared_at,
        )
    if visibility is Visibility.COUPLE:
        return NoteView(
            **base,
            content=note.content,
            can_edit=False,
            can_view=True,
            tags=list(note.tags),
            word_count=note.word_count,
            published_at=note.published_at,
            first_shared_at=note.first_shared_at,
        )
    if visibility is Visibility.OUTSIDE:
        return NoteView(
            **base,
            content=note.content,
            can_edit=False,
            can_view=True,
            published_at=note.published_at,
            first_shared_at=note.first_shared_at,
        )
    return NoteView(
        **base,
        content=MASKED_CONTENT[privacy],
        can_edit=False,
        can_view=False,
    )
