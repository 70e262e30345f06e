from fastapi import APIRouter, Depends
from uuid import UUID
from qc_api.api.deps import Authed, Notes, load_couple_session
from qc_api.repositories.checkin_repo import SqlAlchemyCheckInRepository
from qc_api.schemas.note import NoteCreate, NoteOut, NoteUpdate
from qc_api.services.notes import NoteService

router = APIRouter(tags=["notes"])

@router.post("/api/notes", response_model=NoteOut, status_code=201)
def create_note(payload: NoteCreate, ctx=Depends(Authed), notes: NoteService = Depends(Notes)):
    note = notes.create(
        ctx["user_id"],
        payload.content,
        privacy=payload.privacy,
        tags=payload.tags,
        category_id=payload.category_id,
        session_id=payload.session_id,
        is_favorite=payload.is_favorite,
    )
    return NoteOut.model_validate(notes.view(note, ctx["user_id"]))

@router.get("/api/notes", response_model=list[NoteOut])
def my_notes(ctx=Depends(Authed), notes: NoteService = Depends(Notes)):
    return [NoteOut.model_validate(v) for v in notes.views_for_author(ctx["user_id"], ctx["user_id"])]

@router.get("/api/notes/{note_id}", response_model=NoteOut)
def get_note(note_id: UUID, ctx=Depends(Authed), notes: NoteService = Depends(Notes)):
    return NoteOut.model_validate(notes.view(notes.get(note_id), ctx["user_id"]))

@router.patch("/api/notes/{note_id}", response_model=NoteOut)
def update_note(note_id: UUID, payload: NoteUpdate, ctx=Depends(Authed), notes: NoteService = Depends(Notes)):
    changes = payload.model_dump(exclude_unset=True)
    note = notes.update(note_id, ctx["user_id"], **changes)
    return NoteOut.model_validate(notes.view(note, ctx["user_id"]))

@router.delete("/api/notes/{note_id}", status_code=204)
def delete_note(note_id: UUID, ctx=Depends(Authed), notes: NoteService = Depends(Notes)):
    notes.delete(note_id, ctx["user_id"])

@router.get("/api/checkins/{session_id}/notes", response_model=list[NoteOut])
def session_notes(session_id: UUID, ctx=Depends(Authed), notes: NoteService = Depends(Notes)):
    s = SqlAlchemyCheckInRepository(ctx["db"]).find(session_id)
    load_couple_session(ctx["db"], s.couple_id, session_id, ctx["user_id"])
    return [NoteOut.model_validate(v) for v in notes.views_for_session(session_id, ctx["user_id"])]
