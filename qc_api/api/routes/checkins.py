from fastapi import APIRouter, Depends, Query
from uuid import UUID
from qc_api.api.deps import Authed, Manager, load_couple_session, require_member
from qc_api.domain.errors import NotFoundError
from qc_api.repositories import couple_repo
from qc_api.schemas.checkin import (
    AdvanceIn, CategorySelectIn, CheckinOut, CheckinPatchIn, ProgressOut, TransitionOut,
)
from qc_api.services.checkin import SessionEvent, SessionLifecycleManager, TransitionResult, progress_view

router = APIRouter(prefix="/api/couples/{couple_id}/checkins", tags=["checkins"])

def _out(result: TransitionResult) -> dict:
    return {"event": result.event.value, "session": CheckinOut.model_validate(result.session)}

@router.post("", response_model=CheckinOut, status_code=201)
def start(couple_id: UUID, ctx=Depends(Authed), manager: SessionLifecycleManager = Depends(Manager)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return CheckinOut.model_validate(manager.start(couple_id))

@router.get("", response_model=list[CheckinOut])
def list_sessions(
    couple_id: UUID,
    limit: int = Query(20, ge=1, le=100),
    offset: int = Query(0, ge=0),
    ctx=Depends(Authed),
    manager: SessionLifecycleManager = Depends(Manager),
):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return [CheckinOut.model_validate(s) for s in manager.repo.list_for_couple(couple_id, limit=limit, offset=offset)]

@router.get("/current", response_model=CheckinOut)
def current(couple_id: UUID, ctx=Depends(Authed), manager: SessionLifecycleManager = Depends(Manager)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    s = manager.repo.find_active(couple_id)
    if s is None:
        raise NotFoundError("Active CheckInSession for couple", couple_id)
    return CheckinOut.model_validate(s)

@router.get("/{session_id}", response_model=CheckinOut)
def detail(couple_id: UUID, session_id: UUID, ctx=Depends(Authed)):
    return CheckinOut.model_validate(load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"]))

@router.get("/{session_id}/progress", response_model=ProgressOut)
def progress(couple_id: UUID, session_id: UUID, ctx=Depends(Authed)):
    return progress_view(load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"]))

@router.post("/{session_id}/advance", response_model=TransitionOut)
def advance(
    couple_id: UUID,
    session_id: UUID,
    payload: AdvanceIn | None = None,
    ctx=Depends(Authed),
    manager: SessionLifecycleManager = Depends(Manager),
):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    gate = None
    if payload is not None and payload.can_proceed is False:
        gate = lambda _s: False
    return _out(manager.advance(s, gate))

@router.post("/{session_id}/back", response_model=TransitionOut)
def go_back(couple_id: UUID, session_id: UUID, ctx=Depends(Authed), manager: SessionLifecycleManager = Depends(Manager)):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    return _out(manager.go_back(s))

@router.post("/{session_id}/complete", response_model=TransitionOut)
def complete(couple_id: UUID, session_id: UUID, ctx=Depends(Authed), manager: SessionLifecycleManager = Depends(Manager)):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    return _out(manager.complete(s))

@router.post("/{session_id}/abandon", response_model=TransitionOut)
def abandon(couple_id: UUID, session_id: UUID, ctx=Depends(Authed), manager: SessionLifecycleManager = Depends(Manager)):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    return _out(manager.abandon(s))

@router.post("/{session_id}/categories", response_model=TransitionOut)
def select_category(
    couple_id: UUID,
    session_id: UUID,
    payload: CategorySelectIn,
    ctx=Depends(Authed),
    manager: SessionLifecycleManager = Depends(Manager),
):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    cat = couple_repo.get_category(ctx["db"], payload.category_id)
    if cat.couple_id != couple_id:
        raise NotFoundError("Category", payload.category_id)
    return _out(manager.select_category(s, cat.id))

@router.delete("/{session_id}/categories/{category_id}", response_model=TransitionOut)
def deselect_category(
    couple_id: UUID,
    session_id: UUID,
    category_id: UUID,
    ctx=Depends(Authed),
    manager: SessionLifecycleManager = Depends(Manager),
):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    return _out(manager.deselect_category(s, category_id))

@router.patch("/{session_id}", response_model=TransitionOut)
def update(
    couple_id: UUID,
    session_id: UUID,
    payload: CheckinPatchIn,
    ctx=Depends(Authed),
    manager: SessionLifecycleManager = Depends(Manager),
):
    s = load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    result = None
    fields = payload.model_fields_set
    if "reflection" in fields:
        result = manager.set_reflection(s, payload.reflection)
    if "mood_rating" in fields:
        result = manager.set_mood(s, payload.mood_rating)
    if result is None:
        result = TransitionResult(s, SessionEvent.UPDATED)
    return _out(result)

@router.delete("/{session_id}", status_code=204)
def delete(couple_id: UUID, session_id: UUID, ctx=Depends(Authed), manager: SessionLifecycleManager = Depends(Manager)):
    load_couple_session(ctx["db"], couple_id, session_id, ctx["user_id"])
    manager.repo.delete(session_id)
