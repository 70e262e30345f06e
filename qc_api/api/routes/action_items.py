from fastapi import APIRouter, Depends
from uuid import UUID
from qc_api.api.deps import ActionItems, Authed
from qc_api.schemas.action_item import ActionItemCreate, ActionItemOut, ActionItemUpdate
from qc_api.services.action_items import ActionItemService

router = APIRouter(tags=["action-items"])

@router.post("/api/checkins/{session_id}/action-items", response_model=ActionItemOut, status_code=201)
def create_item(session_id: UUID, payload: ActionItemCreate, ctx=Depends(Authed), items: ActionItemService = Depends(ActionItems)):
    item = items.create(
        session_id,
        ctx["user_id"],
        payload.title,
        description=payload.description,
        assignee_id=payload.assignee_id,
        due_date=payload.due_date,
        priority=payload.priority,
    )
    return ActionItemOut.model_validate(item)

@router.get("/api/checkins/{session_id}/action-items", response_model=list[ActionItemOut])
def list_items(session_id: UUID, ctx=Depends(Authed), items: ActionItemService = Depends(ActionItems)):
    return [ActionItemOut.model_validate(i) for i in items.list_for_session(session_id, ctx["user_id"])]

@router.post("/api/action-items/{item_id}/complete", response_model=ActionItemOut)
def complete_item(item_id: UUID, ctx=Depends(Authed), items: ActionItemService = Depends(ActionItems)):
    return ActionItemOut.model_validate(items.complete(item_id, ctx["user_id"]))

@router.post("/api/action-items/{item_id}/reopen", response_model=ActionItemOut)
def reopen_item(item_id: UUID, ctx=Depends(Authed), items: ActionItemService = Depends(ActionItems)):
    return ActionItemOut.model_validate(items.reopen(item_id, ctx["user_id"]))

@router.patch("/api/action-items/{item_id}", response_model=ActionItemOut)
def update_item(item_id: UUID, payload: ActionItemUpdate, ctx=Depends(Authed), items: ActionItemService = Depends(ActionItems)):
    changes = payload.model_dump(exclude_unset=True)
    return ActionItemOut.model_validate(items.update(item_id, ctx["user_id"], **changes))
