from fastapi import APIRouter, Depends
from uuid import UUID
from qc_api.api.deps import Authed, Milestones, require_member
from qc_api.schemas.milestone import AchieveIn, MilestoneCreate, MilestoneOut, MilestoneStatisticsOut, MilestoneUpdate
from qc_api.services.milestones import MilestoneService

router = APIRouter(prefix="/api/couples/{couple_id}/milestones", tags=["milestones"])

@router.post("", response_model=MilestoneOut, status_code=201)
def create_milestone(couple_id: UUID, payload: MilestoneCreate, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    milestone = milestones.create(couple_id, payload.title, **payload.model_dump(exclude={"title"}))
    return MilestoneOut.model_validate(milestone)

@router.get("", response_model=list[MilestoneOut])
def list_milestones(
    couple_id: UUID,
    achieved: bool | None = None,
    category: str | None = None,
    ctx=Depends(Authed),
    milestones: MilestoneService = Depends(Milestones),
):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return [MilestoneOut.model_validate(m) for m in milestones.list_for_couple(couple_id, achieved=achieved, category=category)]

@router.get("/statistics", response_model=MilestoneStatisticsOut)
def milestone_statistics(couple_id: UUID, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return MilestoneStatisticsOut.model_validate(milestones.statistics(couple_id))

@router.get("/{milestone_id}", response_model=MilestoneOut)
def get_milestone(couple_id: UUID, milestone_id: UUID, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return MilestoneOut.model_validate(milestones.get(couple_id, milestone_id))

@router.patch("/{milestone_id}", response_model=MilestoneOut)
def update_milestone(couple_id: UUID, milestone_id: UUID, payload: MilestoneUpdate, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    changes = payload.model_dump(exclude_unset=True)
    return MilestoneOut.model_validate(milestones.update(couple_id, milestone_id, **changes))

@router.delete("/{milestone_id}", status_code=204)
def delete_milestone(couple_id: UUID, milestone_id: UUID, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    milestones.delete(couple_id, milestone_id)

@router.post("/{milestone_id}/achieve", response_model=MilestoneOut)
def achieve_milestone(couple_id: UUID, milestone_id: UUID, payload: AchieveIn | None = None, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    payload = payload or AchieveIn()
    milestone = milestones.achieve(couple_id, milestone_id, ctx["user_id"], notes=payload.notes, achieved_at=payload.achieved_at)
    return MilestoneOut.model_validate(milestone)

@router.post("/{milestone_id}/unachieve", response_model=MilestoneOut)
def unachieve_milestone(couple_id: UUID, milestone_id: UUID, ctx=Depends(Authed), milestones: MilestoneService = Depends(Milestones)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return MilestoneOut.model_validate(milestones.unachieve(couple_id, milestone_id))
