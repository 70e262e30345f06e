from typing import Literal
from fastapi import APIRouter, Depends
from uuid import UUID
from qc_api.api.deps import Authed, Reminders
from qc_api.domain.entities import ReminderCategory
from qc_api.schemas.reminder import (
    RescheduleIn, ReminderCreate, ReminderOut, ReminderStatisticsOut, ReminderUpdate, SnoozeIn,
)
from qc_api.services.reminders import ReminderService

router = APIRouter(prefix="/api/reminders", tags=["reminders"])

@router.post("", response_model=ReminderOut, status_code=201)
def create_reminder(payload: ReminderCreate, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    reminder = reminders.create(
        ctx["user_id"],
        payload.title,
        payload.scheduled_for,
        message=payload.message,
        category=payload.category,
        frequency=payload.frequency,
        priority=payload.priority,
        assigned_to_id=payload.assigned_to_id,
        couple_id=payload.couple_id,
        related_check_in_id=payload.related_check_in_id,
    )
    return ReminderOut.model_validate(reminder)

@router.get("", response_model=list[ReminderOut])
def list_reminders(
    view: Literal["all", "upcoming", "overdue", "completed", "snoozed"] = "all",
    category: ReminderCategory | None = None,
    ctx=Depends(Authed),
    reminders: ReminderService = Depends(Reminders),
):
    return [ReminderOut.model_validate(r) for r in reminders.list_for_user(ctx["user_id"], view=view, category=category)]

@router.get("/statistics", response_model=ReminderStatisticsOut)
def reminder_statistics(ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    return ReminderStatisticsOut.model_validate(reminders.statistics(ctx["user_id"]))

@router.get("/{reminder_id}", response_model=ReminderOut)
def get_reminder(reminder_id: UUID, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    return ReminderOut.model_validate(reminders.get(reminder_id, ctx["user_id"]))

@router.patch("/{reminder_id}", response_model=ReminderOut)
def update_reminder(reminder_id: UUID, payload: ReminderUpdate, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    changes = payload.model_dump(exclude_unset=True)
    return ReminderOut.model_validate(reminders.update(reminder_id, ctx["user_id"], **changes))

@router.delete("/{reminder_id}", status_code=204)
def delete_reminder(reminder_id: UUID, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    reminders.delete(reminder_id, ctx["user_id"])

@router.post("/{reminder_id}/complete", response_model=ReminderOut)
def complete_reminder(reminder_id: UUID, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    return ReminderOut.model_validate(reminders.complete(reminder_id, ctx["user_id"]))

@router.post("/{reminder_id}/skip", response_model=ReminderOut)
def skip_reminder(reminder_id: UUID, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    return ReminderOut.model_validate(reminders.skip(reminder_id, ctx["user_id"]))

@router.post("/{reminder_id}/snooze", response_model=ReminderOut)
def snooze_reminder(reminder_id: UUID, payload: SnoozeIn | None = None, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    minutes = payload.minutes if payload else None
    return ReminderOut.model_validate(reminders.snooze(reminder_id, ctx["user_id"], minutes))

@router.post("/{reminder_id}/unsnooze", response_model=ReminderOut)
def unsnooze_reminder(reminder_id: UUID, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    return ReminderOut.model_validate(reminders.unsnooze(reminder_id, ctx["user_id"]))

@router.put("/{reminder_id}/reschedule", response_model=ReminderOut)
def reschedule_reminder(reminder_id: UUID, payload: RescheduleIn, ctx=Depends(Authed), reminders: ReminderService = Depends(Reminders)):
    return ReminderOut.model_validate(reminders.reschedule(reminder_id, ctx["user_id"], payload.scheduled_for))
