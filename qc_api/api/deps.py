from uuid import UUID

from fastapi import Depends
from sqlalchemy.orm import Session

from qc_api.core.config import settings
from qc_api.core.security import get_current_user
from qc_api.db.session import get_db
from qc_api.domain.entities import CheckInSession
from qc_api.domain.errors import AuthorizationError, NotFoundError
from qc_api.repositories import couple_repo
from qc_api.repositories.action_item_repo import SqlAlchemyActionItemRepository
from qc_api.repositories.checkin_repo import SqlAlchemyCheckInRepository
from qc_api.repositories.note_repo import SqlAlchemyNoteRepository
from qc_api.services.action_items import ActionItemService
from qc_api.services.checkin import SessionLifecycleManager
from qc_api.services.milestones import MilestoneService
from qc_api.services.notes import NoteService
from qc_api.services.reminders import ReminderService
from qc_api.services.stats import CoupleStatsObserver

def Authed(db: Session = Depends(get_db), user=Depends(get_current_user)):
    return {"db": db, "user_id": UUID(str(user["user_id"]))}

def build_manager(db: Session) -> SessionLifecycleManager:
    return SessionLifecycleManager(
        SqlAlchemyCheckInRepository(db),
        note_repo=SqlAlchemyNoteRepository(db),
        action_item_repo=SqlAlchemyActionItemRepository(db),
        observers=[CoupleStatsObserver(db)],
        single_active=settings.SINGLE_ACTIVE_SESSION,
    )

def Manager(ctx=Depends(Authed)) -> SessionLifecycleManager:
    return build_manager(ctx["db"])

def Notes(ctx=Depends(Authed)) -> NoteService:
    return NoteService(ctx["db"], build_manager(ctx["db"]), outside_policy=settings.SHARED_NOTE_OUTSIDE_COUPLE)

def ActionItems(ctx=Depends(Authed)) -> ActionItemService:
    return ActionItemService(ctx["db"], build_manager(ctx["db"]))

def Reminders(ctx=Depends(Authed)) -> ReminderService:
    return ReminderService(ctx["db"], default_snooze_minutes=settings.REMINDER_SNOOZE_MINUTES)

def Milestones(ctx=Depends(Authed)) -> MilestoneService:
    return MilestoneService(ctx["db"])

def require_member(db: Session, couple_id: UUID, user_id: UUID):
    couple = couple_repo.get_couple(db, couple_id)
    if not any(m.id == user_id for m in couple.members):
        raise AuthorizationError("You are not a member of this couple")
    return couple

def load_couple_session(db: Session, couple_id: UUID, session_id: UUID, user_id: UUID) -> CheckInSession:
    require_member(db, couple_id, user_id)
    session = SqlAlchemyCheckInRepository(db).find(session_id)
    if session.couple_id != couple_id:
        raise NotFoundError("CheckInSession", session_id)
    return session
