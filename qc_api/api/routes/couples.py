from dataclasses import asdict
from fastapi import APIRouter, Depends
from uuid import UUID
from qc_api.api.deps import Authed, require_member
from qc_api.repositories import couple_repo
from qc_api.repositories.checkin_repo import SqlAlchemyCheckInRepository
from qc_api.schemas.checkin import StatisticsOut
from qc_api.schemas.couple import CategoryIn, CategoryOut, CoupleCreate, CoupleOut, MemberAdd, UserIn, UserOut
from qc_api.services.stats import couple_statistics

router = APIRouter(prefix="/api", tags=["couples"])

@router.post("/users/me", response_model=UserOut)
def upsert_me(payload: UserIn, ctx=Depends(Authed)):
    return couple_repo.upsert_user(ctx["db"], ctx["user_id"], payload.name, payload.email)

@router.get("/users/me", response_model=UserOut)
def me(ctx=Depends(Authed)):
    return couple_repo.get_user(ctx["db"], ctx["user_id"])

@router.post("/couples", response_model=CoupleOut, status_code=201)
def create_couple(payload: CoupleCreate, ctx=Depends(Authed)):
    creator = couple_repo.get_user(ctx["db"], ctx["user_id"])
    return couple_repo.create_couple(ctx["db"], payload.name, creator)

@router.get("/couples/{couple_id}", response_model=CoupleOut)
def get_couple(couple_id: UUID, ctx=Depends(Authed)):
    return require_member(ctx["db"], couple_id, ctx["user_id"])

@router.post("/couples/{couple_id}/members", response_model=CoupleOut)
def add_member(couple_id: UUID, payload: MemberAdd, ctx=Depends(Authed)):
    couple = require_member(ctx["db"], couple_id, ctx["user_id"])
    user = couple_repo.get_user(ctx["db"], payload.user_id)
    return couple_repo.add_member(ctx["db"], couple, user)

@router.get("/couples/{couple_id}/categories", response_model=list[CategoryOut])
def categories(couple_id: UUID, ctx=Depends(Authed)):
    return require_member(ctx["db"], couple_id, ctx["user_id"]).categories

@router.post("/couples/{couple_id}/categories", response_model=CategoryOut, status_code=201)
def add_category(couple_id: UUID, payload: CategoryIn, ctx=Depends(Authed)):
    couple = require_member(ctx["db"], couple_id, ctx["user_id"])
    return couple_repo.add_category(ctx["db"], couple, payload.name, payload.icon, payload.description)

@router.get("/couples/{couple_id}/statistics", response_model=StatisticsOut)
def statistics(couple_id: UUID, ctx=Depends(Authed)):
    require_member(ctx["db"], couple_id, ctx["user_id"])
    return asdict(couple_statistics(SqlAlchemyCheckInRepository(ctx["db"]), couple_id))
