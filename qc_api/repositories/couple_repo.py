from sqlalchemy.orm import Session, selectinload
from sqlalchemy import select
from uuid import UUID

from qc_api.db.models import Category, Couple, User
from qc_api.domain.errors import ConflictError, NotFoundError
from qc_api.repositories.base import committing, reading

MAX_MEMBERS = 2

DEFAULT_CATEGORIES = (
    {"name": "Communication", "icon": "💬", "description": "How we talk and listen to each other", "order": 1},
    {"name": "Intimacy", "icon": "❤️", "description": "Physical and emotional connection", "order": 2},
    {"name": "Finances", "icon": "💰", "description": "Money matters and financial planning", "order": 3},
    {"name": "Family", "icon": "👨‍👩‍👧‍👦", "description": "Extended family and parenting", "order": 4},
    {"name": "Goals", "icon": "🎯", "description": "Personal and shared aspirations", "order": 5},
    {"name": "Household", "icon": "🏠", "description": "Chores and home management", "order": 6},
)

def upsert_user(db: Session, user_id: UUID, name: str, email: str | None = None) -> User:
    with committing(db, "save user"):
        u = db.get(User, user_id)
        if u is None:
            u = User(id=user_id, name=name, email=email)
            db.add(u)
        else:
            u.name = name
            if email is not None:
                u.email = email
    return u

def get_user(db: Session, user_id: UUID) -> User:
    with reading(db, "load user"):
        u = db.get(User, user_id)
    if u is None:
        raise NotFoundError("User", user_id)
    return u

def create_couple(db: Session, name: str, creator: User) -> Couple:
    c = Couple(name=name, total_check_ins=0, current_streak=0)
    c.members.append(creator)
    for attrs in DEFAULT_CATEGORIES:
        c.categories.append(Category(is_custom=False, **attrs))
    with committing(db, "create couple"):
        db.add(c)
    return c

def get_couple(db: Session, couple_id: UUID) -> Couple:
    q = (
        select(Couple)
        .options(selectinload(Couple.members), selectinload(Couple.categories))
        .where(Couple.id == couple_id)
    )
    with reading(db, "load couple"):
        c = db.execute(q).scalar_one_or_none()
    if c is None:
        raise NotFoundError("Couple", couple_id)
    return c

def add_member(db: Session, couple: Couple, user: User) -> Couple:
    if any(m.id == user.id for m in couple.members):
        return couple
    if len(couple.members) >= MAX_MEMBERS:
        raise ConflictError("A couple cannot have more than two members")
    with committing(db, "add couple member"):
        couple.members.append(user)
    return couple

def member_ids(db: Session, couple_id: UUID) -> set[UUID]:
    return {m.id for m in get_couple(db, couple_id).members}

def partner_member_ids(db: Session, user_id: UUID) -> set[UUID]:
    """
    Everyone sharing a couple with `user_id`, the user included.
    """
    q = select(Couple).options(selectinload(Couple.members)).where(Couple.members.any(User.id == user_id))
    with reading(db, "load couples for user"):
        couples = db.execute(q).scalars().all()
    ids = {user_id}
    for c in couples:
        ids.update(m.id for m in c.members)
    return ids

def get_category(db: Session, category_id: UUID) -> Category:
    with reading(db, "load category"):
        cat = db.get(Category, category_id)
    if cat is None:
        raise NotFoundError("Category", category_id)
    return cat

def add_category(db: Session, couple: Couple, name: str, icon: str, description: str | None = None) -> Category:
    order = max((c.order for c in couple.categories), default=0) + 1
    cat = Category(couple_id=couple.id, name=name, icon=icon, description=description, order=order, is_custom=True)
    with committing(db, "create category"):
        db.add(cat)
    return cat
