from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy import JSON, Boolean, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Table, Text, Uuid
import uuid
from datetime import date, datetime
from typing import Optional, List

from qc_api.utils.time import utcnow

class Base(DeclarativeBase):
    type_annotation_map = {
        datetime: DateTime(timezone=True),
        uuid.UUID: Uuid(),
    }

couple_members = Table(
    "couple_members",
    Base.metadata,
    Column("couple_id", Uuid(), ForeignKey("couples.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Uuid(), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

class User(Base):
    __tablename__ = "users"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    email: Mapped[Optional[str]] = mapped_column(String(255))
    name: Mapped[str] = mapped_column(String(120))
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    couples: Mapped[List["Couple"]] = relationship(secondary=couple_members, back_populates="members")

class Couple(Base):
    __tablename__ = "couples"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(120))
    total_check_ins: Mapped[int] = mapped_column(Integer, default=0)
    current_streak: Mapped[int] = mapped_column(Integer, default=0)
    last_check_in_at: Mapped[Optional[datetime]]
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    members: Mapped[List["User"]] = relationship(secondary=couple_members, back_populates="couples")
    categories: Mapped[List["Category"]] = relationship(
        back_populates="couple", cascade="all, delete", order_by="Category.order"
    )
    check_ins: Mapped[List["CheckIn"]] = relationship(back_populates="couple", cascade="all, delete")

class Category(Base):
    __tablename__ = "categories"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    couple_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("couples.id", ondelete="CASCADE"))
    couple: Mapped["Couple"] = relationship(back_populates="categories")
    name: Mapped[str] = mapped_column(String(80))
    icon: Mapped[str] = mapped_column(String(16))
    description: Mapped[Optional[str]] = mapped_column(Text)
    order: Mapped[int] = mapped_column(Integer, default=0)
    is_custom: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)

class CheckIn(Base):
    __tablename__ = "check_ins"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    couple_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("couples.id", ondelete="CASCADE"), index=True)
    couple: Mapped["Couple"] = relationship(back_populates="check_ins")
    status: Mapped[str] = mapped_column(String(20), default="in_progress", index=True)
    current_step: Mapped[str] = mapped_column(String(32), default="welcome")
    completed_steps: Mapped[list] = mapped_column(JSON, default=list)
    percentage_complete: Mapped[float] = mapped_column(Float)
    category_ids: Mapped[list] = mapped_column(JSON, default=list)
    step_durations: Mapped[dict] = mapped_column(JSON, default=dict)
    mood_rating: Mapped[Optional[int]] = mapped_column(Integer)
    reflection: Mapped[Optional[str]] = mapped_column(Text)
    started_at: Mapped[datetime]
    step_started_at: Mapped[Optional[datetime]]
    completed_at: Mapped[Optional[datetime]]
    abandoned_at: Mapped[Optional[datetime]]
    duration_seconds: Mapped[Optional[int]] = mapped_column(Integer)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow, onupdate=utcnow)
    notes: Mapped[List["Note"]] = relationship(back_populates="check_in", order_by="Note.created_at")
    action_items: Mapped[List["ActionItem"]] = relationship(
        back_populates="check_in", cascade="all, delete", order_by="ActionItem.created_at"
    )

class Note(Base):
    __tablename__ = "notes"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    author_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    check_in_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("check_ins.id", ondelete="SET NULL"))
    check_in: Mapped[Optional["CheckIn"]] = relationship(back_populates="notes")
    category_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("categories.id", ondelete="SET NULL"))
    content: Mapped[str] = mapped_column(Text)
    privacy: Mapped[str] = mapped_column(String(16), default="draft")
    tags: Mapped[list] = mapped_column(JSON, default=list)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False)
    published_at: Mapped[Optional[datetime]]
    first_shared_at: Mapped[Optional[datetime]]
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)

class ActionItem(Base):
    __tablename__ = "action_items"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    check_in_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("check_ins.id", ondelete="CASCADE"), index=True)
    check_in: Mapped["CheckIn"] = relationship(back_populates="action_items")
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[Optional[str]] = mapped_column(Text)
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    due_date: Mapped[Optional[date]] = mapped_column(Date)
    priority: Mapped[str] = mapped_column(String(8), default="medium")
    completed: Mapped[bool] = mapped_column(Boolean, default=False)
    completed_at: Mapped[Optional[datetime]]
    completed_by_id: Mapped[Optional[uuid.UUID]]
    created_by_id: Mapped[Optional[uuid.UUID]]
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)

class Reminder(Base):
    __tablename__ = "reminders"
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    created_by_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    assigned_to_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), index=True)
    couple_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("couples.id", ondelete="CASCADE"))
    related_check_in_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("check_ins.id", ondelete="SET NULL"))
    title: Mapped[str] = mapped_column(String(100))
    message: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(24), default="check_in")
    frequency: Mapped[str] = mapped_column(String(16), default="once")
    priority: Mapped[str] = mapped_column(String(8), default="medium")
    scheduled_for: Mapped[datetime]
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    is_snoozed: Mapped[bool] = mapped_column(Boolean, default=False)
    snooze_until: Mapped[Optional[datetime]]
    completed_at: Mapped[Optional[datetime]]
    completion_count: Mapped[int] = mapped_column(Integer, default=0)
    skip_count: Mapped[int] = mapped_column(Integer, default=0)
    snooze_count: Mapped[int] = mapped_column(Integer, default=0)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)

class Milestone(Base):
    __tablename__ = "milestones"
    __table_args__ = (Index("ix_milestones_couple_key", "couple_id", "key", unique=True),)
    id: Mapped[uuid.UUID] = mapped_column(primary_key=True, default=uuid.uuid4)
    couple_id: Mapped[uuid.UUID] = mapped_column(ForeignKey("couples.id", ondelete="CASCADE"), index=True)
    key: Mapped[Optional[str]] = mapped_column(String(32))
    title: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(32), default="custom")
    icon: Mapped[Optional[str]] = mapped_column(String(16))
    points: Mapped[int] = mapped_column(Integer, default=0)
    target_date: Mapped[Optional[date]] = mapped_column(Date)
    achieved_at: Mapped[Optional[datetime]]
    achieved_by_id: Mapped[Optional[uuid.UUID]] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"))
    achievement_notes: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(default=utcnow)

class RevokedToken(Base):
    __tablename__ = "revoked_tokens"
    jti: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(64), index=True)
    token_type: Mapped[str] = mapped_column(String(16))
    expires_at: Mapped[datetime]
    revoked_at: Mapped[datetime] = mapped_column(default=utcnow)
