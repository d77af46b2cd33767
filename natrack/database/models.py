"""
natrack.database.models — SQLAlchemy 2.0 Data Models
=====================================================

Tables:
- users              — Human members and bot opponents (``is_bot`` flag)
- seasons            — Numbered periods that boost season-affiliated bots
- sessions           — Logged swim/run sessions (humans and bots)
- user_challenges    — Daily challenges/events assigned to human users
- user_card_results  — Append-only card ledger (history, not unique)
- notifications      — Append-only per-user notifications
- settings           — Admin-configurable gameplay tuning
"""

from __future__ import annotations

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all NaTrack ORM models."""


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class CardType(enum.StrEnum):
    """Kind of card a bot issues."""
    DEFI = "defi"
    OBJET = "objet"
    EVENEMENT = "evenement"
    RARE = "rare"


class ChallengeStatus(enum.StrEnum):
    """Lifecycle states of a user challenge."""
    ACTIVE = "active"
    COMPLETED = "completed"
    EXPIRED = "expired"
    CANCELLED = "cancelled"


class NotificationType(enum.StrEnum):
    """Notification kinds emitted by the challenge engine."""
    CHALLENGE_START = "challenge_start"
    EVENT_START = "event_start"
    CHALLENGE_SUCCESS = "challenge_success"
    EVENT_SUCCESS = "event_success"


# ---------------------------------------------------------------------------
# Users — humans and bots share one table
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str | None] = mapped_column(String(255), unique=True, default=None)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="user")
    avg_distance_m: Mapped[float | None] = mapped_column(Float, default=None)
    is_bot: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Bot-only attributes
    bot_card_type: Mapped[str | None] = mapped_column(String(20), default=None)
    bot_event_date: Mapped[date | None] = mapped_column(Date, default=None)
    bot_drop_rate: Mapped[float | None] = mapped_column(Float, default=None)
    bot_target_distance_m: Mapped[float | None] = mapped_column(Float, default=None)
    bot_season_int: Mapped[int | None] = mapped_column(Integer, default=None)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    sessions: Mapped[list[SportSession]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )

    __table_args__ = (
        Index("ix_users_is_bot", "is_bot"),
    )

    def __repr__(self) -> str:
        kind = "bot" if self.is_bot else "user"
        return f"<User id={self.id} name={self.name!r} {kind}>"


# ---------------------------------------------------------------------------
# Seasons — numbered periods; the latest started one is current
# ---------------------------------------------------------------------------
class Season(Base):
    __tablename__ = "seasons"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    number: Mapped[int] = mapped_column(Integer, nullable=False, unique=True)
    name: Mapped[str | None] = mapped_column(String(100), default=None)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        Index("ix_seasons_start_date", "start_date"),
    )

    def __repr__(self) -> str:
        return f"<Season number={self.number} start={self.start_date}>"


# ---------------------------------------------------------------------------
# SportSession — one logged swim or run
# ---------------------------------------------------------------------------
class SportSession(Base):
    __tablename__ = "sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    session_date: Mapped[date] = mapped_column("date", Date, nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False, default="swim")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    user: Mapped[User] = relationship(back_populates="sessions")

    __table_args__ = (
        Index("ix_sessions_user_date", "user_id", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<SportSession id={self.id} user={self.user_id} "
            f"date={self.session_date} {self.distance}m {self.type}>"
        )


# ---------------------------------------------------------------------------
# Challenge — a time-boxed distance goal against a bot
# ---------------------------------------------------------------------------
class Challenge(Base):
    """A daily challenge or event assigned to one human user.

    Rows are created by the assignment batch and afterwards only move
    through status transitions (see :mod:`natrack.engine.lifecycle`).
    """
    __tablename__ = "user_challenges"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    bot_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=ChallengeStatus.ACTIVE.value
    )
    target_distance_m: Mapped[float] = mapped_column(Float, nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=None
    )
    completed_session_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="SET NULL"), default=None
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    bot: Mapped[User] = relationship(foreign_keys=[bot_id])

    __table_args__ = (
        # At most one active challenge per user.
        Index(
            "uq_user_challenges_one_active",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'active'"),
            sqlite_where=text("status = 'active'"),
        ),
        Index("ix_user_challenges_user_status", "user_id", "status"),
        Index("ix_user_challenges_user_due", "user_id", "due_date"),
        Index("ix_user_challenges_bot_start", "bot_id", "start_date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Challenge id={self.id} user={self.user_id} bot={self.bot_id} "
            f"type={self.type} status={self.status}>"
        )


# ---------------------------------------------------------------------------
# CardResult — append-only card ledger
# ---------------------------------------------------------------------------
class CardResult(Base):
    __tablename__ = "user_card_results"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    bot_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    distance_m: Mapped[float] = mapped_column(Float, nullable=False)
    target_distance_m: Mapped[float | None] = mapped_column(Float, default=None)
    session_id: Mapped[str | None] = mapped_column(
        String(36), ForeignKey("sessions.id", ondelete="SET NULL"), default=None
    )
    achieved_at: Mapped[date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    bot: Mapped[User] = relationship(foreign_keys=[bot_id])

    __table_args__ = (
        Index("ix_card_results_user_bot", "user_id", "bot_id"),
        Index("ix_card_results_user_date", "user_id", "achieved_at"),
    )

    def __repr__(self) -> str:
        return f"<CardResult id={self.id} user={self.user_id} bot={self.bot_id} type={self.type}>"


# ---------------------------------------------------------------------------
# Notification — append-only, only ``read_at`` is ever updated
# ---------------------------------------------------------------------------
class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str | None] = mapped_column(String(255), default=None)
    body: Mapped[str | None] = mapped_column(Text, default=None)
    meta: Mapped[dict | None] = mapped_column("meta_json", JSONB, nullable=True)
    read_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), default=None)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    __table_args__ = (
        Index("ix_notifications_user_created", "user_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<Notification id={self.id} user={self.user_id} type={self.type!r}>"


# ---------------------------------------------------------------------------
# Setting — admin-configurable key-value store
# ---------------------------------------------------------------------------
class Setting(Base):
    """Key-value configuration store.

    Gameplay tuning knobs (jitter ratio, challenge duration, season boost,
    display locale) live here so they can change without a redeploy.
    Values are stored as JSON strings; typed accessors live in
    :class:`~natrack.engine.cache.ConfigCache`.
    """
    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String(100), primary_key=True)
    value_json: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(50), nullable=False, default="general")
    description: Mapped[str | None] = mapped_column(Text, default=None)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<Setting key={self.key!r} category={self.category!r}>"
