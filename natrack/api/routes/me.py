"""
natrack.api.routes.me — Read endpoints for the authenticated user
===================================================================
"""

from __future__ import annotations

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from natrack.api.deps import get_current_user, get_session
from natrack.database.models import CardResult, Challenge, Notification
from natrack.services.challenge_service import get_active_challenge
from natrack.services.notification_service import (
    MAX_LIST_LIMIT,
    list_notifications,
    mark_read,
)

router = APIRouter(prefix="/me", tags=["me"])


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _iso(value) -> str | None:
    return value.isoformat() if value else None


def _challenge_dict(c: Challenge) -> dict:
    return {
        "id": c.id,
        "bot_id": c.bot_id,
        "bot_name": c.bot.name if c.bot else None,
        "type": c.type,
        "status": c.status,
        "target_distance_m": c.target_distance_m,
        "start_date": _iso(c.start_date),
        "due_date": _iso(c.due_date),
        "due_at": _iso(c.due_at),
    }


def _notification_dict(n: Notification) -> dict:
    return {
        "id": n.id,
        "type": n.type,
        "title": n.title,
        "body": n.body,
        "meta": n.meta,
        "read_at": _iso(n.read_at),
        "created_at": _iso(n.created_at),
    }


def _card_dict(r: CardResult) -> dict:
    return {
        "id": r.id,
        "bot_id": r.bot_id,
        "bot_name": r.bot.name if r.bot else None,
        "type": r.type,
        "distance_m": r.distance_m,
        "target_distance_m": r.target_distance_m,
        "session_id": r.session_id,
        "achieved_at": _iso(r.achieved_at),
    }


# ---------------------------------------------------------------------------
# GET /me/challenge
# ---------------------------------------------------------------------------
@router.get("/challenge")
def get_my_challenge(
    user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """The active challenge, or ``{"challenge": null}``."""
    active = get_active_challenge(session, user["sub"])
    return {"challenge": _challenge_dict(active) if active else None}


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------
@router.get("/notifications")
def get_my_notifications(
    limit: int = Query(50, ge=1, le=MAX_LIST_LIMIT),
    user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    rows = list_notifications(session, user["sub"], limit)
    return [_notification_dict(n) for n in rows]


@router.post("/notifications/{notification_id}/read")
def read_notification(
    notification_id: str,
    user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Mark one notification read.  Already-read notifications return ``updated: false``."""
    exists = session.scalar(
        select(Notification.id).where(
            Notification.id == notification_id,
            Notification.user_id == user["sub"],
        )
    )
    if exists is None:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "Notification not found")
    updated = mark_read(session, user["sub"], notification_id, datetime.now(UTC))
    session.commit()
    return {"id": notification_id, "updated": updated}


# ---------------------------------------------------------------------------
# GET /me/card-results
# ---------------------------------------------------------------------------
@router.get("/card-results")
def get_my_card_results(
    bot_id: str | None = None,
    user: dict = Depends(get_current_user),
    session: Session = Depends(get_session),
):
    """Card ledger, newest first, optionally for one bot."""
    stmt = (
        select(CardResult)
        .options(joinedload(CardResult.bot))
        .where(CardResult.user_id == user["sub"])
    )
    if bot_id:
        stmt = stmt.where(CardResult.bot_id == bot_id)
    rows = session.scalars(
        stmt.order_by(CardResult.achieved_at.desc(), CardResult.created_at.desc())
    ).all()
    return [_card_dict(r) for r in rows]
