"""
natrack.api.routes.sessions — Session recording
=================================================

Creating a session runs the completion detector and the object-card
grants in the same transaction, so the response already reflects any
card earned.
"""

from __future__ import annotations

import datetime as dt
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, Field
from sqlalchemy import Engine

from natrack.api.deps import get_current_admin, get_current_user, get_engine
from natrack.database.engine import run_db
from natrack.services.session_service import UserNotFoundError, record_session

router = APIRouter(tags=["sessions"])


# ---------------------------------------------------------------------------
# Pydantic schemas
# ---------------------------------------------------------------------------
class SessionCreate(BaseModel):
    date: dt.date
    distance: float = Field(gt=0)
    type: Literal["swim", "run"] = "swim"
    id: str | None = Field(default=None, max_length=36)


async def _create(engine: Engine, user_id: str, body: SessionCreate) -> dict:
    try:
        recorded = await run_db(
            record_session,
            engine,
            user_id,
            session_date=body.date,
            distance=body.distance,
            session_type=body.type,
            session_id=body.id,
        )
    except UserNotFoundError:
        raise HTTPException(status.HTTP_404_NOT_FOUND, "User not found")
    return recorded.to_dict()


# ---------------------------------------------------------------------------
# POST /me/sessions
# ---------------------------------------------------------------------------
@router.post("/me/sessions", status_code=status.HTTP_201_CREATED)
async def create_my_session(
    body: SessionCreate,
    user: dict = Depends(get_current_user),
    engine: Engine = Depends(get_engine),
):
    """Log a session for the authenticated user."""
    return await _create(engine, user["sub"], body)


# ---------------------------------------------------------------------------
# POST /users/{user_id}/sessions
# ---------------------------------------------------------------------------
@router.post("/users/{user_id}/sessions", status_code=status.HTTP_201_CREATED)
async def create_user_session(
    user_id: str,
    body: SessionCreate,
    admin: dict = Depends(get_current_admin),
    engine: Engine = Depends(get_engine),
):
    """Log a session on behalf of any user.  Bot sessions earn nothing."""
    return await _create(engine, user_id, body)
