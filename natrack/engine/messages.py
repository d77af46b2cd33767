"""
natrack.engine.messages — Notification copy
=============================================

Builds the user-facing text for each trigger point.  Start notifications
show the target with three decimals; success notifications with one.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from natrack.constants import DEFAULT_LOCALE, format_due_label, format_km
from natrack.database.models import NotificationType
from natrack.engine.lifecycle import Assignment, ChallengeSnapshot


@dataclass(frozen=True, slots=True)
class NotificationDraft:
    type: NotificationType
    title: str
    body: str
    meta: dict = field(default_factory=dict)


def start_message(
    assignment: Assignment,
    challenge_id: str,
    *,
    locale: str = DEFAULT_LOCALE,
) -> NotificationDraft:
    """``event_start`` or ``challenge_start`` for a fresh assignment."""
    bot = assignment.bot
    km = format_km(assignment.target_distance_m, 3)
    meta = {"bot_id": bot.id, "challenge_id": challenge_id}

    if assignment.is_event:
        return NotificationDraft(
            type=NotificationType.EVENT_START,
            title="Événement du jour",
            body=f"Fais {km} km aujourd'hui pour gagner la carte {bot.name}.",
            meta=meta,
        )

    days = (assignment.due_date - assignment.start_date).days
    due_label = format_due_label(assignment.due_date, locale)
    return NotificationDraft(
        type=NotificationType.CHALLENGE_START,
        title="Nouveau défi",
        body=(
            f"Un bot te défie : {bot.name}. Tu as {days} jours pour faire "
            f"{km} km (jusqu'au {due_label})."
        ),
        meta={**meta, "due_date": assignment.due_date.isoformat()},
    )


def success_message(challenge: ChallengeSnapshot, distance: float) -> NotificationDraft:
    """``event_success`` or ``challenge_success`` once a goal is met."""
    actual_km = format_km(distance, 1)
    target_km = format_km(challenge.target_distance_m, 1)
    return NotificationDraft(
        type=(
            NotificationType.EVENT_SUCCESS if challenge.is_event
            else NotificationType.CHALLENGE_SUCCESS
        ),
        title="Événement réussi !" if challenge.is_event else "Défi réussi !",
        body=f"Bravo ! Tu as fait {actual_km} km sur {target_km} km.",
        meta={"bot_id": challenge.bot_id, "challenge_id": challenge.id},
    )
