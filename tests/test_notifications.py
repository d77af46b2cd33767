"""
tests/test_notifications.py — Notification copy and persistence
=================================================================
"""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

import pytest
from sqlalchemy import select

from conftest import add_user
from natrack.constants import format_due_label, format_km
from natrack.database.models import Notification, NotificationType
from natrack.engine.lifecycle import Assignment, ChallengeSnapshot
from natrack.engine.messages import NotificationDraft, start_message, success_message
from natrack.engine.pools import BotCandidate
from natrack.services.notification_service import (
    create_notification,
    list_notifications,
    mark_read,
    mark_start_notifications_read,
)

TODAY = date(2026, 10, 19)
NOW = datetime(2026, 10, 19, 6, 0, tzinfo=UTC)
BOT = BotCandidate(id="bot-1", name="Requin", card_type="defi", avg_distance_m=10_000)


def _assignment(card_type: str = "defi", target: float = 9876, days: int = 3) -> Assignment:
    return Assignment(
        bot=BOT, card_type=card_type, target_distance_m=target,
        start_date=TODAY, due_date=TODAY + timedelta(days=days), due_at=NOW,
    )


class TestFormatting:
    @pytest.mark.parametrize("meters, digits, expected", [
        (9876, 3, "9.876"),
        (5200, 1, "5.2"),
        (5000, 1, "5.0"),
        (None, 1, ""),
        ("x", 1, ""),
        (float("inf"), 1, ""),
    ])
    def test_format_km(self, meters, digits, expected):
        assert format_km(meters, digits) == expected

    def test_due_label_french(self):
        assert format_due_label(date(2026, 10, 22)) == "jeudi 22 octobre"

    def test_due_label_english(self):
        assert format_due_label(date(2026, 8, 1), "en-GB") == "Saturday 1 August"

    def test_unknown_locale_falls_back(self):
        assert format_due_label(date(2026, 2, 2), "de") == "lundi 2 février"


class TestMessages:
    def test_challenge_start(self):
        draft = start_message(_assignment(), "c-1")
        assert draft.type == NotificationType.CHALLENGE_START
        assert draft.title == "Nouveau défi"
        assert draft.body == (
            "Un bot te défie : Requin. Tu as 3 jours pour faire 9.876 km "
            "(jusqu'au jeudi 22 octobre)."
        )
        assert draft.meta == {"bot_id": "bot-1", "challenge_id": "c-1", "due_date": "2026-10-22"}

    def test_event_start(self):
        draft = start_message(_assignment("evenement", 6000, days=0), "c-2")
        assert draft.type == NotificationType.EVENT_START
        assert draft.body == "Fais 6.000 km aujourd'hui pour gagner la carte Requin."
        assert "due_date" not in draft.meta

    def test_success(self):
        snapshot = ChallengeSnapshot(
            id="c-1", user_id="u", bot_id="bot-1", type="rare", status="active",
            target_distance_m=4321, start_date=TODAY, due_date=TODAY,
        )
        draft = success_message(snapshot, 4400)
        assert draft.type == NotificationType.CHALLENGE_SUCCESS
        assert draft.body == "Bravo ! Tu as fait 4.4 km sur 4.3 km."


class TestNotificationService:
    def _draft(self, ntype=NotificationType.CHALLENGE_START) -> NotificationDraft:
        return NotificationDraft(type=ntype, title="t", body="b", meta={"k": 1})

    def test_create_and_list_newest_first(self, db_engine, db_session):
        user = add_user(db_engine)
        first = create_notification(db_session, user, self._draft())
        first.created_at = NOW - timedelta(hours=1)
        second = create_notification(db_session, user, self._draft(NotificationType.EVENT_START))
        second.created_at = NOW
        db_session.flush()

        rows = list_notifications(db_session, user)
        assert [n.id for n in rows] == [second.id, first.id]
        assert rows[0].meta == {"k": 1}

    def test_limit_is_capped(self, db_engine, db_session):
        user = add_user(db_engine)
        for _ in range(3):
            create_notification(db_session, user, self._draft())
        assert len(list_notifications(db_session, user, limit=2)) == 2
        assert len(list_notifications(db_session, user, limit=10_000)) == 3

    def test_mark_start_read_only_touches_start_types(self, db_engine, db_session):
        user = add_user(db_engine)
        create_notification(db_session, user, self._draft(NotificationType.CHALLENGE_START))
        create_notification(db_session, user, self._draft(NotificationType.EVENT_START))
        create_notification(db_session, user, self._draft(NotificationType.CHALLENGE_SUCCESS))

        assert mark_start_notifications_read(db_session, user, NOW) == 2
        unread = db_session.scalars(
            select(Notification.type).where(Notification.read_at.is_(None))
        ).all()
        assert unread == ["challenge_success"]

    def test_mark_read_once(self, db_engine, db_session):
        user = add_user(db_engine)
        n = create_notification(db_session, user, self._draft())
        assert mark_read(db_session, user, n.id, NOW)
        assert not mark_read(db_session, user, n.id, NOW)

    def test_mark_read_other_user(self, db_engine, db_session):
        owner = add_user(db_engine, "Owner")
        other = add_user(db_engine, "Other")
        n = create_notification(db_session, owner, self._draft())
        assert not mark_read(db_session, other, n.id, NOW)
