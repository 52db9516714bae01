from datetime import timedelta

import pytest

from pharmasave.core.exceptions import NotFoundError
from pharmasave.models import Notification
from pharmasave.services import notification_service
from pharmasave.utils.timezone import now_utc


def _notify(db, pharmacist, title="Hello"):
    return notification_service.create_notification(
        db, pharmacy_id=pharmacist.pharmacy_id, title=title, message="Message body"
    )


def test_unread_count_and_mark_read(db, owner):
    first = _notify(db, owner, "First")
    _notify(db, owner, "Second")

    assert notification_service.get_unread_count(db, pharmacy_id=owner.pharmacy_id) == 2

    read = notification_service.mark_read(db, pharmacy_id=owner.pharmacy_id, notification_id=first.id)

    assert read.is_read is True
    assert read.read_at is not None
    assert notification_service.get_unread_count(db, pharmacy_id=owner.pharmacy_id) == 1


def test_notifications_are_scoped_to_pharmacy(db, owner, other_owner):
    mine = _notify(db, owner)

    assert notification_service.list_notifications(db, pharmacy_id=other_owner.pharmacy_id) == []
    with pytest.raises(NotFoundError):
        notification_service.mark_read(db, pharmacy_id=other_owner.pharmacy_id, notification_id=mine.id)
    with pytest.raises(NotFoundError):
        notification_service.delete_notification(db, pharmacy_id=other_owner.pharmacy_id, notification_id=mine.id)


def test_expired_notifications_are_hidden(db, owner):
    stale = _notify(db, owner, "Old")
    stale.expires_at = now_utc() - timedelta(days=1)
    db.commit()
    _notify(db, owner, "Fresh")

    titles = [n.title for n in notification_service.list_notifications(db, pharmacy_id=owner.pharmacy_id)]

    assert titles == ["Fresh"]
    assert notification_service.get_unread_count(db, pharmacy_id=owner.pharmacy_id) == 1


def test_mark_all_read_and_clear(db, owner):
    _notify(db, owner)
    _notify(db, owner)

    assert notification_service.mark_all_read(db, pharmacy_id=owner.pharmacy_id) == 2
    assert notification_service.get_unread_count(db, pharmacy_id=owner.pharmacy_id) == 0
    assert notification_service.clear_all(db, pharmacy_id=owner.pharmacy_id) == 2
    assert db.query(Notification).count() == 0


def test_delete_single_notification(db, owner):
    notification = _notify(db, owner)

    notification_service.delete_notification(db, pharmacy_id=owner.pharmacy_id, notification_id=notification.id)

    assert notification_service.list_notifications(db, pharmacy_id=owner.pharmacy_id) == []
