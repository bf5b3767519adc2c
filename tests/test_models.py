import asyncio
from datetime import datetime

import pytest

from feedback_system import email_utils
from feedback_system.models import Admin
from feedback_system.schemas import FeedbackRead
from feedback_system.utils import parse_positive_int


def test_admin_factory_hashes_secret():
    admin = Admin.create(username="alice", password="secret123", role="moderator")
    assert admin.password_hash != "secret123"
    assert admin.password_hash.startswith("$2")
    assert admin.check_password("secret123")
    assert not admin.check_password("secret124")


def test_changing_secret_rehashes():
    admin = Admin.create(username="alice", password="secret123")
    old_hash = admin.password_hash
    admin.set_password("another456")
    assert admin.password_hash != old_hash
    assert admin.check_password("another456")
    assert not admin.check_password("secret123")


@pytest.mark.parametrize(
    "value,expected",
    [("42", 42), (" 7 ", 7), (3, 3), ("0", None), ("-3", None), ("1e3", None), ("٣", None), (str(2 ** 63 - 1), 2 ** 63 - 1), (str(2 ** 63), None), (2 ** 63, None), (True, None), (None, None)],
)
def test_parse_positive_int(value, expected):
    assert parse_positive_int(value) == expected


def _feedback(status):
    now = datetime(2024, 1, 1, 12, 0, 0)
    return FeedbackRead(
        id=1,
        name="Jane Doe",
        email="jane@example.com",
        category="Technical",
        rating=4,
        message="Works great but slow",
        status=status,
        created_at=now,
        updated_at=now,
    )


def test_notifications_skip_when_smtp_unconfigured():
    assert asyncio.run(email_utils.send_status_notification(_feedback("approved"))) is False
    assert asyncio.run(email_utils.send_new_feedback_notification(_feedback("pending"))) is False


def test_pending_status_sends_nothing(monkeypatch):
    sent = []

    async def fake_send(to_email, subject, body):
        sent.append(to_email)
        return True

    monkeypatch.setattr(email_utils, "_send_email", fake_send)
    assert asyncio.run(email_utils.send_status_notification(_feedback("pending"))) is False
    assert asyncio.run(email_utils.send_status_notification(_feedback("rejected"))) is True
    assert sent == ["jane@example.com"]
